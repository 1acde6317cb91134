import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from loggrid_core import TextSize  # noqa: E402


@pytest.fixture
def fixed_measure():
    """Measure every label as 40x14 regardless of text."""

    def measure(text: str) -> TextSize:
        return TextSize(width=40, height=14)

    return measure
