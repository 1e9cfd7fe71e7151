import sys
from pathlib import Path

# Ensure project root on sys.path before importing project packages
sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from helpers import alternating_rows, build_bars, bullish_gap_rows
from smc_scanner.signal_generator import bars_to_dataframe


@pytest.fixture
def make_bars():
    return build_bars


@pytest.fixture
def make_df():
    def _make(rows):
        return bars_to_dataframe(build_bars(rows))
    return _make


@pytest.fixture
def neutral_bars():
    return build_bars(alternating_rows())


@pytest.fixture
def gap_bars():
    return build_bars(bullish_gap_rows())
