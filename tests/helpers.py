"""
Bar builders shared by the test modules
"""
from datetime import datetime, timedelta, timezone

from smc_scanner.models import Bar

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build_bars(rows):
    """Bars 4h apart from (open, high, low, close) tuples"""
    return [
        Bar(START + timedelta(hours=4 * i), float(o), float(h), float(l), float(c), 1.0)
        for i, (o, h, l, c) in enumerate(rows)
    ]


def alternating_rows(n=60):
    """Doji bars closing 100/101 alternately: equal SMAs, RSI 50, no structure"""
    rows = []
    for i in range(n):
        close = 100.0 if i % 2 == 0 else 101.0
        rows.append((close, close + 0.5, close - 0.5, close))
    return rows


def bullish_gap_rows(n=60):
    """Flat market at 100, a bullish gap across bars 10-12, then flat at 103"""
    rows = [(100.0, 100.5, 99.5, 100.0)] * 11
    rows.append((100.0, 102.8, 100.0, 102.0))
    rows.append((102.2, 103.5, 102.0, 103.0))
    rows.extend([(103.0, 103.5, 102.5, 103.0)] * (n - len(rows)))
    return rows
