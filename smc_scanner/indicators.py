"""
Classic indicators over a bar DataFrame

All functions degrade to neutral defaults on short history instead of raising.
"""
from typing import Optional

import pandas as pd


def calculate_atr(df: pd.DataFrame, period: int = 14) -> float:
    """Average true range over the last `period` bar transitions"""
    if len(df) < period + 1:
        return 0.0

    prev_close = df['close'].shift(1)
    true_range = pd.concat([
        df['high'] - df['low'],
        (df['high'] - prev_close).abs(),
        (df['low'] - prev_close).abs(),
    ], axis=1).max(axis=1)

    # First row has no previous close
    return float(true_range.iloc[1:].tail(period).mean())


def calculate_sma(df: pd.DataFrame, period: int) -> Optional[float]:
    """Simple moving average of closes, None when history is too short"""
    if len(df) < period:
        return None
    return float(df['close'].tail(period).mean())


def calculate_rsi(df: pd.DataFrame, period: int = 14) -> float:
    """
    Relative strength index from plain averages of the last `period` deltas

    Returns 50 on short history and 100 when there were no losses.
    """
    if len(df) < period + 1:
        return 50.0

    delta = df['close'].diff().tail(period)
    avg_gain = float(delta.clip(lower=0).sum()) / period
    avg_loss = float(-delta.clip(upper=0).sum()) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))
