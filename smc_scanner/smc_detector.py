"""
Smart Money Concepts detection functions

Every function expects a DataFrame with columns time/open/high/low/close,
sorted ascending by time with a positional RangeIndex.
"""
import numpy as np
import pandas as pd
from typing import List, Tuple

from .models import (
    BEARISH, BULLISH, FairValueGap, MarketStructure, OrderBlock,
    StructureBreak, SwingPoint
)


def find_swing_points(df: pd.DataFrame, lookback: int = 5) -> Tuple[List[SwingPoint], List[SwingPoint]]:
    """Detect swing highs/lows that strictly exceed `lookback` bars on each side"""
    swing_highs: List[SwingPoint] = []
    swing_lows: List[SwingPoint] = []

    highs = df['high'].to_numpy(dtype=np.float64)
    lows = df['low'].to_numpy(dtype=np.float64)
    times = df['time'].tolist()

    for i in range(lookback, len(df) - lookback):
        left = slice(i - lookback, i)
        right = slice(i + 1, i + lookback + 1)

        # Check for swing high
        if np.all(highs[left] < highs[i]) and np.all(highs[right] < highs[i]):
            swing_highs.append(SwingPoint(i, float(highs[i]), times[i], 'high'))

        # Check for swing low
        if np.all(lows[left] > lows[i]) and np.all(lows[right] > lows[i]):
            swing_lows.append(SwingPoint(i, float(lows[i]), times[i], 'low'))

    return swing_highs, swing_lows


def detect_fvg(df: pd.DataFrame) -> List[FairValueGap]:
    """Detect Fair Value Gaps between the outer bars of each triple"""
    fvgs: List[FairValueGap] = []

    for i in range(2, len(df)):
        k1 = df.iloc[i - 2]
        k3 = df.iloc[i]

        # Bullish FVG: gap up, k1 high below k3 low
        if k1['high'] < k3['low']:
            fvgs.append(FairValueGap(
                kind=BULLISH,
                top=float(k3['low']),
                bottom=float(k1['high']),
                timestamp=k3['time'],
                discovery_index=i
            ))

        # Bearish FVG: gap down, k1 low above k3 high
        if k1['low'] > k3['high']:
            fvgs.append(FairValueGap(
                kind=BEARISH,
                top=float(k1['low']),
                bottom=float(k3['high']),
                timestamp=k3['time'],
                discovery_index=i
            ))

    return fvgs


def detect_order_blocks(df: pd.DataFrame) -> List[OrderBlock]:
    """
    Detect Order Blocks from a 4-bar window (k0, k1, k2, k3)

    Bullish: k1 and k2 close bearish, k2 extends the decline below k1 and k3
    closes bullish above k2's high. The block is k2 itself. Bearish is the
    mirror image. The latest bar is never taken as k3 since it may still be
    forming.
    """
    obs: List[OrderBlock] = []

    for i in range(3, len(df) - 1):
        k1 = df.iloc[i - 2]
        k2 = df.iloc[i - 1]
        k3 = df.iloc[i]

        k1_bull, k1_bear = k1['close'] > k1['open'], k1['close'] < k1['open']
        k2_bull, k2_bear = k2['close'] > k2['open'], k2['close'] < k2['open']
        k3_bull, k3_bear = k3['close'] > k3['open'], k3['close'] < k3['open']

        if k1_bear and k2_bear and k3_bull and k3['close'] > k2['high'] and k2['low'] < k1['low']:
            kind = BULLISH
        elif k1_bull and k2_bull and k3_bear and k3['close'] < k2['low'] and k2['high'] > k1['high']:
            kind = BEARISH
        else:
            continue

        obs.append(OrderBlock(
            kind=kind,
            high=float(k2['high']),
            low=float(k2['low']),
            open=float(k2['open']),
            close=float(k2['close']),
            timestamp=k2['time'],
            footprint_index=i - 1
        ))

    return obs


def detect_structure_breaks(df: pd.DataFrame, swing_highs: List[SwingPoint],
                            swing_lows: List[SwingPoint]) -> List[StructureBreak]:
    """Detect a Break of Structure on the latest bar against the prior swing extreme"""
    breaks: List[StructureBreak] = []

    if len(df) < 2:
        return breaks

    last = df.iloc[-1]
    prev = df.iloc[-2]

    # Bullish BOS: latest close crosses above the second-to-last swing high
    if len(swing_highs) >= 2:
        level = swing_highs[-2].price
        if last['close'] > level and prev['close'] <= level:
            breaks.append(StructureBreak(
                kind=BULLISH,
                level=level,
                timestamp=last['time'],
                confirmed=bool(last['close'] > last['open'])
            ))

    # Bearish BOS: latest close crosses below the second-to-last swing low
    if len(swing_lows) >= 2:
        level = swing_lows[-2].price
        if last['close'] < level and prev['close'] >= level:
            breaks.append(StructureBreak(
                kind=BEARISH,
                level=level,
                timestamp=last['time'],
                confirmed=bool(last['close'] < last['open'])
            ))

    return breaks


def detect_structures(df: pd.DataFrame, lookback: int = 5) -> MarketStructure:
    """Run every detector over one bar series"""
    swing_highs, swing_lows = find_swing_points(df, lookback)

    return MarketStructure(
        swing_highs=tuple(swing_highs),
        swing_lows=tuple(swing_lows),
        fair_value_gaps=tuple(detect_fvg(df)),
        order_blocks=tuple(detect_order_blocks(df)),
        structure_breaks=tuple(detect_structure_breaks(df, swing_highs, swing_lows)),
    )
