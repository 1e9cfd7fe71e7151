"""
Signal generation logic for the SMC scanner
"""
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

import pandas as pd

from config.models import EngineConfig
from .indicators import calculate_atr, calculate_rsi, calculate_sma
from .levels import resolve_entry, resolve_stop
from .models import (
    BEARISH, BULLISH, CANDIDATE, LONG, SHORT, TRADABLE,
    Bar, MarketStructure, Signal, Ticker
)
from .smc_detector import detect_structures

logger = logging.getLogger(__name__)

BAR_COLUMNS = ['time', 'open', 'high', 'low', 'close', 'volume']


def bars_to_dataframe(bars: Sequence[Bar]) -> pd.DataFrame:
    """Convert a bar list to the DataFrame layout the detectors expect"""
    df = pd.DataFrame(
        [(b.time, b.open, b.high, b.low, b.close, b.volume) for b in bars],
        columns=BAR_COLUMNS
    )

    # Ensure all numeric columns are float64
    for col in BAR_COLUMNS[1:]:
        df[col] = pd.to_numeric(df[col], errors='coerce').astype('float64')

    return df


def determine_direction(df: pd.DataFrame, config: EngineConfig) -> Tuple[str, float, str]:
    """
    Pick direction and base confidence from the SMA crossover and RSI

    Returns:
        Tuple of (direction, confidence, reason). Without a concordant
        crossover/RSI reading the direction defaults to LONG at neutral
        confidence.
    """
    sma_fast = calculate_sma(df, config.sma_fast)
    sma_slow = calculate_sma(df, config.sma_slow)
    rsi = calculate_rsi(df, config.rsi_period)

    if sma_fast is not None and sma_slow is not None:
        if sma_fast > sma_slow and rsi > 50:
            confidence = config.trend_confidence + (rsi - 50) * config.rsi_confidence_weight
            return LONG, confidence, f"SMA{config.sma_fast}>SMA{config.sma_slow} and RSI>50"
        if sma_fast < sma_slow and rsi < 50:
            confidence = config.trend_confidence + (50 - rsi) * config.rsi_confidence_weight
            return SHORT, confidence, f"SMA{config.sma_fast}<SMA{config.sma_slow} and RSI<50"

    return LONG, config.neutral_confidence, "No concordant trend, default LONG"


def fvg_confirms(direction: str, structure: MarketStructure, window: int = 3) -> bool:
    """True when recent gaps matching the direction outnumber opposing ones"""
    recent = structure.fair_value_gaps[-window:]
    bullish = sum(1 for gap in recent if gap.kind == BULLISH)
    bearish = sum(1 for gap in recent if gap.kind == BEARISH)

    if direction == LONG:
        return bullish > bearish
    return bearish > bullish


def calculate_targets(direction: str, entry: float, stop: float,
                      config: EngineConfig) -> Tuple[float, float, float]:
    """Return (tp1, tp2, reward_risk_ratio) as multiples of the entry/stop risk"""
    risk = abs(entry - stop)

    if direction == LONG:
        tp1 = entry + risk * config.tp1_multiple
        tp2 = entry + risk * config.tp2_multiple
        rrr = (tp1 - entry) / risk if risk > 0 else config.default_reward_risk
    else:
        tp1 = entry - risk * config.tp1_multiple
        tp2 = entry - risk * config.tp2_multiple
        rrr = (entry - tp1) / risk if risk > 0 else config.default_reward_risk

    return tp1, tp2, rrr


def rate_signal(confidence: float, fallback_entry: bool, config: EngineConfig) -> Tuple[str, str]:
    """Map confidence to (rating, classification); a market-price entry always rates C"""
    if fallback_entry:
        return 'C', CANDIDATE

    if confidence >= config.rating_s:
        return 'S', TRADABLE
    if confidence >= config.rating_a:
        return 'A', TRADABLE
    if confidence >= config.rating_b:
        return 'B', TRADABLE
    return 'C', CANDIDATE


def _round_score(confidence: float) -> int:
    # Half-up, so 72.5 scores 73
    return int(math.floor(confidence + 0.5))


def generate_signal(symbol: str, bars: Sequence[Bar], ticker: Optional[Ticker],
                    config: Optional[EngineConfig] = None) -> Signal:
    """
    Compose one signal for an instrument

    Args:
        symbol: Instrument symbol
        bars: Ascending bar series
        ticker: Last-trade ticker; the last close is used when absent
        config: Engine parameters

    Returns:
        Immutable Signal
    """
    config = config or EngineConfig()
    df = bars_to_dataframe(bars)

    current_price = float(ticker.last) if ticker and ticker.last else float(df['close'].iloc[-1])
    atr = calculate_atr(df, config.atr_period)
    structure = detect_structures(df, config.swing_lookback)

    # Step 1: direction and base confidence
    direction, confidence, reason = determine_direction(df, config)

    # Step 2: recent FVG confirmation
    if fvg_confirms(direction, structure, config.fvg_confirmation_window):
        confidence += config.fvg_confirmation_bonus
        reason += ", bullish FVGs dominate" if direction == LONG else ", bearish FVGs dominate"

    # Step 3: entry, stop, targets
    entry = resolve_entry(direction, structure, current_price, config)
    stop = resolve_stop(direction, structure, entry.price, atr, config)
    tp1, tp2, rrr = calculate_targets(direction, entry.price, stop.price, config)

    # Step 4: rating
    rating, classification = rate_signal(confidence, entry.fallback, config)

    logger.debug(f"{symbol}: {direction} {entry.entry_type}@{entry.price:.6g} "
                 f"SL {stop.stop_type}@{stop.price:.6g} conf={confidence:.1f} rating={rating}")

    return Signal(
        id=uuid.uuid4().hex,
        symbol=symbol,
        direction=direction,
        entry_price=float(entry.price),
        entry_type=entry.entry_type,
        entry_rationale=entry.rationale,
        entry_tradable=entry.tradable,
        current_price=current_price,
        stop_price=float(stop.price),
        stop_type=stop.stop_type,
        stop_rationale=stop.rationale,
        tp1=float(tp1),
        tp2=float(tp2),
        reward_risk_ratio=float(rrr),
        rating=rating,
        confidence_score=_round_score(confidence),
        classification=classification,
        status='ACTIVE',
        timeframe=config.timeframe,
        direction_reason=reason,
        structure_snapshot=structure.snapshot(config.snapshot_size),
        atr=atr,
        generated_at=datetime.now(timezone.utc),
    )
