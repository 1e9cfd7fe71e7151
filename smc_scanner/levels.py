"""
Entry and stop-loss price resolution from detected market structure

Both resolvers walk an ordered table of (name, predicate, resolver) rules and
return the result of the first rule whose predicate holds. The tables are the
priority order; the last rule of each always applies.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from config.models import EngineConfig
from .models import (
    BEARISH, BULLISH, LONG, EntryResolution, MarketStructure, StopResolution
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelContext:
    """Inputs shared by every entry/stop rule"""
    direction: str
    structure: MarketStructure
    current_price: float
    config: EngineConfig
    entry_price: Optional[float] = None
    atr: float = 0.0

    @property
    def is_long(self) -> bool:
        return self.direction == LONG

    @property
    def structure_kind(self) -> str:
        return BULLISH if self.is_long else BEARISH

    @property
    def swing_kind(self) -> str:
        # Longs lean on the last swing low, shorts on the last swing high
        return 'low' if self.is_long else 'high'

    def gap(self):
        return self.structure.latest_gap(self.structure_kind)

    def order_block(self):
        return self.structure.latest_order_block(self.structure_kind)

    def swing(self):
        return self.structure.latest_swing(self.swing_kind)


EntryRule = Tuple[str, Callable[[LevelContext], bool], Callable[[LevelContext], EntryResolution]]
StopRule = Tuple[str, Callable[[LevelContext], bool], Callable[[LevelContext], StopResolution]]


def _has_gap(ctx: LevelContext) -> bool:
    return ctx.gap() is not None


def _has_order_block(ctx: LevelContext) -> bool:
    return ctx.order_block() is not None


def _has_swing(ctx: LevelContext) -> bool:
    return ctx.swing() is not None


def _always(ctx: LevelContext) -> bool:
    return True


# ---------------------------------------------------------------- entry rules

def _entry_from_gap(ctx: LevelContext) -> EntryResolution:
    gap = ctx.gap()
    ratio = ctx.config.fvg_entry_ratio

    if ctx.is_long:
        price = gap.bottom + gap.height * ratio
    else:
        price = gap.top - gap.height * ratio

    in_zone = gap.contains(ctx.current_price)
    distance = abs(ctx.current_price - price) / ctx.current_price
    zone = f"{gap.bottom:.4f} - {gap.top:.4f}"

    return EntryResolution(
        price=price,
        entry_type='FVG_MID',
        rationale=f"Entry inside FVG ({zone})" if in_zone else f"FVG midline target ({zone})",
        artifact=gap,
        tradable=in_zone or distance < ctx.config.max_entry_distance,
        in_zone=in_zone,
        distance=distance,
    )


def _entry_from_order_block(ctx: LevelContext) -> EntryResolution:
    block = ctx.order_block()
    offset = ctx.config.ob_entry_offset

    if ctx.is_long:
        price = block.high * (1 + offset)
    else:
        price = block.low * (1 - offset)

    return EntryResolution(
        price=price,
        entry_type='OB_EDGE',
        rationale=f"Order block edge entry (OB: {block.low:.4f} - {block.high:.4f})",
        artifact=block,
    )


def _entry_from_swing(ctx: LevelContext) -> EntryResolution:
    swing = ctx.swing()
    offset = ctx.config.swing_entry_offset

    if ctx.is_long:
        return EntryResolution(
            price=swing.price * (1 + offset),
            entry_type='SWING_LOW',
            rationale=f"Swing low support entry ({swing.price:.4f})",
            artifact=swing,
        )
    return EntryResolution(
        price=swing.price * (1 - offset),
        entry_type='SWING_HIGH',
        rationale=f"Swing high resistance entry ({swing.price:.4f})",
        artifact=swing,
    )


def _entry_at_market(ctx: LevelContext) -> EntryResolution:
    return EntryResolution(
        price=ctx.current_price,
        entry_type='CURRENT_PRICE',
        rationale="Market price entry (no technical level)",
        fallback=True,
    )


ENTRY_RULES: Tuple[EntryRule, ...] = (
    ('fvg', _has_gap, _entry_from_gap),
    ('order_block', _has_order_block, _entry_from_order_block),
    ('swing', _has_swing, _entry_from_swing),
    ('market', _always, _entry_at_market),
)


# ----------------------------------------------------------------- stop rules

def _stop_from_gap(ctx: LevelContext) -> StopResolution:
    gap = ctx.gap()
    buffer = ctx.config.fvg_stop_buffer

    if ctx.is_long:
        return StopResolution(gap.bottom * (1 - buffer), 'FVG_BOTTOM', "Stop below FVG bottom", gap)
    return StopResolution(gap.top * (1 + buffer), 'FVG_TOP', "Stop above FVG top", gap)


def _stop_from_order_block(ctx: LevelContext) -> StopResolution:
    block = ctx.order_block()
    buffer = ctx.config.ob_stop_buffer

    if ctx.is_long:
        return StopResolution(block.low * (1 - buffer), 'OB_LOW', "Stop below order block low", block)
    return StopResolution(block.high * (1 + buffer), 'OB_HIGH', "Stop above order block high", block)


def _stop_from_swing(ctx: LevelContext) -> StopResolution:
    swing = ctx.swing()
    buffer = ctx.config.swing_stop_buffer

    if ctx.is_long:
        return StopResolution(swing.price * (1 - buffer), 'SWING_LOW', "Stop below swing low", swing)
    return StopResolution(swing.price * (1 + buffer), 'SWING_HIGH', "Stop above swing high", swing)


def _stop_from_atr(ctx: LevelContext) -> StopResolution:
    distance = ctx.atr * ctx.config.atr_stop_multiplier
    price = ctx.entry_price - distance if ctx.is_long else ctx.entry_price + distance
    return StopResolution(price, 'ATR', f"ATR stop ({ctx.config.atr_stop_multiplier}x ATR)")


STOP_RULES: Tuple[StopRule, ...] = (
    ('fvg', _has_gap, _stop_from_gap),
    ('order_block', _has_order_block, _stop_from_order_block),
    ('swing', _has_swing, _stop_from_swing),
    ('atr', _always, _stop_from_atr),
)


def _first_match(rules: Sequence, ctx: LevelContext):
    for name, applies, resolve in rules:
        if applies(ctx):
            logger.debug(f"{ctx.direction} level resolved by rule '{name}'")
            return resolve(ctx)
    raise LookupError("No level rule applied")


def resolve_entry(direction: str, structure: MarketStructure, current_price: float,
                  config: EngineConfig, rules: Sequence[EntryRule] = ENTRY_RULES) -> EntryResolution:
    """Pick an entry price from the first applicable rule"""
    ctx = LevelContext(direction, structure, current_price, config)
    return _first_match(rules, ctx)


def resolve_stop(direction: str, structure: MarketStructure, entry_price: float, atr: float,
                 config: EngineConfig, rules: Sequence[StopRule] = STOP_RULES) -> StopResolution:
    """Pick a protective stop independently of the entry rule that fired"""
    ctx = LevelContext(direction, structure, entry_price, config, entry_price=entry_price, atr=atr)
    return _first_match(rules, ctx)
