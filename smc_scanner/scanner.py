"""
Scan orchestration across the instrument universe
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from config.models import EngineConfig
from config.universe import DEFAULT_UNIVERSE
from .models import (
    GENERATION_ERROR, INSUFFICIENT_DATA, NO_TICKER_DATA,
    DataHealth, FilteredInstrument, MarketSnapshot, ScanResult, Signal
)
from .signal_generator import generate_signal

logger = logging.getLogger(__name__)

Outcome = Union[Signal, FilteredInstrument]

# Worst first
HEALTH_SEVERITY = ['EXPIRED', 'STALE', 'DEGRADED', 'HEALTHY']


def summarize_health(snapshot: MarketSnapshot) -> DataHealth:
    """Summarize the freshness metadata the data source attached to the snapshot"""
    kline_count = sum(1 for bars in snapshot.bars.values() if bars)
    ticker_count = len(snapshot.tickers)

    if not snapshot.freshness:
        return DataHealth('UNKNOWN', kline_count, ticker_count, thresholds=snapshot.thresholds)

    statuses = [f.status for f in snapshot.freshness.values()]
    ranked = [s for s in HEALTH_SEVERITY if s in statuses]
    status = ranked[0] if ranked else 'UNKNOWN'

    updates = [f.last_update for f in snapshot.freshness.values() if f.last_update is not None]
    ages = [f.age_ms for f in snapshot.freshness.values() if f.age_ms is not None]

    return DataHealth(
        status=status,
        kline_count=kline_count,
        ticker_count=ticker_count,
        last_update=min(updates) if updates else None,
        age_ms=max(ages) if ages else None,
        thresholds=snapshot.thresholds,
    )


class SignalScanner:
    """Runs signal generation over every instrument of the universe"""

    def __init__(self, config: Optional[EngineConfig] = None,
                 universe: Sequence[str] = DEFAULT_UNIVERSE, max_concurrency: int = 4):
        self.config = config or EngineConfig()
        self.universe = list(universe)
        self.max_concurrency = max_concurrency

    def evaluate(self, symbol: str, snapshot: MarketSnapshot) -> Outcome:
        """Produce exactly one outcome for one instrument"""
        bars = snapshot.bars.get(symbol) or []
        ticker = snapshot.tickers.get(symbol)

        if len(bars) < self.config.min_bars:
            logger.debug(f"Insufficient data for {symbol}: {len(bars)} bars")
            return FilteredInstrument(symbol, INSUFFICIENT_DATA)

        if ticker is None:
            logger.debug(f"No ticker for {symbol}")
            return FilteredInstrument(symbol, NO_TICKER_DATA)

        try:
            return generate_signal(symbol, bars, ticker, self.config)
        except Exception as e:
            logger.error(f"Error generating signal for {symbol}: {e}")
            return FilteredInstrument(symbol, GENERATION_ERROR, str(e))

    def scan(self, snapshot: MarketSnapshot) -> ScanResult:
        """Evaluate the universe sequentially"""
        logger.info(f"Starting scan of {len(self.universe)} symbols")
        outcomes = [self.evaluate(symbol, snapshot) for symbol in self.universe]
        return self._build_result(outcomes, snapshot)

    async def scan_async(self, snapshot: MarketSnapshot) -> ScanResult:
        """Evaluate instruments concurrently in worker threads, bounded by max_concurrency"""
        logger.info(f"Starting concurrent scan of {len(self.universe)} symbols "
                    f"(max {self.max_concurrency} at once)")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(symbol: str) -> Outcome:
            async with semaphore:
                return await asyncio.to_thread(self.evaluate, symbol, snapshot)

        # gather keeps universe order regardless of completion order
        outcomes = await asyncio.gather(*(run(symbol) for symbol in self.universe))
        return self._build_result(list(outcomes), snapshot)

    def _build_result(self, outcomes: List[Outcome], snapshot: MarketSnapshot) -> ScanResult:
        signals = [o for o in outcomes if isinstance(o, Signal)]
        filtered = [o for o in outcomes if isinstance(o, FilteredInstrument)]

        # sorted() is stable, so equal scores keep universe order
        signals = sorted(signals, key=lambda s: s.confidence_score, reverse=True)

        result = ScanResult(
            scan_time=datetime.now(timezone.utc),
            signals=tuple(signals),
            filtered=tuple(filtered),
            data_health=summarize_health(snapshot),
        )

        logger.info(f"Scan completed: {result.total_signals} signals, {len(filtered)} filtered")
        return result


def scan_universe(snapshot: MarketSnapshot, config: Optional[EngineConfig] = None,
                  universe: Sequence[str] = DEFAULT_UNIVERSE) -> ScanResult:
    """Convenience function for a single sequential scan"""
    return SignalScanner(config, universe).scan(snapshot)
