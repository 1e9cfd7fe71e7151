"""
Data models for the SMC signal scanner
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from config.models import FreshnessThresholds

LONG = 'LONG'
SHORT = 'SHORT'

BULLISH = 'bullish'
BEARISH = 'bearish'

TRADABLE = 'tradable'
CANDIDATE = 'candidate'

INSUFFICIENT_DATA = 'INSUFFICIENT_DATA'
NO_TICKER_DATA = 'NO_TICKER_DATA'
GENERATION_ERROR = 'GENERATION_ERROR'


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Bar:
    """Single OHLCV price bar"""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class Ticker:
    """Last-trade ticker for one instrument"""
    last: float
    high_24h: Optional[float] = None
    low_24h: Optional[float] = None
    change_percent: Optional[float] = None
    base_volume: Optional[float] = None
    quote_volume: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Ticker':
        """Create Ticker from a raw exchange ticker dictionary"""
        def _num(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return float(data[key])
            return None

        return cls(
            last=_num('last') or 0.0,
            high_24h=_num('high_24h', 'high24h'),
            low_24h=_num('low_24h', 'low24h'),
            change_percent=_num('change_percent', 'change_percentage', 'changePercent'),
            base_volume=_num('base_volume', 'baseVolume'),
            quote_volume=_num('quote_volume', 'quoteVolume'),
        )


@dataclass(frozen=True)
class SwingPoint:
    """Local price extreme confirmed by a symmetric window"""
    index: int
    price: float
    time: datetime
    kind: str  # 'high' or 'low'

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'price': self.price, 'time': _iso(self.time), 'kind': self.kind}


@dataclass(frozen=True)
class FairValueGap:
    """Three-bar imbalance between the outer two bars"""
    kind: str  # BULLISH or BEARISH
    top: float
    bottom: float
    timestamp: datetime
    discovery_index: int

    @property
    def mid(self) -> float:
        return (self.top + self.bottom) / 2

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def contains(self, price: float) -> bool:
        return self.bottom <= price <= self.top

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'top': self.top,
            'bottom': self.bottom,
            'mid': self.mid,
            'timestamp': _iso(self.timestamp),
            'discovery_index': self.discovery_index,
        }


@dataclass(frozen=True)
class OrderBlock:
    """Order block; footprint_index is the position of the block bar itself"""
    kind: str  # BULLISH or BEARISH
    high: float
    low: float
    open: float
    close: float
    timestamp: datetime
    footprint_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'high': self.high,
            'low': self.low,
            'open': self.open,
            'close': self.close,
            'timestamp': _iso(self.timestamp),
            'footprint_index': self.footprint_index,
        }


@dataclass(frozen=True)
class StructureBreak:
    """Break of structure on the latest bar"""
    kind: str  # BULLISH or BEARISH
    level: float
    timestamp: datetime
    confirmed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'level': self.level,
            'timestamp': _iso(self.timestamp),
            'confirmed': self.confirmed,
        }


@dataclass(frozen=True)
class MarketStructure:
    """Everything the structure detector found in one bar series"""
    swing_highs: Tuple[SwingPoint, ...] = ()
    swing_lows: Tuple[SwingPoint, ...] = ()
    fair_value_gaps: Tuple[FairValueGap, ...] = ()
    order_blocks: Tuple[OrderBlock, ...] = ()
    structure_breaks: Tuple[StructureBreak, ...] = ()

    def latest_gap(self, kind: str) -> Optional[FairValueGap]:
        for gap in reversed(self.fair_value_gaps):
            if gap.kind == kind:
                return gap
        return None

    def latest_order_block(self, kind: str) -> Optional[OrderBlock]:
        for block in reversed(self.order_blocks):
            if block.kind == kind:
                return block
        return None

    def latest_swing(self, kind: str) -> Optional[SwingPoint]:
        swings = self.swing_highs if kind == 'high' else self.swing_lows
        return swings[-1] if swings else None

    def snapshot(self, size: int = 3) -> 'StructureSnapshot':
        """Trimmed copy embedded into a signal"""
        return StructureSnapshot(
            fair_value_gaps=self.fair_value_gaps[-size:],
            order_blocks=self.order_blocks[-size:],
            swing_highs=self.swing_highs[-size:],
            swing_lows=self.swing_lows[-size:],
            structure_breaks=self.structure_breaks,
        )


@dataclass(frozen=True)
class StructureSnapshot:
    fair_value_gaps: Tuple[FairValueGap, ...]
    order_blocks: Tuple[OrderBlock, ...]
    swing_highs: Tuple[SwingPoint, ...]
    swing_lows: Tuple[SwingPoint, ...]
    structure_breaks: Tuple[StructureBreak, ...]

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            'fvg': [g.to_dict() for g in self.fair_value_gaps],
            'order_blocks': [b.to_dict() for b in self.order_blocks],
            'swing_highs': [s.to_dict() for s in self.swing_highs],
            'swing_lows': [s.to_dict() for s in self.swing_lows],
            'bos': [b.to_dict() for b in self.structure_breaks],
        }


Artifact = Union[FairValueGap, OrderBlock, SwingPoint, None]


@dataclass(frozen=True)
class EntryResolution:
    """Result of the entry price rule chain"""
    price: float
    entry_type: str
    rationale: str
    artifact: Artifact = None
    tradable: bool = True
    in_zone: Optional[bool] = None
    distance: Optional[float] = None
    fallback: bool = False


@dataclass(frozen=True)
class StopResolution:
    """Result of the stop-loss rule chain"""
    price: float
    stop_type: str
    rationale: str
    artifact: Artifact = None


@dataclass(frozen=True)
class Signal:
    """Directional trading signal produced once per scan per instrument"""
    id: str
    symbol: str
    direction: str
    entry_price: float
    entry_type: str
    entry_rationale: str
    entry_tradable: bool
    current_price: float
    stop_price: float
    stop_type: str
    stop_rationale: str
    tp1: float
    tp2: float
    reward_risk_ratio: float
    rating: str
    confidence_score: int
    classification: str
    status: str
    timeframe: str
    direction_reason: str
    structure_snapshot: StructureSnapshot
    atr: float
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return {
            'id': self.id,
            'symbol': self.symbol,
            'direction': self.direction,
            'entry_price': self.entry_price,
            'entry_type': self.entry_type,
            'entry_rationale': self.entry_rationale,
            'entry_tradable': self.entry_tradable,
            'current_price': self.current_price,
            'sl': self.stop_price,
            'sl_type': self.stop_type,
            'sl_rationale': self.stop_rationale,
            'tp1': self.tp1,
            'tp2': self.tp2,
            'rrr': self.reward_risk_ratio,
            'rating': self.rating,
            'score': self.confidence_score,
            'classification': self.classification,
            'status': self.status,
            'timeframe': self.timeframe,
            'direction_reason': self.direction_reason,
            'structure': self.structure_snapshot.to_dict(),
            'atr': self.atr,
            'generated_at': _iso(self.generated_at),
        }


@dataclass(frozen=True)
class FilteredInstrument:
    """Instrument skipped during a scan, with the reason"""
    symbol: str
    reason_code: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'symbol': self.symbol, 'reason': self.reason_code}
        if self.detail is not None:
            data['error'] = self.detail
        return data


@dataclass(frozen=True)
class Freshness:
    """Freshness metadata attached by the data source to one input set"""
    status: str  # 'HEALTHY', 'DEGRADED', 'STALE' or 'EXPIRED'
    last_update: Optional[datetime] = None
    age_ms: Optional[int] = None


@dataclass
class MarketSnapshot:
    """Materialized inputs of one scan"""
    bars: Dict[str, List[Bar]] = field(default_factory=dict)
    tickers: Dict[str, Ticker] = field(default_factory=dict)
    freshness: Dict[str, Freshness] = field(default_factory=dict)
    thresholds: Optional[FreshnessThresholds] = None


@dataclass(frozen=True)
class DataHealth:
    status: str
    kline_count: int
    ticker_count: int
    last_update: Optional[datetime] = None
    age_ms: Optional[int] = None
    thresholds: Optional[FreshnessThresholds] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'kline_count': self.kline_count,
            'ticker_count': self.ticker_count,
            'last_update': _iso(self.last_update),
            'age_ms': self.age_ms,
            'thresholds': asdict(self.thresholds) if self.thresholds is not None else None,
        }


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one orchestration run over the universe"""
    scan_time: datetime
    signals: Tuple[Signal, ...]
    filtered: Tuple[FilteredInstrument, ...]
    data_health: DataHealth

    @property
    def total_signals(self) -> int:
        return len(self.signals)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scan_time': _iso(self.scan_time),
            'total_signals': self.total_signals,
            'signals': [s.to_dict() for s in self.signals],
            'filtered': [f.to_dict() for f in self.filtered],
            'data_health': self.data_health.to_dict(),
        }
