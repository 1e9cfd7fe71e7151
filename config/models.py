"""
Configuration models for the SMC signal scanner
"""
from dataclasses import dataclass, field
from typing import List

from .universe import DEFAULT_UNIVERSE


@dataclass(frozen=True)
class EngineConfig:
    """Numeric parameters of the signal engine"""

    # Data sufficiency
    min_bars: int = 50

    # Indicators
    atr_period: int = 14
    rsi_period: int = 14
    sma_fast: int = 20
    sma_slow: int = 50

    # Structure detection
    swing_lookback: int = 5

    # Entry resolution
    fvg_entry_ratio: float = 0.5
    max_entry_distance: float = 0.015  # 1.5% from entry still counts as reachable
    ob_entry_offset: float = 0.002
    swing_entry_offset: float = 0.002

    # Stop resolution
    fvg_stop_buffer: float = 0.002
    ob_stop_buffer: float = 0.002
    swing_stop_buffer: float = 0.005
    atr_stop_multiplier: float = 1.5

    # Targets
    tp1_multiple: float = 2.0
    tp2_multiple: float = 3.0
    default_reward_risk: float = 2.0

    # Confidence scoring
    neutral_confidence: float = 50.0
    trend_confidence: float = 60.0
    rsi_confidence_weight: float = 0.5
    fvg_confirmation_bonus: float = 10.0
    fvg_confirmation_window: int = 3

    # Rating thresholds
    rating_s: float = 85.0
    rating_a: float = 70.0
    rating_b: float = 55.0

    snapshot_size: int = 3
    timeframe: str = "4H"

    def validate(self) -> List[str]:
        """Validate parameters and return list of errors"""
        errors = []

        for name in ('min_bars', 'atr_period', 'rsi_period', 'sma_fast', 'sma_slow',
                     'swing_lookback', 'fvg_confirmation_window', 'snapshot_size'):
            if getattr(self, name) < 1:
                errors.append(f"{name} must be positive: {getattr(self, name)}")

        if self.sma_fast >= self.sma_slow:
            errors.append(f"sma_fast must be shorter than sma_slow: {self.sma_fast} >= {self.sma_slow}")

        if not 0.0 <= self.fvg_entry_ratio <= 1.0:
            errors.append(f"fvg_entry_ratio out of range: {self.fvg_entry_ratio}")

        for name in ('max_entry_distance', 'ob_entry_offset', 'swing_entry_offset',
                     'fvg_stop_buffer', 'ob_stop_buffer', 'swing_stop_buffer', 'atr_stop_multiplier'):
            if getattr(self, name) < 0:
                errors.append(f"{name} must not be negative: {getattr(self, name)}")

        if not 0 < self.tp1_multiple < self.tp2_multiple:
            errors.append(f"Target multiples must satisfy 0 < tp1 < tp2: {self.tp1_multiple}, {self.tp2_multiple}")

        if not self.rating_b <= self.rating_a <= self.rating_s:
            errors.append("Rating thresholds must satisfy B <= A <= S")

        return errors


@dataclass(frozen=True)
class FreshnessThresholds:
    """Age limits used by the data source to label its inputs"""
    healthy_ms: int = 300000    # 5 minutes
    stale_ms: int = 900000      # 15 minutes
    expired_ms: int = 3600000   # 1 hour

    def classify(self, age_ms: int) -> str:
        if age_ms <= self.healthy_ms:
            return 'HEALTHY'
        if age_ms <= self.stale_ms:
            return 'DEGRADED'
        if age_ms <= self.expired_ms:
            return 'STALE'
        return 'EXPIRED'


@dataclass
class ScannerConfig:
    """Main application configuration"""
    universe: List[str] = field(default_factory=lambda: list(DEFAULT_UNIVERSE))
    engine: EngineConfig = field(default_factory=EngineConfig)
    freshness: FreshnessThresholds = field(default_factory=FreshnessThresholds)

    max_concurrency: int = 4

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    log_file_path: str = "logs/scanner.log"

    # Inputs
    data_dir: str = "data"
    tickers_path: str = "data/tickers.json"

    def __post_init__(self):
        self.universe = [symbol.upper() for symbol in self.universe]

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = list(self.engine.validate())

        if not self.universe:
            errors.append("Universe is empty")

        if len(self.universe) != len(set(self.universe)):
            errors.append("Duplicate symbols found in universe")

        for symbol in self.universe:
            if not symbol.endswith('_USDT'):
                errors.append(f"Invalid symbol: {symbol}")

        if self.max_concurrency < 1:
            errors.append(f"max_concurrency must be positive: {self.max_concurrency}")

        if self.log_level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"Unknown log level: {self.log_level}")

        thresholds = self.freshness
        if not 0 < thresholds.healthy_ms <= thresholds.stale_ms <= thresholds.expired_ms:
            errors.append("Freshness thresholds must satisfy 0 < healthy <= stale <= expired")

        return errors
