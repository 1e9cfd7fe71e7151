"""
SMC signal scanner: ranked directional signals from price-bar structure
"""

from .models import (
    Bar, Ticker, Signal, FilteredInstrument, Freshness, MarketSnapshot, ScanResult
)
from .signal_generator import generate_signal
from .scanner import SignalScanner, scan_universe
from config.universe import DEFAULT_UNIVERSE

__all__ = [
    'Bar', 'Ticker', 'Signal', 'FilteredInstrument', 'Freshness', 'MarketSnapshot',
    'ScanResult', 'generate_signal', 'SignalScanner', 'scan_universe', 'DEFAULT_UNIVERSE'
]
