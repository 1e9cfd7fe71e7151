"""
Configuration package for the SMC signal scanner
"""

from .models import EngineConfig, FreshnessThresholds, ScannerConfig
from .loader import ConfigLoader, load_config, save_config
from .universe import DEFAULT_UNIVERSE

__all__ = [
    'EngineConfig', 'FreshnessThresholds', 'ScannerConfig',
    'ConfigLoader', 'load_config', 'save_config', 'DEFAULT_UNIVERSE'
]
