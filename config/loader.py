"""
Configuration loader for YAML files
"""
import yaml
import logging
from dataclasses import asdict, fields
from pathlib import Path

from .models import EngineConfig, FreshnessThresholds, ScannerConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and saves configuration from YAML files"""

    def __init__(self, config_path: str = "config/scanner.yaml"):
        self.config_path = Path(config_path)

    def load(self) -> ScannerConfig:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, creating default")
            return self._create_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config {self.config_path}: {e}")
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not data:
            logger.warning("Empty config file, using defaults")
            return ScannerConfig()

        config = ScannerConfig(
            universe=data.get('universe') or ScannerConfig().universe,
            engine=_build(EngineConfig, data.get('engine')),
            freshness=_build(FreshnessThresholds, data.get('freshness')),
            max_concurrency=data.get('max_concurrency', 4),
            log_level=data.get('log_level', 'INFO'),
            log_to_file=data.get('log_to_file', False),
            log_file_path=data.get('log_file_path', 'logs/scanner.log'),
            data_dir=data.get('data_dir', 'data'),
            tickers_path=data.get('tickers_path', 'data/tickers.json'),
        )

        errors = config.validate()
        if errors:
            logger.error(f"Configuration validation errors: {errors}")
            raise ValueError(f"Configuration validation failed: {errors}")

        logger.info(f"Loaded configuration with {len(config.universe)} symbols")
        return config

    def save(self, config: ScannerConfig) -> bool:
        """Save configuration to YAML file"""
        errors = config.validate()
        if errors:
            logger.error(f"Cannot save invalid configuration: {errors}")
            return False

        data = {
            'max_concurrency': config.max_concurrency,
            'log_level': config.log_level,
            'log_to_file': config.log_to_file,
            'log_file_path': config.log_file_path,
            'data_dir': config.data_dir,
            'tickers_path': config.tickers_path,
            'freshness': asdict(config.freshness),
            'engine': asdict(config.engine),
            'universe': list(config.universe),
        }

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)

        logger.info(f"Configuration saved to {self.config_path}")
        return True

    def _create_default_config(self) -> ScannerConfig:
        """Create and persist default configuration"""
        config = ScannerConfig()
        self.save(config)
        return config


def _build(cls, section):
    """Instantiate a config dataclass from a YAML section, rejecting unknown keys"""
    if not section:
        return cls()
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} parameters: {sorted(unknown)}")
    return cls(**section)


def load_config(config_path: str = "config/scanner.yaml") -> ScannerConfig:
    """Convenience function to load configuration"""
    loader = ConfigLoader(config_path)
    return loader.load()


def save_config(config: ScannerConfig, config_path: str = "config/scanner.yaml") -> bool:
    """Convenience function to save configuration"""
    loader = ConfigLoader(config_path)
    return loader.save(config)
