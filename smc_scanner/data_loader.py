"""
Local data source: bar CSV files and a ticker JSON file

Loads already-fetched market data from disk and labels each input set with
freshness metadata derived from file modification times.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from config.models import FreshnessThresholds
from .models import Bar, Freshness, MarketSnapshot, Ticker

logger = logging.getLogger(__name__)


def load_csv(path: str) -> pd.DataFrame:
    """
    Load a bar CSV file and validate required columns

    Args:
        path: Path to CSV file

    Returns:
        Cleaned DataFrame sorted by time with unique timestamps

    Raises:
        ValueError: If required columns are missing
        FileNotFoundError: If file doesn't exist
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path)

    # Normalize column names to lowercase
    df.columns = [c.lower() for c in df.columns]
    if 'time' not in df.columns and 'timestamp' in df.columns:
        df = df.rename(columns={'timestamp': 'time'})

    required_columns = {'time', 'open', 'high', 'low', 'close'}
    missing_columns = required_columns - set(df.columns)

    if missing_columns:
        raise ValueError(f'CSV must contain columns: {required_columns}. Missing: {missing_columns}')

    if 'volume' not in df.columns:
        df['volume'] = 0.0

    # Unix milliseconds first, then general datetime parsing
    if pd.api.types.is_numeric_dtype(df['time']):
        df['time'] = pd.to_datetime(df['time'], unit='ms', utc=True)
    else:
        df['time'] = pd.to_datetime(df['time'], utc=True, errors='coerce')

    df = df.dropna(subset=['time', 'open', 'high', 'low', 'close'])

    if df.empty:
        raise ValueError(f"No valid rows in {path}")

    invalid_ohlc = (
        (df['high'] < df['low']) |
        (df['high'] < df['open']) |
        (df['high'] < df['close']) |
        (df['low'] > df['open']) |
        (df['low'] > df['close'])
    )

    if invalid_ohlc.any():
        logger.warning(f"Dropping {int(invalid_ohlc.sum())} rows with invalid OHLC data from {path}")
        df = df[~invalid_ohlc]

    duplicated = df['time'].duplicated(keep='last')
    if duplicated.any():
        logger.warning(f"Dropping {int(duplicated.sum())} duplicate timestamps from {path}")
        df = df[~duplicated]

    return df.sort_values('time').reset_index(drop=True)


def dataframe_to_bars(df: pd.DataFrame) -> List[Bar]:
    """Convert a cleaned bar DataFrame into Bar records"""
    return [
        Bar(
            time=row.time.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples(index=False)
    ]


def load_tickers(path: str) -> Dict[str, Ticker]:
    """
    Load tickers from a JSON object keyed by symbol

    Entries that cannot be parsed are skipped, so the scanner reports those
    symbols as having no ticker data.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Ticker file must contain a JSON object keyed by symbol: {path}")

    tickers: Dict[str, Ticker] = {}
    for symbol, raw in data.items():
        try:
            tickers[symbol.upper()] = Ticker.from_dict(raw)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping ticker for {symbol}: {e}")

    return tickers


def file_freshness(paths: Sequence[Path], thresholds: FreshnessThresholds,
                   now: Optional[datetime] = None) -> Optional[Freshness]:
    """Label a set of files by the age of the oldest one"""
    if not paths:
        return None

    now = now or datetime.now(timezone.utc)
    oldest = min(datetime.fromtimestamp(p.stat().st_mtime, tz=timezone.utc) for p in paths)
    age_ms = max(0, int((now - oldest).total_seconds() * 1000))

    return Freshness(status=thresholds.classify(age_ms), last_update=oldest, age_ms=age_ms)


def load_market_snapshot(data_dir: str, universe: Sequence[str], tickers_path: Optional[str] = None,
                         thresholds: Optional[FreshnessThresholds] = None) -> MarketSnapshot:
    """
    Load bars for every symbol of the universe plus tickers into one snapshot

    A symbol whose CSV is missing or unreadable is left out, so the scanner
    reports it as having insufficient data. An unreadable ticker file leaves
    the snapshot without tickers.
    """
    thresholds = thresholds or FreshnessThresholds()
    snapshot = MarketSnapshot(thresholds=thresholds)
    bar_files: List[Path] = []

    for symbol in universe:
        path = Path(data_dir) / f"{symbol}.csv"
        try:
            snapshot.bars[symbol] = dataframe_to_bars(load_csv(str(path)))
            bar_files.append(path)
        except (FileNotFoundError, ValueError) as e:
            logger.warning(f"Skipping bars for {symbol}: {e}")

    logger.info(f"Loaded bars for {len(snapshot.bars)}/{len(universe)} symbols from {data_dir}")

    klines_freshness = file_freshness(bar_files, thresholds)
    if klines_freshness is not None:
        snapshot.freshness['klines'] = klines_freshness

    if not tickers_path or not Path(tickers_path).exists():
        logger.warning(f"Ticker file not found: {tickers_path}")
        return snapshot

    try:
        snapshot.tickers = load_tickers(tickers_path)
    except ValueError as e:
        logger.error(f"Failed to load tickers from {tickers_path}: {e}")
        return snapshot

    snapshot.freshness['tickers'] = file_freshness([Path(tickers_path)], thresholds)
    logger.info(f"Loaded {len(snapshot.tickers)} tickers from {tickers_path}")

    return snapshot
