"""
Main entry point for the SMC signal scanner
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from config import ScannerConfig, load_config
from smc_scanner.data_loader import load_market_snapshot
from smc_scanner.scanner import SignalScanner


def setup_logging(level: str, log_to_file: bool = False, log_file_path: str = "logs/scanner.log") -> None:
    """Configure root logging for command line runs"""
    handlers = [logging.StreamHandler()]
    if log_to_file:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file_path, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def run_scan(config: ScannerConfig, out_path: Optional[str] = None) -> int:
    """
    Run one scan over the configured universe

    Args:
        config: Scanner configuration
        out_path: Optional JSON file for the scan result

    Returns:
        Process exit code
    """
    print("=== SMC Signal Scanner ===")
    print(f"Data dir: {config.data_dir}")
    print(f"Tickers: {config.tickers_path}")
    print(f"Universe: {len(config.universe)} symbols")
    print("=" * 40)

    snapshot = load_market_snapshot(
        config.data_dir, config.universe, config.tickers_path, config.freshness
    )

    scanner = SignalScanner(config.engine, config.universe, config.max_concurrency)
    result = asyncio.run(scanner.scan_async(snapshot))

    if out_path:
        with open(out_path, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"Results saved to: {out_path}")

    print(f"\n=== RESULTS ===")
    print(f"Generated {result.total_signals} signals, filtered {len(result.filtered)}")
    print(f"Data health: {result.data_health.status}")

    if result.signals:
        tradable = [s for s in result.signals if s.classification == 'tradable']
        print(f"Tradable: {len(tradable)}")
        print(f"\nTop signals:")
        for s in result.signals[:5]:
            print(f"  {s.symbol:<12} {s.direction:<5} {s.rating} score={s.confidence_score:<3} "
                  f"entry={s.entry_price:.6g} ({s.entry_type}) sl={s.stop_price:.6g} "
                  f"tp1={s.tp1:.6g} tp2={s.tp2:.6g}")

    return 0


def main():
    """Main function with command line argument parsing"""
    parser = argparse.ArgumentParser(
        description='SMC Signal Scanner - ranked signals from market structure',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --data-dir data/4h --tickers data/tickers.json
  python main.py --config config/scanner.yaml --out signals.json --concurrency 8
        """
    )

    parser.add_argument('--config', default='config/scanner.yaml',
                        help='YAML configuration file (default: config/scanner.yaml)')
    parser.add_argument('--data-dir',
                        help='Directory with one <SYMBOL>.csv bar file per instrument')
    parser.add_argument('--tickers',
                        help='JSON file with tickers keyed by symbol')
    parser.add_argument('--out',
                        help='Write the scan result as JSON to this file')
    parser.add_argument('--log-level',
                        help='Override configured log level')
    parser.add_argument('--concurrency', type=int,
                        help='Maximum instruments evaluated at once')

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.data_dir:
        config.data_dir = args.data_dir
    if args.tickers:
        config.tickers_path = args.tickers
    if args.log_level:
        config.log_level = args.log_level
    if args.concurrency:
        config.max_concurrency = args.concurrency

    setup_logging(config.log_level, config.log_to_file, config.log_file_path)

    if not Path(config.data_dir).exists():
        print(f"Error: data directory not found: {config.data_dir}")
        sys.exit(1)

    sys.exit(run_scan(config, args.out))


if __name__ == '__main__':
    main()
