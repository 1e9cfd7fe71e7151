import json
import os
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from config.models import FreshnessThresholds
from helpers import START, alternating_rows
from smc_scanner.data_loader import (
    dataframe_to_bars, file_freshness, load_csv, load_market_snapshot, load_tickers
)
from smc_scanner.models import INSUFFICIENT_DATA, NO_TICKER_DATA, Bar
from smc_scanner.scanner import SignalScanner


def write_bar_csv(path, rows, epoch_ms=True):
    times = [START + timedelta(hours=4 * i) for i in range(len(rows))]
    df = pd.DataFrame(rows, columns=['open', 'high', 'low', 'close'])
    if epoch_ms:
        df.insert(0, 'timestamp', [int(t.timestamp() * 1000) for t in times])
    else:
        df.insert(0, 'time', [t.isoformat() for t in times])
    df['volume'] = 10.0
    df.to_csv(path, index=False)


def test_load_csv_parses_epoch_milliseconds(tmp_path):
    path = tmp_path / "BTC_USDT.csv"
    write_bar_csv(path, alternating_rows(5))

    df = load_csv(str(path))
    assert list(df.columns[:5]) == ['time', 'open', 'high', 'low', 'close']
    assert len(df) == 5
    assert df['time'].iloc[0] == pd.Timestamp(START)


def test_load_csv_parses_iso_times(tmp_path):
    path = tmp_path / "BTC_USDT.csv"
    write_bar_csv(path, alternating_rows(5), epoch_ms=False)
    df = load_csv(str(path))
    assert df['time'].iloc[-1] == pd.Timestamp(START + timedelta(hours=16))


def test_load_csv_cleans_rows(tmp_path):
    path = tmp_path / "BTC_USDT.csv"
    path.write_text(
        "Time,Open,High,Low,Close\n"
        "2024-01-01T08:00:00Z,101,102,100,101.5\n"
        "2024-01-01T00:00:00Z,100,101,99,100.5\n"
        "2024-01-01T04:00:00Z,100,99,101,100\n"
        "2024-01-01T08:00:00Z,101,103,100,102\n"
        "2024-01-01T12:00:00Z,,103,100,102\n",
        encoding='utf-8'
    )

    df = load_csv(str(path))

    # Invalid OHLC and NaN rows dropped, duplicate keeps the last, sorted ascending
    assert len(df) == 2
    assert df['time'].is_monotonic_increasing
    assert df['close'].tolist() == [100.5, 102.0]
    assert (df['volume'] == 0.0).all()


def test_load_csv_missing_column(tmp_path):
    path = tmp_path / "BTC_USDT.csv"
    path.write_text("time,open,high,close\n2024-01-01T00:00:00Z,1,2,1.5\n", encoding='utf-8')
    with pytest.raises(ValueError, match="Missing"):
        load_csv(str(path))


def test_load_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv(str(tmp_path / "nope.csv"))


def test_dataframe_to_bars(tmp_path):
    path = tmp_path / "BTC_USDT.csv"
    write_bar_csv(path, alternating_rows(3))

    bars = dataframe_to_bars(load_csv(str(path)))
    assert bars[1] == Bar(START + timedelta(hours=4), 101.0, 101.5, 100.5, 101.0, 10.0)
    assert bars[0].time.tzinfo is not None


def test_load_tickers_accepts_exchange_keys(tmp_path):
    path = tmp_path / "tickers.json"
    path.write_text(json.dumps({
        "btc_usdt": {"last": "42000.5", "high24h": "43000", "changePercent": 1.2},
        "ETH_USDT": {"last": 2200, "quote_volume": 1e6},
    }), encoding='utf-8')

    tickers = load_tickers(str(path))
    assert set(tickers) == {'BTC_USDT', 'ETH_USDT'}
    assert tickers['BTC_USDT'].last == 42000.5
    assert tickers['BTC_USDT'].high_24h == 43000.0
    assert tickers['BTC_USDT'].change_percent == 1.2
    assert tickers['ETH_USDT'].quote_volume == 1e6


def test_load_tickers_rejects_lists(tmp_path):
    path = tmp_path / "tickers.json"
    path.write_text("[]", encoding='utf-8')
    with pytest.raises(ValueError):
        load_tickers(str(path))


def test_file_freshness_uses_oldest_file(tmp_path):
    old = tmp_path / "a.csv"
    new = tmp_path / "b.csv"
    old.write_text("x", encoding='utf-8')
    new.write_text("x", encoding='utf-8')

    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    os.utime(old, (now.timestamp() - 1200, now.timestamp() - 1200))
    os.utime(new, (now.timestamp() - 60, now.timestamp() - 60))

    freshness = file_freshness([old, new], FreshnessThresholds(), now=now)
    assert freshness.age_ms == 1200000
    assert freshness.status == 'STALE'
    assert file_freshness([], FreshnessThresholds()) is None


def test_snapshot_to_scan(tmp_path):
    write_bar_csv(tmp_path / "BTC_USDT.csv", alternating_rows(60))
    write_bar_csv(tmp_path / "ETH_USDT.csv", alternating_rows(60))
    write_bar_csv(tmp_path / "SOL_USDT.csv", alternating_rows(10))
    tickers = tmp_path / "tickers.json"
    tickers.write_text(json.dumps({"BTC_USDT": {"last": 100.0}, "SOL_USDT": {"last": 100.0}}),
                       encoding='utf-8')

    universe = ['BTC_USDT', 'ETH_USDT', 'SOL_USDT', 'DOGE_USDT']
    snapshot = load_market_snapshot(str(tmp_path), universe, str(tickers))

    assert set(snapshot.bars) == {'BTC_USDT', 'ETH_USDT', 'SOL_USDT'}
    assert snapshot.freshness['klines'].status == 'HEALTHY'
    assert snapshot.freshness['tickers'].status == 'HEALTHY'

    result = SignalScanner(universe=universe).scan(snapshot)
    assert [s.symbol for s in result.signals] == ['BTC_USDT']
    assert {f.symbol: f.reason_code for f in result.filtered} == {
        'ETH_USDT': NO_TICKER_DATA,
        'SOL_USDT': INSUFFICIENT_DATA,
        'DOGE_USDT': INSUFFICIENT_DATA,
    }
    assert result.data_health.status == 'HEALTHY'
    assert result.data_health.kline_count == 3


def test_snapshot_without_ticker_file(tmp_path):
    write_bar_csv(tmp_path / "BTC_USDT.csv", alternating_rows(60))
    snapshot = load_market_snapshot(str(tmp_path), ['BTC_USDT'], str(tmp_path / "missing.json"))
    assert snapshot.tickers == {}
    assert 'tickers' not in snapshot.freshness


def test_bad_ticker_entries_are_skipped(tmp_path):
    path = tmp_path / "tickers.json"
    path.write_text(json.dumps({
        "BTC_USDT": {"last": 100},
        "ETH_USDT": {"last": "n/a"},
        "SOL_USDT": [1, 2, 3],
        "XRP_USDT": "0.5",
    }), encoding='utf-8')

    tickers = load_tickers(str(path))
    assert list(tickers) == ['BTC_USDT']
    assert tickers['BTC_USDT'].last == 100.0


def test_bad_ticker_only_filters_its_own_symbol(tmp_path):
    write_bar_csv(tmp_path / "BTC_USDT.csv", alternating_rows(60))
    write_bar_csv(tmp_path / "ETH_USDT.csv", alternating_rows(60))
    tickers = tmp_path / "tickers.json"
    tickers.write_text(json.dumps({"BTC_USDT": {"last": 100}, "ETH_USDT": {"last": "n/a"}}),
                       encoding='utf-8')

    universe = ['BTC_USDT', 'ETH_USDT']
    snapshot = load_market_snapshot(str(tmp_path), universe, str(tickers))
    result = SignalScanner(universe=universe).scan(snapshot)

    assert [s.symbol for s in result.signals] == ['BTC_USDT']
    assert [(f.symbol, f.reason_code) for f in result.filtered] == [('ETH_USDT', NO_TICKER_DATA)]


def test_unreadable_ticker_file_leaves_no_tickers(tmp_path):
    write_bar_csv(tmp_path / "BTC_USDT.csv", alternating_rows(60))
    tickers = tmp_path / "tickers.json"
    tickers.write_text("{not json", encoding='utf-8')

    snapshot = load_market_snapshot(str(tmp_path), ['BTC_USDT'], str(tickers))
    assert snapshot.tickers == {}
    assert 'tickers' not in snapshot.freshness
    assert set(snapshot.bars) == {'BTC_USDT'}


def test_health_carries_freshness_thresholds(tmp_path):
    write_bar_csv(tmp_path / "BTC_USDT.csv", alternating_rows(60))
    thresholds = FreshnessThresholds(healthy_ms=60000, stale_ms=120000, expired_ms=600000)

    snapshot = load_market_snapshot(str(tmp_path), ['BTC_USDT'], None, thresholds)
    health = SignalScanner(universe=['BTC_USDT']).scan(snapshot).to_dict()['data_health']

    assert health['thresholds'] == {'healthy_ms': 60000, 'stale_ms': 120000, 'expired_ms': 600000}
