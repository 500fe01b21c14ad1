import pytest
import requests

from smc_analyzer.data_downloader import HyperliquidDataDownloader
from smc_analyzer.data_loader import load_csv


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        return self.response


def _raw(t, price):
    return {'t': t, 'T': t + 3599999, 's': 'BTC', 'i': '1h',
            'o': str(price), 'h': str(price + 1), 'l': str(price - 1), 'c': str(price + 0.5), 'n': 10}


def test_download_builds_snapshot_request():
    session = FakeSession(FakeResponse([_raw(1700000000000, 100), _raw(1700003600000, 101)]))
    downloader = HyperliquidDataDownloader(session=session)

    df = downloader.download_data('btc', '1h', end_ms=1700007200000)

    url, payload, timeout = session.calls[0]
    assert url == HyperliquidDataDownloader.BASE_URL
    assert payload['type'] == 'candleSnapshot'
    assert payload['req']['coin'] == 'BTC'
    assert payload['req']['interval'] == '1h'
    assert payload['req']['endTime'] == 1700007200000
    assert payload['req']['startTime'] == 1700007200000 - 15 * 24 * 60 * 60 * 1000
    assert timeout == 15.0

    assert list(df.columns) == ['timestamp', 'open', 'high', 'low', 'close']
    assert len(df) == 2
    assert df['high'].iloc[1] == 102.0


def test_download_drops_duplicate_candles():
    session = FakeSession(FakeResponse([_raw(1700000000000, 100), _raw(1700000000000, 100)]))
    df = HyperliquidDataDownloader(session=session).download_data('BTC', '4h', end_ms=1700007200000)
    assert len(df) == 1


def test_download_rejects_non_candle_answer():
    session = FakeSession(FakeResponse({'error': 'bad request'}))
    with pytest.raises(ValueError):
        HyperliquidDataDownloader(session=session).download_data('BTC', '1h')

    session = FakeSession(FakeResponse([]))
    with pytest.raises(ValueError):
        HyperliquidDataDownloader(session=session).download_data('BTC', '1h')


def test_download_http_error():
    session = FakeSession(FakeResponse([], status=500))
    with pytest.raises(requests.HTTPError):
        HyperliquidDataDownloader(session=session).download_data('BTC', '1h')


def test_save_and_load_csv(tmp_path):
    session = FakeSession(FakeResponse([_raw(1700000000000, 100), _raw(1700003600000, 101)]))
    downloader = HyperliquidDataDownloader(session=session)
    df = downloader.download_data('BTC', '1h', end_ms=1700007200000)

    path = tmp_path / "data" / "btc_1h.csv"
    downloader.save_to_csv(df, str(path))
    loaded = load_csv(str(path))

    assert len(loaded) == 2
    assert loaded['close'].tolist() == [100.5, 101.5]


def test_load_csv_drops_invalid_rows(tmp_path):
    path = tmp_path / "candles.csv"
    path.write_text(
        "Timestamp,Open,High,Low,Close\n"
        "1700003600000,101,102,100,101.5\n"
        "1700000000000,100,101,99,100.5\n"
        "1700007200000,102,101,103,102\n",
        encoding='utf-8'
    )
    df = load_csv(str(path))

    assert len(df) == 2
    assert df['timestamp'].is_monotonic_increasing
    assert df['open'].tolist() == [100, 101]


def test_load_csv_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_csv(str(tmp_path / "nope.csv"))

    path = tmp_path / "bad.csv"
    path.write_text("timestamp,open,high\n1,2,3\n", encoding='utf-8')
    with pytest.raises(ValueError):
        load_csv(str(path))
