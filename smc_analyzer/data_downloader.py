"""
Candle downloader for the Hyperliquid info API
"""
import logging
import time
import requests
import pandas as pd
from pathlib import Path
from typing import Optional

from .models import Candle
from .data_loader import candles_to_dataframe

logger = logging.getLogger(__name__)


class HyperliquidDataDownloader:
    """Download candle snapshots from Hyperliquid"""

    BASE_URL = "https://api.hyperliquid.xyz/info"

    # Days of history requested per timeframe
    DAYS_TO_FETCH = {
        '15m': 5,
        '30m': 10,
        '1h': 15,
        '4h': 60,
        '1d': 365
    }
    DEFAULT_DAYS = 30

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 15.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def download_data(self, coin: str, timeframe: str, end_ms: Optional[int] = None) -> pd.DataFrame:
        """
        Download candles for one coin and timeframe

        Args:
            coin: Asset name (e.g., 'BTC')
            timeframe: Candle interval ('15m', '30m', '1h', '4h', '1d')
            end_ms: End of the window in unix milliseconds (defaults to now)

        Returns:
            DataFrame with timestamp/open/high/low/close columns

        Raises:
            ValueError: If the API answers with something other than candles
            requests.RequestException: On transport or HTTP errors
        """
        if end_ms is None:
            end_ms = int(time.time() * 1000)
        days = self.DAYS_TO_FETCH.get(timeframe, self.DEFAULT_DAYS)
        start_ms = end_ms - days * 24 * 60 * 60 * 1000

        payload = {
            'type': 'candleSnapshot',
            'req': {
                'coin': coin.upper(),
                'interval': timeframe,
                'startTime': start_ms,
                'endTime': end_ms
            }
        }

        logger.info(f"Downloading {coin.upper()} {timeframe} candles ({days} days)")
        response = self.session.post(self.BASE_URL, json=payload, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, list) or not data:
            raise ValueError("API did not return valid candle data")

        candles = [Candle.from_hyperliquid(item) for item in data]
        df = candles_to_dataframe(candles)
        df = df.drop_duplicates(subset=['timestamp']).reset_index(drop=True)

        logger.info(f"Downloaded {len(df)} candles")
        return df

    def save_to_csv(self, df: pd.DataFrame, filename: str) -> None:
        """Save DataFrame to CSV file"""
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(filename, index=False)
        logger.info(f"Data saved to: {filename}")
