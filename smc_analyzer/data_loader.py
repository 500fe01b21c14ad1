"""
Data loading and preprocessing utilities
"""
import logging
import pandas as pd
from pathlib import Path
from typing import List

from .models import Candle

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {'timestamp', 'open', 'high', 'low', 'close'}
PRICE_COLUMNS = ['open', 'high', 'low', 'close']


def ensure_timestamp(df: pd.DataFrame) -> pd.DataFrame:
    """Ensure timestamp column is properly formatted as datetime"""
    if not pd.api.types.is_datetime64_any_dtype(df['timestamp']):
        try:
            # Try unix milliseconds first
            df['timestamp'] = pd.to_datetime(df['timestamp'], unit='ms', utc=True)
        except (ValueError, TypeError):
            # Fallback to general datetime parsing
            df['timestamp'] = pd.to_datetime(df['timestamp'], utc=True)

    return df.sort_values('timestamp').reset_index(drop=True)


def candles_to_dataframe(candles: List[Candle]) -> pd.DataFrame:
    """Convert Candle objects to the dataframe layout used by the analyzer"""
    df = pd.DataFrame(
        [(c.timestamp, c.open, c.high, c.low, c.close) for c in candles],
        columns=['timestamp'] + PRICE_COLUMNS
    )
    if df.empty:
        return df
    return ensure_timestamp(df)


def load_csv(path: str) -> pd.DataFrame:
    """
    Load CSV file and validate required columns

    Args:
        path: Path to CSV file

    Returns:
        Cleaned and validated DataFrame

    Raises:
        ValueError: If required columns are missing
        FileNotFoundError: If file doesn't exist
    """
    if not Path(path).exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    df = pd.read_csv(path)

    # Normalize column names to lowercase
    df.columns = [c.lower() for c in df.columns]

    missing_columns = REQUIRED_COLUMNS - set(df.columns)
    if missing_columns:
        raise ValueError(f'CSV must contain columns: {sorted(REQUIRED_COLUMNS)}. Missing: {sorted(missing_columns)}')

    df = ensure_timestamp(df[['timestamp'] + PRICE_COLUMNS].copy())
    df = df.dropna(subset=['timestamp'])

    if df.empty:
        raise ValueError("DataFrame is empty after cleaning")

    for col in PRICE_COLUMNS:
        if (df[col] <= 0).any():
            logger.warning(f"Found non-positive values in {col} column")

    # Basic OHLC validation
    invalid_ohlc = (
        (df['high'] < df['low']) |
        (df['high'] < df['open']) |
        (df['high'] < df['close']) |
        (df['low'] > df['open']) |
        (df['low'] > df['close'])
    )

    if invalid_ohlc.any():
        logger.warning(f"Dropping {invalid_ohlc.sum()} rows with invalid OHLC data")
        df = df[~invalid_ohlc].reset_index(drop=True)

    logger.info(f"Loaded {len(df)} candles from {path}")
    return df
