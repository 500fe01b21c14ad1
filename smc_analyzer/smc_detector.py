"""
Swing point detection and market structure classification
"""
import logging
import pandas as pd
import numpy as np
from typing import List, Union

from .models import SwingPoint, MarketStructure, AnalysisError

logger = logging.getLogger(__name__)

LOOKBACK_BY_TIMEFRAME = {
    '15m': 3,
    '30m': 4,
    '1h': 5,
    '4h': 6,
    '1d': 8
}
DEFAULT_LOOKBACK = 5

# Heuristic probabilities per structural event, tunable for future calibration
BOS_PROBABILITY = 87
BOS_SIDEWAYS_PROBABILITY = 60
CHOCH_PROBABILITY = 74
SIDEWAYS_PROBABILITY = 52


def lookback_for_timeframe(timeframe: str) -> int:
    """Swing window half-width for a timeframe"""
    return LOOKBACK_BY_TIMEFRAME.get(timeframe, DEFAULT_LOOKBACK)


def min_candles_required(lookback: int) -> int:
    """Smallest candle count accepted for analysis"""
    return lookback * 2 + 10


def find_swing_points(df: pd.DataFrame, lookback: int) -> List[SwingPoint]:
    """Detect swing highs/lows as unique extremes of a symmetric window"""
    swings: List[SwingPoint] = []
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)

    for i in range(lookback, len(df) - lookback):
        high_window = highs[i - lookback:i + lookback + 1]
        low_window = lows[i - lookback:i + lookback + 1]

        # Check for swing high
        if highs[i] == high_window.max() and np.count_nonzero(high_window == highs[i]) == 1:
            swings.append(SwingPoint('high', float(highs[i]), i))

        # Check for swing low
        if lows[i] == low_window.min() and np.count_nonzero(low_window == lows[i]) == 1:
            swings.append(SwingPoint('low', float(lows[i]), i))

    return swings


def calculate_probability(bias: str, event: str) -> int:
    """Fixed probability lookup per structural event"""
    if event == 'BOS':
        return BOS_SIDEWAYS_PROBABILITY if bias == 'sideways' else BOS_PROBABILITY
    if event == 'CHoCH':
        return CHOCH_PROBABILITY
    return SIDEWAYS_PROBABILITY


def calculate_strength(probability: float, event: str, swing_count: int) -> str:
    """Band a weighted score of probability, event type and swing count"""
    score = 0.0

    if probability >= 85:
        score += 3
    elif probability >= 70:
        score += 2
    else:
        score += 1

    if event == 'BOS':
        score += 2
    elif event == 'CHoCH':
        score += 1

    # More swings, more reliable structure
    if swing_count >= 8:
        score += 1
    elif swing_count >= 6:
        score += 0.5

    if score >= 5:
        return 'STRONG'
    if score >= 3:
        return 'MODERATE'
    return 'WEAK'


def _structure(bias: str, event: str, break_level, major_high: SwingPoint,
               major_low: SwingPoint, swing_count: int) -> MarketStructure:
    probability = calculate_probability(bias, event)
    return MarketStructure(
        bias=bias,
        last_event=event or None,
        break_level=break_level,
        major_high=major_high,
        major_low=major_low,
        probability=probability,
        strength=calculate_strength(probability, event, swing_count)
    )


def find_market_structure(swings: List[SwingPoint]) -> Union[MarketStructure, AnalysisError]:
    """Classify bias and last BOS/CHoCH from the two latest highs and lows"""
    highs = [s for s in swings if s.kind == 'high']
    lows = [s for s in swings if s.kind == 'low']

    if len(highs) < 2 or len(lows) < 2:
        return AnalysisError("Not enough swing highs/lows to determine market structure.")

    prev_high, last_high = highs[-2], highs[-1]
    prev_low, last_low = lows[-2], lows[-1]
    count = len(swings)

    # Bullish BOS: higher high and higher low
    if last_high.price > prev_high.price and last_low.price > prev_low.price:
        return _structure('bullish', 'BOS', prev_high.price, last_high, prev_low, count)

    # Bearish BOS: lower low and lower high
    if last_low.price < prev_low.price and last_high.price < prev_high.price:
        return _structure('bearish', 'BOS', prev_low.price, prev_high, last_low, count)

    # Bearish CHoCH: lower low after the last high formed
    if last_low.price < prev_low.price and last_high.index > prev_low.index:
        return _structure('bearish', 'CHoCH', prev_low.price, last_high, last_low, count)

    # Bullish CHoCH: higher high after the last low formed
    if last_high.price > prev_high.price and last_low.index > prev_high.index:
        return _structure('bullish', 'CHoCH', prev_high.price, last_high, last_low, count)

    return _structure('sideways', '', None, last_high, last_low, count)


def premium_discount(price: float, range_low: float, range_high: float) -> float:
    """Calculate premium/discount level (0-1 scale, 0.5 = equilibrium)"""
    if range_high == range_low:
        return 0.5
    return (price - range_low) / (range_high - range_low)
