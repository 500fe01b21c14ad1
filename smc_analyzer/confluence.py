"""
Fibonacci and historical support/resistance confluence detection
"""
import logging
import pandas as pd
import numpy as np
from dataclasses import dataclass
from typing import List

from .models import Confluence, EnhancedZone, MarketStructure
from .zone_engine import fibonacci_levels

logger = logging.getLogger(__name__)

FIB_ZONE_TOLERANCE = 0.02
HISTORY_CANDLES = 200
TOUCH_TOLERANCE = 0.01
MIN_TOUCHES = 2
DEDUP_TOLERANCE = 0.005
SR_ZONE_TOLERANCE = 0.015
MAX_CONFLUENCES = 5


@dataclass
class HistoricalLevel:
    """Price level touched repeatedly in recent history"""
    price: float
    kind: str  # 'support' or 'resistance'
    touches: int
    strength: str


def _touch_strength(touches: int) -> str:
    if touches >= 4:
        return 'STRONG'
    if touches >= 3:
        return 'MODERATE'
    return 'WEAK'


def _near(a: float, b: float, tolerance: float) -> bool:
    return b != 0 and abs(a - b) / abs(b) <= tolerance


def find_historical_levels(df: pd.DataFrame) -> List[HistoricalLevel]:
    """Highs/lows of the last 200 candles revisited by at least two later candles"""
    recent = df.iloc[-HISTORY_CANDLES:]
    highs = recent['high'].to_numpy(dtype=float)
    lows = recent['low'].to_numpy(dtype=float)

    candidates: List[HistoricalLevel] = []
    for k in range(len(recent) - 1):
        for prices, level, kind in ((highs, highs[k], 'resistance'), (lows, lows[k], 'support')):
            if level <= 0:
                continue
            touches = int(np.count_nonzero(np.abs(prices[k + 1:] - level) / level <= TOUCH_TOLERANCE))
            if touches >= MIN_TOUCHES:
                candidates.append(HistoricalLevel(float(level), kind, touches, _touch_strength(touches)))

    # Keep the most touched support and resistance of each cluster
    candidates.sort(key=lambda lvl: (-lvl.touches, lvl.price))
    levels: List[HistoricalLevel] = []
    for candidate in candidates:
        if any(kept.kind == candidate.kind and _near(candidate.price, kept.price, DEDUP_TOLERANCE)
               for kept in levels):
            continue
        levels.append(candidate)

    return levels


def find_confluences(df: pd.DataFrame, structure: MarketStructure,
                     zones: List[EnhancedZone]) -> List[Confluence]:
    """
    Cross-validate detected zones against Fibonacci and historical S/R levels

    Args:
        df: Candle dataframe
        structure: Market structure providing the major range
        zones: Zones reported by the zone engine

    Returns:
        Up to 5 confluences, Fibonacci entries first
    """
    confluences: List[Confluence] = []
    if not zones:
        return confluences

    for ratio, level in fibonacci_levels(structure).items():
        matching = [z for z in zones if _near(z.midpoint, level, FIB_ZONE_TOLERANCE)]
        if not matching:
            continue
        confluences.append(Confluence(
            type='fibonacci',
            level=level,
            strength='STRONG' if len(matching) >= 2 else 'MODERATE',
            description=f"Fibonacci {ratio * 100:.1f}% aligned with {len(matching)} zone(s)",
            zone_count=len(matching)
        ))

    for level in find_historical_levels(df):
        matching = [z for z in zones if _near(z.midpoint, level.price, SR_ZONE_TOLERANCE)]
        if not matching:
            continue
        confluences.append(Confluence(
            type='historical_sr',
            level=level.price,
            strength=level.strength,
            description=f"Historical {level.kind} touched {level.touches} times",
            zone_count=len(matching)
        ))

    logger.debug(f"Found {len(confluences)} confluences")
    return confluences[:MAX_CONFLUENCES]
