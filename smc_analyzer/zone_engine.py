"""
Demand/supply zone and fair value gap detection with scoring
"""
import logging
import pandas as pd
import numpy as np
from typing import Dict, List, Optional, Tuple

from config.models import ProfileConfig, ZoneProfile
from .models import Zone, EnhancedZone, MarketStructure, DebugInfo
from .smc_detector import premium_discount

logger = logging.getLogger(__name__)

FIB_RATIOS = (0.236, 0.382, 0.5, 0.618, 0.786)
MAX_ZONES_PER_CATEGORY = 3
ZONE_CATEGORIES = ('demand', 'supply', 'bullish_fvg', 'bearish_fvg')
BULLISH_KINDS = ('demand', 'bullish_fvg')

STRENGTH_RANK = {'STRONG': 3, 'MODERATE': 2, 'WEAK': 1}

FIB_CONFLUENCE_TOLERANCE = 0.01
OLD_ZONE_CANDLES = 50
OLD_ZONE_PENETRATION_FACTOR = 1.5


def fibonacci_levels(structure: MarketStructure) -> Dict[float, float]:
    """Retracement levels of the major range, keyed by ratio"""
    if structure.major_high is None or structure.major_low is None:
        return {}

    range_high = max(structure.major_high.price, structure.major_low.price)
    range_low = min(structure.major_high.price, structure.major_low.price)
    size = range_high - range_low

    # Bearish legs retrace up from the low, everything else down from the high
    if structure.bias == 'bearish':
        return {r: range_low + size * r for r in FIB_RATIOS}
    return {r: range_high - size * r for r in FIB_RATIOS}


def classify_zone_age(candles_ago: int) -> str:
    if candles_ago <= 10:
        return 'FRESH'
    if candles_ago <= 25:
        return 'RECENT'
    return 'OLD'


def score_zone_strength(size_pct: float, distance_pct: float, body_ratio: float, tested: bool) -> str:
    """Band zone size, distance, body dominance and freshness into a strength label"""
    score = 0

    # Tight zones are more precise
    if size_pct < 0.5:
        score += 2
    elif size_pct < 1.0:
        score += 1

    if distance_pct < 2.0:
        score += 2
    elif distance_pct < 5.0:
        score += 1

    if body_ratio > 0.7:
        score += 2
    elif body_ratio > 0.5:
        score += 1

    if not tested:
        score += 1

    if score >= 6:
        return 'STRONG'
    if score >= 4:
        return 'MODERATE'
    return 'WEAK'


def is_zone_tested(df: pd.DataFrame, zone: Zone, kind: str, start_index: int,
                   zone_params: ZoneProfile, candles_old: int) -> bool:
    """
    Check whether price came back into a zone after it formed

    Args:
        df: Candle dataframe
        zone: Zone to check
        kind: Zone category, decides the side price returns from
        start_index: First candle allowed to test the zone
        zone_params: Profile penetration/reaction settings
        candles_old: Zone age in candles

    Returns:
        True once a candle penetrates the zone deep enough and, when the
        profile asks for it, a reaction candle follows
    """
    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    n = len(df)

    threshold = zone_params.penetration
    if candles_old > OLD_ZONE_CANDLES:
        threshold *= OLD_ZONE_PENETRATION_FACTOR
    threshold = min(threshold, 1.0)

    bullish = kind in BULLISH_KINDS
    size = zone.size

    for j in range(max(start_index, 0), n):
        if bullish:
            if lows[j] > zone.high or highs[j] < zone.low:
                continue
            depth = (zone.high - max(lows[j], zone.low)) / size if size > 0 else 1.0
        else:
            if highs[j] < zone.low or lows[j] > zone.high:
                continue
            depth = (min(highs[j], zone.high) - zone.low) / size if size > 0 else 1.0

        if depth < threshold:
            continue

        if zone_params.reaction_window == 0:
            return True

        reaction = closes[j + 1:j + 1 + zone_params.reaction_window] - opens[j + 1:j + 1 + zone_params.reaction_window]
        if bullish and np.any(reaction > 0):
            return True
        if not bullish and np.any(reaction < 0):
            return True

    return False


def _has_reaction(opens: np.ndarray, closes: np.ndarray, i: int, bullish: bool) -> bool:
    """Strong reaction: one of the next two candles closes beyond the candle open"""
    following = closes[i + 1:i + 3]
    if len(following) == 0:
        return False
    if bullish:
        return bool(np.any(following > opens[i]))
    return bool(np.any(following < opens[i]))


def _pct(value: float, price: float) -> float:
    return value / price * 100 if price else 0.0


def rank_zones(zones: List[EnhancedZone]) -> List[EnhancedZone]:
    """Sort by strength plus confluence bonus, closest first on ties"""
    return sorted(
        zones,
        key=lambda z: (-(STRENGTH_RANK[z.strength] + (1 if z.confluence else 0)), z.distance)
    )


def find_points_of_interest(df: pd.DataFrame, structure: MarketStructure, timeframe: str,
                            profile_config: ProfileConfig
                            ) -> Tuple[Dict[str, List[EnhancedZone]], Optional[DebugInfo]]:
    """
    Detect demand/supply zones and fair value gaps in the recent search window

    Args:
        df: Candle dataframe
        structure: Market structure with the major swing range
        timeframe: Candle timeframe, selects the search window
        profile_config: Trading profile

    Returns:
        Tuple of (zones by category, capped to the best 3; debug info or None)
    """
    zones: Dict[str, List[EnhancedZone]] = {kind: [] for kind in ZONE_CATEGORIES}
    if structure.major_high is None or structure.major_low is None or df.empty:
        return zones, None

    zp = profile_config.zone_params
    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    n = len(df)
    price = float(closes[-1])

    range_high = max(structure.major_high.price, structure.major_low.price)
    range_low = min(structure.major_high.price, structure.major_low.price)
    fib_levels = list(fibonacci_levels(structure).values())

    search_range = min(profile_config.search_range(timeframe), n)
    start = max(1, n - search_range)

    found: List[Tuple[EnhancedZone, float, int]] = []

    for i in range(start, n):
        candle_range = highs[i] - lows[i]
        body_ratio = abs(closes[i] - opens[i]) / candle_range if candle_range > 0 else 0.0

        # Demand: bearish candle fully inside the discount band
        if (candle_range > 0 and closes[i] < opens[i] and body_ratio > zp.min_body_ratio
                and premium_discount(highs[i], range_low, range_high) < zp.discount_ceiling):
            if not zp.require_reaction or _has_reaction(opens, closes, i, bullish=True):
                found.append((EnhancedZone(float(lows[i]), float(highs[i]), kind='demand',
                                           formation_index=i), body_ratio, i + 3))

        # Supply: bullish candle fully inside the premium band
        if (candle_range > 0 and closes[i] > opens[i] and body_ratio > zp.min_body_ratio
                and premium_discount(lows[i], range_low, range_high) > zp.premium_floor):
            if not zp.require_reaction or _has_reaction(opens, closes, i, bullish=False):
                found.append((EnhancedZone(float(lows[i]), float(highs[i]), kind='supply',
                                           formation_index=i), body_ratio, i + 3))

        if i + 1 >= n:
            continue

        # Gaps count on the same side of the range as the zones they back
        if (highs[i - 1] < lows[i + 1]
                and premium_discount(highs[i], range_low, range_high) < zp.discount_ceiling):
            found.append((EnhancedZone(float(highs[i - 1]), float(lows[i + 1]), kind='bullish_fvg',
                                       formation_index=i), body_ratio, i + 2))

        if (lows[i - 1] > highs[i + 1]
                and premium_discount(lows[i], range_low, range_high) > zp.premium_floor):
            found.append((EnhancedZone(float(highs[i + 1]), float(lows[i - 1]), kind='bearish_fvg',
                                       formation_index=i), body_ratio, i + 2))

    for zone, body_ratio, test_start in found:
        candles_old = n - 1 - zone.formation_index
        zone.age = classify_zone_age(candles_old)
        zone.distance = _pct(abs(zone.midpoint - price), price)
        zone.tested = is_zone_tested(df, zone, zone.kind, test_start, zp, candles_old)
        zone.strength = score_zone_strength(_pct(zone.size, price), zone.distance, body_ratio, zone.tested)
        zone.confluence = any(
            level > 0 and abs(zone.midpoint - level) / level <= FIB_CONFLUENCE_TOLERANCE
            for level in fib_levels
        )
        zones[zone.kind].append(zone)

    total_found = len(found)
    for kind in ZONE_CATEGORIES:
        zones[kind] = rank_zones(zones[kind])[:MAX_ZONES_PER_CATEGORY]

    kept = [z for kind in ZONE_CATEGORIES for z in zones[kind]]
    logger.debug(f"Zone search over {search_range} candles: {total_found} found, {len(kept)} kept")

    debug_info = None
    if profile_config.debug_mode:
        tested = sum(1 for z, _, _ in found if z.tested)
        distances = [z.distance for z, _, _ in found]
        debug_info = DebugInfo(
            profile_used=profile_config.profile,
            search_range=search_range,
            total_zones_found=total_found,
            zones_filtered=total_found - len(kept),
            tested_zones=tested,
            untested_zones=total_found - tested,
            average_zone_distance=round(float(np.mean(distances)), 2) if distances else 0.0
        )

    return zones, debug_info
