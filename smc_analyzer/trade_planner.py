"""
Trade plan generation from market structure and scored zones
"""
import logging
from typing import List, Optional, Tuple

from config.models import ProfileConfig, TradeProfile
from .models import EnhancedZone, MarketStructure, TradePlan

logger = logging.getLogger(__name__)

TESTED_WEIGHT_FLOOR = 0.1
DISTANCE_RELAXATION = 1.5
SIDEWAYS_TARGET_RATIO = 0.6

STRENGTH_WEIGHTS = {'STRONG': 30, 'MODERATE': 20, 'WEAK': 10}
AGE_WEIGHTS = {'FRESH': 20, 'RECENT': 15, 'OLD': 5}
STRENGTH_POINTS = {'STRONG': 3, 'MODERATE': 2, 'WEAK': 1}
MAX_DISTANCE_BONUS = 20


def calculate_risk_reward(entry: float, stop: float, target: float, direction: str) -> Optional[float]:
    """
    Risk/reward of a plan, or None when the levels are not on the right sides

    Args:
        entry: Entry price
        stop: Stop loss price
        target: Take profit price
        direction: 'buy' or 'sell'

    Returns:
        |target - entry| / |entry - stop|, always positive, or None
    """
    if direction == 'buy':
        valid = target > entry > stop
    else:
        valid = target < entry < stop

    if not valid:
        return None
    return abs(target - entry) / abs(entry - stop)


def rr_within_profile(rr: float, params: TradeProfile) -> bool:
    return params.min_rr <= rr <= params.max_rr


def zone_score(zone: EnhancedZone, params: TradeProfile) -> float:
    """Composite ranking score: strength, age and proximity, penalised when tested"""
    score = STRENGTH_WEIGHTS[zone.strength] + AGE_WEIGHTS[zone.age]
    if params.max_distance > 0:
        score += max(0.0, (params.max_distance - zone.distance) / params.max_distance) * MAX_DISTANCE_BONUS
    if zone.tested:
        score *= params.tested_weight
    return score


def select_zones(zones: List[EnhancedZone], params: TradeProfile) -> List[EnhancedZone]:
    """Filter zones by distance and tested eligibility, then rank them"""

    def eligible(max_distance: float) -> List[EnhancedZone]:
        return [
            z for z in zones
            if z.distance <= max_distance and (not z.tested or params.tested_weight > TESTED_WEIGHT_FLOOR)
        ]

    candidates = eligible(params.max_distance)
    if not candidates:
        candidates = eligible(params.max_distance * DISTANCE_RELAXATION)

    if params.prefer_close:
        return sorted(candidates, key=lambda z: z.distance)
    return sorted(candidates, key=lambda z: zone_score(z, params), reverse=True)


def plan_strength(zone_strength: str, rr: float, distance: float, tested: bool) -> str:
    score = STRENGTH_POINTS[zone_strength]
    if rr >= 3:
        score += 2
    elif rr >= 2:
        score += 1
    if distance < 2:
        score += 1
    if tested:
        score -= 1

    if score >= 5:
        return 'STRONG'
    if score >= 3:
        return 'MODERATE'
    return 'WEAK'


def _plans_for_side(structure: MarketStructure, zones: List[EnhancedZone], direction: str,
                    params: TradeProfile) -> List[TradePlan]:
    plans: List[TradePlan] = []
    range_size = abs(structure.major_high.price - structure.major_low.price)

    for zone in select_zones(zones, params):
        if len(plans) >= params.max_plans:
            break

        if direction == 'buy':
            entry, stop = zone.high, zone.low
            if structure.bias == 'sideways':
                target = entry + range_size * SIDEWAYS_TARGET_RATIO
                target_desc = "60% range projection"
            else:
                target = structure.major_high.price
                target_desc = "major swing high"
        else:
            entry, stop = zone.low, zone.high
            if structure.bias == 'sideways':
                target = entry - range_size * SIDEWAYS_TARGET_RATIO
                target_desc = "60% range projection"
            else:
                target = structure.major_low.price
                target_desc = "major swing low"

        rr = calculate_risk_reward(entry, stop, target, direction)
        if rr is None or not rr_within_profile(rr, params):
            logger.debug(f"Skipping {direction} plan at {entry:.2f}: rr={rr}")
            continue

        number = len(plans) + 1
        if direction == 'buy':
            title = f"Buy Plan #{number} (Discount)"
            zone_name = "Demand"
        else:
            title = f"Sell Plan #{number} (Premium)"
            zone_name = "Supply"
        tested_note = ", tested" if zone.tested else ""

        plans.append(TradePlan(
            title=title,
            entry=entry,
            stop=stop,
            target=target,
            risk_reward=rr,
            strength=plan_strength(zone.strength, rr, zone.distance, zone.tested),
            age=zone.age,
            explanation=(f"{zone_name} zone {zone.low:.2f}-{zone.high:.2f} "
                         f"({zone.strength.lower()}, {zone.age.lower()}, {zone.distance:.1f}% away{tested_note}) "
                         f"targeting the {target_desc}"),
            direction=direction
        ))

    return plans


def create_trade_plans(structure: MarketStructure, demand_zones: List[EnhancedZone],
                       supply_zones: List[EnhancedZone],
                       profile_config: ProfileConfig) -> Tuple[List[TradePlan], List[TradePlan]]:
    """
    Build ranked buy and sell plans for the trading profile

    Args:
        structure: Market structure with the major swing range
        demand_zones: Scored demand zones (buy side)
        supply_zones: Scored supply zones (sell side)
        profile_config: Trading profile

    Returns:
        Tuple of (buy_plans, sell_plans)
    """
    if structure.major_high is None or structure.major_low is None:
        return [], []

    params = profile_config.trade_params
    buy_plans: List[TradePlan] = []
    sell_plans: List[TradePlan] = []

    if structure.bias in ('bullish', 'sideways'):
        buy_plans = _plans_for_side(structure, demand_zones, 'buy', params)
    if structure.bias in ('bearish', 'sideways'):
        sell_plans = _plans_for_side(structure, supply_zones, 'sell', params)

    logger.debug(f"Generated {len(buy_plans)} buy and {len(sell_plans)} sell plans ({profile_config.profile})")
    return buy_plans, sell_plans
