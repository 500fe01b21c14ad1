import pytest

from config.models import ProfileConfig, TRADE_PROFILES
from smc_analyzer.models import EnhancedZone, SwingPoint, MarketStructure
from smc_analyzer.trade_planner import (
    calculate_risk_reward, select_zones, create_trade_plans, plan_strength
)


def _structure(bias, high=120.0, low=100.0):
    return MarketStructure(bias, 'BOS' if bias != 'sideways' else None, None,
                           SwingPoint('high', high, 40), SwingPoint('low', low, 20), 87, 'STRONG')


def _demand(low, high, distance, strength='MODERATE', age='RECENT', tested=False):
    return EnhancedZone(low, high, kind='demand', strength=strength, age=age,
                        distance=distance, tested=tested)


def _supply(low, high, distance, strength='MODERATE', age='RECENT', tested=False):
    return EnhancedZone(low, high, kind='supply', strength=strength, age=age,
                        distance=distance, tested=tested)


def test_risk_reward():
    assert calculate_risk_reward(102.0, 100.0, 108.0, 'buy') == pytest.approx(3.0)
    assert calculate_risk_reward(110.0, 112.0, 104.0, 'sell') == pytest.approx(3.0)


def test_risk_reward_rejects_wrong_sides():
    assert calculate_risk_reward(102.0, 100.0, 101.0, 'buy') is None
    assert calculate_risk_reward(102.0, 103.0, 108.0, 'buy') is None
    assert calculate_risk_reward(102.0, 102.0, 108.0, 'buy') is None
    assert calculate_risk_reward(110.0, 108.0, 104.0, 'sell') is None


def test_bullish_buy_plans_target_major_high():
    zones = [_demand(106.0, 108.0, 2.0), _demand(108.0, 110.0, 1.0)]
    buy, sell = create_trade_plans(_structure('bullish'), zones, [], ProfileConfig('swing'))

    assert sell == []
    assert len(buy) == 2
    for plan in buy:
        assert plan.direction == 'buy'
        assert plan.target == 120.0
        assert plan.stop < plan.entry < plan.target
        assert TRADE_PROFILES['swing'].min_rr <= plan.risk_reward <= TRADE_PROFILES['swing'].max_rr
    assert buy[0].title == "Buy Plan #1 (Discount)"
    assert buy[1].title == "Buy Plan #2 (Discount)"


def test_bearish_sell_plans_target_major_low():
    zones = [_supply(110.0, 112.0, 2.0)]
    buy, sell = create_trade_plans(_structure('bearish'), [], zones, ProfileConfig('balanced'))

    assert buy == []
    assert len(sell) == 1
    plan = sell[0]
    assert plan.entry == 110.0
    assert plan.stop == 112.0
    assert plan.target == 100.0
    assert plan.risk_reward == pytest.approx(5.0)
    assert plan.title == "Sell Plan #1 (Premium)"


def test_plans_outside_profile_window_are_dropped():
    # rr = (120 - 110) / 1 = 10, above the balanced ceiling of 5
    zones = [_demand(109.0, 110.0, 1.0)]
    buy, _ = create_trade_plans(_structure('bullish'), zones, [], ProfileConfig('balanced'))
    assert buy == []

    buy, _ = create_trade_plans(_structure('bullish'), zones, [], ProfileConfig('swing'))
    assert len(buy) == 1


def test_max_plans_per_side():
    zones = [_demand(104.0 + i * 0.5, 106.0 + i * 0.5, 1.0 + i * 0.1) for i in range(5)]
    buy, _ = create_trade_plans(_structure('bullish'), zones, [], ProfileConfig('scalp'))
    assert len(buy) <= TRADE_PROFILES['scalp'].max_plans


def test_prefer_close_orders_by_distance():
    far_strong = _demand(100.0, 101.0, 2.5, strength='STRONG', age='FRESH')
    near_weak = _demand(101.0, 102.0, 0.5, strength='WEAK', age='OLD')

    assert select_zones([far_strong, near_weak], TRADE_PROFILES['scalp'])[0] is near_weak
    assert select_zones([far_strong, near_weak], TRADE_PROFILES['balanced'])[0] is far_strong


def test_distance_relaxed_once_when_nothing_in_range():
    zone = _demand(100.0, 101.0, 7.0)
    assert select_zones([zone], TRADE_PROFILES['balanced']) == [zone]
    assert select_zones([_demand(100.0, 101.0, 10.0)], TRADE_PROFILES['balanced']) == []


def test_tested_zones_kept_but_penalised():
    tested = _demand(100.0, 101.0, 1.0, strength='STRONG', age='FRESH', tested=True)
    untested = _demand(101.0, 102.0, 1.0, strength='STRONG', age='FRESH')
    ranked = select_zones([tested, untested], TRADE_PROFILES['swing'])
    assert ranked == [untested, tested]


def test_sideways_plans_project_range():
    structure = _structure('sideways', high=110.0, low=100.0)
    buy, sell = create_trade_plans(structure, [_demand(101.0, 102.0, 1.0)],
                                   [_supply(108.0, 109.0, 1.0)], ProfileConfig('swing'))

    assert buy[0].target == pytest.approx(102.0 + 6.0)
    assert sell[0].target == pytest.approx(108.0 - 6.0)


def test_no_plans_without_major_range():
    structure = MarketStructure('bullish', 'BOS', None, None, None, 87, 'STRONG')
    assert create_trade_plans(structure, [_demand(100.0, 101.0, 1.0)], [], ProfileConfig()) == ([], [])


def test_plan_strength():
    assert plan_strength('STRONG', 3.5, 1.0, False) == 'STRONG'
    assert plan_strength('MODERATE', 2.0, 3.0, False) == 'MODERATE'
    assert plan_strength('WEAK', 1.2, 3.0, True) == 'WEAK'
