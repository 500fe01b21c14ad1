from conftest import make_frame

from config.models import ProfileConfig, ZONE_PROFILES
from smc_analyzer.models import Zone, SwingPoint, MarketStructure
from smc_analyzer.smc_detector import find_swing_points, find_market_structure
from smc_analyzer.zone_engine import (
    fibonacci_levels, classify_zone_age, score_zone_strength,
    is_zone_tested, find_points_of_interest, MAX_ZONES_PER_CATEGORY, ZONE_CATEGORIES
)


def _structure(bias, high=200.0, low=100.0):
    return MarketStructure(bias, None, None, SwingPoint('high', high, 10),
                           SwingPoint('low', low, 5), 52, 'WEAK')


def test_fibonacci_levels_follow_bias():
    bullish = fibonacci_levels(_structure('bullish'))
    assert bullish[0.5] == 150
    assert round(bullish[0.236], 6) == 176.4

    bearish = fibonacci_levels(_structure('bearish'))
    assert round(bearish[0.236], 6) == 123.6


def test_fibonacci_levels_without_range():
    structure = MarketStructure('sideways', None, None, None, None, 52, 'WEAK')
    assert fibonacci_levels(structure) == {}


def test_zone_age_boundaries():
    assert classify_zone_age(0) == 'FRESH'
    assert classify_zone_age(10) == 'FRESH'
    assert classify_zone_age(11) == 'RECENT'
    assert classify_zone_age(25) == 'RECENT'
    assert classify_zone_age(26) == 'OLD'


def test_zone_strength_scoring():
    assert score_zone_strength(0.3, 1.0, 0.8, False) == 'STRONG'
    assert score_zone_strength(0.8, 1.0, 0.6, False) == 'MODERATE'
    assert score_zone_strength(0.8, 3.0, 0.6, True) == 'WEAK'


def _touch_frame(touch_low, react=True):
    rows = [(103.0, 104.0, 102.5, 103.5),
            (103.0, 103.5, touch_low, 102.5)]
    if react:
        rows.append((102.5, 104.0, 102.4, 103.8))
    else:
        rows.append((103.8, 104.0, 102.4, 102.6))
    rows += [(103.5, 104.0, 102.4, 102.8)] * 3
    return make_frame(rows)


def test_zone_tested_with_reaction():
    zone = Zone(100.0, 102.0)
    df = _touch_frame(101.5)
    assert is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['balanced'], 5)


def test_zone_tested_without_reaction_depends_on_profile():
    zone = Zone(100.0, 102.0)
    df = _touch_frame(101.5, react=False)
    assert not is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['balanced'], 5)
    assert is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['scalp'], 5)


def test_shallow_touch_does_not_test_zone():
    zone = Zone(100.0, 102.0)
    df = _touch_frame(101.8)
    assert not is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['balanced'], 5)
    assert not is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['scalp'], 5)


def test_old_zones_need_deeper_penetration():
    zone = Zone(100.0, 102.0)
    df = _touch_frame(101.5)
    assert not is_zone_tested(df, zone, 'demand', 1, ZONE_PROFILES['balanced'], 60)


def test_supply_zone_tested_from_below():
    zone = Zone(104.0, 106.0)
    rows = [(103.0, 103.5, 102.5, 103.2),
            (103.0, 104.8, 102.8, 104.5),
            (104.5, 104.6, 103.0, 103.2),
            (103.2, 103.5, 102.5, 103.0)]
    assert is_zone_tested(make_frame(rows), zone, 'supply', 1, ZONE_PROFILES['balanced'], 3)


def test_points_of_interest_on_uptrend(uptrend_df):
    structure = find_market_structure(find_swing_points(uptrend_df, 5))
    zones, debug_info = find_points_of_interest(uptrend_df, structure, '1h', ProfileConfig())

    assert set(zones) == set(ZONE_CATEGORIES)
    assert zones['demand']
    assert zones['bullish_fvg']
    assert debug_info is None

    price = float(uptrend_df['close'].iloc[-1])
    for kind, found in zones.items():
        assert len(found) <= MAX_ZONES_PER_CATEGORY
        for zone in found:
            assert zone.kind == kind
            assert zone.low < zone.high
            assert zone.strength in ('STRONG', 'MODERATE', 'WEAK')
            assert zone.age in ('FRESH', 'RECENT', 'OLD')
            assert round(zone.distance, 6) == round(abs(zone.midpoint - price) / price * 100, 6)


def test_fvg_bounds_are_the_gap(uptrend_df):
    structure = find_market_structure(find_swing_points(uptrend_df, 5))
    zones, _ = find_points_of_interest(uptrend_df, structure, '1h', ProfileConfig())
    for zone in zones['bullish_fvg']:
        i = zone.formation_index
        assert zone.low == uptrend_df['high'].iloc[i - 1]
        assert zone.high == uptrend_df['low'].iloc[i + 1]


def test_debug_info_only_in_debug_mode(uptrend_df):
    structure = find_market_structure(find_swing_points(uptrend_df, 5))
    zones, debug_info = find_points_of_interest(
        uptrend_df, structure, '1h', ProfileConfig('balanced', debug_mode=True)
    )

    assert debug_info is not None
    assert debug_info.profile_used == 'balanced'
    assert debug_info.search_range == len(uptrend_df)
    kept = sum(len(z) for z in zones.values())
    assert debug_info.total_zones_found - debug_info.zones_filtered == kept
    assert debug_info.tested_zones + debug_info.untested_zones == debug_info.total_zones_found


def test_no_zones_without_major_range(uptrend_df):
    structure = MarketStructure('sideways', None, None, None, None, 52, 'WEAK')
    zones, debug_info = find_points_of_interest(uptrend_df, structure, '1h', ProfileConfig())
    assert all(z == [] for z in zones.values())
    assert debug_info is None


def test_gap_below_demand_zone_is_not_a_test():
    zone = Zone(100.0, 102.0)
    rows = [(103.0, 104.0, 102.5, 103.5),
            (99.0, 99.5, 98.0, 98.5),
            (98.5, 99.8, 98.4, 99.6),
            (99.6, 99.9, 99.0, 99.8)]
    assert not is_zone_tested(make_frame(rows), zone, 'demand', 1, ZONE_PROFILES['scalp'], 5)


def test_gap_above_supply_zone_is_not_a_test():
    zone = Zone(104.0, 106.0)
    rows = [(103.0, 103.5, 102.5, 103.2),
            (107.0, 108.0, 106.5, 107.5),
            (107.5, 107.6, 106.2, 106.4)]
    assert not is_zone_tested(make_frame(rows), zone, 'supply', 1, ZONE_PROFILES['scalp'], 5)


def test_bullish_gap_only_in_discount():
    discount = [(118.0, 119.0, 117.0, 118.5),
                (119.0, 123.0, 118.9, 122.5),
                (122.6, 125.0, 120.0, 124.0)]
    zones, _ = find_points_of_interest(make_frame(discount), _structure('bullish'), '1h', ProfileConfig())
    assert [(z.low, z.high) for z in zones['bullish_fvg']] == [(119.0, 120.0)]

    premium = [(o + 70, h + 70, l + 70, c + 70) for o, h, l, c in discount]
    zones, _ = find_points_of_interest(make_frame(premium), _structure('bullish'), '1h', ProfileConfig())
    assert zones['bullish_fvg'] == []


def test_bearish_gap_only_in_premium():
    premium = [(192.0, 193.0, 191.0, 191.5),
               (191.5, 191.6, 187.0, 187.5),
               (187.4, 190.0, 185.0, 186.0)]
    zones, _ = find_points_of_interest(make_frame(premium), _structure('bearish'), '1h', ProfileConfig())
    assert [(z.low, z.high) for z in zones['bearish_fvg']] == [(190.0, 191.0)]

    discount = [(o - 80, h - 80, l - 80, c - 80) for o, h, l, c in premium]
    zones, _ = find_points_of_interest(make_frame(discount), _structure('bearish'), '1h', ProfileConfig())
    assert zones['bearish_fvg'] == []
