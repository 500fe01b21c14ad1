"""
Wyckoff accumulation/distribution phase analysis for sideways markets

Volume is not part of the candle feed, so the candle range relative to the
trailing 20-candle mean range stands in as the effort proxy.
"""
import logging
import pandas as pd
import numpy as np
from typing import List, Optional

from config.models import ProfileConfig
from .models import (
    MarketStructure, RangeAnalysis, TradePlan,
    WyckoffAnalysis, WyckoffEvent, WyckoffPhase
)
from .trade_planner import calculate_risk_reward, rr_within_profile
from .zone_engine import classify_zone_age

logger = logging.getLogger(__name__)

MIN_RANGE_DURATION = 20
MIN_RANGE_SIZE_PCT = 2.0
RANGE_TOUCH_TOLERANCE = 0.01

EDGE_CANDLES = 10
VOLUME_WINDOW = 20
CLIMAX_VOLUME_RATIO = 1.5
CLIMAX_ZONE = 0.02
MIN_EVENT_CONFIDENCE = 0.6
DEDUP_WINDOW = 5

# Fractions of the range size
ENTRY_OFFSET = 0.05
STOP_BUFFER = 0.1
MARKUP_PROJECTION = 0.5
MIN_WYCKOFF_RR = 1.0

SCHEMAS = {
    'accumulation': {'climax': 'SC', 'reversal': 'Spring', 'last_point': 'LPS'},
    'distribution': {'climax': 'BC', 'reversal': 'UpThrust', 'last_point': 'LPSY'},
}

PHASE_DESCRIPTIONS = {
    'A': "Stopping action: climax printed, prior trend halted",
    'B': "Building cause: price rotating inside the range",
    'C': "Test: {reversal} shook out the range boundary",
    'D': "Trend inside the range: {last_point} confirms the {schema} direction",
    'E': "Price left the range, {schema} resolved",
}


def validate_range(df: pd.DataFrame, structure: MarketStructure) -> RangeAnalysis:
    """Check that the major swing range is wide and long enough for Wyckoff analysis"""
    range_high = max(structure.major_high.price, structure.major_low.price)
    range_low = min(structure.major_high.price, structure.major_low.price)
    duration = abs(structure.major_high.index - structure.major_low.index)
    price = float(df['close'].iloc[-1])
    range_size_pct = (range_high - range_low) / price * 100 if price else 0.0

    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    touches = int(
        np.count_nonzero(np.abs(highs - range_high) <= range_high * RANGE_TOUCH_TOLERANCE)
        + np.count_nonzero(np.abs(lows - range_low) <= range_low * RANGE_TOUCH_TOLERANCE)
    )

    if duration >= MIN_RANGE_DURATION and range_size_pct >= MIN_RANGE_SIZE_PCT:
        return RangeAnalysis(
            range_high=range_high,
            range_low=range_low,
            duration=duration,
            range_size_pct=round(range_size_pct, 2),
            strength='STRONG' if touches >= 6 else 'MODERATE'
        )

    missing = []
    if duration < MIN_RANGE_DURATION:
        missing.append(f"{MIN_RANGE_DURATION - duration} more candles")
    if range_size_pct < MIN_RANGE_SIZE_PCT:
        missing.append(f"{MIN_RANGE_SIZE_PCT - range_size_pct:.2f}% more range")

    return RangeAnalysis(
        range_high=range_high,
        range_low=range_low,
        duration=duration,
        range_size_pct=round(range_size_pct, 2),
        strength='DEVELOPING',
        debug_info={
            'status': f"Range developing, needs {' and '.join(missing)}",
            'current_duration': duration,
            'required_duration': MIN_RANGE_DURATION,
            'current_range_size': round(range_size_pct, 2),
            'required_range_size': MIN_RANGE_SIZE_PCT,
            'touch_count': touches,
        }
    )


def _event_confidence(volume_ratio: float, body_ratio: float, confirmation: float) -> float:
    volume_score = min(0.3, max(0.0, (volume_ratio - 1.0) * 0.3))
    return min(1.0, 0.5 + volume_score + 0.15 * body_ratio + 0.15 * confirmation)


def detect_wyckoff_events(df: pd.DataFrame, range_low: float, range_high: float) -> List[WyckoffEvent]:
    """
    Scan the candles for climaxes, springs, upthrusts and last points

    Args:
        df: Candle dataframe
        range_low: Trading range support
        range_high: Trading range resistance

    Returns:
        Events with confidence >= 0.6, one per type in any 5-candle window
    """
    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    ranges = highs - lows
    n = len(df)
    midpoint = (range_low + range_high) / 2

    events: List[WyckoffEvent] = []

    def seen(event_type: str) -> List[WyckoffEvent]:
        return [e for e in events if e.type == event_type]

    for i in range(EDGE_CANDLES, n - EDGE_CANDLES):
        trailing = ranges[max(0, i - VOLUME_WINDOW):i]
        average = float(trailing.mean()) if len(trailing) else 0.0
        volume_ratio = ranges[i] / average if average > 0 else 1.0
        body_ratio = abs(closes[i] - opens[i]) / ranges[i] if ranges[i] > 0 else 0.0
        next_close = closes[i + 1]

        candidates = []

        # Selling climax: wide bearish candle tagging support
        if (range_low <= lows[i] <= range_low * (1 + CLIMAX_ZONE) and closes[i] < opens[i]
                and volume_ratio > CLIMAX_VOLUME_RATIO):
            candidates.append(('SC', lows[i], 1.0 if next_close > closes[i] else 0.0))

        # Buying climax: wide bullish candle tagging resistance
        if (range_high * (1 - CLIMAX_ZONE) <= highs[i] <= range_high and closes[i] > opens[i]
                and volume_ratio > CLIMAX_VOLUME_RATIO):
            candidates.append(('BC', highs[i], 1.0 if next_close < closes[i] else 0.0))

        if lows[i] < range_low < closes[i] and next_close > closes[i]:
            recovery = (closes[i] - lows[i]) / ranges[i] if ranges[i] > 0 else 0.0
            candidates.append(('Spring', lows[i], recovery))

        if highs[i] > range_high > closes[i] and next_close < closes[i]:
            rejection = (highs[i] - closes[i]) / ranges[i] if ranges[i] > 0 else 0.0
            candidates.append(('UpThrust', highs[i], rejection))

        springs = seen('Spring')
        if (springs and range_low < lows[i] < midpoint and closes[i] > opens[i]
                and lows[i] > min(e.price for e in springs)
                and lows[i] < lows[i - 1] and lows[i] <= lows[i + 1]):
            candidates.append(('LPS', lows[i], 1.0 if next_close > closes[i] else 0.0))

        upthrusts = seen('UpThrust')
        if (upthrusts and midpoint < highs[i] < range_high and closes[i] < opens[i]
                and highs[i] < max(e.price for e in upthrusts)
                and highs[i] > highs[i - 1] and highs[i] >= highs[i + 1]):
            candidates.append(('LPSY', highs[i], 1.0 if next_close < closes[i] else 0.0))

        for event_type, price, confirmation in candidates:
            confidence = _event_confidence(volume_ratio, body_ratio, confirmation)
            if confidence < MIN_EVENT_CONFIDENCE:
                continue
            if any(i - e.index < DEDUP_WINDOW for e in seen(event_type)):
                continue
            events.append(WyckoffEvent(event_type, float(price), i, round(float(confidence), 3)))

    logger.debug(f"Detected {len(events)} Wyckoff events: {[e.type for e in events]}")
    return events


def _pick_schema(events: List[WyckoffEvent]) -> Optional[str]:
    types = {e.type for e in events}
    matches = []
    for schema, roles in SCHEMAS.items():
        if roles['reversal'] in types or (roles['climax'] in types and roles['last_point'] in types):
            matches.append(schema)

    if not matches:
        # A lone climax still marks phase A of its schema
        matches = [s for s, roles in SCHEMAS.items() if roles['climax'] in types]
    if not matches:
        return None
    if len(matches) == 1:
        return matches[0]

    def latest(schema: str) -> int:
        roles = set(SCHEMAS[schema].values())
        return max(e.index for e in events if e.type in roles)

    return max(matches, key=latest)


def classify_phase(events: List[WyckoffEvent], range_low: float, range_high: float,
                   current_price: float) -> Optional[WyckoffPhase]:
    """Derive the schema and phase A-E from the detected events"""
    schema = _pick_schema(events)
    if schema is None:
        return None

    roles = SCHEMAS[schema]
    schema_events = sorted((e for e in events if e.type in roles.values()), key=lambda e: e.index)
    types = {e.type for e in schema_events}
    has_reversal = roles['reversal'] in types
    has_last_point = roles['last_point'] in types

    if has_reversal and has_last_point:
        broke_out = current_price > range_high if schema == 'accumulation' else current_price < range_low
        phase = 'E' if broke_out else 'D'
    elif has_reversal:
        phase = 'C'
    elif types == {roles['climax']}:
        phase = 'A'
    else:
        phase = 'B'

    confidence = 0.4 + min(0.3, 0.1 * len(schema_events))
    confidence += 0.3 * float(np.mean([e.confidence for e in schema_events]))
    if has_reversal:
        confidence += 0.1
    if has_last_point:
        confidence += 0.1

    description = PHASE_DESCRIPTIONS[phase].format(schema=schema, **roles)

    return WyckoffPhase(
        schema_type=schema,
        phase=phase,
        events=schema_events,
        confidence=round(min(1.0, confidence), 3),
        trading_opportunity=phase in ('C', 'D'),
        range_high=range_high,
        range_low=range_low,
        description=description
    )


def _confidence_strength(confidence: float) -> str:
    if confidence >= 0.8:
        return 'STRONG'
    if confidence >= 0.6:
        return 'MODERATE'
    return 'WEAK'


def generate_wyckoff_plans(phase: WyckoffPhase, last_index: int,
                           profile_config: ProfileConfig) -> List[TradePlan]:
    """Phase C/D plans: spring/upthrust reversal or LPS/LPSY continuation"""
    if not phase.trading_opportunity:
        return []

    roles = SCHEMAS[phase.schema_type]
    range_size = phase.range_high - phase.range_low
    accumulation = phase.schema_type == 'accumulation'
    direction = 'buy' if accumulation else 'sell'

    if phase.phase == 'C':
        event = [e for e in phase.events if e.type == roles['reversal']][-1]
        if accumulation:
            entry = event.price + range_size * ENTRY_OFFSET
            stop = min(event.price, phase.range_low) - range_size * STOP_BUFFER
            target = phase.range_high
        else:
            entry = event.price - range_size * ENTRY_OFFSET
            stop = max(event.price, phase.range_high) + range_size * STOP_BUFFER
            target = phase.range_low
        title = f"Wyckoff {event.type} Reversal"
        explanation = f"Phase C {phase.schema_type}: {event.type} at {event.price:.2f}, targeting the opposite range boundary"
    else:
        event = [e for e in phase.events if e.type == roles['last_point']][-1]
        entry = event.price
        if accumulation:
            stop = phase.range_low
            target = phase.range_high + range_size * MARKUP_PROJECTION
        else:
            stop = phase.range_high
            target = phase.range_low - range_size * MARKUP_PROJECTION
        title = f"Wyckoff {event.type} Continuation"
        move = "markup" if accumulation else "markdown"
        explanation = f"Phase D {phase.schema_type}: {event.type} at {event.price:.2f}, {move} projection of 50% range"

    rr = calculate_risk_reward(entry, stop, target, direction)
    if rr is None or rr < MIN_WYCKOFF_RR or not rr_within_profile(rr, profile_config.trade_params):
        logger.debug(f"Discarding Wyckoff plan, rr={rr}")
        return []

    plan = TradePlan(
        title=title,
        entry=entry,
        stop=stop,
        target=target,
        risk_reward=rr,
        strength=_confidence_strength(phase.confidence),
        age=classify_zone_age(last_index - event.index),
        explanation=explanation,
        direction=direction
    )
    return [plan][:profile_config.trade_params.max_plans]


def analyze_wyckoff(df: pd.DataFrame, structure: MarketStructure,
                    profile_config: ProfileConfig) -> Optional[WyckoffAnalysis]:
    """
    Run Wyckoff range validation, event detection and phase classification

    Args:
        df: Candle dataframe
        structure: Market structure, only sideways structures are analyzed
        profile_config: Trading profile bounding the plans

    Returns:
        WyckoffAnalysis, or None when the structure is not sideways
    """
    if structure.bias != 'sideways' or structure.major_high is None or structure.major_low is None:
        return None

    range_analysis = validate_range(df, structure)
    if range_analysis.strength == 'DEVELOPING':
        logger.debug(f"Wyckoff range developing: {range_analysis.debug_info['status']}")
        return WyckoffAnalysis(is_wyckoff_pattern=False, range_analysis=range_analysis)

    events = detect_wyckoff_events(df, range_analysis.range_low, range_analysis.range_high)
    phase = classify_phase(events, range_analysis.range_low, range_analysis.range_high,
                           float(df['close'].iloc[-1]))
    if phase is None:
        return WyckoffAnalysis(is_wyckoff_pattern=False, range_analysis=range_analysis)

    plans = generate_wyckoff_plans(phase, len(df) - 1, profile_config)
    logger.debug(f"Wyckoff {phase.schema_type} phase {phase.phase}, {len(plans)} plan(s)")

    return WyckoffAnalysis(
        is_wyckoff_pattern=True,
        range_analysis=range_analysis,
        current_phase=phase,
        trade_plans=plans
    )
