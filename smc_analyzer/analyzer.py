"""
Single entry point of the SMC analysis pipeline
"""
import logging
import pandas as pd
from typing import List, Optional, Union

from config.models import ProfileConfig
from .models import Candle, SMCAnalysis, AnalysisError
from .data_loader import candles_to_dataframe, REQUIRED_COLUMNS
from .smc_detector import (
    lookback_for_timeframe, min_candles_required,
    find_swing_points, find_market_structure
)
from .zone_engine import find_points_of_interest
from .confluence import find_confluences
from .wyckoff import analyze_wyckoff
from .trade_planner import create_trade_plans

logger = logging.getLogger(__name__)

MIN_SWINGS = 4


def analyze(candles: Union[pd.DataFrame, List[Candle]], timeframe: str,
            profile_config: Optional[ProfileConfig] = None) -> Union[SMCAnalysis, AnalysisError]:
    """
    Run the full analysis: swings, structure, zones, confluences, Wyckoff and plans

    Args:
        candles: Candle dataframe (timestamp, open, high, low, close) or list of Candle,
            ascending by time; never modified
        timeframe: Candle timeframe ('15m', '30m', '1h', '4h', '1d')
        profile_config: Trading profile, balanced without debug when omitted

    Returns:
        SMCAnalysis on success, AnalysisError otherwise
    """
    if profile_config is None:
        profile_config = ProfileConfig()

    if candles is None:
        return AnalysisError(f"Insufficient data for a reliable analysis on {timeframe}.")
    df = candles if isinstance(candles, pd.DataFrame) else candles_to_dataframe(candles)

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        return AnalysisError(f"Candle data is missing columns: {sorted(missing)}")

    lookback = lookback_for_timeframe(timeframe)
    required = min_candles_required(lookback)
    if len(df) < required:
        logger.warning(f"Only {len(df)} candles for {timeframe}, need {required}")
        return AnalysisError(f"Insufficient data for a reliable analysis on {timeframe}.")

    if df[['open', 'high', 'low', 'close']].isna().to_numpy().any():
        return AnalysisError("Candle data contains missing prices.")

    swings = find_swing_points(df, lookback)
    logger.debug(f"{timeframe}: {len(swings)} swing points with lookback {lookback}")
    if len(swings) < MIN_SWINGS:
        return AnalysisError(f"Could not identify enough swing highs/lows for analysis on {timeframe}.")

    structure = find_market_structure(swings)
    if isinstance(structure, AnalysisError):
        return structure
    logger.debug(f"{timeframe}: bias={structure.bias} event={structure.last_event} "
                 f"probability={structure.probability}")

    zones, debug_info = find_points_of_interest(df, structure, timeframe, profile_config)

    analysis = SMCAnalysis(
        structure=structure,
        timeframe=timeframe,
        current_price=float(df['close'].iloc[-1]),
        profile=profile_config.profile,
        demand_zones=zones['demand'],
        supply_zones=zones['supply'],
        bullish_fvgs=zones['bullish_fvg'],
        bearish_fvgs=zones['bearish_fvg'],
        debug_info=debug_info
    )
    analysis.confluences = find_confluences(df, structure, analysis.all_zones())

    analysis.buy_plans, analysis.sell_plans = create_trade_plans(
        structure, analysis.demand_zones, analysis.supply_zones, profile_config
    )

    if structure.bias == 'sideways':
        analysis.wyckoff = analyze_wyckoff(df, structure, profile_config)
        wyckoff = analysis.wyckoff
        if (wyckoff is not None and wyckoff.current_phase is not None
                and wyckoff.current_phase.trading_opportunity and wyckoff.trade_plans):
            # Wyckoff plans supersede the generic zone plans
            analysis.buy_plans = [p for p in wyckoff.trade_plans if p.direction == 'buy']
            analysis.sell_plans = [p for p in wyckoff.trade_plans if p.direction == 'sell']

    logger.info(f"{timeframe} analysis: {structure.bias}, {len(analysis.buy_plans)} buy / "
                f"{len(analysis.sell_plans)} sell plans")
    return analysis
