"""
Bias agreement across several timeframes
"""
import logging
import pandas as pd
from typing import Dict, List, Optional, Union

from config.models import ProfileConfig
from .models import SMCAnalysis, AnalysisError
from .analyzer import analyze

logger = logging.getLogger(__name__)

TIMEFRAMES = ['15m', '1h', '4h', '1d']


def analyze_timeframes(candles_by_timeframe: Dict[str, pd.DataFrame],
                       profile_config: Optional[ProfileConfig] = None
                       ) -> Dict[str, Union[SMCAnalysis, AnalysisError]]:
    """Run the analysis independently on each timeframe"""
    results = {}
    for timeframe, df in candles_by_timeframe.items():
        results[timeframe] = analyze(df, timeframe, profile_config)
        if isinstance(results[timeframe], AnalysisError):
            logger.warning(f"{timeframe}: {results[timeframe].error}")
    return results


def timeframe_confluence(results: Dict[str, Union[SMCAnalysis, AnalysisError]]) -> List[Dict]:
    """
    Report bullish/bearish bias shared by at least two timeframes

    Returns:
        List of {'type', 'count', 'strength', 'timeframes'}; STRONG from three timeframes
    """
    analyses = {tf: r for tf, r in results.items() if isinstance(r, SMCAnalysis)}
    if len(analyses) < 2:
        return []

    confluences = []
    for bias in ('bullish', 'bearish'):
        timeframes = [tf for tf, a in analyses.items() if a.bias == bias]
        if len(timeframes) >= 2:
            confluences.append({
                'type': bias,
                'count': len(timeframes),
                'strength': 'STRONG' if len(timeframes) >= 3 else 'MODERATE',
                'timeframes': timeframes,
            })
    return confluences
