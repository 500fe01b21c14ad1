"""
Smart Money Concepts market analyzer
"""

from .analyzer import analyze
from .models import (
    Candle, SwingPoint, MarketStructure, Zone, EnhancedZone, TradePlan,
    Confluence, WyckoffEvent, WyckoffPhase, WyckoffAnalysis, SMCAnalysis, AnalysisError
)

__all__ = [
    'analyze',
    'Candle', 'SwingPoint', 'MarketStructure', 'Zone', 'EnhancedZone', 'TradePlan',
    'Confluence', 'WyckoffEvent', 'WyckoffPhase', 'WyckoffAnalysis', 'SMCAnalysis', 'AnalysisError'
]
