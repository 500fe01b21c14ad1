"""
Configuration package for the SMC analyzer
"""

from .models import (
    ProfileConfig, TradeProfile, ZoneProfile, AppSettings,
    TRADE_PROFILES, ZONE_PROFILES, SEARCH_RANGES
)
from .loader import SettingsLoader, load_settings, save_settings

__all__ = [
    'ProfileConfig', 'TradeProfile', 'ZoneProfile', 'AppSettings',
    'TRADE_PROFILES', 'ZONE_PROFILES', 'SEARCH_RANGES',
    'SettingsLoader', 'load_settings', 'save_settings'
]
