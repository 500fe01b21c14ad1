"""
Configuration models for the SMC analyzer
"""
from dataclasses import dataclass
from typing import List, Dict, Any

VALID_PROFILES = ('scalp', 'balanced', 'swing')
VALID_TIMEFRAMES = ('15m', '30m', '1h', '4h', '1d')


@dataclass(frozen=True)
class TradeProfile:
    """Trade plan limits for a trading profile"""
    min_rr: float
    max_rr: float
    max_plans: int
    prefer_close: bool
    max_distance: float  # % from current price
    tested_weight: float  # 0-1 penalty multiplier for tested zones


@dataclass(frozen=True)
class ZoneProfile:
    """Zone detection sensitivity for a trading profile"""
    min_body_ratio: float
    require_reaction: bool
    discount_ceiling: float  # premium/discount position a demand candle must stay below
    premium_floor: float  # position a supply candle must stay above
    penetration: float  # fraction of the zone a candle must cover to test it
    reaction_window: int  # candles allowed for the reaction after a test, 0 = not required


# Heuristic constants, tunable for future calibration
TRADE_PROFILES: Dict[str, TradeProfile] = {
    'scalp': TradeProfile(min_rr=1.0, max_rr=3.0, max_plans=3, prefer_close=True,
                          max_distance=3.0, tested_weight=0.8),
    'balanced': TradeProfile(min_rr=1.5, max_rr=5.0, max_plans=2, prefer_close=False,
                             max_distance=6.0, tested_weight=0.5),
    'swing': TradeProfile(min_rr=2.0, max_rr=10.0, max_plans=2, prefer_close=False,
                          max_distance=12.0, tested_weight=0.2),
}

ZONE_PROFILES: Dict[str, ZoneProfile] = {
    'scalp': ZoneProfile(min_body_ratio=0.3, require_reaction=False, discount_ceiling=0.618,
                         premium_floor=0.382, penetration=0.12, reaction_window=0),
    'balanced': ZoneProfile(min_body_ratio=0.5, require_reaction=True, discount_ceiling=0.5,
                            premium_floor=0.5, penetration=0.20, reaction_window=3),
    'swing': ZoneProfile(min_body_ratio=0.6, require_reaction=True, discount_ceiling=0.5,
                         premium_floor=0.5, penetration=0.25, reaction_window=5),
}

# Candles scanned for zones, keyed by profile and timeframe
SEARCH_RANGES: Dict[str, Dict[str, int]] = {
    'scalp': {'15m': 50, '30m': 60, '1h': 80, '4h': 100, '1d': 120},
    'balanced': {'15m': 100, '30m': 120, '1h': 150, '4h': 200, '1d': 300},
    'swing': {'15m': 200, '30m': 250, '1h': 300, '4h': 400, '1d': 600},
}
DEFAULT_SEARCH_RANGE = 150


@dataclass(frozen=True)
class ProfileConfig:
    """Trading profile passed explicitly to every analysis stage"""
    profile: str = 'balanced'
    debug_mode: bool = False

    def __post_init__(self):
        profile = self.profile.lower()
        if profile not in VALID_PROFILES:
            raise ValueError(f"Unknown trading profile: {self.profile}")
        object.__setattr__(self, 'profile', profile)

    @property
    def trade_params(self) -> TradeProfile:
        return TRADE_PROFILES[self.profile]

    @property
    def zone_params(self) -> ZoneProfile:
        return ZONE_PROFILES[self.profile]

    def search_range(self, timeframe: str) -> int:
        """Number of recent candles scanned for zones"""
        return SEARCH_RANGES[self.profile].get(timeframe, DEFAULT_SEARCH_RANGE)


@dataclass
class AppSettings:
    """User settings for the command line application"""
    trading_profile: str = 'balanced'
    debug_mode: bool = False
    default_timeframe: str = '1h'
    coin: str = 'BTC'

    # Position sizing
    account_size: float = 10000.0
    risk_percentage: float = 2.0

    # Alerts
    alerts_enabled: bool = True
    alert_threshold_pct: float = 0.5

    log_level: str = 'INFO'
    data_dir: str = 'data'

    def __post_init__(self):
        self.coin = self.coin.upper()
        self.trading_profile = self.trading_profile.lower()

    def to_profile_config(self) -> ProfileConfig:
        """Build the engine configuration from these settings"""
        return ProfileConfig(profile=self.trading_profile, debug_mode=self.debug_mode)

    def validate(self) -> List[str]:
        """Validate settings and return list of errors"""
        errors = []

        if self.trading_profile not in VALID_PROFILES:
            errors.append(f"Invalid trading profile: {self.trading_profile}")

        if self.default_timeframe not in VALID_TIMEFRAMES:
            errors.append(f"Invalid timeframe: {self.default_timeframe}")

        if self.account_size <= 0:
            errors.append(f"Account size must be positive: {self.account_size}")

        if not 0 < self.risk_percentage <= 100:
            errors.append(f"Risk percentage out of range: {self.risk_percentage}")

        if self.alert_threshold_pct <= 0:
            errors.append(f"Alert threshold must be positive: {self.alert_threshold_pct}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trading_profile': self.trading_profile,
            'debug_mode': self.debug_mode,
            'default_timeframe': self.default_timeframe,
            'coin': self.coin,
            'account_size': self.account_size,
            'risk_percentage': self.risk_percentage,
            'alerts_enabled': self.alerts_enabled,
            'alert_threshold_pct': self.alert_threshold_pct,
            'log_level': self.log_level,
            'data_dir': self.data_dir,
        }
