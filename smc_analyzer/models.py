"""
Data models for the SMC market analyzer
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any


@dataclass
class Candle:
    """Unified candle data structure"""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_hyperliquid(cls, data: Dict[str, Any]) -> 'Candle':
        """Create Candle from a Hyperliquid candleSnapshot entry"""
        return cls(
            timestamp=datetime.fromtimestamp(int(data['t']) / 1000, tz=timezone.utc),
            open=float(data['o']),
            high=float(data['h']),
            low=float(data['l']),
            close=float(data['c'])
        )


@dataclass
class SwingPoint:
    """Represents a swing high/low"""
    kind: str  # 'high' or 'low'
    price: float
    index: int


@dataclass
class MarketStructure:
    """Trend bias and the last structural event"""
    bias: str  # 'bullish', 'bearish' or 'sideways'
    last_event: Optional[str]  # 'BOS', 'CHoCH' or None
    break_level: Optional[float]
    major_high: Optional[SwingPoint]
    major_low: Optional[SwingPoint]
    probability: int
    strength: str  # 'STRONG', 'MODERATE', 'WEAK'


@dataclass
class Zone:
    """Price band"""
    low: float
    high: float

    @property
    def midpoint(self) -> float:
        return (self.low + self.high) / 2

    @property
    def size(self) -> float:
        return self.high - self.low


@dataclass
class EnhancedZone(Zone):
    """Zone annotated with scoring information"""
    kind: str = 'demand'  # 'demand', 'supply', 'bullish_fvg', 'bearish_fvg'
    strength: str = 'WEAK'
    age: str = 'OLD'  # 'FRESH', 'RECENT', 'OLD'
    distance: float = 0.0  # % from current price
    tested: bool = False
    formation_index: int = 0
    confluence: bool = False


@dataclass
class TradePlan:
    """Entry/stop/target plan"""
    title: str
    entry: float
    stop: float
    target: float
    risk_reward: float
    strength: str
    age: str
    explanation: str
    direction: str = 'buy'  # 'buy' or 'sell'


@dataclass
class Confluence:
    """Price level where independent tools agree with a detected zone"""
    type: str  # 'fibonacci' or 'historical_sr'
    level: float
    strength: str
    description: str
    zone_count: int = 1


@dataclass
class WyckoffEvent:
    """Detected Wyckoff event"""
    type: str  # PS, SC, ST, BC, Spring, UpThrust, LPS, LPSY, PSY
    price: float
    index: int
    confidence: float  # 0-1


@dataclass
class WyckoffPhase:
    """Current phase of an accumulation or distribution schema"""
    schema_type: str  # 'accumulation' or 'distribution'
    phase: str  # 'A' - 'E'
    events: List[WyckoffEvent]
    confidence: float
    trading_opportunity: bool
    range_high: float
    range_low: float
    description: str


@dataclass
class RangeAnalysis:
    """Trading range validation result"""
    range_high: float
    range_low: float
    duration: int
    range_size_pct: float
    strength: str  # 'STRONG', 'MODERATE', 'WEAK', 'DEVELOPING'
    debug_info: Optional[Dict[str, Any]] = None


@dataclass
class WyckoffAnalysis:
    """Wyckoff result attached to a sideways analysis"""
    is_wyckoff_pattern: bool
    range_analysis: RangeAnalysis
    current_phase: Optional[WyckoffPhase] = None
    trade_plans: List[TradePlan] = field(default_factory=list)


@dataclass
class DebugInfo:
    """Zone search statistics, only filled in debug mode"""
    profile_used: str
    search_range: int
    total_zones_found: int
    zones_filtered: int
    tested_zones: int
    untested_zones: int
    average_zone_distance: float


@dataclass
class AnalysisError:
    """Tagged failure returned instead of an analysis"""
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.error}


@dataclass
class SMCAnalysis:
    """Complete analysis for one instrument and timeframe"""
    structure: MarketStructure
    timeframe: str
    current_price: float
    profile: str = 'balanced'
    demand_zones: List[EnhancedZone] = field(default_factory=list)
    supply_zones: List[EnhancedZone] = field(default_factory=list)
    bullish_fvgs: List[EnhancedZone] = field(default_factory=list)
    bearish_fvgs: List[EnhancedZone] = field(default_factory=list)
    confluences: List[Confluence] = field(default_factory=list)
    debug_info: Optional[DebugInfo] = None
    wyckoff: Optional[WyckoffAnalysis] = None
    buy_plans: List[TradePlan] = field(default_factory=list)
    sell_plans: List[TradePlan] = field(default_factory=list)

    @property
    def bias(self) -> str:
        return self.structure.bias

    @property
    def last_event(self) -> Optional[str]:
        return self.structure.last_event

    def all_zones(self) -> List[EnhancedZone]:
        return self.demand_zones + self.supply_zones + self.bullish_fvgs + self.bearish_fvgs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output"""
        return asdict(self)
