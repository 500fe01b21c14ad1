"""
Price alerts on critical demand/supply zones
"""
from dataclasses import dataclass, replace
from typing import List

from .models import SMCAnalysis

DEFAULT_THRESHOLD_PCT = 0.5


@dataclass
class ZoneAlert:
    """Alert armed on a zone midpoint"""
    id: str
    zone_price: float
    zone_name: str
    type: str  # 'demand' or 'supply'
    is_active: bool = True
    triggered: bool = False


def build_zone_alerts(analysis: SMCAnalysis) -> List[ZoneAlert]:
    """One alert per non-weak demand/supply zone"""
    alerts: List[ZoneAlert] = []
    for kind, zones in (('demand', analysis.demand_zones), ('supply', analysis.supply_zones)):
        for index, zone in enumerate(zones):
            if zone.strength == 'WEAK':
                continue
            alerts.append(ZoneAlert(
                id=f"{kind}-{index}",
                zone_price=zone.midpoint,
                zone_name=f"{kind.title()} Zone {zone.midpoint:.0f}",
                type=kind
            ))
    return alerts


def check_alerts(alerts: List[ZoneAlert], price: float,
                 threshold_pct: float = DEFAULT_THRESHOLD_PCT) -> List[ZoneAlert]:
    """
    Return the active, untriggered alerts whose zone is within threshold_pct of price

    The returned alerts are copies marked as triggered; the input list is left untouched.
    """
    triggered = []
    for alert in alerts:
        if not alert.is_active or alert.triggered or alert.zone_price <= 0:
            continue
        distance = abs(price - alert.zone_price) / alert.zone_price * 100
        if distance <= threshold_pct:
            triggered.append(replace(alert, triggered=True))
    return triggered


def toggle_alert(alerts: List[ZoneAlert], alert_id: str) -> List[ZoneAlert]:
    """Flip one alert on or off, re-arming it either way"""
    return [
        replace(alert, is_active=not alert.is_active, triggered=False) if alert.id == alert_id else alert
        for alert in alerts
    ]


def reset_alerts(alerts: List[ZoneAlert]) -> List[ZoneAlert]:
    """Re-arm every alert"""
    return [replace(alert, triggered=False) for alert in alerts]
