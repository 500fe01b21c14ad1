"""
Position sizing for trade plans
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class PositionSize:
    """Sizing result for one plan"""
    risk_amount: float
    position_size_usd: float
    position_size_units: float
    risk_reward_ratio: float
    stop_loss_distance: float
    stop_loss_percentage: float


def calculate_position_size(account_size: float, risk_percentage: float, entry_price: float,
                            stop_price: float, asset_price: float,
                            target_price: Optional[float] = None) -> PositionSize:
    """
    Size a position so that hitting the stop loses risk_percentage of the account

    Args:
        account_size: Account equity in USD
        risk_percentage: Percent of the account risked per trade
        entry_price: Plan entry
        stop_price: Plan stop loss
        asset_price: Current asset price, converts USD size to units
        target_price: Plan target, enables the R:R figure

    Returns:
        PositionSize

    Raises:
        ValueError: If entry equals stop or prices are not positive
    """
    if entry_price <= 0 or asset_price <= 0:
        raise ValueError("Prices must be positive")

    stop_loss_distance = abs(entry_price - stop_price)
    if stop_loss_distance == 0:
        raise ValueError("Entry and stop cannot be equal")

    risk_amount = account_size * (risk_percentage / 100)
    stop_loss_percentage = stop_loss_distance / entry_price * 100
    position_size_usd = risk_amount / (stop_loss_distance / entry_price)

    risk_reward_ratio = 1.0
    if target_price is not None:
        risk_reward_ratio = abs(target_price - entry_price) / stop_loss_distance

    return PositionSize(
        risk_amount=risk_amount,
        position_size_usd=position_size_usd,
        position_size_units=position_size_usd / asset_price,
        risk_reward_ratio=risk_reward_ratio,
        stop_loss_distance=stop_loss_distance,
        stop_loss_percentage=stop_loss_percentage
    )


def format_price(price: float) -> str:
    """Format a price with precision suited to its magnitude"""
    if price >= 100:
        return f"{price:,.2f}"
    if price >= 1:
        return f"{price:.4f}"
    if price >= 0.01:
        return f"{price:.6f}"
    return f"{price:.8f}"


def format_currency(value: float) -> str:
    return f"${value:,.2f}"
