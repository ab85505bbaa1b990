from __future__ import annotations

from dataclasses import dataclass
from typing import Any

STRONG_RATIO = 0.8
SALE_TYPES = ("unit", "bale")


@dataclass(frozen=True)
class HealthReading:
    status: str
    color: str
    percentage: str


def calculate_health(total_units: int, bales_count: int, units_per_bale: int) -> HealthReading:
    """Compare current units with the nominal bale-derived capacity.

    Anything at or above 80% of capacity is "strong", below is "weak". Items
    without a positive capacity cannot be judged and report "unknown".
    """
    capacity = (bales_count or 0) * (units_per_bale or 0)
    if capacity <= 0:
        return HealthReading("unknown", "gray", "0.0")
    ratio = (total_units or 0) / capacity
    percentage = f"{ratio * 100:.1f}"
    if ratio >= STRONG_RATIO:
        return HealthReading("strong", "blue", percentage)
    return HealthReading("weak", "orange", percentage)


def calculate_profit_margin(selling_price: float, landing_price: float) -> str:
    """Margin over landing cost as a percentage string, e.g. ``"42.5"``."""
    if not landing_price or landing_price <= 0:
        return "0.0"
    margin = ((selling_price or 0) - landing_price) / landing_price * 100
    return f"{margin:.1f}"


def effective_unit_price(sale_type: str, item: Any) -> float:
    """Stored price used when a sale is recorded without an explicit price."""
    if sale_type == "bale":
        return (item.bale_price or 0) / (item.units_per_bale or 1)
    return item.unit_price or 0


def units_to_deduct(sale_type: str, quantity: int, units_per_bale: int) -> int:
    if sale_type == "bale":
        return quantity * (units_per_bale or 0)
    return quantity
