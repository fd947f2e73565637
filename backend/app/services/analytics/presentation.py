"""
Analytics Presentation Mapping

Display metadata for analytics results, kept apart from the numeric engines:
- Zone labels for the Compliance Entropy Index
- Trend labels and CSS color tokens for risk momentum
- Deterministic display formatting for velocities, momentum and currency

Formatting matches the dashboard widgets exactly: fixed-point values round
half away from zero and momentum percentages round half up.

Example:
    >>> format_velocity(12000)
    '+$12K/day'
    >>> format_velocity(-500)
    '-$500/day'
    >>> format_momentum_score(0.42)
    '+42'
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Final, Tuple

from .models import EntropyZone, MomentumTrend

NO_DATA_LABEL: Final[str] = "No Data"
NO_DATA_COLOR: Final[str] = "muted-foreground"

ZONE_LABELS: Final[Dict[EntropyZone, str]] = {
    EntropyZone.ORDERED: "Highly Ordered",
    EntropyZone.TRANSITIONAL: "Transitional",
    EntropyZone.CHAOTIC: "High Disorder",
}

# (label, color) per trend
TREND_PRESENTATION: Final[Dict[MomentumTrend, Tuple[str, str]]] = {
    MomentumTrend.IMPROVING_FAST: ("Rapidly Improving", "success"),
    MomentumTrend.IMPROVING: ("Improving", "success"),
    MomentumTrend.STABLE: ("Stable", "warning"),
    MomentumTrend.WORSENING: ("Worsening", "destructive"),
    MomentumTrend.WORSENING_FAST: ("Rapidly Worsening", "destructive"),
}


def zone_label(zone: EntropyZone) -> str:
    """Return the human-readable label for an entropy zone."""
    return ZONE_LABELS[zone]


def trend_label(trend: MomentumTrend) -> str:
    """Return the human-readable label for a momentum trend."""
    return TREND_PRESENTATION[trend][0]


def trend_color(trend: MomentumTrend) -> str:
    """Return the CSS color token for a momentum trend."""
    return TREND_PRESENTATION[trend][1]


def _to_fixed(value: float, digits: int) -> str:
    """Fixed-point formatting rounding half away from zero on the exact binary value."""
    if not math.isfinite(value):
        return "NaN" if math.isnan(value) else ("Infinity" if value > 0 else "-Infinity")
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_velocity(velocity_per_day: float) -> str:
    """
    Format a risk velocity for display.

    Args:
        velocity_per_day: Risk velocity in currency units per day

    Returns:
        Signed, abbreviated string such as "+$12K/day", "-$1.5M/day" or "+$0/day"
    """
    abs_vel = abs(velocity_per_day)
    sign = "+" if velocity_per_day >= 0 else "-"

    if abs_vel >= 1_000_000:
        return f"{sign}${_to_fixed(abs_vel / 1_000_000, 1)}M/day"
    if abs_vel >= 1_000:
        return f"{sign}${_to_fixed(abs_vel / 1_000, 0)}K/day"
    return f"{sign}${_to_fixed(abs_vel, 0)}/day"


def format_momentum_score(score: float) -> str:
    """
    Format a momentum score (-1..+1) as a signed percentage without the % sign.

    Positive values carry an explicit "+"; zero and negatives do not.
    """
    if not math.isfinite(score):
        return "NaN" if math.isnan(score) else ("+Infinity" if score > 0 else "-Infinity")
    percentage = math.floor(score * 100 + 0.5)
    return f"+{percentage}" if percentage > 0 else f"{percentage}"


def format_currency(value: float) -> str:
    """Format a currency amount with B/M/K abbreviations."""
    abs_value = abs(value)
    if abs_value >= 1e9:
        return f"${_to_fixed(value / 1e9, 1)}B"
    if abs_value >= 1e6:
        return f"${_to_fixed(value / 1e6, 1)}M"
    if abs_value >= 1e3:
        return f"${_to_fixed(value / 1e3, 0)}K"
    return f"${_to_fixed(value, 0)}"
