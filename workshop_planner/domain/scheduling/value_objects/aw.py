"""
AW (Arbeitswert) conversions.

One AW is a fixed six-minute quantum of technician labor. Capacities,
estimates and planned work are all counted in whole AW.
"""

from decimal import ROUND_HALF_UP, Decimal

AW_MINUTES = 6


def aw_to_minutes(aw: int) -> int:
    """Convert AW to minutes."""
    return aw * AW_MINUTES


def minutes_to_aw(minutes: int | float | Decimal) -> int:
    """Convert minutes to AW, rounding half up."""
    return int(
        (Decimal(str(minutes)) / Decimal(AW_MINUTES)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )


def aw_to_hours(aw: int) -> Decimal:
    """Convert AW to hours with Decimal precision."""
    return Decimal(aw_to_minutes(aw)) / Decimal("60")


def hours_to_aw(hours: int | float | Decimal) -> int:
    """Convert hours to AW."""
    return minutes_to_aw(Decimal(str(hours)) * Decimal("60"))


def format_aw(aw: int) -> str:
    return f"{aw} AW"


def format_duration_from_aw(aw: int) -> str:
    """Human readable duration, e.g. ``1h 12m``, ``2h`` or ``30m``."""
    minutes = aw_to_minutes(aw)
    hours, remaining = divmod(minutes, 60)
    if hours > 0 and remaining > 0:
        return f"{hours}h {remaining}m"
    if hours > 0:
        return f"{hours}h"
    return f"{remaining}m"
