from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.schemas.pricing_config import HOURLY_METHODS, PriceComponentTier, PricingMethod

from .errors import ConfigurationError

_SIXTY = Decimal("60")


@dataclass(frozen=True)
class MethodEvaluation:
    cost: Decimal
    duration_mins: Decimal
    base_calculation: str


def format_quantity(value: Decimal) -> str:
    """Render a Decimal without trailing zeros ("1.50" -> "1.5", "95.00" -> "95")."""
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def format_money(value: Decimal) -> str:
    return f"${value.quantize(Decimal('0.01'))}"


def tier_duration(tier: PriceComponentTier, job_scope: Optional[str] = None) -> Optional[Decimal]:
    """Return the tier's duration estimate in minutes, or None if it has none.

    Scope-keyed estimates must contain the requested job scope; there is no
    fallback scope.
    """
    raw = tier.duration_estimate_mins
    if raw is None:
        return None
    if isinstance(raw, dict):
        if job_scope is None or job_scope not in raw:
            raise ConfigurationError(
                f"Tier {tier.id} has no duration estimate for job scope {job_scope!r}",
                {"job_scope": "unknown_for_tier", "tier_id": tier.id},
            )
        return Decimal(raw[job_scope])
    return Decimal(raw)


def evaluate(
    method: PricingMethod,
    tier: PriceComponentTier,
    quantity: Decimal,
    job_scope: Optional[str] = None,
    unit_label: str = "unit",
) -> MethodEvaluation:
    """Price one non-travel component from its resolved tier.

    Hourly durations are the tier's own estimate (already reflecting team
    size), never travel time. Per-minute components are travel-linked and are
    priced by the travel charger instead.
    """
    duration = tier_duration(tier, job_scope)

    if method is PricingMethod.FIXED:
        minutes = duration or Decimal("0")
        return MethodEvaluation(tier.price, minutes, f"{format_money(tier.price)} fixed")

    if method in HOURLY_METHODS:
        if duration is None:
            raise ConfigurationError(
                f"Hourly tier {tier.id} has no duration estimate",
                {"tier_id": tier.id},
            )
        cost = tier.price * duration / _SIXTY
        hours = (duration / _SIXTY).quantize(Decimal("0.01"))
        return MethodEvaluation(cost, duration, f"{format_quantity(hours)} hours × {format_money(tier.price)}/hour")

    if method is PricingMethod.PER_UNIT:
        minutes = duration or Decimal("0")
        cost = tier.price * quantity
        return MethodEvaluation(cost, minutes, f"{format_quantity(quantity)} {unit_label} × {format_money(tier.price)}/{unit_label}")

    if method is PricingMethod.PER_MINUTE:
        raise ConfigurationError(
            "Per-minute components are priced from travel time, not evaluated directly",
            {"pricing_method": method.value},
        )

    raise ConfigurationError(f"Unsupported pricing method: {method}", {"pricing_method": str(method)})
