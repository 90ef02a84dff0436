from __future__ import annotations

from decimal import Decimal

from app.schemas.pricing_config import PriceComponent, PriceComponentTier

from .errors import ConfigurationError, OutOfRangeError, ValidationError


def resolve_tier(component: PriceComponent, quantity: Decimal) -> PriceComponentTier:
    """Return the tier of ``component`` whose range contains ``quantity``.

    Ranges are inclusive at both ends. Non-positive quantities and quantities
    that land in a gap between tiers are errors; the nearest tier is never
    substituted. Components with ``has_tiers`` unset price every quantity
    from their single tier.
    """
    if quantity is None or quantity <= 0:
        raise ValidationError(
            f"Quantity must be positive, got {quantity}",
            {"quantity": "must_be_positive"},
        )
    if not component.tiers:
        raise ConfigurationError(
            f"Component {component.name} has no pricing tiers",
            {"component_id": component.id},
        )
    if not component.has_tiers:
        return component.tiers[0]

    for tier in component.tiers:
        if tier.contains(quantity):
            return tier

    raise OutOfRangeError(
        f"No pricing tier found for quantity {quantity} {component.tier_unit_label} in component {component.name}",
        {"quantity": "no_matching_tier", "component_id": component.id},
    )
