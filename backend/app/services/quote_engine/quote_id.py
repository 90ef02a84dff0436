from __future__ import annotations

import re
from decimal import Decimal

from app.schemas.pricing_config import PricingMethod, Service

_TIER_NAMES = ("basic", "standard", "premium", "enterprise")


def _qty(quantity: Decimal) -> str:
    normalized = quantity.normalize()
    if normalized == normalized.to_integral():
        return str(int(normalized))
    return format(normalized, "f").replace(".", "_")


def _service_slug(service: Service) -> str:
    first_word = re.split(r"[\s\-]+", service.name.strip())[0]
    return re.sub(r"[^a-z0-9]", "", first_word.lower()) or "service"


def _tier_name(service: Service, quantity: Decimal) -> str:
    primary = next((c for c in service.price_components if not c.is_travel), None)
    if primary is None:
        return "single" if quantity == 1 else f"{_qty(quantity)}x"

    if primary.pricing_method is PricingMethod.PER_PERSON_HOURLY:
        return f"{_qty(quantity)}person"
    if primary.pricing_method is PricingMethod.HOURLY:
        return "solo" if quantity == 1 else f"team{_qty(quantity)}"

    if primary.has_tiers and len(primary.tiers) > 1:
        ordered = sorted(primary.tiers, key=lambda t: t.min_quantity)
        index = next((i for i, t in enumerate(ordered) if t.contains(quantity)), None)
        if index is not None:
            return _TIER_NAMES[index] if index < len(_TIER_NAMES) else f"tier{index + 1}"
    return "single"


def generate_quote_id(counter: int, service: Service, quantity: Decimal) -> str:
    """Return a readable id such as ``quote-3-removal-2person``."""
    return f"quote-{counter}-{_service_slug(service)}-{_tier_name(service, quantity)}"
