from decimal import Decimal

import pytest

from app.schemas.pricing_config import PriceComponent
from app.services.quote_engine.errors import OutOfRangeError, ValidationError
from app.services.quote_engine.tiers import resolve_tier

from quote_factories import labour_component, travel_component


def _gapped_component() -> PriceComponent:
    return PriceComponent.model_validate(
        labour_component(
            pricing_method="fixed",
            tiers=[
                {"id": "small", "min_quantity": 1, "max_quantity": 2, "price": "100"},
                {"id": "large", "min_quantity": 5, "max_quantity": 8, "price": "300"},
            ],
        )
    )


def test_resolve_tier_inclusive_bounds():
    component = _gapped_component()
    assert resolve_tier(component, Decimal("1")).id == "small"
    assert resolve_tier(component, Decimal("2")).id == "small"
    assert resolve_tier(component, Decimal("5")).id == "large"
    assert resolve_tier(component, Decimal("8")).id == "large"


@pytest.mark.parametrize("quantity", ["3", "4", "9", "2.5"])
def test_resolve_tier_gap_or_above_range_fails(quantity):
    with pytest.raises(OutOfRangeError) as exc:
        resolve_tier(_gapped_component(), Decimal(quantity))
    assert exc.value.field_errors["quantity"] == "no_matching_tier"


@pytest.mark.parametrize("quantity", ["0", "-1"])
def test_resolve_tier_rejects_non_positive(quantity):
    with pytest.raises(ValidationError):
        resolve_tier(_gapped_component(), Decimal(quantity))


def test_untiered_component_uses_single_tier():
    component = PriceComponent.model_validate(travel_component())
    # the single tier covers 1..100, but untiered lookups ignore the range
    assert resolve_tier(component, Decimal("250")).id == "travel"
