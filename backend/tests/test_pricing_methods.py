from decimal import Decimal

import pytest

from app.schemas.pricing_config import PriceComponentTier, PricingMethod
from app.services.quote_engine.errors import ConfigurationError
from app.services.quote_engine.pricing_methods import evaluate, format_quantity, tier_duration


def _tier(**kwargs) -> PriceComponentTier:
    data = {"id": "t1", "min_quantity": 1, "max_quantity": 10, "price": "95"}
    data.update(kwargs)
    return PriceComponentTier.model_validate(data)


def test_fixed_ignores_quantity():
    tier = _tier(price="250", duration_estimate_mins=120)
    one = evaluate(PricingMethod.FIXED, tier, Decimal("1"))
    many = evaluate(PricingMethod.FIXED, tier, Decimal("7"))
    assert one.cost == many.cost == Decimal("250")
    assert one.duration_mins == Decimal("120")


def test_hourly_uses_tier_duration():
    result = evaluate(PricingMethod.HOURLY, _tier(duration_estimate_mins=90), Decimal("1"))
    assert result.cost == Decimal("142.50")
    assert result.duration_mins == Decimal("90")
    assert result.base_calculation == "1.5 hours × $95.00/hour"


def test_per_person_hourly_matches_hourly_formula():
    tier = _tier(price="170", duration_estimate_mins=60)
    assert evaluate(PricingMethod.PER_PERSON_HOURLY, tier, Decimal("2")).cost == Decimal("170")


def test_hourly_without_duration_is_configuration_error():
    with pytest.raises(ConfigurationError):
        evaluate(PricingMethod.HOURLY, _tier(), Decimal("1"))


def test_per_unit_multiplies_quantity():
    result = evaluate(PricingMethod.PER_UNIT, _tier(price="4.20"), Decimal("12.5"), unit_label="sqm")
    assert result.cost == Decimal("52.5")
    assert result.duration_mins == Decimal("0")
    assert result.base_calculation == "12.5 sqm × $4.20/sqm"


def test_per_minute_is_not_evaluated_directly():
    with pytest.raises(ConfigurationError):
        evaluate(PricingMethod.PER_MINUTE, _tier(), Decimal("1"))


def test_job_scope_durations():
    tier = _tier(duration_estimate_mins={"one_bedroom": 120, "two_bedroom": 180})
    assert tier_duration(tier, "two_bedroom") == Decimal("180")
    with pytest.raises(ConfigurationError):
        tier_duration(tier, "studio")
    with pytest.raises(ConfigurationError):
        tier_duration(tier, None)


def test_format_quantity_trims_zeros():
    assert format_quantity(Decimal("1.50")) == "1.5"
    assert format_quantity(Decimal("95.00")) == "95"
    assert format_quantity(Decimal("1E+2")) == "100"
