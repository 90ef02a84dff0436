import asyncio
from decimal import Decimal

import pytest

from app.schemas.booking_calculation import BookingAddress, LegKind
from app.schemas.distance import DistanceResult, DistanceStatus
from app.schemas.pricing_config import Business, PriceComponent, Service, TravelChargingPolicy
from app.services.distance_service import StaticDistanceProvider
from app.services.quote_engine.errors import ExternalProviderError
from app.services.quote_engine.route_builder import build_route
from app.services.quote_engine.travel_charger import (
    charge_route,
    combine_segments,
    fetch_leg_distances,
    is_leg_chargeable,
)

from quote_factories import business_data, removal_addresses, removal_service_data, static_provider, travel_component


def _legs():
    return build_route(
        [BookingAddress.model_validate(a) for a in removal_addresses()],
        Service.model_validate(removal_service_data()),
        Business.model_validate(business_data()),
    )


def _per_km(policy: str) -> PriceComponent:
    return PriceComponent.model_validate(travel_component(policy=policy, method="per_unit", price="2.00"))


@pytest.mark.parametrize(
    "policy, expected",
    [
        ("between_customer_locations", [False, True, False]),
        ("from_base_to_customers", [True, True, False]),
        ("customers_and_back_to_base", [False, True, True]),
        ("full_route", [True, True, True]),
    ],
)
def test_chargeability_table(policy, expected):
    legs = _legs()
    distances = asyncio.run(fetch_leg_distances(static_provider(), legs))
    component = _per_km(policy)
    segments = charge_route(legs, distances, component, component.tiers[0], Decimal("1"))

    assert [s.is_chargeable for s in segments] == expected
    # every leg is measured, chargeable or not
    assert [s.distance_km for s in segments] == [Decimal("5"), Decimal("8.5"), Decimal("7")]
    full = [Decimal("10.00"), Decimal("17.00"), Decimal("14.00")]
    assert [s.cost for s in segments] == [cost if charged else Decimal("0") for cost, charged in zip(full, expected)]


def test_is_leg_chargeable_direct():
    assert is_leg_chargeable(LegKind.BETWEEN_CUSTOMERS, TravelChargingPolicy.BETWEEN_CUSTOMER_LOCATIONS)
    assert not is_leg_chargeable(LegKind.LAST_TO_BASE, TravelChargingPolicy.FROM_BASE_TO_CUSTOMERS)


def test_per_minute_cost_scales_with_team_size():
    legs = _legs()
    distances = asyncio.run(fetch_leg_distances(static_provider(), legs))
    component = PriceComponent.model_validate(travel_component())
    segments = charge_route(legs, distances, component, component.tiers[0], Decimal("2"))
    assert [s.cost for s in segments] == [Decimal("0"), Decimal("39.00"), Decimal("0")]


def test_zero_length_leg_is_not_an_error():
    legs = _legs()
    provider = StaticDistanceProvider(default=(Decimal("0"), Decimal("0")))
    distances = asyncio.run(fetch_leg_distances(provider, legs))
    component = _per_km("full_route")
    segments = charge_route(legs, distances, component, component.tiers[0], Decimal("1"))
    assert all(s.cost == 0 for s in segments)


def test_one_batch_call_per_lookup():
    legs = _legs()
    provider = static_provider()
    asyncio.run(fetch_leg_distances(provider, legs))
    assert len(provider.calls) == 1
    assert len(provider.calls[0]) == 3


def test_non_ok_leg_fails_whole_lookup():
    legs = _legs()
    provider = StaticDistanceProvider()  # every pair is NOT_FOUND
    with pytest.raises(ExternalProviderError) as exc:
        asyncio.run(fetch_leg_distances(provider, legs))
    assert exc.value.field_errors["distance"] == DistanceStatus.NOT_FOUND.value


def test_short_response_fails():
    class ShortProvider:
        async def get_batch_distances(self, requests):
            return [DistanceResult(distance_km=Decimal("1"), duration_mins=Decimal("1"))]

    with pytest.raises(ExternalProviderError):
        asyncio.run(fetch_leg_distances(ShortProvider(), _legs()))


def test_provider_exception_is_wrapped():
    class BrokenProvider:
        async def get_batch_distances(self, requests):
            raise asyncio.TimeoutError()

    with pytest.raises(ExternalProviderError):
        asyncio.run(fetch_leg_distances(BrokenProvider(), _legs()))


def test_combine_segments_adds_costs_and_chargeability():
    legs = _legs()
    distances = asyncio.run(fetch_leg_distances(static_provider(), legs))
    per_km = _per_km("from_base_to_customers")
    per_min = PriceComponent.model_validate(travel_component(policy="customers_and_back_to_base"))
    combined = combine_segments(
        [
            charge_route(legs, distances, per_km, per_km.tiers[0], Decimal("1")),
            charge_route(legs, distances, per_min, per_min.tiers[0], Decimal("1")),
        ]
    )
    assert [s.is_chargeable for s in combined] == [True, True, True]
    # 5km x 2.00 | 8.5km x 2.00 + 13min x 1.50 | 15min x 1.50
    assert [s.cost for s in combined] == [Decimal("10.00"), Decimal("36.50"), Decimal("22.50")]
