import pytest

from app.schemas.booking_calculation import AddressRole, BookingAddress, LegKind
from app.schemas.pricing_config import Business, Service
from app.services.quote_engine.errors import ConfigurationError, ValidationError
from app.services.quote_engine.route_builder import build_route, parse_business_address

from quote_factories import (
    BASE,
    DROPOFF,
    PICKUP,
    address_data,
    business_data,
    cleaning_service_data,
    labour_component,
    removal_addresses,
    removal_service_data,
    travel_component,
)


def _addresses(raw):
    return [BookingAddress.model_validate(a) for a in raw]


def test_base_legs_are_synthesised_around_pickup_and_dropoff():
    legs = build_route(
        _addresses(removal_addresses()),
        Service.model_validate(removal_service_data()),
        Business.model_validate(business_data()),
    )
    assert [leg.kind for leg in legs] == [
        LegKind.BASE_TO_FIRST,
        LegKind.BETWEEN_CUSTOMERS,
        LegKind.LAST_TO_BASE,
    ]
    assert legs[0].from_address.label() == BASE
    assert legs[0].to_address.label() == PICKUP
    assert legs[1].to_address.label() == DROPOFF
    assert legs[2].to_address.label() == BASE


def test_explicit_base_is_not_duplicated():
    raw = removal_addresses()
    raw.insert(
        0,
        {"address": address_data("5 Yard Lane, Mascot"), "role": "business_base", "sequence_order": 0, "service_id": "svc-removal"},
    )
    legs = build_route(
        _addresses(raw),
        Service.model_validate(removal_service_data()),
        Business.model_validate(business_data()),
    )
    assert len(legs) == 3
    assert legs[0].from_address.label() == "5 Yard Lane, Mascot"
    assert legs[-1].to_role is AddressRole.BUSINESS_BASE


def test_single_visit_yields_two_legs():
    service = Service.model_validate(
        cleaning_service_data(
            price_components=[
                cleaning_service_data()["price_components"][0],
                travel_component(service_id="svc-clean", policy="full_route", method="per_unit"),
            ]
        )
    )
    addresses = _addresses(
        [{"address": address_data(PICKUP), "role": "customer", "sequence_order": 1, "service_id": "svc-clean"}]
    )
    legs = build_route(addresses, service, Business.model_validate(business_data()))
    assert [leg.kind for leg in legs] == [LegKind.BASE_TO_FIRST, LegKind.LAST_TO_BASE]


def test_no_travel_component_means_no_legs():
    service = Service.model_validate(removal_service_data(components=[labour_component()]))
    legs = build_route(_addresses(removal_addresses()), service, Business.model_validate(business_data()))
    assert legs == []


def test_addresses_are_ordered_by_sequence():
    raw = list(reversed(removal_addresses()))
    legs = build_route(
        _addresses(raw),
        Service.model_validate(removal_service_data()),
        Business.model_validate(business_data()),
    )
    assert legs[1].from_role is AddressRole.PICKUP
    assert legs[1].to_role is AddressRole.DROPOFF


def test_duplicate_sequence_order_is_rejected():
    raw = removal_addresses()
    raw[1]["sequence_order"] = 1
    with pytest.raises(ValidationError):
        build_route(
            _addresses(raw),
            Service.model_validate(removal_service_data()),
            Business.model_validate(business_data()),
        )


def test_pickup_and_dropoff_both_required():
    with pytest.raises(ValidationError):
        build_route(
            _addresses(removal_addresses()[:1]),
            Service.model_validate(removal_service_data()),
            Business.model_validate(business_data()),
        )


def test_missing_business_address_is_configuration_error():
    business = Business.model_validate(business_data(address=None))
    with pytest.raises(ConfigurationError):
        build_route(_addresses(removal_addresses()), Service.model_validate(removal_service_data()), business)


def test_parse_business_address_keeps_locality_parts():
    business = Business.model_validate(business_data(address="1 Depot Road, Alexandria, NSW 2015"))
    address = parse_business_address(business)
    assert address.address_line_1 == "1 Depot Road"
    assert address.city == "Alexandria, NSW 2015"
