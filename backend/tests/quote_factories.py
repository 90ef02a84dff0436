"""Builders for pricing configuration and booking requests used across tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.schemas.booking_calculation import BookingCalculationInput
from app.services.distance_service import StaticDistanceProvider

BASE = "1 Depot Road, Alexandria"
PICKUP = "10 King Street, Newtown"
DROPOFF = "20 Queen Street, Glebe"

DISTANCES = {
    (BASE, PICKUP): (Decimal("5"), Decimal("12")),
    (PICKUP, DROPOFF): (Decimal("8.5"), Decimal("13")),
    (DROPOFF, BASE): (Decimal("7"), Decimal("15")),
}


def business_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": "biz-1",
        "name": "Harbour Removals",
        "address": BASE,
        "time_zone": "Australia/Sydney",
        "currency_code": "AUD",
    }
    data.update(overrides)
    return data


def labour_component(service_id: str = "svc-removal", **overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": "cmp-labour",
        "service_id": service_id,
        "name": "Labour",
        "pricing_method": "hourly",
        "tiers": [
            {"id": "solo", "min_quantity": 1, "max_quantity": 1, "price": "95", "duration_estimate_mins": 90},
            {"id": "team2", "min_quantity": 2, "max_quantity": 2, "price": "170", "duration_estimate_mins": 60},
        ],
    }
    data.update(overrides)
    return data


def travel_component(
    service_id: str = "svc-removal",
    policy: str = "between_customer_locations",
    method: str = "per_minute",
    price: str = "1.50",
    **overrides: Any,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": f"cmp-travel-{method}",
        "service_id": service_id,
        "name": "Travel",
        "pricing_method": method,
        "has_tiers": False,
        "travel_policy": policy,
        "tiers": [{"id": "travel", "min_quantity": 1, "max_quantity": 100, "price": price}],
    }
    data.update(overrides)
    return data


def removal_service_data(
    policy: str = "between_customer_locations",
    components: Optional[List[Dict[str, Any]]] = None,
    **overrides: Any,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": "svc-removal",
        "business_id": "biz-1",
        "name": "Removal",
        "location_type": "pickup_and_dropoff",
        "price_components": components or [labour_component(), travel_component(policy=policy)],
    }
    data.update(overrides)
    return data


def cleaning_service_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": "svc-clean",
        "business_id": "biz-1",
        "name": "Carpet clean",
        "location_type": "customer",
        "price_components": [
            {
                "id": "cmp-carpet",
                "service_id": "svc-clean",
                "name": "Carpet",
                "pricing_method": "per_unit",
                "has_tiers": False,
                "tier_unit_label": "sqm",
                "tiers": [
                    {"id": "sqm", "min_quantity": 1, "max_quantity": 500, "price": "4.20", "duration_estimate_mins": 45}
                ],
            }
        ],
    }
    data.update(overrides)
    return data


def address_data(label: str) -> Dict[str, str]:
    line_1, city = [p.strip() for p in label.split(",", 1)]
    return {"address_line_1": line_1, "city": city}


def removal_addresses(service_id: str = "svc-removal") -> List[Dict[str, Any]]:
    return [
        {"address": address_data(PICKUP), "role": "pickup", "sequence_order": 1, "service_id": service_id},
        {"address": address_data(DROPOFF), "role": "dropoff", "sequence_order": 2, "service_id": service_id},
    ]


def removal_request(quantity: Any = 1, business: Optional[Dict[str, Any]] = None, **overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "business": business or business_data(),
        "services": [{"service": removal_service_data(), "quantity": quantity}],
        "addresses": removal_addresses(),
    }
    data.update(overrides)
    return data


def removal_input(**kwargs: Any) -> BookingCalculationInput:
    return BookingCalculationInput.model_validate(removal_request(**kwargs))


def static_provider() -> StaticDistanceProvider:
    return StaticDistanceProvider(DISTANCES)
