"""
Locust load script for the booking calculation endpoint.

Simulates quote traffic from a booking form:
- Mostly single-service removals with a pickup/dropoff route
- Some multi-service bookings (removal + cleaning at the same address)
- Occasional out-of-range quantities, which must fail fast with 422

Each request triggers exactly one batched distance lookup server-side. Point
the API at a StaticDistanceProvider (or a warm Redis distance cache) before a
long run unless you mean to load-test the Distance Matrix quota too.

Configure with env vars or Locust UI:
- HOST: pass via `--host http://localhost:8000`
- QUOTE_API_PREFIX: override the API prefix (default /api/v1)
- QUOTE_MAX_PEOPLE: largest team size to request (default 4)

Run:
  locust -f load/locustfile.py --host http://localhost:8000
"""

from __future__ import annotations

import os
import random
from typing import Dict, List

from locust import HttpUser, task, between


# --- Config -------------------------------------------------------------------

API_PREFIX = os.getenv("QUOTE_API_PREFIX", "/api/v1").rstrip("/")
MAX_PEOPLE = int(os.getenv("QUOTE_MAX_PEOPLE", "4") or 4)

SUBURBS = ["Newtown", "Glebe", "Marrickville", "Surry Hills", "Balmain", "Leichhardt"]


# --- Payload builders ---------------------------------------------------------

def _business() -> Dict:
    return {
        "id": "biz-load",
        "name": "Load Test Removals",
        "address": "1 Depot Road, Alexandria",
        "time_zone": "Australia/Sydney",
        "currency_code": "AUD",
        "charges_gst": True,
        "gst_rate": "10",
        "minimum_charge": "150",
        "charges_deposit": True,
        "deposit_type": "percentage",
        "deposit_percentage": "20",
        "platform_fee_percentage": "2.5",
        "payment_processing_fee_percentage": "1.75",
    }


def _removal_service() -> Dict:
    tiers = [
        {
            "id": f"labour-{n}",
            "min_quantity": n,
            "max_quantity": n,
            "price": str(95 * n),
            "duration_estimate_mins": int(180 / n),
        }
        for n in range(1, MAX_PEOPLE + 1)
    ]
    return {
        "id": "svc-removal",
        "business_id": "biz-load",
        "name": "Removal",
        "location_type": "pickup_and_dropoff",
        "price_components": [
            {
                "id": "cmp-labour",
                "service_id": "svc-removal",
                "name": "Labour",
                "pricing_method": "hourly",
                "tiers": tiers,
            },
            {
                "id": "cmp-travel",
                "service_id": "svc-removal",
                "name": "Travel",
                "pricing_method": "per_minute",
                "has_tiers": False,
                "travel_policy": "between_customer_locations",
                "tiers": [{"id": "travel", "min_quantity": 1, "max_quantity": 1000, "price": "1.50"}],
            },
        ],
    }


def _cleaning_service() -> Dict:
    return {
        "id": "svc-clean",
        "business_id": "biz-load",
        "name": "End of lease clean",
        "location_type": "customer",
        "price_components": [
            {
                "id": "cmp-clean",
                "service_id": "svc-clean",
                "name": "Clean",
                "pricing_method": "per_unit",
                "has_tiers": False,
                "tier_unit_label": "sqm",
                "tiers": [{"id": "sqm", "min_quantity": 1, "max_quantity": 1000, "price": "4.20", "duration_estimate_mins": 120}],
            }
        ],
    }


def _address(street_no: int, suburb: str) -> Dict:
    return {"address_line_1": f"{street_no} King Street", "city": suburb}


def _route(service_id: str) -> List[Dict]:
    pickup, dropoff = random.sample(SUBURBS, 2)
    return [
        {"address": _address(random.randint(1, 300), pickup), "role": "pickup", "sequence_order": 1, "service_id": service_id},
        {"address": _address(random.randint(1, 300), dropoff), "role": "dropoff", "sequence_order": 2, "service_id": service_id},
    ]


# --- The User Model -----------------------------------------------------------

class QuoteUser(HttpUser):
    wait_time = between(1, 3)

    counter: int = 0

    def _post(self, payload: Dict, name: str, expect: int = 200) -> None:
        with self.client.post(
            f"{API_PREFIX}/booking-calculations",
            json=payload,
            name=name,
            catch_response=True,
        ) as r:
            if r.status_code != expect:
                r.failure(f"expected {expect}, got {r.status_code}")
            else:
                r.success()

    def _next_counter(self) -> int:
        self.counter += 1
        return self.counter

    @task(8)
    def removal_quote(self):
        payload = {
            "business": _business(),
            "services": [{"service": _removal_service(), "quantity": random.randint(1, MAX_PEOPLE)}],
            "addresses": _route("svc-removal"),
            "quote_counter": self._next_counter(),
        }
        self._post(payload, "/booking-calculations [removal]")

    @task(3)
    def multi_service_quote(self):
        addresses = _route("svc-removal")
        addresses.append(
            {"address": addresses[0]["address"], "role": "customer", "sequence_order": 1, "service_id": "svc-clean"}
        )
        payload = {
            "business": _business(),
            "services": [
                {"service": _removal_service(), "quantity": random.randint(1, MAX_PEOPLE)},
                {"service": _cleaning_service(), "quantity": random.randint(40, 180)},
            ],
            "addresses": addresses,
            "scheduled_date": "2025-03-14",
            "scheduled_time": "09:30",
            "quote_counter": self._next_counter(),
        }
        self._post(payload, "/booking-calculations [multi]")

    @task(1)
    def out_of_range_quote(self):
        payload = {
            "business": _business(),
            "services": [{"service": _removal_service(), "quantity": MAX_PEOPLE + 1}],
            "addresses": _route("svc-removal"),
        }
        self._post(payload, "/booking-calculations [out-of-range]", expect=422)
