"""Price the legs of a route under a service's travel-charging policy.

Every leg of every route is measured, chargeable or not, so the breakdown can
show the whole trip; only chargeable legs carry a cost. Distances come from a
single batched provider call per booking.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, FrozenSet, List, Sequence

from app.schemas.booking_calculation import LegKind, RouteSegment
from app.schemas.distance import DistanceProvider, DistanceRequest, DistanceResult
from app.schemas.pricing_config import PriceComponent, PriceComponentTier, PricingMethod, TravelChargingPolicy

from .errors import ConfigurationError, ExternalProviderError, QuoteCalculationError
from .route_builder import Leg

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

CHARGEABLE_LEGS: Dict[TravelChargingPolicy, FrozenSet[LegKind]] = {
    TravelChargingPolicy.BETWEEN_CUSTOMER_LOCATIONS: frozenset({LegKind.BETWEEN_CUSTOMERS}),
    TravelChargingPolicy.FROM_BASE_TO_CUSTOMERS: frozenset({LegKind.BASE_TO_FIRST, LegKind.BETWEEN_CUSTOMERS}),
    TravelChargingPolicy.CUSTOMERS_AND_BACK_TO_BASE: frozenset({LegKind.BETWEEN_CUSTOMERS, LegKind.LAST_TO_BASE}),
    TravelChargingPolicy.FULL_ROUTE: frozenset(
        {LegKind.BASE_TO_FIRST, LegKind.BETWEEN_CUSTOMERS, LegKind.LAST_TO_BASE}
    ),
}


def is_leg_chargeable(kind: LegKind, policy: TravelChargingPolicy) -> bool:
    return kind in CHARGEABLE_LEGS[policy]


def distance_requests(legs: Sequence[Leg]) -> List[DistanceRequest]:
    return [DistanceRequest(origin=leg.from_address.label(), destination=leg.to_address.label()) for leg in legs]


async def fetch_leg_distances(provider: DistanceProvider, legs: Sequence[Leg]) -> List[DistanceResult]:
    """Measure every leg with one batched provider call.

    Any failure, including a single non-OK leg or a short response, fails
    the whole lookup. No retries happen here.
    """
    if not legs:
        return []
    requests = distance_requests(legs)
    logger.debug("Requesting distances", extra={"legs": len(requests)})
    try:
        results = list(await provider.get_batch_distances(requests))
    except QuoteCalculationError:
        raise
    except Exception as exc:
        logger.error("Distance lookup failed: %s", exc, exc_info=True)
        raise ExternalProviderError(f"Distance lookup failed: {exc}", {"distance": "unavailable"}) from exc

    if len(results) != len(requests):
        raise ExternalProviderError(
            f"Distance provider returned {len(results)} results for {len(requests)} legs",
            {"distance": "incomplete_response"},
        )
    for req, res in zip(requests, results):
        if not res.ok:
            raise ExternalProviderError(
                f"Distance lookup failed for {req.origin} -> {req.destination}: {res.error_message or res.status.value}",
                {"distance": res.status.value},
            )
        if res.distance_km < 0 or res.duration_mins < 0:
            raise ExternalProviderError(
                f"Distance provider returned a negative measurement for {req.origin} -> {req.destination}",
                {"distance": "invalid_measurement"},
            )
        if res.distance_km == 0 and res.duration_mins == 0:
            logger.info("Zero-length leg %s -> %s", req.origin, req.destination)
    return results


def _leg_cost(component: PriceComponent, tier: PriceComponentTier, quantity: Decimal, distance: DistanceResult) -> Decimal:
    if component.pricing_method is PricingMethod.PER_UNIT:
        return distance.distance_km * tier.price
    if component.pricing_method is PricingMethod.PER_MINUTE:
        return distance.duration_mins * quantity * tier.price
    raise ConfigurationError(
        f"Travel component {component.name} cannot be priced {component.pricing_method.value}",
        {"component_id": component.id},
    )


def charge_route(
    legs: Sequence[Leg],
    distances: Sequence[DistanceResult],
    component: PriceComponent,
    tier: PriceComponentTier,
    quantity: Decimal,
) -> List[RouteSegment]:
    """Return one segment per leg, costed under ``component``'s policy.

    Per-km components charge ``distance_km × rate``; per-minute components
    charge ``duration_mins × quantity × rate``. Non-chargeable legs are kept
    with a zero cost.
    """
    if component.travel_policy is None:
        raise ConfigurationError(f"Component {component.name} has no travel policy", {"component_id": component.id})
    if len(legs) != len(distances):
        raise ExternalProviderError("Distance results do not line up with the route", {"distance": "misaligned"})

    segments: List[RouteSegment] = []
    for leg, distance in zip(legs, distances):
        chargeable = is_leg_chargeable(leg.kind, component.travel_policy)
        cost = _leg_cost(component, tier, quantity, distance) if chargeable else _ZERO
        segments.append(
            RouteSegment(
                service_id=leg.service_id,
                from_address=leg.from_address.label(),
                to_address=leg.to_address.label(),
                from_role=leg.from_role,
                to_role=leg.to_role,
                leg_kind=leg.kind,
                distance_km=distance.distance_km,
                duration_mins=distance.duration_mins,
                cost=cost,
                is_chargeable=chargeable,
            )
        )
    return segments


def combine_segments(per_component: Sequence[Sequence[RouteSegment]]) -> List[RouteSegment]:
    """Merge the segments several travel components produced for one route.

    Costs add up; a leg is chargeable if any component charges it.
    """
    if not per_component:
        return []
    combined = list(per_component[0])
    for segments in per_component[1:]:
        combined = [
            base.model_copy(
                update={
                    "cost": base.cost + other.cost,
                    "is_chargeable": base.is_chargeable or other.is_chargeable,
                }
            )
            for base, other in zip(combined, segments)
        ]
    return combined
