"""Booking price and duration calculator.

Drives the tier resolver, pricing-method evaluator, route builder and travel
charger for every requested service, then applies business fees, the minimum
charge and the deposit rule. The engine is a pure function of its input plus
the one batched distance lookup; running it twice on the same input yields
the same result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence

import anyio
from opentelemetry import trace

from app.core.config import settings
from app.schemas.booking_calculation import (
    BookingCalculationInput,
    BookingCalculationResult,
    BusinessFeeBreakdown,
    ComponentBreakdown,
    PriceBreakdown,
    RouteSegment,
    ServiceBreakdown,
    ServiceWithQuantity,
    TravelBreakdown,
)
from app.schemas.distance import DistanceProvider, DistanceResult
from app.schemas.pricing_config import PriceComponent, PricingMethod

from .business_fees import (
    BusinessFees,
    apply_minimum_charge,
    calculate_business_fees,
    calculate_deposit,
    calculate_remaining_balance,
    to_cents,
)
from .errors import MismatchError, QuoteCalculationError, ValidationError
from .pricing_methods import evaluate, format_money, format_quantity
from .quote_id import generate_quote_id
from .route_builder import Leg, build_route
from .tiers import resolve_tier
from .timestamps import calculate_booking_timestamps, to_utc_from_local
from .travel_charger import charge_route, combine_segments, fetch_leg_distances

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ServiceCost:
    """Unrounded cost of one requested service."""

    item: ServiceWithQuantity
    base_cost: Decimal
    travel_cost: Decimal
    total_cost: Decimal
    estimated_duration_mins: Decimal
    minimum_charge_applied: bool
    components: List[ComponentBreakdown] = field(default_factory=list)
    segments: List[RouteSegment] = field(default_factory=list)


def _accepts_fractional_quantity(item: ServiceWithQuantity) -> bool:
    return any(
        c.pricing_method is PricingMethod.PER_UNIT and not c.is_travel for c in item.service.price_components
    )


def check_linkage(calc_input: BookingCalculationInput) -> None:
    """Reject inputs whose business/service/address links do not agree."""
    business = calc_input.business
    service_ids: set[str] = set()
    for item in calc_input.services:
        service = item.service
        if service.business_id != business.id:
            raise MismatchError(
                f"Service {service.name} belongs to business {service.business_id}, not {business.id}",
                {"service.business_id": "mismatch"},
            )
        for component in service.price_components:
            if component.service_id != service.id:
                raise MismatchError(
                    f"Component {component.name} belongs to service {component.service_id}, not {service.id}",
                    {"component.service_id": "mismatch"},
                )
        if service.id in service_ids:
            raise ValidationError(
                f"Service {service.name} is requested more than once",
                {"services": "duplicate_service"},
            )
        service_ids.add(service.id)
        if item.quantity != item.quantity.to_integral_value() and not _accepts_fractional_quantity(item):
            raise ValidationError(
                f"Service {service.name} needs a whole-number quantity, got {item.quantity}",
                {"quantity": "not_integral"},
            )

    for booking_address in calc_input.addresses:
        if booking_address.service_id not in service_ids:
            raise MismatchError(
                f"Address {booking_address.address.label()} is linked to unknown service {booking_address.service_id}",
                {"addresses.service_id": "mismatch"},
            )


def plan_routes(calc_input: BookingCalculationInput) -> Dict[str, List[Leg]]:
    return {
        item.service.id: build_route(calc_input.addresses, item.service, calc_input.business)
        for item in calc_input.services
    }


def _travel_calculation(component: PriceComponent, tier_price: Decimal, quantity: Decimal, segments: Sequence[RouteSegment]) -> str:
    chargeable = [s for s in segments if s.is_chargeable]
    if component.pricing_method is PricingMethod.PER_UNIT:
        km = sum((s.distance_km for s in chargeable), _ZERO)
        return f"{format_quantity(km)} km × {format_money(tier_price)}/km"
    minutes = sum((s.duration_mins for s in chargeable), _ZERO)
    return (
        f"{format_quantity(minutes)} minutes × {format_quantity(quantity)} {component.tier_unit_label}"
        f" × {format_money(tier_price)}/minute"
    )


def calculate_service_cost(
    item: ServiceWithQuantity,
    legs: Sequence[Leg],
    distances: Sequence[DistanceResult],
    job_scope: Optional[str] = None,
) -> ServiceCost:
    """Price one requested service: its own components plus its travel."""
    service, quantity = item.service, item.quantity
    base_cost = _ZERO
    travel_cost = _ZERO
    duration = _ZERO
    components: List[ComponentBreakdown] = []
    travel_segments: List[List[RouteSegment]] = []

    for component in service.price_components:
        tier = resolve_tier(component, quantity)

        if component.is_travel:
            segments = charge_route(legs, distances, component, tier, quantity)
            travel_segments.append(segments)
            cost = sum((s.cost for s in segments), _ZERO)
            minutes = sum((s.duration_mins for s in segments if s.is_chargeable), _ZERO)
            travel_cost += cost
            calculation = _travel_calculation(component, tier.price, quantity, segments)
        else:
            evaluation = evaluate(
                component.pricing_method,
                tier,
                quantity,
                job_scope=job_scope,
                unit_label=component.tier_unit_label,
            )
            cost, minutes = evaluation.cost, evaluation.duration_mins
            base_cost += cost
            duration += minutes
            calculation = evaluation.base_calculation

        logger.debug(
            "Priced component",
            extra={"service_id": service.id, "component": component.name, "tier_id": tier.id, "cost": str(cost)},
        )
        components.append(
            ComponentBreakdown(
                component_id=component.id,
                component_name=component.name,
                pricing_method=component.pricing_method,
                tier_id=tier.id,
                base_calculation=calculation,
                cost=cost,
                duration_mins=minutes,
            )
        )

    segments = combine_segments(travel_segments)
    duration += sum((s.duration_mins for s in segments if s.is_chargeable), _ZERO)

    total_cost, minimum_applied = apply_minimum_charge(base_cost + travel_cost, service.minimum_charge)
    return ServiceCost(
        item=item,
        base_cost=base_cost,
        travel_cost=travel_cost,
        total_cost=total_cost,
        estimated_duration_mins=duration,
        minimum_charge_applied=minimum_applied,
        components=components,
        segments=segments,
    )


def _rounded_segment(segment: RouteSegment) -> RouteSegment:
    return segment.model_copy(update={"cost": to_cents(segment.cost)})


def _service_breakdown(cost: ServiceCost) -> ServiceBreakdown:
    return ServiceBreakdown(
        service_id=cost.item.service.id,
        service_name=cost.item.service.name,
        quantity=cost.item.quantity,
        base_cost=to_cents(cost.base_cost),
        travel_cost=to_cents(cost.travel_cost),
        total_cost=to_cents(cost.total_cost),
        estimated_duration_mins=cost.estimated_duration_mins,
        minimum_charge_applied=cost.minimum_charge_applied,
        component_breakdowns=[
            c.model_copy(update={"cost": to_cents(c.cost)}) for c in cost.components
        ],
    )


def _travel_breakdown(costs: Sequence[ServiceCost]) -> TravelBreakdown:
    segments = [s for cost in costs for s in cost.segments]
    chargeable = [s for s in segments if s.is_chargeable]
    return TravelBreakdown(
        total_distance_km=sum((s.distance_km for s in chargeable), _ZERO),
        total_travel_time_mins=sum((s.duration_mins for s in chargeable), _ZERO),
        total_travel_cost=to_cents(sum((s.cost for s in segments), _ZERO)),
        route_segments=[_rounded_segment(s) for s in segments],
    )


def _fee_breakdown(fees: BusinessFees) -> BusinessFeeBreakdown:
    return BusinessFeeBreakdown(
        subtotal=to_cents(fees.subtotal),
        gst_rate=fees.gst_rate,
        gst_amount=to_cents(fees.gst_amount),
        gst_included_in_prices=fees.gst_included_in_prices,
        platform_fee_percentage=fees.platform_fee_percentage,
        platform_fee_amount=to_cents(fees.platform_fee_amount),
        payment_processing_fee_percentage=fees.payment_processing_fee_percentage,
        payment_processing_fee_amount=to_cents(fees.payment_processing_fee_amount),
    )


def _check_schedule(calc_input: BookingCalculationInput) -> None:
    if bool(calc_input.scheduled_date) != bool(calc_input.scheduled_time):
        raise ValidationError(
            "Both scheduled_date and scheduled_time are needed to place the booking",
            {"scheduled_date": "incomplete", "scheduled_time": "incomplete"},
        )
    if calc_input.scheduled_date:
        to_utc_from_local(calc_input.scheduled_date, calc_input.scheduled_time, calc_input.business.time_zone)


def _whole_minutes(minutes: Decimal) -> int:
    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def calculate_booking(
    calc_input: BookingCalculationInput,
    distance_provider: DistanceProvider,
) -> BookingCalculationResult:
    """Produce the full quote for ``calc_input``.

    Raises a :class:`QuoteCalculationError` subclass on any failure; a partial
    quote is never returned.
    """
    business = calc_input.business
    with tracer.start_as_current_span("calculate_booking") as span:
        span.set_attribute("booking.business_id", business.id)
        span.set_attribute("booking.service_count", len(calc_input.services))
        try:
            check_linkage(calc_input)
            _check_schedule(calc_input)
            routes = plan_routes(calc_input)

            all_legs = [leg for item in calc_input.services for leg in routes[item.service.id]]
            distances = await fetch_leg_distances(distance_provider, all_legs)

            costs: List[ServiceCost] = []
            offset = 0
            for item in calc_input.services:
                legs = routes[item.service.id]
                service_distances = distances[offset:offset + len(legs)]
                offset += len(legs)
                costs.append(calculate_service_cost(item, legs, service_distances, calc_input.job_scope))

            subtotal = sum((c.total_cost for c in costs), _ZERO)
            total_minutes = _whole_minutes(sum((c.estimated_duration_mins for c in costs), _ZERO))

            fees = calculate_business_fees(subtotal, business)
            floored, minimum_applied = apply_minimum_charge(fees.total, business.minimum_charge)
            total = to_cents(floored)
            deposit = to_cents(calculate_deposit(total, business))
            remaining = calculate_remaining_balance(total, deposit, calc_input.deposit_paid)

            start_at = end_at = None
            if calc_input.scheduled_date and calc_input.scheduled_time:
                start_at, end_at = calculate_booking_timestamps(
                    calc_input.scheduled_date,
                    calc_input.scheduled_time,
                    total_minutes,
                    business.time_zone,
                )

            first = calc_input.services[0]
            result = BookingCalculationResult(
                quote_id=generate_quote_id(calc_input.quote_counter, first.service, first.quantity),
                currency=business.currency_code or settings.DEFAULT_CURRENCY,
                total_estimate_amount=total,
                total_estimate_time_in_minutes=total_minutes,
                minimum_charge_applied=minimum_applied,
                deposit_amount=deposit,
                deposit_paid=calc_input.deposit_paid,
                remaining_balance=remaining,
                start_at=start_at,
                end_at=end_at,
                price_breakdown=PriceBreakdown(
                    service_breakdowns=[_service_breakdown(c) for c in costs],
                    travel_breakdown=_travel_breakdown(costs),
                    business_fees=_fee_breakdown(fees),
                ),
            )
        except QuoteCalculationError as exc:
            logger.warning(
                "Booking calculation failed: %s",
                exc.message,
                extra={"kind": exc.kind, "business_id": business.id, "field_errors": exc.field_errors},
            )
            span.record_exception(exc)
            span.set_status(trace.Status(trace.StatusCode.ERROR, exc.kind))
            raise

        logger.info(
            "Booking calculated",
            extra={
                "business_id": business.id,
                "quote_id": result.quote_id,
                "total": str(result.total_estimate_amount),
                "minutes": result.total_estimate_time_in_minutes,
            },
        )
        return result


def calculate_booking_sync(
    calc_input: BookingCalculationInput,
    distance_provider: DistanceProvider,
) -> BookingCalculationResult:
    """Sync wrapper around :func:`calculate_booking` for scripts and workers."""
    return anyio.run(calculate_booking, calc_input, distance_provider)
