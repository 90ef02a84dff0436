"""Turn a booking's addresses into the ordered legs a provider team drives.

The leg list is fully materialised: when a service travels from the business
base but the booking does not list the base explicitly, the base stops are
synthesised here so downstream charging never has to special-case a missing
address.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from app.schemas.booking_calculation import Address, AddressRole, BookingAddress, LegKind
from app.schemas.pricing_config import Business, LocationType, Service

from .errors import ConfigurationError, ValidationError


@dataclass(frozen=True)
class Leg:
    service_id: str
    from_address: Address
    to_address: Address
    from_role: AddressRole
    to_role: AddressRole
    kind: LegKind


def parse_business_address(business: Business) -> Address:
    """Split the business's single-line address into street and locality."""
    raw = (business.address or "").strip()
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) < 2:
        raise ConfigurationError(
            f"Business {business.name} needs a base address with street and city to quote travel",
            {"business.address": "missing" if not raw else "unparseable"},
        )
    return Address(id=f"{business.id}:base", address_line_1=parts[0], city=", ".join(parts[1:]))


def _classify(from_role: AddressRole, to_role: AddressRole) -> LegKind:
    if from_role is AddressRole.BUSINESS_BASE:
        return LegKind.BASE_TO_FIRST
    if to_role is AddressRole.BUSINESS_BASE:
        return LegKind.LAST_TO_BASE
    return LegKind.BETWEEN_CUSTOMERS


def _ordered_stops(addresses: Sequence[BookingAddress], service: Service) -> List[BookingAddress]:
    stops = sorted(
        (a for a in addresses if a.service_id == service.id),
        key=lambda a: a.sequence_order,
    )
    seen: set[int] = set()
    for stop in stops:
        if stop.sequence_order in seen:
            raise ValidationError(
                f"Two addresses for service {service.name} share sequence_order {stop.sequence_order}",
                {"addresses.sequence_order": "duplicate"},
            )
        seen.add(stop.sequence_order)
    return stops


def _check_roles(stops: Sequence[BookingAddress], service: Service) -> None:
    roles = [s.role for s in stops]
    if all(r is AddressRole.BUSINESS_BASE for r in roles):
        raise ValidationError(
            f"Service {service.name} travels to the customer but no customer address was given",
            {"addresses": "missing_customer_address"},
        )
    if service.location_type is LocationType.PICKUP_AND_DROPOFF:
        if AddressRole.PICKUP not in roles or AddressRole.DROPOFF not in roles:
            raise ValidationError(
                f"Service {service.name} needs at least one pickup and one dropoff address",
                {"addresses": "missing_pickup_or_dropoff"},
            )
    for prev, nxt in zip(stops, stops[1:]):
        if prev.role is AddressRole.BUSINESS_BASE and nxt.role is AddressRole.BUSINESS_BASE:
            raise ValidationError(
                f"Service {service.name} route visits the business base twice in a row",
                {"addresses.role": "consecutive_base"},
            )


def build_route(
    addresses: Sequence[BookingAddress],
    service: Service,
    business: Business,
) -> List[Leg]:
    """Return the ordered legs for ``service``.

    Services priced without travel, and services performed at the business,
    have no legs. Otherwise the service's addresses are ordered by
    ``sequence_order`` and bracketed by the business base; a single visit
    therefore yields base -> visit -> base.
    """
    if not service.has_travel or service.location_type is LocationType.BUSINESS:
        return []

    stops = _ordered_stops(addresses, service)
    _check_roles(stops, service)

    if stops[0].role is not AddressRole.BUSINESS_BASE or stops[-1].role is not AddressRole.BUSINESS_BASE:
        base = parse_business_address(business)
        if stops[0].role is not AddressRole.BUSINESS_BASE:
            stops.insert(
                0,
                BookingAddress(
                    address=base,
                    role=AddressRole.BUSINESS_BASE,
                    sequence_order=stops[0].sequence_order - 1,
                    service_id=service.id,
                ),
            )
        if stops[-1].role is not AddressRole.BUSINESS_BASE:
            stops.append(
                BookingAddress(
                    address=base,
                    role=AddressRole.BUSINESS_BASE,
                    sequence_order=stops[-1].sequence_order + 1,
                    service_id=service.id,
                )
            )

    return [
        Leg(
            service_id=service.id,
            from_address=prev.address,
            to_address=nxt.address,
            from_role=prev.role,
            to_role=nxt.role,
            kind=_classify(prev.role, nxt.role),
        )
        for prev, nxt in zip(stops, stops[1:])
    ]
