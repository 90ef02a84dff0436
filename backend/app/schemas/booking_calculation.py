from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .pricing_config import Business, PricingMethod, Service


class AddressRole(str, enum.Enum):
    BUSINESS_BASE = "business_base"
    PICKUP = "pickup"
    DROPOFF = "dropoff"
    SERVICE = "service"
    CUSTOMER = "customer"


class LegKind(str, enum.Enum):
    BASE_TO_FIRST = "base_to_first"
    BETWEEN_CUSTOMERS = "between_customers"
    LAST_TO_BASE = "last_to_base"


class Address(BaseModel):
    id: Optional[str] = None
    address_line_1: str = Field(min_length=1)
    address_line_2: Optional[str] = None
    city: str = Field(min_length=1)
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    def label(self) -> str:
        """Text sent to the distance provider."""
        return f"{self.address_line_1}, {self.city}"


class BookingAddress(BaseModel):
    address: Address
    role: AddressRole
    sequence_order: int
    service_id: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class ServiceWithQuantity(BaseModel):
    service: Service
    quantity: Decimal = Field(gt=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class BookingCalculationInput(BaseModel):
    business: Business
    services: List[ServiceWithQuantity] = Field(min_length=1)
    addresses: List[BookingAddress] = Field(default_factory=list)
    job_scope: Optional[str] = None
    # Local date/time in the business time zone, e.g. "2025-03-14" / "09:30"
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    quote_counter: int = Field(default=1, ge=1)
    deposit_paid: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


class RouteSegment(BaseModel):
    service_id: str
    from_address: str
    to_address: str
    from_role: AddressRole
    to_role: AddressRole
    leg_kind: LegKind
    distance_km: Decimal
    duration_mins: Decimal
    cost: Decimal
    is_chargeable: bool

    model_config = ConfigDict(frozen=True)


class TravelBreakdown(BaseModel):
    total_distance_km: Decimal
    total_travel_time_mins: Decimal
    total_travel_cost: Decimal
    route_segments: List[RouteSegment]

    model_config = ConfigDict(frozen=True)


class ComponentBreakdown(BaseModel):
    component_id: str
    component_name: str
    pricing_method: PricingMethod
    tier_id: str
    base_calculation: str  # e.g. "1.5 hours × $95.00/hour"
    cost: Decimal
    duration_mins: Decimal

    model_config = ConfigDict(frozen=True)


class ServiceBreakdown(BaseModel):
    service_id: str
    service_name: str
    quantity: Decimal
    base_cost: Decimal
    travel_cost: Decimal
    total_cost: Decimal
    estimated_duration_mins: Decimal
    minimum_charge_applied: bool = False
    component_breakdowns: List[ComponentBreakdown]

    model_config = ConfigDict(frozen=True)


class BusinessFeeBreakdown(BaseModel):
    subtotal: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    gst_included_in_prices: bool = False
    platform_fee_percentage: Decimal
    platform_fee_amount: Decimal
    payment_processing_fee_percentage: Decimal
    payment_processing_fee_amount: Decimal

    model_config = ConfigDict(frozen=True)


class PriceBreakdown(BaseModel):
    service_breakdowns: List[ServiceBreakdown]
    travel_breakdown: TravelBreakdown
    business_fees: BusinessFeeBreakdown

    model_config = ConfigDict(frozen=True)


class BookingCalculationResult(BaseModel):
    quote_id: str
    currency: str
    total_estimate_amount: Decimal
    total_estimate_time_in_minutes: int
    minimum_charge_applied: bool
    deposit_amount: Decimal
    deposit_paid: bool
    remaining_balance: Decimal
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    price_breakdown: PriceBreakdown

    model_config = ConfigDict(frozen=True)
