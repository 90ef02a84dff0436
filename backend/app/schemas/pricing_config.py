"""Typed business/service pricing configuration.

Raw pricing configuration arrives as loosely shaped JSON (the dashboard stores
it that way). These models pin it down to closed enums and checked tier
tables so that an unknown pricing method, a bad travel policy or an
overlapping tier table is rejected when the configuration is loaded rather
than halfway through a quote.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator


class PricingMethod(str, enum.Enum):
    FIXED = "fixed"
    HOURLY = "hourly"
    PER_PERSON_HOURLY = "per_person_hourly"
    PER_UNIT = "per_unit"
    PER_MINUTE = "per_minute"


class TravelChargingPolicy(str, enum.Enum):
    BETWEEN_CUSTOMER_LOCATIONS = "between_customer_locations"
    FROM_BASE_TO_CUSTOMERS = "from_base_to_customers"
    CUSTOMERS_AND_BACK_TO_BASE = "customers_and_back_to_base"
    FULL_ROUTE = "full_route"


class LocationType(str, enum.Enum):
    CUSTOMER = "customer"
    PICKUP_AND_DROPOFF = "pickup_and_dropoff"
    BUSINESS = "business"


class DepositType(str, enum.Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


HOURLY_METHODS = (PricingMethod.HOURLY, PricingMethod.PER_PERSON_HOURLY)
TRAVEL_METHODS = (PricingMethod.PER_UNIT, PricingMethod.PER_MINUTE)


class PriceComponentTier(BaseModel):
    id: str
    min_quantity: Decimal = Field(gt=0)
    max_quantity: Decimal = Field(gt=0)
    price: Decimal = Field(ge=0)
    # Minutes, or minutes keyed by job scope (e.g. {"one_room": 90})
    duration_estimate_mins: Optional[Union[NonNegativeInt, Dict[str, NonNegativeInt]]] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def check_range(self) -> "PriceComponentTier":
        if self.min_quantity > self.max_quantity:
            raise ValueError(
                f"tier {self.id}: min_quantity {self.min_quantity} exceeds max_quantity {self.max_quantity}"
            )
        return self

    def contains(self, quantity: Decimal) -> bool:
        return self.min_quantity <= quantity <= self.max_quantity


class PriceComponent(BaseModel):
    id: str
    service_id: str
    name: str
    pricing_method: PricingMethod
    has_tiers: bool = True
    tier_unit_label: str = "people"
    travel_policy: Optional[TravelChargingPolicy] = None
    tiers: List[PriceComponentTier] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_travel(self) -> bool:
        return self.travel_policy is not None

    @model_validator(mode="after")
    def check_tiers(self) -> "PriceComponent":
        if not self.has_tiers and len(self.tiers) != 1:
            raise ValueError(
                f"component {self.name}: untiered components need exactly one tier, got {len(self.tiers)}"
            )
        ordered = sorted(self.tiers, key=lambda t: t.min_quantity)
        for prev, nxt in zip(ordered, ordered[1:]):
            if nxt.min_quantity <= prev.max_quantity:
                raise ValueError(f"component {self.name}: tiers {prev.id} and {nxt.id} overlap")
        return self

    @model_validator(mode="after")
    def check_method_for_role(self) -> "PriceComponent":
        if self.is_travel and self.pricing_method not in TRAVEL_METHODS:
            raise ValueError(
                f"component {self.name}: travel components are priced per_unit (km) or per_minute, "
                f"not {self.pricing_method.value}"
            )
        if not self.is_travel and self.pricing_method is PricingMethod.PER_MINUTE:
            raise ValueError(f"component {self.name}: per_minute pricing needs a travel_policy")
        return self


class Service(BaseModel):
    id: str
    business_id: str
    name: str
    location_type: LocationType = LocationType.CUSTOMER
    minimum_charge: Decimal = Field(default=Decimal("0"), ge=0)
    price_components: List[PriceComponent] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def travel_components(self) -> List[PriceComponent]:
        return [c for c in self.price_components if c.is_travel]

    @property
    def has_travel(self) -> bool:
        return any(c.is_travel for c in self.price_components)

    @model_validator(mode="after")
    def check_business_site_travel(self) -> "Service":
        if self.location_type is LocationType.BUSINESS and self.has_travel:
            raise ValueError(f"service {self.name}: business-site services cannot carry travel components")
        return self


class Business(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    time_zone: str = "UTC"
    currency_code: Optional[str] = None
    charges_gst: bool = False
    gst_rate: Decimal = Field(default=Decimal("0"), ge=0)
    prices_include_gst: bool = False
    minimum_charge: Decimal = Field(default=Decimal("0"), ge=0)
    charges_deposit: bool = False
    deposit_type: DepositType = DepositType.PERCENTAGE
    deposit_fixed_amount: Optional[Decimal] = Field(default=None, ge=0)
    deposit_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    platform_fee_percentage: Decimal = Field(default=Decimal("0"), ge=0)
    payment_processing_fee_percentage: Decimal = Field(default=Decimal("0"), ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("currency_code", mode="before")
    def upper_currency(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    @model_validator(mode="after")
    def check_deposit(self) -> "Business":
        if not self.charges_deposit:
            return self
        if self.deposit_type is DepositType.FIXED and self.deposit_fixed_amount is None:
            raise ValueError("fixed deposits need deposit_fixed_amount")
        if self.deposit_type is DepositType.PERCENTAGE and self.deposit_percentage is None:
            raise ValueError("percentage deposits need deposit_percentage")
        return self
