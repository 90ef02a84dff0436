from .pricing_config import (
    Business,
    DepositType,
    LocationType,
    PriceComponent,
    PriceComponentTier,
    PricingMethod,
    Service,
    TravelChargingPolicy,
)
from .booking_calculation import (
    Address,
    AddressRole,
    BookingAddress,
    BookingCalculationInput,
    BookingCalculationResult,
    BusinessFeeBreakdown,
    ComponentBreakdown,
    LegKind,
    PriceBreakdown,
    RouteSegment,
    ServiceBreakdown,
    ServiceWithQuantity,
    TravelBreakdown,
)
from .distance import DistanceProvider, DistanceRequest, DistanceResult, DistanceStatus
