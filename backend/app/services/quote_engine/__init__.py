"""Booking price and duration calculator."""

from .calculator import calculate_booking, calculate_booking_sync, calculate_service_cost, check_linkage
from .config_loader import load_business, load_calculation_input, load_service
from .errors import (
    ConfigurationError,
    ExternalProviderError,
    MismatchError,
    OutOfRangeError,
    QuoteCalculationError,
    ValidationError,
)
from .quote_id import generate_quote_id
from .timestamps import calculate_booking_timestamps, to_utc_from_local

__all__ = [
    "calculate_booking",
    "calculate_booking_sync",
    "calculate_service_cost",
    "check_linkage",
    "load_business",
    "load_service",
    "load_calculation_input",
    "QuoteCalculationError",
    "ConfigurationError",
    "OutOfRangeError",
    "MismatchError",
    "ExternalProviderError",
    "ValidationError",
    "generate_quote_id",
    "calculate_booking_timestamps",
    "to_utc_from_local",
]
