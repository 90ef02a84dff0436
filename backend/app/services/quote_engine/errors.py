from __future__ import annotations

from typing import Dict, Optional


class QuoteCalculationError(Exception):
    """Base class for every reason a quote cannot be produced.

    A calculation that raises never returns a partial quote. ``field_errors``
    mirrors the structure the API returns through
    :func:`app.utils.errors.error_response`.
    """

    kind = "calculation_error"

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field_errors = dict(field_errors or {})


class ConfigurationError(QuoteCalculationError):
    """Pricing configuration is missing or unusable (no components, no tiers)."""

    kind = "configuration_error"


class OutOfRangeError(QuoteCalculationError):
    """Quantity falls outside every tier of a component."""

    kind = "out_of_range"


class MismatchError(QuoteCalculationError):
    """Service/business or address/service linkage is inconsistent."""

    kind = "mismatch"


class ExternalProviderError(QuoteCalculationError):
    """Distance lookup failed, timed out, or returned a non-OK leg."""

    kind = "external_provider_error"


class ValidationError(QuoteCalculationError):
    """Request data is malformed (quantities, addresses, timestamps)."""

    kind = "validation_error"
