"""Load raw pricing configuration and quote requests into typed models.

This is the boundary where loosely shaped JSON becomes typed data: unknown
pricing methods or travel policies, overlapping tiers and similar problems
surface here as :class:`ConfigurationError`, and malformed request data
(quantities, addresses) as :class:`ValidationError`. Nothing past this point
has to re-check strings.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from pydantic import ValidationError as PydanticValidationError

from app.schemas.booking_calculation import BookingCalculationInput
from app.schemas.pricing_config import Business, Service

from .errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
        errors[loc] = err.get("msg", "invalid")
    return errors


def _is_configuration_loc(loc: tuple) -> bool:
    if not loc:
        return False
    if loc[0] == "business":
        return True
    return loc[0] == "services" and len(loc) > 2 and loc[2] == "service"


def _require_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{what} must be an object, got {type(raw).__name__}", {what: "not_an_object"})
    return raw


def load_business(raw: Mapping[str, Any]) -> Business:
    try:
        return Business.model_validate(_require_mapping(raw, "business"))
    except PydanticValidationError as exc:
        raise ConfigurationError("Invalid business configuration", _field_errors(exc)) from exc


def load_service(raw: Mapping[str, Any]) -> Service:
    try:
        return Service.model_validate(_require_mapping(raw, "service"))
    except PydanticValidationError as exc:
        raise ConfigurationError("Invalid service pricing configuration", _field_errors(exc)) from exc


def load_calculation_input(raw: Mapping[str, Any]) -> BookingCalculationInput:
    """Parse a full quote request (business, services, addresses)."""
    try:
        return BookingCalculationInput.model_validate(_require_mapping(raw, "booking"))
    except PydanticValidationError as exc:
        field_errors = _field_errors(exc)
        if any(_is_configuration_loc(tuple(err.get("loc", ()))) for err in exc.errors()):
            logger.warning("Rejected pricing configuration", extra={"field_errors": field_errors})
            raise ConfigurationError("Invalid pricing configuration", field_errors) from exc
        raise ValidationError("Invalid booking calculation request", field_errors) from exc
