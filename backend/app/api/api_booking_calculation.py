from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status
import logging

from ..schemas.booking_calculation import BookingCalculationResult
from ..schemas.distance import DistanceProvider
from ..services.distance_service import GoogleDistanceMatrixProvider
from ..services.quote_engine import (
    ConfigurationError,
    ExternalProviderError,
    MismatchError,
    OutOfRangeError,
    QuoteCalculationError,
    ValidationError,
    calculate_booking,
    load_calculation_input,
)
from ..utils.errors import error_response

router = APIRouter(tags=["booking-calculations"])
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    ConfigurationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    OutOfRangeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MismatchError: status.HTTP_409_CONFLICT,
    ExternalProviderError: status.HTTP_502_BAD_GATEWAY,
}


def get_distance_provider() -> DistanceProvider:
    """Return the distance provider; tests override this dependency."""
    return GoogleDistanceMatrixProvider()


@router.post("/booking-calculations", response_model=BookingCalculationResult)
async def create_booking_calculation(
    payload: Dict[str, Any] = Body(...),
    provider: DistanceProvider = Depends(get_distance_provider),
):
    """Price a booking: per-service costs, travel, fees, deposit and timing."""

    try:
        calc_input = load_calculation_input(payload)
        return await calculate_booking(calc_input, provider)
    except QuoteCalculationError as exc:
        code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)
        raise error_response(exc.message, exc.field_errors, code, kind=exc.kind)
