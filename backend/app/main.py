# backend/app/main.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .api import api_booking_calculation
from .core.config import settings
from .core.observability import setup_logging, setup_tracer
from .utils.redis_cache import close_redis_client

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Booking Quote API",
    version="1.0.0",
    description="Prices service bookings: tiered components, multi-stop travel, GST and platform fees, minimum charge and deposit.",
    default_response_class=ORJSONResponse,
)
setup_tracer(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return request-shape errors in the same structure as calculation errors."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {
        ".".join(str(p) for p in err.get("loc", ())): err.get("msg", "invalid") for err in errors
    }
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": {
                "message": "Invalid request",
                "kind": "validation_error",
                "field_errors": field_errors,
            }
        },
    )


@app.get("/healthz", tags=["health"])
async def healthz():
    return {"status": "ok"}


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

app.include_router(
    api_booking_calculation.router,
    prefix=f"{api_prefix}",
    tags=["booking-calculations"],
)


@app.on_event("shutdown")
def shutdown_redis_client() -> None:
    """Close Redis connections when the application shuts down."""
    logger.info("Closing Redis client")
    close_redis_client()
