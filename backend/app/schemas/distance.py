from __future__ import annotations

import enum
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict


class DistanceStatus(str, enum.Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    ZERO_RESULTS = "ZERO_RESULTS"
    MAX_ROUTE_LENGTH_EXCEEDED = "MAX_ROUTE_LENGTH_EXCEEDED"
    INVALID_REQUEST = "INVALID_REQUEST"
    OVER_DAILY_LIMIT = "OVER_DAILY_LIMIT"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @classmethod
    def parse(cls, raw: object) -> "DistanceStatus":
        try:
            return cls(str(raw))
        except ValueError:
            return cls.UNKNOWN_ERROR


class DistanceRequest(BaseModel):
    origin: str
    destination: str

    model_config = ConfigDict(frozen=True)


class DistanceResult(BaseModel):
    distance_km: Decimal = Decimal("0")
    duration_mins: Decimal = Decimal("0")
    status: DistanceStatus = DistanceStatus.OK
    error_message: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return self.status is DistanceStatus.OK


class DistanceProvider(Protocol):
    """Batch distance lookup used by the quote engine.

    Implementations must return exactly one result per request, in request
    order. Caching and retries are the provider's business.
    """

    async def get_batch_distances(self, requests: Sequence[DistanceRequest]) -> List[DistanceResult]:
        ...
