"""Distance providers for the quote engine.

``GoogleDistanceMatrixProvider`` resolves every leg of a booking with one
Distance Matrix request: unique origins x unique destinations, then each
requested pair is read back out of the matrix. Results are cached per pair in
Redis when it is configured. ``StaticDistanceProvider`` serves fixed
measurements for tests, load runs and local development.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from app.core.config import settings
from app.schemas.distance import DistanceRequest, DistanceResult, DistanceStatus
from app.services.quote_engine.errors import ExternalProviderError
from app.utils import redis_cache

logger = logging.getLogger(__name__)

_KM = Decimal("1000")
_MINUTE = Decimal("60")


def _unique(values: Sequence[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


def _element_result(element: Mapping) -> DistanceResult:
    status = DistanceStatus.parse(element.get("status"))
    if status is not DistanceStatus.OK:
        return DistanceResult(status=status, error_message=f"Element status {element.get('status')}")
    try:
        meters = Decimal(str(element["distance"]["value"]))
        seconds = Decimal(str(element["duration"]["value"]))
    except (KeyError, TypeError) as exc:
        raise ExternalProviderError(
            "Distance Matrix element is missing distance or duration",
            {"distance": "malformed_response"},
        ) from exc
    return DistanceResult(
        distance_km=(meters / _KM).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        duration_mins=(seconds / _MINUTE).quantize(Decimal("1"), rounding=ROUND_HALF_UP),
    )


class GoogleDistanceMatrixProvider:
    """Batch distance lookups against the Google Distance Matrix API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
        self.url = url or settings.DISTANCE_MATRIX_URL
        self.timeout = timeout if timeout is not None else settings.DISTANCE_API_TIMEOUT
        self.cache_ttl = cache_ttl if cache_ttl is not None else settings.DISTANCE_CACHE_TTL
        self._client = client

    async def _fetch_matrix(self, origins: List[str], destinations: List[str]) -> Mapping:
        params = {
            "units": "metric",
            "origins": "|".join(origins),
            "destinations": "|".join(destinations),
            "key": self.api_key,
        }
        try:
            if self._client is not None:
                res = await self._client.get(self.url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http:
                    res = await http.get(self.url, params=params)
            res.raise_for_status()
            return res.json()
        except httpx.TimeoutException as exc:
            logger.warning("Distance Matrix timed out after %ss", self.timeout)
            raise ExternalProviderError("Distance Matrix request timed out", {"distance": "timeout"}) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("Distance Matrix returned HTTP %s", exc.response.status_code)
            raise ExternalProviderError(
                f"Distance Matrix returned HTTP {exc.response.status_code}",
                {"distance": "http_error"},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Distance Matrix request failed: %s", exc)
            raise ExternalProviderError(f"Distance Matrix request failed: {exc}", {"distance": "unavailable"}) from exc
        except ValueError as exc:
            raise ExternalProviderError("Distance Matrix returned invalid JSON", {"distance": "malformed_response"}) from exc

    async def get_batch_distances(self, requests: Sequence[DistanceRequest]) -> List[DistanceResult]:
        if not requests:
            return []
        if not self.api_key:
            raise ExternalProviderError("GOOGLE_MAPS_API_KEY is not configured", {"distance": "not_configured"})

        found: Dict[Tuple[str, str], DistanceResult] = {}
        for req in requests:
            cached = redis_cache.get_cached_distance(req.origin, req.destination)
            if cached is not None:
                found[(req.origin, req.destination)] = DistanceResult(distance_km=cached[0], duration_mins=cached[1])

        missing = [req for req in requests if (req.origin, req.destination) not in found]
        if missing:
            origins = _unique([r.origin for r in missing])
            destinations = _unique([r.destination for r in missing])
            logger.info(
                "Distance Matrix lookup",
                extra={"origins": len(origins), "destinations": len(destinations), "cached": len(found)},
            )
            data = await self._fetch_matrix(origins, destinations)

            status = DistanceStatus.parse(data.get("status"))
            if status is not DistanceStatus.OK:
                message = data.get("error_message") or status.value
                raise ExternalProviderError(f"Distance Matrix failed: {message}", {"distance": status.value})

            rows = data.get("rows") or []
            for req in missing:
                i, j = origins.index(req.origin), destinations.index(req.destination)
                try:
                    element = rows[i]["elements"][j]
                except (IndexError, KeyError, TypeError) as exc:
                    raise ExternalProviderError(
                        f"Distance Matrix has no element for {req.origin} -> {req.destination}",
                        {"distance": "incomplete_response"},
                    ) from exc
                result = _element_result(element)
                found[(req.origin, req.destination)] = result
                if result.ok:
                    redis_cache.cache_distance(
                        req.origin, req.destination, result.distance_km, result.duration_mins, self.cache_ttl
                    )

        return [found[(req.origin, req.destination)] for req in requests]


class StaticDistanceProvider:
    """Serve distances from a fixed ``(origin, destination)`` table.

    Unknown pairs fall back to ``default`` when given, otherwise they come back
    as ``NOT_FOUND``. ``calls`` records each batch for assertions.
    """

    def __init__(
        self,
        table: Optional[Mapping[Tuple[str, str], Tuple[Decimal, Decimal]]] = None,
        default: Optional[Tuple[Decimal, Decimal]] = None,
    ) -> None:
        self.table = {k: (Decimal(str(v[0])), Decimal(str(v[1]))) for k, v in (table or {}).items()}
        self.default = (Decimal(str(default[0])), Decimal(str(default[1]))) if default else None
        self.calls: List[List[DistanceRequest]] = []

    async def get_batch_distances(self, requests: Sequence[DistanceRequest]) -> List[DistanceResult]:
        self.calls.append(list(requests))
        results: List[DistanceResult] = []
        for req in requests:
            hit = self.table.get((req.origin, req.destination), self.default)
            if hit is None:
                results.append(DistanceResult(status=DistanceStatus.NOT_FOUND, error_message="No static distance"))
            else:
                results.append(DistanceResult(distance_km=hit[0], duration_mins=hit[1]))
        return results
