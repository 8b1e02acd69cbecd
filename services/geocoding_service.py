from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import httpx

from core.errors import AppException, ErrorCode, geocoding_failed
from core.redis_cache import cache_db
from core.settings import get_settings
from schemas.place import Location

logger = logging.getLogger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DEFAULT_GEOCODE_TIMEOUT_SECONDS = 10.0


class GeocodeResolver(Protocol):
    timeout_seconds: float

    async def resolve(self, address: str) -> Location:
        ...


def _normalize_address(address: str) -> str:
    return " ".join(address.strip().split())


def _geocode_cache_key(address: str) -> str:
    return f"places:geocode:{address.lower()}"


def _cache_get_json(cache_key: str) -> Any | None:
    try:
        raw = cache_db.get(cache_key)
    except Exception:
        return None

    if not raw:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def _cache_set_json(cache_key: str, payload: Any, ttl_seconds: int) -> None:
    if ttl_seconds <= 0:
        return
    try:
        cache_db.setex(cache_key, ttl_seconds, json.dumps(payload))
    except Exception:
        return


def _raise_provider_status_error(*, status_value: str, error_message: str | None = None) -> None:
    normalized_status = (status_value or "").upper()
    details: dict[str, Any] = {"providerStatus": normalized_status}
    if error_message:
        details["providerMessage"] = error_message

    if normalized_status == "ZERO_RESULTS":
        raise geocoding_failed(details=details)
    if normalized_status == "INVALID_REQUEST":
        raise geocoding_failed("Address could not be geocoded", details=details)
    if normalized_status == "OVER_QUERY_LIMIT":
        raise geocoding_failed("Geocoding quota exceeded", status_code=503, details=details)
    if normalized_status == "REQUEST_DENIED":
        raise geocoding_failed("Geocoding provider denied the request", status_code=503, details=details)

    raise geocoding_failed(
        "Geocoding provider returned an unexpected status",
        status_code=503,
        details=details,
    )


def _location_from_payload(payload: dict[str, Any]) -> Location:
    results = payload.get("results")
    first = results[0] if isinstance(results, list) and results else None
    geometry = first.get("geometry") if isinstance(first, dict) else None
    location = geometry.get("location") if isinstance(geometry, dict) else None
    if not isinstance(location, dict) or location.get("lat") is None or location.get("lng") is None:
        raise geocoding_failed(
            "Geocoding provider returned incomplete coordinates",
            status_code=503,
        )

    try:
        return Location(lat=float(location["lat"]), lng=float(location["lng"]))
    except (TypeError, ValueError) as err:
        raise geocoding_failed(
            "Geocoding provider returned invalid coordinates",
            status_code=503,
            details={"location": location},
        ) from err


class GoogleGeocodeResolver:
    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float = DEFAULT_GEOCODE_TIMEOUT_SECONDS,
        cache_ttl_seconds: int = 0,
    ) -> None:
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._cache_ttl_seconds = cache_ttl_seconds

    async def _google_get_json(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            raise geocoding_failed("Geocoding is not configured", status_code=503)

        request_params = {**params, "key": self._api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(GOOGLE_GEOCODE_URL, params=request_params)
                response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise geocoding_failed(
                "Geocoding provider HTTP error",
                status_code=503,
                details={"status_code": err.response.status_code},
            ) from err
        except httpx.HTTPError as err:
            raise geocoding_failed(
                "Geocoding provider request failed",
                status_code=503,
                details=str(err),
            ) from err

        try:
            payload = response.json()
        except ValueError as err:
            raise geocoding_failed("Geocoding provider returned invalid JSON", status_code=503) from err

        if not isinstance(payload, dict):
            raise geocoding_failed("Geocoding provider response shape is invalid", status_code=503)
        return payload

    async def resolve(self, address: str) -> Location:
        normalized_address = _normalize_address(address)
        if not normalized_address:
            raise geocoding_failed(details={"field": "address"})

        cache_key = _geocode_cache_key(normalized_address)
        # blocking client, never called on the event loop
        cached = await asyncio.to_thread(_cache_get_json, cache_key)
        if isinstance(cached, dict):
            try:
                return Location.model_validate(cached)
            except Exception:
                pass

        payload = await self._google_get_json({"address": normalized_address})
        status_value = str(payload.get("status") or "")
        if status_value.upper() != "OK":
            _raise_provider_status_error(
                status_value=status_value,
                error_message=payload.get("error_message"),
            )

        location = _location_from_payload(payload)
        await asyncio.to_thread(_cache_set_json, cache_key, location.model_dump(), self._cache_ttl_seconds)
        return location


_resolver: GeocodeResolver | None = None


def set_geocode_resolver(resolver: GeocodeResolver | None) -> None:
    global _resolver
    _resolver = resolver


def get_geocode_resolver() -> GeocodeResolver:
    global _resolver
    if _resolver is None:
        settings = get_settings()
        _resolver = GoogleGeocodeResolver(
            api_key=settings.google_maps_api_key,
            timeout_seconds=settings.geocode_timeout_seconds,
            cache_ttl_seconds=settings.geocode_cache_ttl_seconds,
        )
    return _resolver


async def resolve_coordinates(address: str) -> Location:
    """Resolve an address, folding every resolver failure into GEOCODING_FAILED."""
    resolver = get_geocode_resolver()
    try:
        return await asyncio.wait_for(resolver.resolve(address), timeout=resolver.timeout_seconds)
    except asyncio.TimeoutError as err:
        logger.warning("Geocoding timed out after %ss", resolver.timeout_seconds)
        raise geocoding_failed(
            "Geocoding timed out",
            status_code=503,
            details={"timeout_seconds": resolver.timeout_seconds},
        ) from err
    except AppException as err:
        if err.code == ErrorCode.GEOCODING_FAILED:
            logger.warning("Geocoding failed: %s", err.message, extra={"error_code": err.code.value})
            raise
        raise geocoding_failed(details=err.detail) from err
    except Exception as err:
        logger.warning("Geocoding resolver raised %s", type(err).__name__, exc_info=True)
        raise geocoding_failed("Geocoding service is unavailable", status_code=503) from err
