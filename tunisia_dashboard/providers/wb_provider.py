# tunisia_dashboard/providers/wb_provider.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict
import logging
import threading
import httpx

from tunisia_dashboard.config import DashboardSettings, load_settings

logger = logging.getLogger("tunisia-dashboard")

MIN_YEAR = 1900
MAX_YEAR = 2100

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "tunisia-dashboard/1.0 (wb_provider)",
}


class Sample(TypedDict):
    year: str
    value: float


Series = List[Sample]


# -------------------------------------------------------------------
# ERRORS
# -------------------------------------------------------------------
class WorldBankAPIError(RuntimeError):
    def __init__(self, message: str, indicator_code: str = "") -> None:
        super().__init__(message)
        self.indicator_code = indicator_code


class UpstreamUnavailable(WorldBankAPIError):
    """Transport failure or non-success status from the World Bank API."""

    def __init__(self, message: str, indicator_code: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message, indicator_code)
        self.status_code = status_code


class MalformedResponse(WorldBankAPIError):
    """Body did not have the [metadata, observations] shape."""


# -------------------------------------------------------------------
# HTTP CLIENT (shared)
# -------------------------------------------------------------------
_CLIENT: Optional[httpx.Client] = None
_CLIENT_LOCK = threading.Lock()


def _timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(
        timeout=seconds,
        connect=min(3.0, seconds),
        read=seconds,
        write=min(3.0, seconds),
        pool=min(3.0, seconds),
    )


def _get_client(settings: DashboardSettings) -> httpx.Client:
    # pool limits come from the first settings seen; timeouts are passed per request
    global _CLIENT
    with _CLIENT_LOCK:
        if _CLIENT is None:
            _CLIENT = httpx.Client(
                timeout=_timeout(settings.timeout),
                headers=_HEADERS,
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=max(settings.max_workers, 1) * 2,
                    max_keepalive_connections=max(settings.max_workers, 1),
                ),
            )
        return _CLIENT


def close_client() -> None:
    global _CLIENT
    with _CLIENT_LOCK:
        if _CLIENT is not None:
            _CLIENT.close()
            _CLIENT = None


def build_url(settings: DashboardSettings, indicator_code: str) -> str:
    return f"{settings.api_base}/country/{settings.country}/indicator/{indicator_code}"


def build_params(settings: DashboardSettings, start_year: int, end_year: int) -> Dict[str, str]:
    return {
        "format": "json",
        "date": f"{start_year}:{end_year}",
        "per_page": str(settings.per_page),
    }


def validate_window(start_year: int, end_year: int) -> None:
    for y in (start_year, end_year):
        if not isinstance(y, int) or isinstance(y, bool) or not (MIN_YEAR <= y <= MAX_YEAR):
            raise ValueError(f"year {y!r} outside {MIN_YEAR}..{MAX_YEAR}")
    if start_year > end_year:
        raise ValueError(f"start year {start_year} is after end year {end_year}")


def _validate_request(indicator_code: str, start_year: int, end_year: int) -> None:
    if not indicator_code or not str(indicator_code).strip():
        raise ValueError("indicator code must be a non-empty string")
    validate_window(start_year, end_year)


# -------------------------------------------------------------------
# NORMALIZATION
# -------------------------------------------------------------------
def _sample_value(raw: Any, indicator_code: str, year: str) -> float:
    # null/absent -> 0 (indistinguishable from a reported zero)
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        raise MalformedResponse(f"non-numeric value for {indicator_code} in {year}: {raw!r}", indicator_code)
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(
            f"non-numeric value for {indicator_code} in {year}: {raw!r}", indicator_code
        ) from e


def series_from_payload(payload: Any, indicator_code: str = "") -> Series:
    """
    Converts the WB envelope [ {metadata}, [ {date, value, ...}, ... ] ]
    into an oldest-first list of {year, value}.

    WB returns observations newest -> oldest. An empty list yields an empty
    series; anything that is not a list (including null) is malformed.
    """
    if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], dict) and "message" in payload[0]:
        raise MalformedResponse(f"World Bank API error for {indicator_code}: {payload[0]['message']}", indicator_code)
    if not isinstance(payload, list) or len(payload) != 2:
        raise MalformedResponse(
            f"expected [metadata, observations] for {indicator_code}, got {type(payload).__name__}", indicator_code
        )

    meta, observations = payload
    if not isinstance(observations, list):
        raise MalformedResponse(
            f"observations for {indicator_code} is {type(observations).__name__}, not a list", indicator_code
        )

    if isinstance(meta, dict):
        try:
            pages = int(meta.get("pages") or 1)
        except (TypeError, ValueError):
            pages = 1
        if pages > 1:
            logger.warning("wb truncated | code=%s | pages=%d | using first page only", indicator_code, pages)

    out: Series = []
    seen = set()
    for entry in observations:
        if not isinstance(entry, dict) or entry.get("date") in (None, ""):
            raise MalformedResponse(f"observation without date for {indicator_code}: {entry!r}", indicator_code)
        year = str(entry["date"])
        if year in seen:
            continue
        seen.add(year)
        out.append({"year": year, "value": _sample_value(entry.get("value"), indicator_code, year)})

    out.reverse()
    # reversal already yields ascending order for WB; sort anyway to hold the invariant
    out.sort(key=lambda s: s["year"])
    return out


# -------------------------------------------------------------------
# SERIES FETCH
# -------------------------------------------------------------------
def fetch_series(
    indicator_code: str,
    start_year: int,
    end_year: int,
    *,
    settings: Optional[DashboardSettings] = None,
    client: Optional[httpx.Client] = None,
) -> Series:
    """
    One GET against the WB indicator endpoint for [start_year, end_year].

    Raises UpstreamUnavailable on transport errors or non-2xx statuses and
    MalformedResponse when the body is not the expected envelope. No retries.
    """
    _validate_request(indicator_code, start_year, end_year)
    settings = settings or load_settings()
    client = client or _get_client(settings)

    url = build_url(settings, indicator_code)
    params = build_params(settings, start_year, end_year)
    if settings.debug:
        logger.debug("wb GET | url=%s | params=%s", url, params)

    try:
        r = client.get(url, params=params, timeout=_timeout(settings.timeout))
        r.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning("wb status error | code=%s | status=%d", indicator_code, status)
        raise UpstreamUnavailable(
            f"World Bank API returned HTTP {status} for {indicator_code}", indicator_code, status
        ) from e
    except httpx.HTTPError as e:
        logger.warning("wb transport error | code=%s | err=%r", indicator_code, e)
        raise UpstreamUnavailable(f"World Bank API unreachable for {indicator_code}: {e}", indicator_code) from e

    try:
        data = r.json()
    except ValueError as e:
        raise MalformedResponse(f"World Bank API returned non-JSON body for {indicator_code}", indicator_code) from e

    return series_from_payload(data, indicator_code)


__all__ = [
    "Sample",
    "Series",
    "WorldBankAPIError",
    "UpstreamUnavailable",
    "MalformedResponse",
    "build_url",
    "build_params",
    "validate_window",
    "series_from_payload",
    "fetch_series",
    "close_client",
]
