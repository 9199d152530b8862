# tunisia_dashboard/routes/dashboard.py — dashboard dataset, single series, CSV/PNG export
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple
import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from tunisia_dashboard.config import DashboardSettings, load_settings
from tunisia_dashboard.providers import wb_provider
from tunisia_dashboard.providers.wb_provider import Series, WorldBankAPIError
from tunisia_dashboard.services import dashboard_service, export_service
from tunisia_dashboard.services.dashboard_service import PartialDatasetFailure
from tunisia_dashboard.services.indicator_catalog import IndicatorSpec, catalog_metadata

logger = logging.getLogger("tunisia-dashboard")

router = APIRouter(prefix="/v1", tags=["dashboard"])


# ----------------------------- utilities -------------------------------------

def _cache_headers(settings: DashboardSettings) -> Dict[str, str]:
    return {"Cache-Control": f"public, max-age={settings.cache_max_age}"}


def _resolve_window(settings: DashboardSettings, start: Optional[int], end: Optional[int]) -> Tuple[int, int]:
    d_start, d_end = dashboard_service.default_window(settings)
    window = (d_start if start is None else start, d_end if end is None else end)
    try:
        wb_provider.validate_window(*window)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return window


def _spec_or_404(settings: DashboardSettings, key: str) -> IndicatorSpec:
    spec = settings.catalog.get(key)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"unknown indicator '{key}'")
    return spec


def _fetch_one(settings: DashboardSettings, spec: IndicatorSpec, window: Tuple[int, int]) -> Series:
    try:
        return wb_provider.fetch_series(spec["code"], window[0], window[1], settings=settings)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except WorldBankAPIError as e:
        raise HTTPException(status_code=502, detail=f"{spec['key']}: {e}") from e


# -------------------------------- routes -------------------------------------

@router.get("/indicators", summary="Indicator catalog")
def list_indicators() -> Dict[str, Any]:
    settings = load_settings()
    return {"country": settings.country, "indicators": catalog_metadata(settings.catalog)}


@router.get("/dashboard", summary="All dashboard series")
def dashboard(
    start: Optional[int] = Query(None, description="First year (default: current year - window)"),
    end: Optional[int] = Query(None, description="Last year, inclusive (default: current year)"),
):
    """
    Fetch every catalog indicator concurrently. Either all series come back
    or the request fails with 502 naming the indicators that failed.
    """
    settings = load_settings()
    window = _resolve_window(settings, start, end)
    try:
        payload = dashboard_service.build_dashboard(settings, window)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except PartialDatasetFailure as e:
        detail = {
            "error": "partial dataset failure",
            "failed": {k: str(exc) for k, exc in sorted(e.failures.items())},
        }
        raise HTTPException(status_code=502, detail=detail) from e
    return JSONResponse(content=payload, headers=_cache_headers(settings))


@router.get("/indicators/{key}/series", summary="One normalized series")
def indicator_series(
    key: str,
    start: Optional[int] = Query(None),
    end: Optional[int] = Query(None),
):
    settings = load_settings()
    spec = _spec_or_404(settings, key)
    window = _resolve_window(settings, start, end)
    series = _fetch_one(settings, spec, window)
    out = dict(spec)
    out.update(
        {
            "window": {"start": window[0], "end": window[1]},
            "series": series,
            "table": export_service.table_rows(series),
        }
    )
    return JSONResponse(content=out, headers=_cache_headers(settings))


@router.get("/indicators/{key}/export.csv", summary="Series as CSV")
def export_csv(
    key: str,
    start: Optional[int] = Query(None),
    end: Optional[int] = Query(None),
):
    settings = load_settings()
    spec = _spec_or_404(settings, key)
    series = _fetch_one(settings, spec, _resolve_window(settings, start, end))
    filename = export_service.export_filename(spec["label"], "csv")
    headers = _cache_headers(settings)
    headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return Response(
        content=export_service.series_to_csv(series),
        media_type="text/csv; charset=utf-8",
        headers=headers,
    )


@router.get("/indicators/{key}/export.png", summary="Series chart as PNG")
def export_png(
    key: str,
    start: Optional[int] = Query(None),
    end: Optional[int] = Query(None),
):
    settings = load_settings()
    spec = _spec_or_404(settings, key)
    series = _fetch_one(settings, spec, _resolve_window(settings, start, end))
    filename = export_service.export_filename(spec["label"], "png")
    headers = _cache_headers(settings)
    headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    logger.info("png export | key=%s | points=%d", key, len(series))
    return Response(
        content=export_service.series_to_png(series, spec["label"], spec["color"]),
        media_type="image/png",
        headers=headers,
    )
