# tunisia_dashboard/services/dashboard_service.py — parallel fetch of the indicator catalog
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import concurrent.futures as _futures
import logging
import time as _time

from tunisia_dashboard.config import DashboardSettings, load_settings
from tunisia_dashboard.providers import wb_provider
from tunisia_dashboard.providers.wb_provider import Series
from tunisia_dashboard.utils.country_codes import get_country_codes
from tunisia_dashboard.utils.series_math import latest, trailing_window

logger = logging.getLogger("tunisia-dashboard")

Window = Tuple[int, int]
DashboardDataset = Mapping[str, Series]
Fetcher = Callable[[str, int, int], Series]


class PartialDatasetFailure(RuntimeError):
    """One or more indicator fetches failed; no dataset is produced."""

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures: Dict[str, BaseException] = dict(failures)
        keys = ", ".join(sorted(self.failures))
        super().__init__(f"failed to fetch indicator(s): {keys}")

    @property
    def failed_keys(self) -> list:
        return sorted(self.failures)


def default_window(settings: Optional[DashboardSettings] = None) -> Window:
    settings = settings or load_settings()
    return trailing_window(settings.window_years)


def _default_fetcher(settings: DashboardSettings) -> Fetcher:
    def fetch(code: str, start: int, end: int) -> Series:
        # resolved at call time so tests can monkeypatch wb_provider.fetch_series
        return wb_provider.fetch_series(code, start, end, settings=settings)

    return fetch


def compose(
    catalog: Mapping[str, str],
    window: Optional[Window] = None,
    *,
    settings: Optional[DashboardSettings] = None,
    fetch: Optional[Fetcher] = None,
) -> DashboardDataset:
    """
    Fetch every catalog entry concurrently and join the results into a
    read-only {key -> Series} mapping.

    All-or-nothing: the first failure cancels fetches that have not started,
    waits for the in-flight ones, then raises PartialDatasetFailure naming
    every key that failed.
    """
    settings = settings or load_settings()
    start, end = window or default_window(settings)
    # invalid windows raise ValueError before any fetch starts
    wb_provider.validate_window(start, end)
    fetch = fetch or _default_fetcher(settings)

    if not catalog:
        return MappingProxyType({})

    started = _time.time()
    results: Dict[str, Series] = {}
    failures: Dict[str, BaseException] = {}

    workers = max(1, min(len(catalog), settings.max_workers))
    with _futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futs: Dict[_futures.Future, str] = {
            ex.submit(fetch, code, start, end): key for key, code in catalog.items()
        }
        pending = set(futs)
        while pending:
            done, pending = _futures.wait(pending, return_when=_futures.FIRST_EXCEPTION)
            for fut in done:
                key = futs[fut]
                exc = fut.exception()
                if exc is not None:
                    failures[key] = exc
                else:
                    results[key] = fut.result()
            if failures and pending:
                for fut in pending:
                    fut.cancel()
                # cancelled futures complete immediately; in-flight ones are drained
                done, pending = _futures.wait(pending)
                for fut in done:
                    if fut.cancelled():
                        continue
                    exc = fut.exception()
                    if exc is not None:
                        failures[futs[fut]] = exc

    if failures:
        logger.warning(
            "compose failed | failed=%s | elapsed=%.2fs",
            ",".join(sorted(failures)),
            _time.time() - started,
        )
        raise PartialDatasetFailure(failures)

    logger.info("compose done | keys=%d | window=%d:%d | elapsed=%.2fs", len(results), start, end, _time.time() - started)
    # keyed by catalog order for readability; callers must not rely on it
    return MappingProxyType({key: results[key] for key in catalog})


# -----------------------------------------------------------------------------
# Presentation payload
# -----------------------------------------------------------------------------

def build_dashboard(
    settings: Optional[DashboardSettings] = None,
    window: Optional[Window] = None,
) -> Dict[str, Any]:
    """Compose the catalog and attach display metadata, in catalog display order."""
    settings = settings or load_settings()
    start, end = window or default_window(settings)
    dataset = compose(settings.catalog_codes(), (start, end), settings=settings)

    codes = get_country_codes(settings.country)
    name = codes.get("name") or settings.country

    indicators = []
    for key, spec in settings.catalog.items():
        series = list(dataset[key])
        indicators.append(
            {
                "key": key,
                "code": spec["code"],
                "label": spec["label"],
                "description": spec["description"],
                "color": spec["color"],
                "unit": spec["unit"],
                "series": series,
                "latest": latest(series),
            }
        )

    return {
        "title": f"{name} Dashboard",
        "country": {"name": name, "iso_alpha_2": codes.get("iso_alpha_2"), "iso_alpha_3": settings.country},
        "window": {"start": start, "end": end},
        "source": "World Bank WDI",
        "indicators": indicators,
    }
