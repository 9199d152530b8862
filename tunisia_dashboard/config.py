# tunisia_dashboard/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict
import os

from tunisia_dashboard.services.indicator_catalog import INDICATOR_CATALOG, IndicatorSpec

# -------------------------------------------------------------------
# CONFIG (env overrides, read once per load_settings() call)
# -------------------------------------------------------------------
WB_API_BASE = "https://api.worldbank.org/v2"
DEFAULT_COUNTRY = "TUN"
DEFAULT_WINDOW_YEARS = 10
DEFAULT_CACHE_MAX_AGE = 86400  # 24h freshness hint
DEFAULT_PER_PAGE = 100
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_WORKERS = 6


@dataclass(frozen=True)
class DashboardSettings:
    api_base: str = WB_API_BASE
    country: str = DEFAULT_COUNTRY
    window_years: int = DEFAULT_WINDOW_YEARS
    cache_max_age: int = DEFAULT_CACHE_MAX_AGE
    per_page: int = DEFAULT_PER_PAGE
    timeout: float = DEFAULT_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    debug: bool = False
    catalog: Dict[str, IndicatorSpec] = field(default_factory=lambda: dict(INDICATOR_CATALOG))

    def catalog_codes(self) -> Dict[str, str]:
        """Logical key -> World Bank indicator code, in display order."""
        return {key: spec["code"] for key, spec in self.catalog.items()}


def load_settings() -> DashboardSettings:
    return DashboardSettings(
        api_base=os.getenv("WB_API_BASE", WB_API_BASE).rstrip("/"),
        country=os.getenv("DASHBOARD_COUNTRY", DEFAULT_COUNTRY).strip().upper(),
        window_years=int(os.getenv("DASHBOARD_WINDOW_YEARS", str(DEFAULT_WINDOW_YEARS))),
        cache_max_age=int(os.getenv("DASHBOARD_CACHE_MAX_AGE", str(DEFAULT_CACHE_MAX_AGE))),
        per_page=int(os.getenv("WB_PER_PAGE", str(DEFAULT_PER_PAGE))),
        timeout=float(os.getenv("WB_TIMEOUT", str(DEFAULT_TIMEOUT))),
        max_workers=int(os.getenv("DASHBOARD_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))),
        debug=os.getenv("WB_DEBUG", "0") == "1",
    )
