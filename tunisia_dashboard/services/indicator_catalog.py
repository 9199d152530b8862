"""
tunisia_dashboard/services/indicator_catalog.py

Declarative catalog of the indicators shown on the dashboard.

This module does not call any APIs. It only describes, for each logical key,
which World Bank indicator code backs it and how presentation should label
it. Dict order is the display order of the dashboard cards.

dashboard_service.py receives this catalog through DashboardSettings rather
than importing it directly, so tests can compose arbitrary catalogs.
"""

from __future__ import annotations

from typing import Dict, TypedDict


DEFAULT_COLOR = "#8884d8"


class IndicatorSpec(TypedDict):
    """Configuration for a single dashboard indicator."""

    key: str          # logical key, e.g. "gdp"
    code: str         # World Bank indicator code, e.g. "NY.GDP.MKTP.CD"
    label: str        # human-friendly chart / table title
    description: str  # tooltip text
    color: str        # line color
    unit: str         # "USD", "percent", "people"


def _spec(key: str, code: str, label: str, unit: str, description: str) -> IndicatorSpec:
    return {
        "key": key,
        "code": code,
        "label": label,
        "description": description,
        "color": DEFAULT_COLOR,
        "unit": unit,
    }


# -----------------------------------------------------------------------------
# Indicator Catalog
# -----------------------------------------------------------------------------

INDICATOR_CATALOG: Dict[str, IndicatorSpec] = {
    "gdp": _spec(
        "gdp",
        "NY.GDP.MKTP.CD",
        "GDP (Current US$)",
        "USD",
        "Gross Domestic Product (GDP) is the total monetary value of all goods and "
        "services produced within a country's borders in a specific time period. "
        "It serves as a comprehensive scorecard of a country's economic health.",
    ),
    "gdpGrowth": _spec(
        "gdpGrowth",
        "NY.GDP.MKTP.KD.ZG",
        "GDP Growth (annual %)",
        "percent",
        "GDP Growth rate represents the percentage change in a country's GDP from "
        "one year to the next. It's a key indicator of economic expansion or contraction.",
    ),
    "inflation": _spec(
        "inflation",
        "FP.CPI.TOTL.ZG",
        "Inflation (annual %)",
        "percent",
        "Inflation measures the rate at which the general level of prices for goods "
        "and services is rising, consequently eroding purchasing power. It's typically "
        "expressed as an annual percentage change.",
    ),
    "unemployment": _spec(
        "unemployment",
        "SL.UEM.TOTL.ZS",
        "Unemployment (% of total labor force)",
        "percent",
        "The unemployment rate represents the percentage of the labor force that is "
        "without work but available for and seeking employment. It's a crucial "
        "indicator of the economy's performance.",
    ),
    "fdi": _spec(
        "fdi",
        "BX.KLT.DINV.WD.GD.ZS",
        "Foreign Direct Investment (% of GDP)",
        "percent",
        "Foreign Direct Investment (FDI) represents the net inflows of investment to "
        "acquire a lasting management interest in an enterprise operating in an economy "
        "other than that of the investor. It's expressed as a percentage of GDP.",
    ),
    "population": _spec(
        "population",
        "SP.POP.TOTL",
        "Population",
        "people",
        "Total population counts all residents regardless of legal status or "
        "citizenship. The values shown are midyear estimates. Population growth can "
        "impact various economic factors.",
    ),
}


def catalog_metadata(catalog: Dict[str, IndicatorSpec]) -> list:
    """Catalog entries as plain dicts, display order preserved."""
    return [dict(spec) for spec in catalog.values()]
