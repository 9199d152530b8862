import threading
import time
from datetime import date

import pytest

from tunisia_dashboard.config import DashboardSettings
from tunisia_dashboard.providers import wb_provider
from tunisia_dashboard.providers.wb_provider import UpstreamUnavailable
from tunisia_dashboard.services import dashboard_service
from tunisia_dashboard.services.dashboard_service import PartialDatasetFailure, build_dashboard, compose
from tunisia_dashboard.services.indicator_catalog import INDICATOR_CATALOG
from tunisia_dashboard.utils.series_math import trailing_window

SETTINGS = DashboardSettings()
CATALOG = {"gdp": "NY.GDP.MKTP.CD", "inflation": "FP.CPI.TOTL.ZG", "population": "SP.POP.TOTL"}


def _series_for(code):
    return [{"year": "2020", "value": float(len(code))}, {"year": "2021", "value": 1.0}]


def test_compose_returns_one_entry_per_key():
    """Every catalog key maps to the series fetched for its code."""
    calls = []

    def fetch(code, start, end):
        calls.append((code, start, end))
        return _series_for(code)

    dataset = compose(CATALOG, (2020, 2021), settings=SETTINGS, fetch=fetch)

    assert set(dataset.keys()) == set(CATALOG.keys())
    for key, code in CATALOG.items():
        assert dataset[key] == _series_for(code)
    assert sorted(calls) == sorted((code, 2020, 2021) for code in CATALOG.values())


def test_compose_result_is_read_only():
    """The composed dataset cannot be mutated after construction."""
    dataset = compose(CATALOG, (2020, 2021), settings=SETTINGS, fetch=lambda c, s, e: [])
    with pytest.raises(TypeError):
        dataset["extra"] = []


def test_compose_runs_fetches_concurrently():
    """All fetches are in flight at the same time."""
    barrier = threading.Barrier(len(CATALOG), timeout=5)

    def fetch(code, start, end):
        # deadlocks (BrokenBarrierError) unless every fetch is in flight at once
        barrier.wait()
        return []

    dataset = compose(CATALOG, (2020, 2021), settings=SETTINGS, fetch=fetch)
    assert len(dataset) == len(CATALOG)


def test_compose_single_failure_names_key():
    """One failed fetch fails the whole composition and names its key."""
    def fetch(code, start, end):
        if code == "FP.CPI.TOTL.ZG":
            raise UpstreamUnavailable("down", code)
        return _series_for(code)

    with pytest.raises(PartialDatasetFailure) as err:
        compose(CATALOG, (2020, 2021), settings=SETTINGS, fetch=fetch)

    assert err.value.failed_keys == ["inflation"]
    assert isinstance(err.value.failures["inflation"], UpstreamUnavailable)
    assert "inflation" in str(err.value)


def test_compose_cancels_queued_fetches_after_failure():
    """Fetches still queued when one fails are never started."""
    catalog = {f"k{i}": f"CODE.{i}" for i in range(6)}
    calls = []
    lock = threading.Lock()

    def fetch(code, start, end):
        with lock:
            calls.append(code)
        if code == "CODE.0":
            raise UpstreamUnavailable("down", code)
        time.sleep(0.2)
        return []

    settings = DashboardSettings(max_workers=1)
    with pytest.raises(PartialDatasetFailure) as err:
        compose(catalog, (2020, 2021), settings=settings, fetch=fetch)

    assert err.value.failed_keys == ["k0"]
    assert len(calls) < len(catalog)


def test_compose_empty_catalog():
    """An empty catalog composes to an empty mapping."""
    assert dict(compose({}, (2020, 2021), settings=SETTINGS, fetch=lambda c, s, e: [])) == {}


def test_compose_default_window(monkeypatch):
    """Without a window, compose uses the trailing default window."""
    seen = []
    monkeypatch.setattr(dashboard_service, "default_window", lambda settings=None: (2015, 2025))

    def fetch(code, start, end):
        seen.append((start, end))
        return []

    compose({"gdp": "NY.GDP.MKTP.CD"}, settings=SETTINGS, fetch=fetch)
    assert seen == [(2015, 2025)]


def test_trailing_window_covers_current_year():
    """The default window ends on, and includes, the current year."""
    assert trailing_window(10, date(2026, 10, 19)) == (2016, 2026)


def test_build_dashboard_payload(monkeypatch):
    """The presentation payload carries metadata and series in display order."""
    def fake_fetch(code, start, end, *, settings=None, client=None):
        return [{"year": str(start), "value": 1.0}, {"year": str(end), "value": 2.0}]

    monkeypatch.setattr(wb_provider, "fetch_series", fake_fetch)

    payload = build_dashboard(SETTINGS, (2016, 2026))

    assert payload["title"] == "Tunisia Dashboard"
    assert payload["country"]["iso_alpha_3"] == "TUN"
    assert payload["window"] == {"start": 2016, "end": 2026}
    assert [ind["key"] for ind in payload["indicators"]] == list(INDICATOR_CATALOG)
    gdp = payload["indicators"][0]
    assert gdp["code"] == "NY.GDP.MKTP.CD"
    assert gdp["label"] == "GDP (Current US$)"
    assert gdp["latest"] == {"year": "2026", "value": 2.0}


def test_build_dashboard_propagates_failure(monkeypatch):
    """build_dashboard surfaces the composer's failure unchanged."""
    def fake_fetch(code, start, end, *, settings=None, client=None):
        if code == "SP.POP.TOTL":
            raise wb_provider.MalformedResponse("bad shape", code)
        return []

    monkeypatch.setattr(wb_provider, "fetch_series", fake_fetch)

    with pytest.raises(PartialDatasetFailure) as err:
        build_dashboard(SETTINGS, (2016, 2026))
    assert err.value.failed_keys == ["population"]


@pytest.mark.parametrize("window", [(2022, 2020), (1850, 2020), (2020, 2200)])
def test_compose_rejects_bad_window_before_fetching(window):
    """A bad window is the caller's ValueError, raised before any fetch starts."""
    calls = []

    def fetch(code, start, end):
        calls.append(code)
        return []

    with pytest.raises(ValueError):
        compose(CATALOG, window, settings=SETTINGS, fetch=fetch)
    assert calls == []
