# tunisia_dashboard/main.py
from __future__ import annotations

import importlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.routing import APIRoute

from tunisia_dashboard.config import load_settings
from tunisia_dashboard.providers.wb_provider import close_client

logger = logging.getLogger("tunisia-dashboard")
logging.basicConfig(level=logging.INFO)

# --- keep operation_id stable (avoid FastAPI auto-dedupe renaming) ----------
def _fixed_unique_id(route: APIRoute) -> str:
    return route.operation_id or f"{route.name}_{route.path}".strip("/").replace("/", "_")

@asynccontextmanager
async def _lifespan(_: FastAPI):
    yield
    close_client()


app = FastAPI(
    title="Tunisia Dashboard API",
    description="World Bank macroeconomic series for the Tunisia dashboard",
    version="2026.10.19",
    generate_unique_id_function=_fixed_unique_id,
    lifespan=_lifespan,
)

_MOUNTED = []


def _include(prefix: str, module_path: str) -> None:
    """Import a router module and include its `router`."""
    mod = importlib.import_module(module_path)
    router = getattr(mod, "router", None)
    if router is None:
        raise RuntimeError(f"module {module_path} has no `router`")
    app.include_router(router)
    _MOUNTED.append(prefix)
    logger.info("[init] %s router mounted from: %s", prefix, module_path)


_include("dashboard", "tunisia_dashboard.routes.dashboard")


@app.get("/")
def root():
    settings = load_settings()
    return {
        "ok": True,
        "country": settings.country,
        "indicators": list(settings.catalog),
        "routers": list(_MOUNTED),
        "hint": "GET /v1/dashboard for every series, /v1/indicators/{key}/export.csv for downloads",
    }


@app.get("/healthz")
def healthz():
    # keep this super fast
    return {"status": "ok"}
