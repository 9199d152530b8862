# main.py — entrypoint for `uvicorn main:app`
from tunisia_dashboard.main import app

__all__ = ["app"]
