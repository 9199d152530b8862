from __future__ import annotations
from datetime import date
from typing import Optional, Sequence, Tuple, Mapping, Any


def latest(series: Sequence[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    # assumes the series is already ascending by year
    if not series:
        return None
    return series[-1]


def trailing_window(years: int, today: Optional[date] = None) -> Tuple[int, int]:
    """(current_year - years, current_year); the end year is included."""
    end = (today or date.today()).year
    return (end - years, end)
