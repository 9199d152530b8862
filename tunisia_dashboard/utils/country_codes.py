# tunisia_dashboard/utils/country_codes.py
from __future__ import annotations
from functools import lru_cache
from typing import Optional, Dict, Tuple

import pycountry

# Fast path for the dashboard's home country; everything else goes through pycountry.
_BUILTIN: Dict[str, Dict[str, str]] = {
    "TUN": {"name": "Tunisia", "iso_alpha_2": "TN", "iso_alpha_3": "TUN", "iso_numeric": "788"},
}

_FIELDS = ("name", "iso_alpha_2", "iso_alpha_3", "iso_numeric")


@lru_cache(maxsize=64)
def _lookup(key: str) -> Tuple[Optional[str], ...]:
    # cached as a tuple so callers never share a mutable result
    if key.upper() in _BUILTIN:
        row = _BUILTIN[key.upper()]
        return tuple(row[f] for f in _FIELDS)

    try:
        m = pycountry.countries.lookup(key)
    except LookupError:
        upper = key.upper()
        return (upper, None, upper if len(upper) == 3 else None, None)

    return (getattr(m, "common_name", None) or m.name, m.alpha_2, m.alpha_3, m.numeric)


def get_country_codes(code: str) -> Dict[str, Optional[str]]:
    """
    Return a dict with: name, iso_alpha_2, iso_alpha_3, iso_numeric (as strings)
    for an ISO2/ISO3 code or a country name. Never raises; returns None values on failure.
    """
    if not code or not code.strip():
        return dict.fromkeys(_FIELDS)
    return dict(zip(_FIELDS, _lookup(code.strip())))
