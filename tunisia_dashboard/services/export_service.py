# tunisia_dashboard/services/export_service.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence
import io

from matplotlib.figure import Figure

from tunisia_dashboard.services.indicator_catalog import DEFAULT_COLOR


def format_number(x: float) -> str:
    """Render a float the way a browser stringifies a number (1.0 -> "1", 1e-05 -> "0.00001")."""
    v = float(x)
    if v.is_integer() and abs(v) < 1e21:
        return str(int(v))
    r = repr(v)
    if "e" not in r:
        return r
    mantissa, exp = r.split("e")
    e = int(exp)
    if -7 < e < 21:
        return format(Decimal(r), "f")
    return f"{mantissa}e{e:+d}"


# ---------------------------
# CSV & PNG export
# ---------------------------
def series_to_csv(series: Sequence[Mapping[str, Any]]) -> str:
    lines = ["Year,Value"]
    lines.extend(f"{row['year']},{format_number(row['value'])}" for row in series)
    return "\n".join(lines)


def series_to_png(series: Sequence[Mapping[str, Any]], title: str, color: str = DEFAULT_COLOR) -> bytes:
    """
    Line chart of one series as PNG bytes. Uses a bare Figure (no pyplot
    state), so it is safe to call from request threads.
    """
    fig = Figure(figsize=(8, 3.5))
    ax = fig.add_subplot(111)
    years = [str(row["year"]) for row in series]
    values = [float(row["value"]) for row in series]
    ax.plot(years, values, color=color, label=title, marker="o")
    ax.set_title(title)
    ax.set_xlabel("Year")
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.legend(loc="best")

    out = io.BytesIO()
    fig.tight_layout()
    fig.savefig(out, format="png", dpi=160)
    return out.getvalue()


def table_rows(series: Sequence[Mapping[str, Any]]) -> List[Dict[str, str]]:
    return [{"year": str(row["year"]), "value": f"{float(row['value']):.2f}"} for row in series]


def export_filename(label: str, ext: str) -> str:
    # quotes would break the Content-Disposition header
    safe = label.replace('"', "").replace("\n", " ").strip() or "series"
    return f"{safe}.{ext}"
