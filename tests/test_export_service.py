import pytest

from tunisia_dashboard.services.export_service import (
    export_filename,
    format_number,
    series_to_csv,
    series_to_png,
    table_rows,
)


def test_csv_contract():
    """CSV is the header plus one year,value line per sample."""
    series = [{"year": "2019", "value": 1}, {"year": "2020", "value": 2.5}]
    assert series_to_csv(series) == "Year,Value\n2019,1\n2020,2.5"


def test_csv_empty_series_is_header_only():
    """An empty series exports just the header."""
    assert series_to_csv([]) == "Year,Value"


@pytest.mark.parametrize(
    "value,expected",
    [
        (0.0, "0"),
        (1.0, "1"),
        (-3.0, "-3"),
        (2.5, "2.5"),
        (46_800_000_000.0, "46800000000"),
        (0.00001, "0.00001"),
        (1.5e-07, "1.5e-7"),
        (1e21, "1e+21"),
    ],
)
def test_format_number_matches_browser_rendering(value, expected):
    """Numbers render the way the browser dashboard rendered them."""
    assert format_number(value) == expected


def test_table_rows_two_decimals():
    """Table values are fixed to two decimals."""
    rows = table_rows([{"year": "2019", "value": 0}, {"year": "2020", "value": 3.14159}])
    assert rows == [{"year": "2019", "value": "0.00"}, {"year": "2020", "value": "3.14"}]


def test_png_export_is_png():
    """Chart export produces PNG bytes."""
    png = series_to_png([{"year": "2019", "value": 1.0}, {"year": "2020", "value": 2.5}], "GDP (Current US$)")
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_png_export_handles_empty_series():
    """An empty series still renders a chart."""
    assert series_to_png([], "Population").startswith(b"\x89PNG")


def test_export_filename():
    """Download names are the label plus extension, without quotes."""
    assert export_filename("Inflation (annual %)", "csv") == "Inflation (annual %).csv"
    assert export_filename('a"b', "png") == "ab.png"
