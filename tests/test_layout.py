# WORKFLOW: Header detection and column mapping tests.
# Scenarios:
# 1. Fixed strategy picks the full (19) or reduced (16) positional layout from the "7 Days" header at column 5
# 2. Header strategy classifies header texts through the rule table
# 3. Fallback "NAV" mapping, overflow columns, positional name/date defaults
# 4. Missing header inside the scan window raises HeaderNotFoundError

import pytest

from conftest import FULL_HEADER, REDUCED_HEADER
from etl.errors import HeaderNotFoundError, LayoutError, SchemeColumnNotFoundError
from etl.layout import (
    FULL_LAYOUT,
    REDUCED_LAYOUT,
    classify_header,
    find_header_row,
    infer_fixed_layout,
    infer_header_layout,
    infer_layout,
    map_header_columns,
)
from etl.workbook import SheetGrid


def _grid(header, preamble=2, name="Equity Large Cap"):
    rows = [["Equity Large Cap"], ["Returns as on 31-May-2025"]][:preamble]
    rows.append(header)
    rows.append(["Alpha Fund", "2010-01-04"] + [1.0] * (len(header) - 2))
    return SheetGrid.from_values(name, rows)


class TestFixedStrategy:
    def test_short_horizon_header_selects_full_layout(self):
        layout = infer_fixed_layout(_grid(FULL_HEADER))

        assert layout.header_row == 2
        assert layout.variant == "full"
        assert len(layout.columns) == 19
        assert layout.columns["days_7"] == 5
        assert layout.columns["years_10"] == 18
        assert [name for name, _ in sorted(layout.columns.items(), key=lambda item: item[1])] == FULL_LAYOUT

    def test_missing_short_horizon_header_selects_reduced_layout(self):
        layout = infer_fixed_layout(_grid(REDUCED_HEADER))

        assert layout.variant == "reduced"
        assert len(layout.columns) == 16
        assert layout.columns["month_1"] == 5
        assert "days_7" not in layout.columns
        assert [name for name, _ in sorted(layout.columns.items(), key=lambda item: item[1])] == REDUCED_LAYOUT

    def test_header_must_mention_scheme_name_in_first_column(self):
        grid = SheetGrid.from_values("Odd", [["", "Scheme Name"], ["x", "y"]])
        with pytest.raises(HeaderNotFoundError):
            infer_fixed_layout(grid)


class TestHeaderStrategy:
    def test_full_header_maps_to_positional_layout(self):
        layout = infer_header_layout(_grid(FULL_HEADER))

        assert layout.header_row == 2
        assert layout.variant == "mapped"
        assert layout.columns == {name: col for col, name in enumerate(FULL_LAYOUT)}
        assert layout.overflow_columns == []

    def test_reduced_header_maps_without_short_horizons(self):
        layout = infer_header_layout(_grid(REDUCED_HEADER))
        assert layout.columns == {name: col for col, name in enumerate(REDUCED_LAYOUT)}

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Scheme Name", "scheme_name"),
            ("Fund Name", "scheme_name"),
            ("Launch Date", "launch_date"),
            ("Since Launch", "since_inception"),
            ("Fund Size (Rs Cr) Apr-25", "fund_size_apr25"),
            ("Fund Size May25", "fund_size_may25"),
            ("Return 3Y", "years_3"),
            ("10 Yrs", "years_10"),
            ("7 Years", "years_7"),
            ("21 Days", "days_21"),
            ("6 Months", "months_6"),
            ("Year to Date", "ytd"),
            ("Sharpe", None),
            ("", None),
        ],
    )
    def test_classify_header(self, text, expected):
        assert classify_header(text) == expected

    def test_bare_nav_is_only_a_fallback(self):
        assert classify_header("NAV") is None
        assert classify_header("NAV", include_fallback=True) == "latest_nav"

    def test_latest_nav_wins_over_bare_nav(self):
        assert map_header_columns(["Scheme Name", "NAV", "Latest NAV"])["latest_nav"] == 2

    def test_bare_nav_used_when_nothing_better(self):
        assert map_header_columns(["Scheme Name", "Launch Date", "NAV"])["latest_nav"] == 2

    def test_each_field_claimed_once(self):
        columns = map_header_columns(["Scheme Name", "1 Year", "1 Yr"])
        assert columns["year_1"] == 1
        assert 2 not in columns.values()

    def test_columns_after_last_mapped_are_overflow(self):
        header = ["Scheme Name", "Launch Date", "Latest NAV", "1 Year", "Sharpe", "Beta"]
        grid = SheetGrid.from_values("Debt", [header, ["Fund", "2020", 1, 2, 3, 4]])

        layout = infer_header_layout(grid)

        assert layout.columns["year_1"] == 3
        assert layout.overflow_columns == [4, 5]

    def test_name_and_date_default_to_first_columns(self):
        grid = SheetGrid.from_values("Index", [["Fund", "Started", "NAV"], ["Alpha", "2020", 10.0]])

        layout = infer_header_layout(grid)

        assert layout.columns["scheme_name"] == 0
        assert layout.columns["launch_date"] == 1
        assert layout.columns["latest_nav"] == 2

    def test_marker_may_sit_in_later_scan_column(self):
        grid = SheetGrid.from_values("Shifted", [["Note"], ["", "", "Fund Name"]])
        assert find_header_row(grid) == 1


def test_header_outside_scan_window_is_not_found():
    rows = [["filler"]] * 15 + [FULL_HEADER]
    grid = SheetGrid.from_values("Deep", rows)

    with pytest.raises(HeaderNotFoundError) as excinfo:
        infer_layout(grid, strategy="header")
    assert excinfo.value.sheet_name == "Deep"

    assert infer_layout(grid, strategy="header", scan_rows=20).header_row == 15


def test_sheet_without_header_raises_for_both_strategies():
    grid = SheetGrid.from_values("Notes", [["Some note"], ["More text"]])
    for strategy in ("header", "fixed"):
        with pytest.raises(HeaderNotFoundError):
            infer_layout(grid, strategy=strategy)


def test_title_row_taking_first_column_has_no_scheme_column():
    grid = SheetGrid.from_values("Debt Liquid", [["Latest NAV and returns as on 31-May-2025"], FULL_HEADER])

    with pytest.raises(SchemeColumnNotFoundError) as excinfo:
        infer_layout(grid, strategy="header")

    assert isinstance(excinfo.value, LayoutError)
    assert excinfo.value.header_row == 0
