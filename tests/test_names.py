"""Scheme-name canonicalization and display cleaning."""

import pytest

from etl.names import canonicalize, clean_display

SAMPLES = [
    "ABC Fund - Reg - Growth",
    "XYZ Fund-Reg",
    "  Axis  Blue-chip   Fund (G) ",
    "HDFC Top 100 Fund - Reg - Gth",
    "Delta Liquid Fund - Regular",
    "** PQR Fund - Regular **",
    "Growth",
    "SBI Equity Hybrid Fund - Reg - Growth (Re-launched",
    "",
]


def test_canonicalize_lowercases_and_strips_punctuation():
    assert canonicalize("HDFC Equity Growth Fund") == "hdfc equity growth fund"
    assert canonicalize("  Axis  Blue-chip   Fund (G) ") == "axis bluechip fund g"
    assert canonicalize("Alpha_Fund!") == "alphafund"


@pytest.mark.parametrize("raw", SAMPLES)
def test_canonicalize_is_idempotent(raw):
    assert canonicalize(canonicalize(raw)) == canonicalize(raw)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("ABC Fund - Reg - Growth", "ABC Fund"),
        ("XYZ Fund-Reg", "XYZ Fund"),
        ("HDFC Top 100 Fund - Reg - Gth", "HDFC Top 100 Fund"),
        ("Delta Liquid Fund - Regular", "Delta Liquid Fund"),
        ("** PQR Fund - Regular **", "PQR Fund"),
        ("Axis Growth Opportunities Fund - Reg - Growth", "Axis Growth Opportunities Fund"),
        ("Plain Fund", "Plain Fund"),
    ],
)
def test_clean_display_removes_plan_boilerplate(raw, expected):
    assert clean_display(raw) == expected


def test_clean_display_keeps_name_made_only_of_boilerplate():
    assert clean_display("Growth") == "Growth"


@pytest.mark.parametrize("raw", SAMPLES)
def test_clean_display_is_stable_on_second_application(raw):
    once = clean_display(raw)
    assert clean_display(once) == once
