"""Tests for the regulatory tables and year selection."""

from decimal import Decimal

import pytest

from fiscalcheck.domain.tables import (
    IRPEF_BRACKETS,
    LATEST_YEAR,
    TABLES_2024,
    TABLES_2025,
    RegulatoryTables,
    TaxBracket,
    tables_for_year,
)


def test_exact_year_is_selected():
    assert tables_for_year(2024) is TABLES_2024
    assert tables_for_year(2025) is TABLES_2025


def test_later_year_falls_back_to_most_recent_earlier():
    assert tables_for_year(2031).year == LATEST_YEAR


def test_year_before_any_table_uses_earliest():
    assert tables_for_year(1999) is TABLES_2024


def test_none_selects_latest():
    assert tables_for_year(None).year == LATEST_YEAR


def test_contribution_ceiling_is_versioned():
    assert TABLES_2024.contribution_ceiling == Decimal("119650")
    assert TABLES_2025.contribution_ceiling == Decimal("120607")


def test_ccnl_lookup_is_case_insensitive():
    sector = TABLES_2025.ccnl_sector("  Commercio ")
    assert sector is not None
    assert sector.level(1).minimum_wage == Decimal("1200")
    assert sector.level(" 1 ").minimum_wage == Decimal("1200")


def test_public_sector_levels_are_alphanumeric():
    sector = TABLES_2025.ccnl_sector("pubblico")
    assert sector.level("c1").minimum_wage == Decimal("2200")
    assert sector.level("Z9") is None


def test_unknown_sector_returns_none():
    assert TABLES_2025.ccnl_sector("agricoltura") is None
    assert TABLES_2025.ccnl_sector(None) is None


def test_monthly_overtime_cap():
    assert TABLES_2025.ccnl_sector("edilizia").monthly_overtime_cap == Decimal("15")


def test_bracket_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        TaxBracket(lower=Decimal("100"), upper=Decimal("50"), rate=Decimal("10"))


def test_bracket_rejects_negative_rate():
    with pytest.raises(ValueError):
        TaxBracket(lower=Decimal("0"), upper=None, rate=Decimal("-1"))


def _tables_with(brackets) -> RegulatoryTables:
    return RegulatoryTables(
        year=2099,
        vat_rates=TABLES_2025.vat_rates,
        agricultural_vat_rates=TABLES_2025.agricultural_vat_rates,
        irpef_brackets=brackets,
        employment_deduction=TABLES_2025.employment_deduction,
        contribution_rates=TABLES_2025.contribution_rates,
        contribution_ceiling=TABLES_2025.contribution_ceiling,
        low_income_bonus=TABLES_2025.low_income_bonus,
        low_income_bonus_ceiling=TABLES_2025.low_income_bonus_ceiling,
        fringe_benefit_limit=TABLES_2025.fringe_benefit_limit,
        fringe_benefit_limit_with_children=TABLES_2025.fringe_benefit_limit_with_children,
        flat_rate_revenue_ceiling=TABLES_2025.flat_rate_revenue_ceiling,
        flat_rate_substitute_tax_rate=TABLES_2025.flat_rate_substitute_tax_rate,
        cash_vat_turnover_ceiling=TABLES_2025.cash_vat_turnover_ceiling,
    )


def test_tables_accept_contiguous_brackets():
    assert _tables_with(IRPEF_BRACKETS).year == 2099


def test_tables_reject_gap_between_brackets():
    brackets = (
        TaxBracket(lower=Decimal("0"), upper=Decimal("10000"), rate=Decimal("20")),
        TaxBracket(lower=Decimal("12000"), upper=None, rate=Decimal("30")),
    )
    with pytest.raises(ValueError, match="contiguous"):
        _tables_with(brackets)


def test_tables_reject_bounded_last_bracket():
    brackets = (TaxBracket(lower=Decimal("0"), upper=Decimal("10000"), rate=Decimal("20")),)
    with pytest.raises(ValueError, match="unbounded"):
        _tables_with(brackets)


def test_tables_reject_empty_brackets():
    with pytest.raises(ValueError):
        _tables_with(())
