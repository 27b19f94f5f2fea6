"""Tests for the progressive tax and deduction arithmetic."""

from decimal import Decimal

import pytest

from fiscalcheck.domain.calculator import (
    compute_employment_deduction,
    compute_low_income_bonus,
    compute_net_irpef,
    compute_progressive_tax,
    compute_vat,
    percent_of,
    round_money,
)
from fiscalcheck.domain.tables import IRPEF_BRACKETS, TABLES_2025


@pytest.mark.parametrize(
    "taxable,expected",
    [
        ("0", "0"),
        ("-500", "0"),
        ("10000", "2300"),
        ("28000", "6440"),
        ("30000", "7140"),
        ("50000", "14140"),
        ("60000", "18440"),
    ],
)
def test_progressive_tax(taxable, expected):
    assert compute_progressive_tax(Decimal(taxable), IRPEF_BRACKETS) == Decimal(expected)


def test_progressive_tax_is_monotonic():
    previous = Decimal("0")
    for income in range(0, 120001, 2500):
        tax = compute_progressive_tax(Decimal(income), IRPEF_BRACKETS)
        assert tax >= previous
        previous = tax


def test_round_money_is_half_up():
    assert round_money(Decimal("1.005")) == Decimal("1.01")
    assert round_money(Decimal("1.004")) == Decimal("1.00")


def test_compute_vat():
    assert compute_vat(Decimal("1000"), Decimal("22")) == Decimal("220.00")
    assert compute_vat(Decimal("99.99"), Decimal("10")) == Decimal("10.00")


def test_percent_of_zero_whole():
    assert percent_of(Decimal("10"), Decimal("0")) == Decimal("0")


def test_employment_deduction_phases_out():
    table = TABLES_2025.employment_deduction
    assert compute_employment_deduction(Decimal("20000"), table) == Decimal("1880")
    assert compute_employment_deduction(Decimal("30000"), table) == Decimal("1660.00")
    assert compute_employment_deduction(Decimal("60000"), table) == Decimal("0")


def test_employment_deduction_is_floored_at_zero():
    table = TABLES_2025.employment_deduction
    assert compute_employment_deduction(Decimal("54999"), table) == Decimal("0")


def test_low_income_bonus_ceiling_is_inclusive():
    assert compute_low_income_bonus(Decimal("28000"), TABLES_2025) == Decimal("600")
    assert compute_low_income_bonus(Decimal("28001"), TABLES_2025) == Decimal("0")


def test_net_irpef():
    assert compute_net_irpef(Decimal("30000"), TABLES_2025) == Decimal("5480.00")


def test_net_irpef_subtracts_personal_deductions_and_floors():
    assert compute_net_irpef(Decimal("30000"), TABLES_2025, Decimal("480")) == Decimal("5000.00")
    assert compute_net_irpef(Decimal("8000"), TABLES_2025) == Decimal("0")
