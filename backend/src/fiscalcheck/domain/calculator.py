"""
Progressive tax and deduction arithmetic.

Pure functions over Decimal amounts. Rounding to cents happens only where a
value is reported or compared, never on intermediate bracket sums.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .tables import DeductionTable, RegulatoryTables, TaxBracket


CENT = Decimal("0.01")
MONTHS_PER_YEAR = 12


def round_money(value: Decimal | int | str) -> Decimal:
    """Round an amount to cents using commercial rounding."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def monthly(annual: Decimal) -> Decimal:
    """Convert an annual amount to its monthly share."""
    return annual / MONTHS_PER_YEAR


def annualize(monthly_amount: Decimal) -> Decimal:
    return monthly_amount * MONTHS_PER_YEAR


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Share of `part` in `whole`, in percent. Zero when `whole` is zero."""
    if whole == 0:
        return Decimal("0")
    return part / whole * 100


def compute_vat(taxable: Decimal, rate: Decimal) -> Decimal:
    """VAT due on a taxable amount at a percent rate, rounded to cents."""
    return round_money(taxable * rate / 100)


def compute_progressive_tax(annual_taxable: Decimal, brackets: Iterable[TaxBracket]) -> Decimal:
    """
    Compute progressive tax over ascending, non-overlapping brackets.

    Each bracket whose lower bound is below the taxable amount taxes the
    slice `min(taxable, upper) - lower` at its rate. The unbounded last
    bracket covers everything above the previous bound.

    Example:
        >>> compute_progressive_tax(Decimal("30000"), IRPEF_BRACKETS)
        Decimal('7140')
    """
    if annual_taxable <= 0:
        return Decimal("0")

    tax = Decimal("0")
    for bracket in brackets:
        if annual_taxable <= bracket.lower:
            break
        ceiling = annual_taxable if bracket.upper is None else min(annual_taxable, bracket.upper)
        tax += (ceiling - bracket.lower) * bracket.rate / 100
    return tax


def compute_employment_deduction(annual_taxable: Decimal, table: DeductionTable) -> Decimal:
    """
    Employment income deduction for an annual income.

    The base deduction is reduced by `phase_out_rate` for every euro above
    the reference income, floored at zero, and not granted above
    `max_income`.
    """
    if annual_taxable > table.max_income:
        return Decimal("0")
    reduction = max(Decimal("0"), (annual_taxable - table.reference_income) * table.phase_out_rate)
    return max(Decimal("0"), table.base - reduction)


def compute_low_income_bonus(annual_taxable: Decimal, tables: RegulatoryTables) -> Decimal:
    """Flat annual bonus granted only up to its income ceiling."""
    if annual_taxable <= tables.low_income_bonus_ceiling:
        return tables.low_income_bonus
    return Decimal("0")


def compute_net_irpef(
    annual_taxable: Decimal,
    tables: RegulatoryTables,
    personal_deductions: Decimal = Decimal("0"),
) -> Decimal:
    """Annual IRPEF after employment and personal deductions, floored at zero."""
    gross_tax = compute_progressive_tax(annual_taxable, tables.irpef_brackets)
    deductions = compute_employment_deduction(annual_taxable, tables.employment_deduction)
    return max(Decimal("0"), gross_tax - deductions - personal_deductions)
