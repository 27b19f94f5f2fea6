"""
Fiscal rule checks for electronic invoices.

Each check is a pure function taking the invoice and the rule context and
returning a CheckOutcome. Checks are independent: a mismatch in one never
prevents the others from running.

Design Decisions:
- VAT and totals use an absolute €1 tolerance
- Regime rules dispatch through an exhaustive match on TaxRegime, so a new
  regime without rules fails type checking instead of silently passing
- The flat-rate and cash-VAT ceilings are compared against the single
  invoice taxable amount, a proxy for the issuer's annual revenue
"""

from datetime import date
from decimal import Decimal
from typing import Callable, assert_never

from .calculator import compute_vat
from .identifiers import is_valid_tax_code, is_valid_vat_number
from .models import (
    CheckOutcome,
    Invoice,
    IssueCode,
    RuleContext,
    Severity,
    TaxRegime,
)
from .tolerance import Tolerance, compare


VAT_TOLERANCE = Tolerance.euros("1.00")

# Documents older than this are still valid but worth a second look
STALE_AFTER_YEARS = 5


def check_vat_consistency(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """
    Recompute VAT and total from the taxable amount.

    Rules:
        round(taxable * rate / 100, 2) == declared VAT (±€1)
        taxable + recomputed VAT == declared total (±€1)
    """
    outcome = CheckOutcome()
    computed_vat = compute_vat(invoice.taxable_amount, invoice.vat_rate)

    vat = compare(computed_vat, invoice.vat_amount, VAT_TOLERANCE)
    outcome.record("vat", vat)
    if not vat.within_tolerance:
        outcome.warn(
            IssueCode.VAT_MISMATCH,
            f"VAT mismatch: computed €{vat.theoretical}, declared €{vat.declared}",
            "Check the VAT rate and the taxable amount on the invoice",
            computed=str(vat.theoretical),
            declared=str(vat.declared),
            difference=str(vat.abs_delta),
        )

    expected_total = invoice.taxable_amount + computed_vat
    total = compare(expected_total, invoice.total_amount, VAT_TOLERANCE)
    outcome.record("total", total)
    if not total.within_tolerance:
        outcome.warn(
            IssueCode.TOTAL_MISMATCH,
            f"Total mismatch: expected €{total.theoretical}, declared €{total.declared}",
            "Check for stamp duty, withholdings or missing lines",
            expected=str(total.theoretical),
            declared=str(total.declared),
            difference=str(total.abs_delta),
        )

    return outcome


def _accepted_rates(ctx: RuleContext) -> frozenset[Decimal]:
    if ctx.options.tax_regime is TaxRegime.AGRICULTURAL:
        return ctx.tables.vat_rates | ctx.tables.agricultural_vat_rates
    return ctx.tables.vat_rates


def check_vat_rate(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """Declared VAT rate must be one of the rates in force."""
    outcome = CheckOutcome()
    accepted = _accepted_rates(ctx)
    if invoice.vat_rate not in accepted:
        outcome.warn(
            IssueCode.NON_STANDARD_VAT_RATE,
            f"Non-standard VAT rate {invoice.vat_rate}%",
            f"Valid rates: {', '.join(f'{rate}%' for rate in sorted(ctx.tables.vat_rates))}",
            rate=str(invoice.vat_rate),
        )
    return outcome


def _flat_rate_rules(invoice: Invoice, ctx: RuleContext, outcome: CheckOutcome) -> None:
    if invoice.vat_rate > 0:
        outcome.add(
            IssueCode.FLAT_RATE_VAT_CHARGED,
            Severity.ERROR,
            f"Flat-rate regime invoice charges VAT at {invoice.vat_rate}%",
            "Invoices under the regime forfettario must not charge VAT",
            rate=str(invoice.vat_rate),
        )
    ceiling = ctx.tables.flat_rate_revenue_ceiling
    if invoice.taxable_amount > ceiling:
        outcome.warn(
            IssueCode.FLAT_RATE_REVENUE_CEILING,
            f"Taxable amount €{invoice.taxable_amount} exceeds the €{ceiling} flat-rate ceiling",
            "Verify the annual revenue limit of the regime forfettario",
            taxable=str(invoice.taxable_amount),
            ceiling=str(ceiling),
        )


def _agricultural_rules(invoice: Invoice, ctx: RuleContext, outcome: CheckOutcome) -> None:
    if invoice.vat_rate not in ctx.tables.agricultural_vat_rates:
        outcome.warn(
            IssueCode.AGRICULTURAL_RATE_UNEXPECTED,
            f"VAT rate {invoice.vat_rate}% is not a compensation rate of the agricultural regime",
            "Check the compensation percentage for the goods sold",
            rate=str(invoice.vat_rate),
        )


def _cash_vat_rules(invoice: Invoice, ctx: RuleContext, outcome: CheckOutcome) -> None:
    ceiling = ctx.tables.cash_vat_turnover_ceiling
    if invoice.taxable_amount > ceiling:
        outcome.warn(
            IssueCode.CASH_VAT_TURNOVER_CEILING,
            f"Taxable amount €{invoice.taxable_amount} exceeds the €{ceiling} cash VAT ceiling",
            "Verify eligibility for IVA per cassa",
            taxable=str(invoice.taxable_amount),
            ceiling=str(ceiling),
        )
    if ctx.options.split_payment:
        outcome.warn(
            IssueCode.CASH_VAT_SPLIT_PAYMENT_CONFLICT,
            "Split payment operations are excluded from cash VAT",
            "VAT on split payment invoices follows the ordinary chargeability rules",
        )


def check_regime(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """Apply the rules specific to the issuer's VAT regime."""
    outcome = CheckOutcome()
    regime = ctx.options.tax_regime
    match regime:
        case TaxRegime.ORDINARY:
            pass
        case TaxRegime.FLAT_RATE:
            _flat_rate_rules(invoice, ctx, outcome)
        case TaxRegime.AGRICULTURAL:
            _agricultural_rules(invoice, ctx, outcome)
        case TaxRegime.CASH_VAT:
            _cash_vat_rules(invoice, ctx, outcome)
        case _:
            assert_never(regime)
    return outcome


def check_zero_rate(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """A zero rate needs an exemption basis."""
    outcome = CheckOutcome()
    # The flat-rate regime is itself the exemption basis
    if ctx.options.tax_regime is TaxRegime.FLAT_RATE:
        return outcome
    if invoice.vat_rate == 0 and not ctx.options.exempt_operation:
        outcome.warn(
            IssueCode.ZERO_RATE_UNJUSTIFIED,
            "VAT rate 0% without an exemption flag",
            "Verify the exemption basis (natura) of the operation",
        )
    return outcome


def check_split_payment(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    outcome = CheckOutcome()
    if ctx.options.split_payment and invoice.vat_amount > 0:
        outcome.warn(
            IssueCode.SPLIT_PAYMENT_VERIFY,
            "Split payment enabled on an invoice with VAT",
            "Verify public administration split payment handling",
            vat=str(invoice.vat_amount),
        )
    return outcome


def check_identifiers(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """Checksum the supplier VAT number and the customer tax code when present."""
    outcome = CheckOutcome()
    supplier_vat = invoice.supplier.vat_number
    if supplier_vat and not is_valid_vat_number(supplier_vat):
        outcome.add(
            IssueCode.INVALID_VAT_NUMBER,
            Severity.MEDIUM,
            f"Invalid supplier VAT number: {supplier_vat}",
            "Check the partita IVA against the VIES register",
            field_path="invoice.supplier.vat_number",
        )
    customer_code = invoice.customer.tax_code
    if customer_code and not is_valid_tax_code(customer_code):
        outcome.add(
            IssueCode.INVALID_TAX_CODE,
            Severity.MEDIUM,
            f"Invalid customer tax code: {customer_code}",
            "Check the codice fiscale against the Revenue Agency database",
            field_path="invoice.customer.tax_code",
        )
    return outcome


def check_issue_date(invoice: Invoice, ctx: RuleContext) -> CheckOutcome:
    """Issue date can't be in the future; very old documents are flagged."""
    outcome = CheckOutcome()
    issued = invoice.issue_date
    if issued is None:
        return outcome

    if issued > ctx.as_of:
        outcome.add(
            IssueCode.FUTURE_ISSUE_DATE,
            Severity.ERROR,
            f"Issue date {issued} is in the future",
            "Check the document date",
            issue_date=issued.isoformat(),
            reference_date=ctx.as_of.isoformat(),
        )
    elif issued < _years_before(ctx.as_of, STALE_AFTER_YEARS):
        outcome.warn(
            IssueCode.STALE_ISSUE_DATE,
            f"Issue date {issued} is more than {STALE_AFTER_YEARS} years old",
            "Verify the document is still within the retention period",
            issue_date=issued.isoformat(),
        )
    return outcome


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - years, day=28)


INVOICE_CHECKS: tuple[Callable[[Invoice, RuleContext], CheckOutcome], ...] = (
    check_vat_consistency,
    check_vat_rate,
    check_regime,
    check_zero_rate,
    check_split_payment,
    check_identifiers,
    check_issue_date,
)
