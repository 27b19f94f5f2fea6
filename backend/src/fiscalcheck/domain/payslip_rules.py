"""
Fiscal and contractual rule checks for payslips.

Two families of checks share this module:
- Tax-law checks (IRPEF, INPS, deductions, fringe benefits) that only need
  the payslip amounts
- Contract checks (CCNL minimum wage, overtime, contract-aware IRPEF) that
  also need the CCNL sector and job level

`payslip_checks()` selects the pipeline from the contextual data available,
so the contract-aware IRPEF comparison only runs when CCNL info is present.
"""

from decimal import Decimal
from typing import Callable

from .calculator import (
    annualize,
    compute_employment_deduction,
    compute_low_income_bonus,
    compute_net_irpef,
    compute_progressive_tax,
    monthly,
    percent_of,
    round_money,
)
from .models import (
    ActiveBonus,
    CheckOutcome,
    EmployerContext,
    EmploymentType,
    IssueBucket,
    IssueCode,
    Payslip,
    RuleContext,
    Severity,
    TaxRegime,
    ValidationOptions,
)
from .tolerance import Tolerance, compare


IRPEF_TOLERANCE = Tolerance.percentage(15)
IRPEF_CONTRACT_VARIANCE = Decimal("10")   # percent, warning above
IRPEF_CONTRACT_MISMATCH = Decimal("20")   # percent, issue above
SUBSTITUTE_TAX_TOLERANCE = Tolerance.euros(2)
EXCESSIVE_DEDUCTION_FACTOR = Decimal("1.5")

INPS_TOLERANCE = Tolerance.percentage(25)
INPS_STANDARD_RATE_BAND = Decimal("2")    # percentage points around the employee rate
HIGH_CONTRIBUTION_RATE = Decimal("15")

DEDUCTION_TOLERANCE = Tolerance.euros(50)

NET_PAY_TOLERANCE = Tolerance.euros(10)
NET_PAY_HARD_MISMATCH = Decimal("50")
HIGH_TAX_RATE = Decimal("45")
HIGH_INPS_RATE = Decimal("12")
LOW_NET_RATE = Decimal("60")

HIGH_SALARY = Decimal("8000")
LOW_SALARY = Decimal("1000")
ZERO_TAX_SALARY = Decimal("1500")


def resolve_contract(payslip: Payslip, options: ValidationOptions) -> EmployerContext:
    """Merge the CCNL context printed on the payslip with caller overrides."""
    printed = payslip.employer
    return EmployerContext(
        ccnl_sector=options.ccnl_sector or printed.ccnl_sector,
        job_level=options.job_level or printed.job_level,
        overtime_hours=(
            options.overtime_hours if options.overtime_hours is not None
            else printed.overtime_hours
        ),
    )


def has_ccnl_info(payslip: Payslip, options: ValidationOptions) -> bool:
    contract = resolve_contract(payslip, options)
    return bool(contract.ccnl_sector and contract.job_level)


def check_irpef(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Validate IRPEF against the progressive brackets.

    Rule: (tax(gross * 12) - deductions) / 12 == declared IRPEF (±15%)

    The tolerance is wide because family deductions and regional surcharges
    are not visible on the normalized record. Deviation is measured against
    the larger of computed and declared IRPEF, so 100 vs 117 is 14.5%.
    """
    outcome = CheckOutcome()
    gross = payslip.gross_salary
    if gross <= 0:
        return outcome

    annual_gross = annualize(gross)
    theoretical = monthly(
        compute_net_irpef(annual_gross, ctx.tables, ctx.options.personal_deductions)
    )
    irpef = compare(theoretical, payslip.irpef, IRPEF_TOLERANCE)
    outcome.record("irpef", irpef)
    if not irpef.within_tolerance:
        outcome.warn(
            IssueCode.IRPEF_DEVIATION,
            f"IRPEF deviates {irpef.delta_percent}% from theory: "
            f"computed €{irpef.theoretical}, declared €{irpef.declared}",
            "Verify brackets and deductions applied",
            theoretical=str(irpef.theoretical),
            declared=str(irpef.declared),
            deviation_percent=str(irpef.delta_percent),
        )

    if ctx.options.tax_regime is TaxRegime.FLAT_RATE:
        rate = ctx.tables.flat_rate_substitute_tax_rate
        substitute = compare(
            monthly(annual_gross * rate / 100), payslip.irpef, SUBSTITUTE_TAX_TOLERANCE
        )
        outcome.record("flat_rate_substitute_tax", substitute)
        if not substitute.within_tolerance:
            outcome.warn(
                IssueCode.FLAT_RATE_SUBSTITUTE_TAX,
                f"Substitute tax at {rate}% is €{substitute.theoretical}, "
                f"declared €{substitute.declared}",
                "Check the substitute tax rate of the regime forfettario",
                theoretical=str(substitute.theoretical),
                declared=str(substitute.declared),
            )

    return outcome


def check_irpef_contractual(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Contract-aware IRPEF check.

    Uses the deductions printed on the payslip rather than the statutory
    formula, matching what payroll software does for a known CCNL.
    """
    outcome = CheckOutcome()
    gross = payslip.gross_salary
    if gross <= 0:
        return outcome

    annual_gross = annualize(gross)
    annual_deductions = annualize(payslip.deductions)
    taxable = max(Decimal("0"), annual_gross - annual_deductions)
    theoretical = monthly(compute_progressive_tax(taxable, ctx.tables.irpef_brackets))

    irpef = compare(theoretical, payslip.irpef, Tolerance.percentage(IRPEF_CONTRACT_VARIANCE))
    outcome.record("irpef_contractual", irpef)
    details = {
        "actual": str(irpef.declared),
        "theoretical": str(irpef.theoretical),
        "difference_percent": str(irpef.delta_percent),
    }
    if irpef.delta_percent > IRPEF_CONTRACT_MISMATCH:
        outcome.add(
            IssueCode.IRPEF_MISMATCH,
            Severity.MEDIUM,
            f"IRPEF €{irpef.declared} differs from theoretical €{irpef.theoretical} "
            f"({irpef.delta_percent}%)",
            "Verify IRPEF computation and the deductions applied",
            **details,
        )
    elif irpef.delta_percent > IRPEF_CONTRACT_VARIANCE:
        outcome.warn(
            IssueCode.IRPEF_VARIANCE,
            f"IRPEF varies {irpef.delta_percent}% from theory",
            "Difference is acceptable but worth checking",
            **details,
        )

    max_deduction = (
        compute_employment_deduction(annual_gross, ctx.tables.employment_deduction)
        + ctx.options.personal_deductions
    )
    if annual_deductions > max_deduction * EXCESSIVE_DEDUCTION_FACTOR:
        outcome.add(
            IssueCode.EXCESSIVE_DEDUCTIONS,
            Severity.MEDIUM,
            f"Deductions €{annual_deductions}/year look excessive "
            f"(theoretical max €{max_deduction})",
            "Verify family and employment deductions",
            annual_deductions=str(annual_deductions),
            max_deduction=str(max_deduction),
        )

    return outcome


def _contribution_rate(payslip: Payslip, ctx: RuleContext) -> Decimal:
    rates = ctx.tables.contribution_rates
    if ctx.options.tax_regime is TaxRegime.FLAT_RATE:
        return rates.flat_rate
    if ctx.options.employment_type is EmploymentType.SELF_EMPLOYED:
        return rates.self_employed
    sector = ctx.tables.ccnl_sector(resolve_contract(payslip, ctx.options).ccnl_sector)
    if sector is not None:
        return sector.inps_rate
    return rates.employee


def check_inps(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Validate INPS contributions against the expected rate.

    A deviation beyond 25% is waived when the declared rate is still within
    two points of the standard employee rate. Deviation is measured against
    the larger of expected and declared contributions.
    """
    outcome = CheckOutcome()
    gross = payslip.gross_salary
    if gross <= 0:
        return outcome

    rate = _contribution_rate(payslip, ctx)
    standard = ctx.tables.contribution_rates.employee
    inps = compare(gross * rate / 100, payslip.inps, INPS_TOLERANCE)
    outcome.record("inps", inps)

    declared_rate = percent_of(payslip.inps, gross)
    near_standard = abs(declared_rate - standard) <= INPS_STANDARD_RATE_BAND
    if not inps.within_tolerance and not near_standard:
        outcome.add(
            IssueCode.INPS_MISMATCH,
            Severity.MEDIUM,
            f"INPS €{inps.declared} ({declared_rate:.2f}%) differs from expected "
            f"€{inps.theoretical} ({rate}%)",
            "Verify the contribution rate for the sector and category",
            expected_rate=str(rate),
            declared_rate=f"{declared_rate:.2f}",
            expected_amount=str(inps.theoretical),
            actual_amount=str(inps.declared),
        )

    annual_gross = annualize(gross)
    ceiling = ctx.tables.contribution_ceiling
    if annual_gross > ceiling:
        outcome.warn(
            IssueCode.CONTRIBUTION_CEILING,
            f"Annual gross €{annual_gross} exceeds the €{ceiling} contribution ceiling",
            "Verify the INPS massimale is applied",
            annual_gross=str(annual_gross),
            ceiling=str(ceiling),
        )

    if declared_rate > HIGH_CONTRIBUTION_RATE:
        outcome.warn(
            IssueCode.HIGH_CONTRIBUTIONS,
            f"Total contributions {declared_rate:.1f}% above average",
            "Check additional contributions (pension or health funds)",
            declared_rate=f"{declared_rate:.2f}",
        )

    return outcome


def check_deductions(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Compare declared deductions with employment deduction plus bonus.

    Skipped when no deductions are declared: absence is not an error.
    """
    outcome = CheckOutcome()
    annual_gross = annualize(payslip.gross_salary)

    if (
        ActiveBonus.LOW_INCOME_BONUS in ctx.options.active_bonuses
        and annual_gross > ctx.tables.low_income_bonus_ceiling
    ):
        outcome.warn(
            IssueCode.BONUS_NOT_APPLICABLE,
            f"Low-income bonus declared with annual income €{annual_gross} "
            f"above the €{ctx.tables.low_income_bonus_ceiling} ceiling",
            "The bonus may have to be returned at year-end adjustment",
            annual_gross=str(annual_gross),
        )

    if payslip.deductions == 0:
        return outcome

    employment = monthly(
        compute_employment_deduction(annual_gross, ctx.tables.employment_deduction)
    )
    bonus = monthly(compute_low_income_bonus(annual_gross, ctx.tables))
    deductions = compare(employment + bonus, payslip.deductions, DEDUCTION_TOLERANCE)
    outcome.record("deductions", deductions)
    if not deductions.within_tolerance:
        outcome.warn(
            IssueCode.DEDUCTION_MISMATCH,
            f"Deductions: theoretical €{deductions.theoretical}, "
            f"declared €{deductions.declared}",
            "Check family deductions and bonuses applied",
            employment_deduction=str(round_money(employment)),
            bonus=str(round_money(bonus)),
        )

    return outcome


def check_fringe_benefit(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    outcome = CheckOutcome()
    if ActiveBonus.FRINGE_BENEFIT_CHILDREN in ctx.options.active_bonuses:
        limit = ctx.tables.fringe_benefit_limit_with_children
    else:
        limit = ctx.tables.fringe_benefit_limit

    if payslip.fringe_benefit > limit:
        outcome.warn(
            IssueCode.FRINGE_BENEFIT_OVER_LIMIT,
            f"Fringe benefit €{payslip.fringe_benefit} exceeds the €{limit} exempt limit",
            "The excess is taxable income",
            amount=str(payslip.fringe_benefit),
            limit=str(limit),
            excess=str(payslip.fringe_benefit - limit),
        )
    return outcome


def check_minimum_wage(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Compare gross pay with the CCNL minimum for the job level.

    Unknown contract data degrades to a warning: the remaining checks still
    run, with less context.
    """
    outcome = CheckOutcome()
    contract = resolve_contract(payslip, ctx.options)

    if not contract.ccnl_sector or not contract.job_level:
        outcome.warn(
            IssueCode.CCNL_MISSING,
            "CCNL or job level not specified - limited checks",
            "Provide CCNL information for complete checks",
        )
        return outcome

    sector = ctx.tables.ccnl_sector(contract.ccnl_sector)
    if sector is None:
        outcome.warn(
            IssueCode.CCNL_UNKNOWN,
            f'CCNL "{contract.ccnl_sector}" not found - limited checks',
            "Verify the CCNL name or update the reference tables",
            ccnl=contract.ccnl_sector,
        )
        return outcome

    level = sector.level(contract.job_level)
    if level is None:
        outcome.warn(
            IssueCode.CCNL_LEVEL_UNKNOWN,
            f'Level "{contract.job_level}" not valid for CCNL {sector.name} - limited checks',
            f"Available levels: {', '.join(sector.levels)}",
            ccnl=sector.name,
            level=str(contract.job_level),
        )
        return outcome

    reference = f"CCNL {sector.name} - {level.description}"
    gross = payslip.gross_salary
    if gross < level.minimum_wage:
        outcome.add(
            IssueCode.BELOW_MINIMUM_WAGE,
            Severity.ERROR,
            f"Gross salary €{gross} below CCNL minimum (€{level.minimum_wage})",
            f"Raise to the {sector.name} minimum for level {contract.job_level}",
            minimum_wage=str(level.minimum_wage),
            actual_wage=str(gross),
            reference=reference,
        )
    elif gross == level.minimum_wage:
        outcome.warn(
            IssueCode.EXACT_MINIMUM_WAGE,
            "Gross salary equals the CCNL minimum",
            "Verify seniority increments or extra allowances",
            reference=reference,
        )

    cap = sector.monthly_overtime_cap
    if contract.overtime_hours > cap:
        outcome.add(
            IssueCode.EXCESSIVE_OVERTIME,
            Severity.LOW,
            f"Overtime {contract.overtime_hours}h exceeds the CCNL limit ({cap:.1f}h/month)",
            "Verify compliance with contractual limits",
            IssueBucket.WARNING,
            reference=f"CCNL {sector.name} - max {sector.max_overtime_hours}h/year",
        )

    return outcome


def check_net_pay(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Reconcile net pay with the other headline amounts.

    Rule: net == gross - irpef - inps + deductions
    """
    outcome = CheckOutcome()
    gross = payslip.gross_salary
    theoretical = gross - payslip.irpef - payslip.inps + payslip.deductions
    net = compare(theoretical, payslip.net_salary, NET_PAY_TOLERANCE)
    outcome.record("net_pay", net)

    if net.abs_delta > NET_PAY_HARD_MISMATCH:
        outcome.add(
            IssueCode.CALCULATION_ERROR,
            Severity.HIGH,
            f"Calculation error: net €{net.declared} vs theoretical €{net.theoretical}",
            "Verify calculations or additional items not extracted",
            formula="gross - irpef - inps + deductions",
            calculated=str(net.theoretical),
            actual=str(net.declared),
            difference=str(net.abs_delta),
        )
    elif not net.within_tolerance:
        outcome.warn(
            IssueCode.MINOR_CALCULATION_VARIANCE,
            f"Small net pay difference: €{net.abs_delta}",
            "Possible additional items (canteen, transport, etc.)",
            difference=str(net.abs_delta),
        )

    if gross <= 0:
        return outcome

    tax_rate = percent_of(payslip.irpef, gross)
    inps_rate = percent_of(payslip.inps, gross)
    net_rate = percent_of(payslip.net_salary, gross)
    if tax_rate > HIGH_TAX_RATE:
        outcome.add(
            IssueCode.HIGH_TAX_RATE,
            Severity.MEDIUM,
            f"IRPEF {tax_rate:.1f}% very high for this salary",
            "Verify IRPEF brackets and deductions",
            tax_rate=f"{tax_rate:.2f}",
        )
    if inps_rate > HIGH_INPS_RATE:
        outcome.add(
            IssueCode.HIGH_INPS_RATE,
            Severity.MEDIUM,
            f"INPS {inps_rate:.1f}% above standard ({ctx.tables.contribution_rates.employee}%)",
            "Verify the sector contribution rates",
            inps_rate=f"{inps_rate:.2f}",
        )
    if net_rate < LOW_NET_RATE:
        outcome.warn(
            IssueCode.LOW_NET_PERCENTAGE,
            f"Net pay is {net_rate:.1f}% of gross",
            "Verify all withholdings and deductions",
            net_rate=f"{net_rate:.2f}",
        )

    return outcome


def detect_anomalies(payslip: Payslip, ctx: RuleContext) -> CheckOutcome:
    """
    Plausibility heuristics independent of tax law.

    High-severity anomalies usually mean corrupted OCR output rather than a
    real payroll error.
    """
    outcome = CheckOutcome()
    gross = payslip.gross_salary
    irpef = payslip.irpef
    inps = payslip.inps
    net = payslip.net_salary

    if gross > HIGH_SALARY:
        outcome.warn(
            IssueCode.HIGH_SALARY,
            f"Gross salary €{gross} above the Italian average",
            "Verify whether the employee is an executive",
        )
    elif gross < LOW_SALARY:
        outcome.add(
            IssueCode.LOW_SALARY,
            Severity.LOW,
            f"Gross salary €{gross} below usual minimums",
            "Verify part-time or apprenticeship contracts",
        )

    if gross > ZERO_TAX_SALARY and irpef == 0:
        outcome.add(
            IssueCode.ZERO_TAX_HIGH_SALARY,
            Severity.HIGH,
            "IRPEF is zero on a significant salary",
            "Verify excessive deductions or a calculation error",
        )

    if net > gross:
        outcome.add(
            IssueCode.NET_HIGHER_THAN_GROSS,
            Severity.HIGH,
            "Net pay higher than gross pay",
            "Verify the OCR extraction",
            gross=str(gross),
            net=str(net),
        )

    if gross > 0 and gross == irpef == inps == net:
        outcome.add(
            IssueCode.IDENTICAL_VALUES,
            Severity.HIGH,
            "All amounts identical - possible OCR error",
            "Verify the scan quality of the document",
        )

    return outcome


PayslipCheck = Callable[[Payslip, RuleContext], CheckOutcome]

PAYSLIP_CHECKS: tuple[PayslipCheck, ...] = (
    check_irpef,
    check_inps,
    check_deductions,
    check_fringe_benefit,
    check_minimum_wage,
    check_net_pay,
    detect_anomalies,
)


def payslip_checks(payslip: Payslip, options: ValidationOptions) -> tuple[PayslipCheck, ...]:
    """Checks to run for a payslip given the contextual data available."""
    if has_ccnl_info(payslip, options):
        return PAYSLIP_CHECKS + (check_irpef_contractual,)
    return PAYSLIP_CHECKS
