"""Shared fixtures for the fiscalcheck test suite."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from fiscalcheck.domain.models import (
    EmployerContext,
    Invoice,
    Payslip,
    RuleContext,
    ValidationOptions,
)
from fiscalcheck.domain.tables import TABLES_2025


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_invoice(
    taxable="1000",
    rate="22",
    vat="220",
    total="1220",
    **kwargs,
) -> Invoice:
    return Invoice(
        taxable_amount=Decimal(taxable),
        vat_rate=Decimal(rate),
        vat_amount=Decimal(vat),
        total_amount=Decimal(total),
        **kwargs,
    )


def make_payslip(
    gross="2500",
    irpef="400",
    inps="230",
    net="1990",
    deductions="120",
    ccnl=None,
    level=None,
    overtime="0",
    **kwargs,
) -> Payslip:
    return Payslip(
        gross_salary=Decimal(gross),
        irpef=Decimal(irpef),
        inps=Decimal(inps),
        net_salary=Decimal(net),
        deductions=Decimal(deductions),
        employer=EmployerContext(
            ccnl_sector=ccnl,
            job_level=level,
            overtime_hours=Decimal(overtime),
        ),
        **kwargs,
    )


def make_context(options: ValidationOptions | None = None, as_of: date = NOW.date()) -> RuleContext:
    return RuleContext(options=options or ValidationOptions(), tables=TABLES_2025, as_of=as_of)


def codes(outcome_or_report) -> set:
    """Issue codes of a CheckOutcome or ValidationReport."""
    return {issue.code for issue in outcome_or_report.issues}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def ctx() -> RuleContext:
    return make_context()
