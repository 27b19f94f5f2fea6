"""
Pydantic schemas for the engine boundary.

Request schemas accept the plain dicts produced by the parsing layer and
build domain objects. Response schemas turn a ValidationReport into a
JSON-ready structure with camelCase keys.
All monetary values use strings to avoid floating point issues.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fiscalcheck.domain.models import (
    ActiveBonus,
    EmployerContext,
    EmploymentType,
    Invoice,
    Issue,
    Party,
    Payslip,
    RuleCheck,
    TaxRegime,
    ValidationOptions,
    ValidationReport,
)


# =============================================================================
# Request Schemas
# =============================================================================

class PartyPayload(BaseModel):
    """Supplier, customer or employee as extracted from the document."""
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "denominazione"))
    vat_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("vat_number", "vatNumber", "partita_iva", "partitaIva"),
    )
    tax_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tax_code", "taxCode", "codice_fiscale", "codiceFiscale"),
    )

    def to_domain(self) -> Party:
        return Party(name=self.name, vat_number=self.vat_number, tax_code=self.tax_code)


class InvoicePayload(BaseModel):
    """Normalized electronic invoice. Missing amounts are kept as None."""
    taxable_amount: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("taxable_amount", "taxableAmount", "imponibile"),
    )
    vat_rate: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("vat_rate", "vatRate", "aliquota_iva", "aliquotaIva"),
    )
    vat_amount: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("vat_amount", "vatAmount", "iva"),
    )
    total_amount: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("total_amount", "totalAmount", "totale"),
    )
    issue_date: date | None = Field(
        default=None,
        validation_alias=AliasChoices("issue_date", "issueDate", "data"),
    )
    invoice_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("invoice_number", "invoiceNumber", "numero"),
    )
    supplier: PartyPayload = Field(
        default_factory=PartyPayload,
        validation_alias=AliasChoices("supplier", "cedente"),
    )
    customer: PartyPayload = Field(
        default_factory=PartyPayload,
        validation_alias=AliasChoices("customer", "cessionario"),
    )

    def to_domain(self) -> Invoice:
        return Invoice(
            taxable_amount=self.taxable_amount,
            vat_rate=self.vat_rate,
            vat_amount=self.vat_amount,
            total_amount=self.total_amount,
            issue_date=self.issue_date,
            invoice_number=self.invoice_number,
            supplier=self.supplier.to_domain(),
            customer=self.customer.to_domain(),
        )


class PayslipPayload(BaseModel):
    """Normalized monthly payslip."""
    gross_salary: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("gross_salary", "grossSalary", "stipendio_lordo", "lordo"),
    )
    irpef: Decimal | None = Field(default=None, validation_alias=AliasChoices("irpef"))
    inps: Decimal | None = Field(default=None, validation_alias=AliasChoices("inps"))
    net_salary: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("net_salary", "netSalary", "stipendio_netto", "netto"),
    )
    deductions: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("deductions", "detrazioni"),
    )
    fringe_benefit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("fringe_benefit", "fringeBenefit"),
    )
    period: date | None = Field(default=None, validation_alias=AliasChoices("period", "periodo"))
    employee: PartyPayload = Field(
        default_factory=PartyPayload,
        validation_alias=AliasChoices("employee", "dipendente"),
    )
    ccnl_sector: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ccnl_sector", "ccnlSector", "ccnl"),
    )
    job_level: str | None = Field(
        default=None,
        validation_alias=AliasChoices("job_level", "jobLevel", "livello"),
        coerce_numbers_to_str=True,
    )
    overtime_hours: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("overtime_hours", "overtimeHours", "ore_straordinario"),
    )

    def to_domain(self) -> Payslip:
        return Payslip(
            gross_salary=self.gross_salary,
            irpef=self.irpef,
            inps=self.inps,
            net_salary=self.net_salary,
            deductions=self.deductions,
            fringe_benefit=self.fringe_benefit,
            period=self.period,
            employee=self.employee.to_domain(),
            employer=EmployerContext(
                ccnl_sector=self.ccnl_sector,
                job_level=self.job_level,
                overtime_hours=self.overtime_hours,
            ),
        )


class OptionsPayload(BaseModel):
    """Contextual options supplied by the caller."""
    tax_regime: TaxRegime | None = Field(
        default=None,
        validation_alias=AliasChoices("tax_regime", "taxRegime", "regime"),
    )
    split_payment: bool = Field(
        default=False,
        validation_alias=AliasChoices("split_payment", "splitPayment"),
    )
    exempt_operation: bool = Field(
        default=False,
        validation_alias=AliasChoices("exempt_operation", "exemptOperation"),
    )
    ccnl_sector: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ccnl_sector", "ccnlSector", "ccnl"),
    )
    job_level: str | None = Field(
        default=None,
        validation_alias=AliasChoices("job_level", "jobLevel", "livello"),
        coerce_numbers_to_str=True,
    )
    overtime_hours: Decimal | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("overtime_hours", "overtimeHours"),
    )
    employment_type: EmploymentType = Field(
        default=EmploymentType.EMPLOYEE,
        validation_alias=AliasChoices("employment_type", "employmentType"),
    )
    personal_deductions: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("personal_deductions", "personalDeductions"),
    )
    active_bonuses: list[ActiveBonus] = Field(
        default_factory=list,
        validation_alias=AliasChoices("active_bonuses", "activeBonuses"),
    )
    ocr_success: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("ocr_success", "ocrSuccess"),
    )
    regulatory_year: int | None = Field(
        default=None,
        validation_alias=AliasChoices("regulatory_year", "regulatoryYear"),
    )

    def to_domain(
        self,
        default_regime: TaxRegime = TaxRegime.ORDINARY,
        default_year: int | None = None,
    ) -> ValidationOptions:
        """Build ValidationOptions, filling unset regime and year from defaults."""
        return ValidationOptions(
            tax_regime=self.tax_regime or default_regime,
            split_payment=self.split_payment,
            exempt_operation=self.exempt_operation,
            ccnl_sector=self.ccnl_sector,
            job_level=self.job_level,
            overtime_hours=self.overtime_hours,
            employment_type=self.employment_type,
            personal_deductions=self.personal_deductions,
            active_bonuses=frozenset(self.active_bonuses),
            ocr_success=self.ocr_success,
            regulatory_year=self.regulatory_year if self.regulatory_year is not None else default_year,
        )


# =============================================================================
# Response Schemas
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IssueResponse(_CamelModel):
    """Single finding of a validation run."""
    code: str
    severity: str
    bucket: str
    message: str
    suggestion: str = ""
    details: dict[str, Any] = {}

    @classmethod
    def from_domain(cls, issue: Issue) -> "IssueResponse":
        return cls(
            code=issue.code.value,
            severity=issue.severity.value,
            bucket=issue.bucket.value,
            message=issue.message,
            suggestion=issue.suggestion,
            details=issue.details,
        )


class RuleCheckResponse(_CamelModel):
    """Computed vs declared value of one rule."""
    theoretical: str
    declared: str
    delta: str
    delta_percent: str
    within_tolerance: bool

    @classmethod
    def from_domain(cls, check: RuleCheck) -> "RuleCheckResponse":
        return cls(
            theoretical=str(check.theoretical),
            declared=str(check.declared),
            delta=str(check.delta),
            delta_percent=str(check.delta_percent),
            within_tolerance=check.within_tolerance,
        )


class ValidationReportResponse(_CamelModel):
    """JSON-ready validation report."""
    document_type: str | None
    status: str
    compliance_level: str
    score: int = Field(ge=0, le=100)
    score_label: str
    issues: list[IssueResponse]
    per_rule_checks: dict[str, RuleCheckResponse]
    suggestions: list[str]
    timestamp: datetime
    regulatory_year: int

    @classmethod
    def from_domain(cls, report: ValidationReport) -> "ValidationReportResponse":
        return cls(
            document_type=report.document_type.value if report.document_type else None,
            status=report.status.value,
            compliance_level=report.compliance_level.value,
            score=report.score,
            score_label=report.score_label.value,
            issues=[IssueResponse.from_domain(issue) for issue in report.issues],
            per_rule_checks={
                rule: RuleCheckResponse.from_domain(check)
                for rule, check in report.per_rule_checks.items()
            },
            suggestions=list(report.suggestions),
            timestamp=report.timestamp,
            regulatory_year=report.regulatory_year,
        )
