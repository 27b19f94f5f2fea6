"""
Domain models for Italian fiscal document validation.

These models represent the normalized records handed over by the parsing
layer (electronic invoices and payslips) and the structured report the
validation engine produces for them.

Design Decisions:
- Using frozen dataclasses for immutable, typed domain objects
- Decimal for all monetary values to avoid floating-point errors
- Numeric fields are Optional only to let the orchestrator detect
  structurally incomplete documents and report them instead of raising
- Issue codes are a closed enum so consumers never match on message text
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .tables import RegulatoryTables
    from .tolerance import Comparison


class DocumentType(Enum):
    """Document families understood by the engine."""
    INVOICE = "invoice"
    PAYSLIP = "payslip"


class TaxRegime(Enum):
    """VAT regime of the invoice issuer."""
    ORDINARY = "ordinary"
    FLAT_RATE = "flat_rate"          # regime forfettario
    AGRICULTURAL = "agricultural"    # regime speciale agricolo
    CASH_VAT = "cash_vat"            # IVA per cassa


class EmploymentType(Enum):
    """Employment relationship used to pick the contribution rate."""
    EMPLOYEE = "employee"
    SELF_EMPLOYED = "self_employed"


class ActiveBonus(Enum):
    """Bonus and exemption flags declared by the caller."""
    LOW_INCOME_BONUS = "low_income_bonus"
    FRINGE_BENEFIT_CHILDREN = "fringe_benefit_children"


class Severity(Enum):
    """Severity of a single finding."""
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ERROR = "error"

    @property
    def is_error(self) -> bool:
        """True for severities that force the report status to error."""
        return self in (Severity.HIGH, Severity.ERROR)


class IssueBucket(Enum):
    """
    Scoring bucket of a finding.

    Issues are penalized by severity, warnings by count.
    """
    ISSUE = "issue"
    WARNING = "warning"


class IssueCode(Enum):
    """Every finding the engine can emit."""
    # Structural
    INVALID_DOCUMENT = "invalid_document"
    REGULATORY_YEAR_FALLBACK = "regulatory_year_fallback"

    # Invoice family
    VAT_MISMATCH = "vat_mismatch"
    TOTAL_MISMATCH = "total_mismatch"
    NON_STANDARD_VAT_RATE = "non_standard_vat_rate"
    FLAT_RATE_VAT_CHARGED = "flat_rate_vat_charged"
    FLAT_RATE_REVENUE_CEILING = "flat_rate_revenue_ceiling"
    AGRICULTURAL_RATE_UNEXPECTED = "agricultural_rate_unexpected"
    CASH_VAT_TURNOVER_CEILING = "cash_vat_turnover_ceiling"
    CASH_VAT_SPLIT_PAYMENT_CONFLICT = "cash_vat_split_payment_conflict"
    ZERO_RATE_UNJUSTIFIED = "zero_rate_unjustified"
    SPLIT_PAYMENT_VERIFY = "split_payment_verify"
    INVALID_VAT_NUMBER = "invalid_vat_number"
    INVALID_TAX_CODE = "invalid_tax_code"
    FUTURE_ISSUE_DATE = "future_issue_date"
    STALE_ISSUE_DATE = "stale_issue_date"

    # Payslip family
    IRPEF_DEVIATION = "irpef_deviation"
    FLAT_RATE_SUBSTITUTE_TAX = "flat_rate_substitute_tax"
    IRPEF_MISMATCH = "irpef_mismatch"
    IRPEF_VARIANCE = "irpef_variance"
    EXCESSIVE_DEDUCTIONS = "excessive_deductions"
    INPS_MISMATCH = "inps_mismatch"
    CONTRIBUTION_CEILING = "contribution_ceiling"
    HIGH_CONTRIBUTIONS = "high_contributions"
    DEDUCTION_MISMATCH = "deduction_mismatch"
    BONUS_NOT_APPLICABLE = "bonus_not_applicable"
    FRINGE_BENEFIT_OVER_LIMIT = "fringe_benefit_over_limit"
    CCNL_MISSING = "ccnl_missing"
    CCNL_UNKNOWN = "ccnl_unknown"
    CCNL_LEVEL_UNKNOWN = "ccnl_level_unknown"
    BELOW_MINIMUM_WAGE = "below_minimum_wage"
    EXACT_MINIMUM_WAGE = "exact_minimum_wage"
    EXCESSIVE_OVERTIME = "excessive_overtime"
    CALCULATION_ERROR = "calculation_error"
    MINOR_CALCULATION_VARIANCE = "minor_calculation_variance"
    HIGH_TAX_RATE = "high_tax_rate"
    HIGH_INPS_RATE = "high_inps_rate"
    LOW_NET_PERCENTAGE = "low_net_percentage"
    NET_HIGHER_THAN_GROSS = "net_higher_than_gross"
    ZERO_TAX_HIGH_SALARY = "zero_tax_high_salary"
    IDENTICAL_VALUES = "identical_values"
    HIGH_SALARY = "high_salary"
    LOW_SALARY = "low_salary"


class ValidationStatus(Enum):
    """Overall outcome of a validation run."""
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class ComplianceLevel(Enum):
    """Coarse compliance classification of a document."""
    FULL = "full"
    PARTIAL = "partial"
    NON_COMPLIANT = "non-compliant"


class ScoreLabel(Enum):
    """Presentation label derived from the numeric score."""
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Party:
    """Counterparty identified on a document (supplier, customer, employee)."""
    name: str | None = None
    vat_number: str | None = None  # partita IVA
    tax_code: str | None = None    # codice fiscale


@dataclass(frozen=True)
class Invoice:
    """
    Electronic invoice (fattura elettronica).

    Amounts are the document totals already extracted by the parsing layer.
    """
    taxable_amount: Decimal | None
    vat_rate: Decimal | None
    vat_amount: Decimal | None
    total_amount: Decimal | None
    issue_date: date | None = None
    invoice_number: str | None = None
    supplier: Party = field(default_factory=Party)
    customer: Party = field(default_factory=Party)

    document_type = DocumentType.INVOICE

    @property
    def reference_date(self) -> date | None:
        return self.issue_date


@dataclass(frozen=True)
class EmployerContext:
    """Contract context printed on a payslip."""
    ccnl_sector: str | None = None
    job_level: str | None = None
    overtime_hours: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        """Validate overtime range."""
        if self.overtime_hours < 0:
            raise ValueError(f"Overtime hours cannot be negative: {self.overtime_hours}")


@dataclass(frozen=True)
class Payslip:
    """
    Monthly payslip (busta paga).

    All amounts are monthly figures.
    """
    gross_salary: Decimal | None
    irpef: Decimal | None
    inps: Decimal | None
    net_salary: Decimal | None
    deductions: Decimal = Decimal("0")
    fringe_benefit: Decimal = Decimal("0")
    period: date | None = None  # first day of the paid month
    employee: Party = field(default_factory=Party)
    employer: EmployerContext = field(default_factory=EmployerContext)

    document_type = DocumentType.PAYSLIP

    @property
    def reference_date(self) -> date | None:
        return self.period


NormalizedDocument = Invoice | Payslip


@dataclass(frozen=True)
class ValidationOptions:
    """
    Contextual options supplied by the caller.

    CCNL sector, job level and overtime override the values printed on the
    payslip when both are present.
    """
    tax_regime: TaxRegime = TaxRegime.ORDINARY
    split_payment: bool = False
    exempt_operation: bool = False
    ccnl_sector: str | None = None
    job_level: str | None = None
    overtime_hours: Decimal | None = None
    employment_type: EmploymentType = EmploymentType.EMPLOYEE
    personal_deductions: Decimal = Decimal("0")  # annual, added to employment deduction
    active_bonuses: frozenset[ActiveBonus] = frozenset()
    ocr_success: bool | None = None
    regulatory_year: int | None = None

    def __post_init__(self) -> None:
        """Validate numeric options."""
        if self.personal_deductions < 0:
            raise ValueError(
                f"Personal deductions cannot be negative: {self.personal_deductions}"
            )
        if self.overtime_hours is not None and self.overtime_hours < 0:
            raise ValueError(f"Overtime hours cannot be negative: {self.overtime_hours}")


@dataclass(frozen=True)
class Issue:
    """
    A single finding raised by a rule check.

    Findings never interrupt the pipeline; they are aggregated into the
    report and scored.
    """
    code: IssueCode
    severity: Severity
    message: str
    suggestion: str = ""
    bucket: IssueBucket = IssueBucket.ISSUE
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity.is_error


@dataclass(frozen=True)
class RuleCheck:
    """Computed vs declared value of one comparison rule."""
    rule: str
    theoretical: Decimal
    declared: Decimal
    delta: Decimal
    delta_percent: Decimal
    within_tolerance: bool


@dataclass
class ValidationReport:
    """
    Complete result of validating one document.

    Mutable because the orchestrator assembles it incrementally.
    """
    document_type: DocumentType | None
    status: ValidationStatus
    compliance_level: ComplianceLevel
    score: int
    score_label: ScoreLabel
    timestamp: datetime
    regulatory_year: int
    issues: list[Issue] = field(default_factory=list)
    per_rule_checks: dict[str, RuleCheck] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        """Findings of error class."""
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[Issue]:
        """Findings in the warning bucket."""
        return [issue for issue in self.issues if issue.bucket is IssueBucket.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(issue.is_error for issue in self.issues)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule check needs besides the document itself."""
    options: ValidationOptions
    tables: "RegulatoryTables"
    as_of: date  # reference date for temporal checks


@dataclass
class CheckOutcome:
    """
    Findings and comparisons produced by one rule check.

    Mutable because checks are built incrementally during validation.
    """
    issues: list[Issue] = field(default_factory=list)
    checks: list[RuleCheck] = field(default_factory=list)

    def add(
        self,
        code: IssueCode,
        severity: Severity,
        message: str,
        suggestion: str = "",
        bucket: IssueBucket = IssueBucket.ISSUE,
        **details: Any,
    ) -> None:
        self.issues.append(
            Issue(
                code=code,
                severity=severity,
                message=message,
                suggestion=suggestion,
                bucket=bucket,
                details=details,
            )
        )

    def warn(self, code: IssueCode, message: str, suggestion: str = "", **details: Any) -> None:
        """Record a counted warning."""
        self.add(code, Severity.INFO, message, suggestion, IssueBucket.WARNING, **details)

    def record(self, rule: str, comparison: "Comparison") -> None:
        """Record a computed-vs-declared comparison under `rule`."""
        self.checks.append(
            RuleCheck(
                rule=rule,
                theoretical=comparison.theoretical,
                declared=comparison.declared,
                delta=comparison.delta,
                delta_percent=comparison.delta_percent,
                within_tolerance=comparison.within_tolerance,
            )
        )

    def extend(self, other: "CheckOutcome") -> None:
        self.issues.extend(other.issues)
        self.checks.extend(other.checks)
