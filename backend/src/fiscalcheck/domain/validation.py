"""
Validation orchestrator for normalized fiscal documents.

This module dispatches a document to its family pipeline, aggregates the
findings of every rule check and scores the result. No I/O: the only side
effect is logging.

Design Decisions:
- Rule checks never raise on fiscal anomalies; they return findings
- A document with a missing or non-finite amount is reported, not raised, through a
  StructuralError caught at this boundary
- A value that is not a document at all is a programming error and raises
  TypeError
- Regulatory tables are selected by the document's own date, so a 2024
  payslip is checked against 2024 rules even when validated in 2025
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from .invoice_rules import INVOICE_CHECKS
from .models import (
    CheckOutcome,
    ComplianceLevel,
    DocumentType,
    Invoice,
    Issue,
    IssueCode,
    NormalizedDocument,
    Payslip,
    RuleContext,
    ScoreLabel,
    Severity,
    ValidationOptions,
    ValidationReport,
    ValidationStatus,
)
from .payslip_rules import has_ccnl_info, payslip_checks
from .scoring import (
    classify_compliance,
    determine_status,
    general_suggestions,
    label_for_score,
    score_issues,
)
from .tables import LATEST_YEAR, RegulatoryTables, tables_for_year


logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[DocumentType, tuple[str, ...]] = {
    DocumentType.INVOICE: ("taxable_amount", "vat_rate", "vat_amount", "total_amount"),
    DocumentType.PAYSLIP: ("gross_salary", "irpef", "inps", "net_salary"),
}

# Amounts with a default that must still be finite Decimals when set
OPTIONAL_AMOUNT_FIELDS: dict[DocumentType, tuple[str, ...]] = {
    DocumentType.INVOICE: (),
    DocumentType.PAYSLIP: ("deductions", "fringe_benefit"),
}


class StructuralError(ValueError):
    """A document has missing or unusable amounts that its rules depend on."""

    def __init__(
        self,
        document_type: DocumentType | None,
        missing_fields: list[str],
        invalid_fields: list[str] | None = None,
    ):
        self.document_type = document_type
        self.missing_fields = missing_fields
        self.invalid_fields = invalid_fields or []
        family = document_type.value if document_type else "document"
        problems = []
        if self.missing_fields:
            problems.append(f"missing {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            problems.append(f"not a finite amount: {', '.join(self.invalid_fields)}")
        super().__init__(f"Invalid {family}: {'; '.join(problems)}")


def structural_error_report(
    message: str,
    document_type: DocumentType | None = None,
    *,
    regulatory_year: int = LATEST_YEAR,
    now: datetime | None = None,
    **details,
) -> ValidationReport:
    """
    Build the report for a document that could not be validated at all.

    Status is error, compliance non-compliant and score 0, with a single
    synthetic invalid_document finding.
    """
    issue = Issue(
        code=IssueCode.INVALID_DOCUMENT,
        severity=Severity.ERROR,
        message=message,
        suggestion="Repeat the extraction or complete the missing data",
        details=details,
    )
    return ValidationReport(
        document_type=document_type,
        status=ValidationStatus.ERROR,
        compliance_level=ComplianceLevel.NON_COMPLIANT,
        score=0,
        score_label=ScoreLabel.CRITICAL,
        timestamp=now or datetime.now(timezone.utc),
        regulatory_year=regulatory_year,
        issues=[issue],
        suggestions=[issue.suggestion],
    )


def _is_amount(value: object) -> bool:
    return isinstance(value, Decimal) and value.is_finite()


def ensure_complete(document: NormalizedDocument) -> None:
    """
    Raise StructuralError when a required amount is missing or an amount is
    not a finite Decimal (NaN, Infinity, float).

    Raises:
        StructuralError: With every missing and invalid field listed
    """
    family = document.document_type
    missing = [name for name in REQUIRED_FIELDS[family] if getattr(document, name) is None]
    invalid = [
        name for name in REQUIRED_FIELDS[family] + OPTIONAL_AMOUNT_FIELDS[family]
        if getattr(document, name) is not None and not _is_amount(getattr(document, name))
    ]
    if missing or invalid:
        raise StructuralError(family, missing, invalid)


def select_tables(
    document: NormalizedDocument,
    options: ValidationOptions,
) -> tuple[RegulatoryTables, int | None]:
    """
    Pick the regulatory tables for a document.

    Returns:
        The tables and the year that was requested, None when no year could
        be derived and the latest tables were used
    """
    requested = options.regulatory_year
    if requested is None and document.reference_date is not None:
        requested = document.reference_date.year
    return tables_for_year(requested), requested


def _run_checks(document: NormalizedDocument, ctx: RuleContext) -> CheckOutcome:
    if isinstance(document, Invoice):
        checks = INVOICE_CHECKS
    else:
        checks = payslip_checks(document, ctx.options)

    logger.debug(f"Running {len(checks)} {document.document_type.value} checks")
    outcome = CheckOutcome()
    for check in checks:
        outcome.extend(check(document, ctx))
    return outcome


def _collect_suggestions(issues: list[Issue], general: list[str]) -> list[str]:
    suggestions: list[str] = []
    for suggestion in [issue.suggestion for issue in issues] + general:
        if suggestion and suggestion not in suggestions:
            suggestions.append(suggestion)
    return suggestions


def validate(
    document: NormalizedDocument,
    options: ValidationOptions | None = None,
    *,
    tables: RegulatoryTables | None = None,
    now: datetime | None = None,
) -> ValidationReport:
    """
    Validate a normalized invoice or payslip.

    Args:
        document: Invoice or Payslip from the parsing layer
        options: Caller context (regime, CCNL, bonuses, OCR flag)
        tables: Explicit regulatory tables, overriding year selection
        now: Validation time; sets the timestamp and the reference date
            for temporal checks

    Returns:
        ValidationReport with status, compliance, score and findings

    Raises:
        TypeError: If `document` is neither an Invoice nor a Payslip
    """
    if not isinstance(document, (Invoice, Payslip)):
        raise TypeError(f"Unsupported document: {type(document).__name__}")

    options = options or ValidationOptions()
    now = now or datetime.now(timezone.utc)

    requested_year = None
    if tables is None:
        tables, requested_year = select_tables(document, options)

    try:
        ensure_complete(document)
    except StructuralError as exc:
        logger.warning(f"Structural error: {exc}")
        return structural_error_report(
            str(exc),
            exc.document_type,
            regulatory_year=tables.year,
            now=now,
            missing_fields=exc.missing_fields,
            invalid_fields=exc.invalid_fields,
        )

    ctx = RuleContext(options=options, tables=tables, as_of=now.date())
    outcome = CheckOutcome()
    if requested_year is not None and requested_year != tables.year:
        outcome.warn(
            IssueCode.REGULATORY_YEAR_FALLBACK,
            f"No regulatory tables for {requested_year}, using {tables.year}",
            requested_year=requested_year,
            applied_year=tables.year,
        )
    outcome.extend(_run_checks(document, ctx))

    issues = outcome.issues
    has_ccnl = isinstance(document, Payslip) and has_ccnl_info(document, options)
    score = score_issues(issues, options, has_ccnl)
    general = general_suggestions(issues, score, document.document_type, options, has_ccnl)

    report = ValidationReport(
        document_type=document.document_type,
        status=determine_status(issues),
        compliance_level=classify_compliance(issues),
        score=score,
        score_label=label_for_score(score),
        timestamp=now,
        regulatory_year=tables.year,
        issues=issues,
        per_rule_checks={check.rule: check for check in outcome.checks},
        suggestions=_collect_suggestions(issues, general),
    )
    logger.info(
        f"Validated {report.document_type.value}: status={report.status.value} "
        f"score={report.score} issues={len(issues)}"
    )
    return report


