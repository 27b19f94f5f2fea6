"""
Compliance classification and scoring of validation findings.

Design Decisions:
- Issues are penalized by severity, warnings by count, so a document with
  many minor warnings still degrades visibly
- Context bonuses reward callers that supply CCNL data and clean OCR,
  since more context means more checks actually ran
- Score is always an integer in [0, 100]
"""

from typing import Iterable

from .models import (
    ComplianceLevel,
    DocumentType,
    Issue,
    IssueBucket,
    ScoreLabel,
    Severity,
    ValidationOptions,
    ValidationStatus,
)


MAX_SCORE = 100
MIN_SCORE = 0

SEVERITY_PENALTIES: dict[Severity, int] = {
    Severity.ERROR: 20,
    Severity.HIGH: 20,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
    Severity.INFO: 0,
}
WARNING_PENALTY = 2
CONTEXT_BONUS = 5

# Lower bound of each label, highest first
SCORE_LABELS: tuple[tuple[int, ScoreLabel], ...] = (
    (90, ScoreLabel.EXCELLENT),
    (75, ScoreLabel.GOOD),
    (60, ScoreLabel.ACCEPTABLE),
    (40, ScoreLabel.POOR),
)

PARTIAL_COMPLIANCE_THRESHOLD = 2
REVIEW_SCORE = 70
CONSULTANT_THRESHOLD = 3


def score_issues(
    issues: Iterable[Issue],
    options: ValidationOptions,
    has_ccnl: bool = False,
) -> int:
    """
    Compute the reliability score of a document.

    Args:
        issues: All findings of the validation run
        options: Caller options (OCR flag)
        has_ccnl: Whether CCNL sector and level were both available

    Returns:
        Integer score clamped to [0, 100]
    """
    score = MAX_SCORE
    for issue in issues:
        if issue.bucket is IssueBucket.WARNING:
            score -= WARNING_PENALTY
        else:
            score -= SEVERITY_PENALTIES[issue.severity]

    if has_ccnl:
        score += CONTEXT_BONUS
    if options.ocr_success:
        score += CONTEXT_BONUS

    return max(MIN_SCORE, min(MAX_SCORE, score))


def label_for_score(score: int) -> ScoreLabel:
    for threshold, label in SCORE_LABELS:
        if score >= threshold:
            return label
    return ScoreLabel.CRITICAL


def classify_compliance(issues: Iterable[Issue]) -> ComplianceLevel:
    """
    Rule: any error-class finding makes the document non-compliant;
    more than two warnings make it partially compliant.

    Every non-error finding counts as a warning here, whatever its bucket.
    """
    warnings = 0
    for issue in issues:
        if issue.is_error:
            return ComplianceLevel.NON_COMPLIANT
        warnings += 1
    if warnings > PARTIAL_COMPLIANCE_THRESHOLD:
        return ComplianceLevel.PARTIAL
    return ComplianceLevel.FULL


def determine_status(issues: Iterable[Issue]) -> ValidationStatus:
    status = ValidationStatus.OK
    for issue in issues:
        if issue.is_error:
            return ValidationStatus.ERROR
        status = ValidationStatus.WARNING
    return status


def general_suggestions(
    issues: list[Issue],
    score: int,
    document_type: DocumentType,
    options: ValidationOptions,
    has_ccnl: bool = False,
) -> list[str]:
    """Document-level advice appended after the per-finding suggestions."""
    suggestions = []
    if score < REVIEW_SCORE:
        suggestions.append("Re-check the extracted data against the original document")
    if document_type is DocumentType.PAYSLIP and not has_ccnl:
        suggestions.append("Provide the CCNL sector and job level for contract checks")
    if sum(1 for issue in issues if issue.bucket is IssueBucket.ISSUE) > CONSULTANT_THRESHOLD:
        suggestions.append("Consult a labour consultant or accountant")
    if options.ocr_success is False:
        suggestions.append("Improve the scan quality and repeat the extraction")
    return suggestions
