"""Tests for compliance classification and scoring."""

from conftest import make_context

from fiscalcheck.domain.models import (
    ComplianceLevel,
    DocumentType,
    Issue,
    IssueBucket,
    IssueCode,
    ScoreLabel,
    Severity,
    ValidationOptions,
    ValidationStatus,
)
from fiscalcheck.domain.scoring import (
    classify_compliance,
    determine_status,
    general_suggestions,
    label_for_score,
    score_issues,
)


def _issue(severity: Severity, bucket: IssueBucket = IssueBucket.ISSUE) -> Issue:
    return Issue(code=IssueCode.VAT_MISMATCH, severity=severity, message="test", bucket=bucket)


def _warning() -> Issue:
    return _issue(Severity.INFO, IssueBucket.WARNING)


OPTIONS = ValidationOptions()


def test_clean_document_scores_full_marks():
    assert score_issues([], OPTIONS) == 100


def test_issue_penalties_by_severity():
    assert score_issues([_issue(Severity.ERROR)], OPTIONS) == 80
    assert score_issues([_issue(Severity.HIGH)], OPTIONS) == 80
    assert score_issues([_issue(Severity.MEDIUM)], OPTIONS) == 90
    assert score_issues([_issue(Severity.LOW)], OPTIONS) == 95
    assert score_issues([_issue(Severity.INFO)], OPTIONS) == 100


def test_warnings_cost_two_points_each():
    assert score_issues([_warning(), _warning(), _warning()], OPTIONS) == 94


def test_context_bonuses_are_clamped():
    assert score_issues([], ValidationOptions(ocr_success=True), has_ccnl=True) == 100
    assert score_issues([_issue(Severity.MEDIUM)], ValidationOptions(ocr_success=True)) == 95
    assert score_issues([_issue(Severity.MEDIUM)], OPTIONS, has_ccnl=True) == 95


def test_score_never_below_zero():
    assert score_issues([_issue(Severity.ERROR)] * 10, OPTIONS) == 0


def test_score_is_monotonic_in_issues():
    issues = []
    previous = score_issues(issues, OPTIONS)
    for severity in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.ERROR, Severity.INFO):
        issues.append(_issue(severity))
        issues.append(_warning())
        current = score_issues(issues, OPTIONS)
        assert current <= previous
        previous = current


def test_score_labels():
    assert label_for_score(100) is ScoreLabel.EXCELLENT
    assert label_for_score(90) is ScoreLabel.EXCELLENT
    assert label_for_score(89) is ScoreLabel.GOOD
    assert label_for_score(75) is ScoreLabel.GOOD
    assert label_for_score(60) is ScoreLabel.ACCEPTABLE
    assert label_for_score(40) is ScoreLabel.POOR
    assert label_for_score(39) is ScoreLabel.CRITICAL
    assert label_for_score(0) is ScoreLabel.CRITICAL


def test_compliance_levels():
    assert classify_compliance([]) is ComplianceLevel.FULL
    assert classify_compliance([_issue(Severity.MEDIUM)] * 2) is ComplianceLevel.FULL
    assert classify_compliance([_issue(Severity.MEDIUM)] * 3) is ComplianceLevel.PARTIAL
    assert classify_compliance([_issue(Severity.HIGH)]) is ComplianceLevel.NON_COMPLIANT


def test_more_than_two_warnings_give_partial_compliance():
    assert classify_compliance([_warning()] * 2) is ComplianceLevel.FULL
    assert classify_compliance([_warning()] * 3) is ComplianceLevel.PARTIAL
    assert classify_compliance([_warning(), _warning(), _issue(Severity.LOW)]) is ComplianceLevel.PARTIAL


def test_status():
    assert determine_status([]) is ValidationStatus.OK
    assert determine_status([_warning()]) is ValidationStatus.WARNING
    assert determine_status([_issue(Severity.MEDIUM)]) is ValidationStatus.WARNING
    assert determine_status([_warning(), _issue(Severity.ERROR)]) is ValidationStatus.ERROR


def test_general_suggestions():
    issues = [_issue(Severity.MEDIUM)] * 4
    suggestions = general_suggestions(
        issues, 60, DocumentType.PAYSLIP, ValidationOptions(ocr_success=False)
    )
    assert len(suggestions) == 4


def test_no_general_suggestions_for_clean_invoice():
    assert general_suggestions([], 100, DocumentType.INVOICE, make_context().options) == []
