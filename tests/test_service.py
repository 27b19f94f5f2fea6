"""Tests for the validation service layer."""

from decimal import Decimal

import pytest

from conftest import NOW, codes, make_invoice

from fiscalcheck.config import Settings
from fiscalcheck.domain.models import (
    DocumentType,
    IssueCode,
    TaxRegime,
    ValidationOptions,
    ValidationStatus,
)
from fiscalcheck.services.validation import ValidationService, dump_response


INVOICE_PAYLOAD = {
    "documentType": "invoice",
    "document": {
        "taxableAmount": "1000",
        "vatRate": "22",
        "vatAmount": "220",
        "totalAmount": "1220",
    },
    "options": {"taxRegime": "ordinary"},
}

PAYSLIP_PAYLOAD = {
    "document_type": "payslip",
    "document": {
        "grossSalary": "1000",
        "irpef": "50",
        "inps": "92",
        "netSalary": "858",
    },
    "options": {"ccnlSector": "commercio", "jobLevel": "1"},
}


@pytest.fixture
def service() -> ValidationService:
    return ValidationService(Settings(_env_file=None, batch_workers=2))


def test_validate_payload_invoice(service):
    report = service.validate_payload(INVOICE_PAYLOAD, now=NOW)
    assert report.document_type is DocumentType.INVOICE
    assert report.status is ValidationStatus.OK


def test_validate_payload_payslip(service):
    report = service.validate_payload(PAYSLIP_PAYLOAD, now=NOW)
    assert IssueCode.BELOW_MINIMUM_WAGE in codes(report)
    assert report.status is ValidationStatus.ERROR


def test_unknown_document_type_is_structural(service):
    report = service.validate_payload({"documentType": "receipt", "document": {}}, now=NOW)
    assert report.document_type is None
    assert codes(report) == {IssueCode.INVALID_DOCUMENT}
    assert report.score == 0


def test_schema_error_is_structural(service):
    payload = {"documentType": "invoice", "document": {"taxableAmount": "abc"}}
    report = service.validate_payload(payload, now=NOW)
    assert report.document_type is DocumentType.INVOICE
    (issue,) = report.issues
    assert issue.code is IssueCode.INVALID_DOCUMENT
    assert issue.details["errors"][0]["field"] in ("taxableAmount", "taxable_amount")


def test_missing_amounts_are_structural(service):
    payload = {"documentType": "invoice", "document": {"taxableAmount": "1000"}}
    report = service.validate_payload(payload, now=NOW)
    assert report.issues[0].details["missing_fields"] == ["vat_rate", "vat_amount", "total_amount"]


def test_default_regime_from_settings():
    service = ValidationService(Settings(_env_file=None, default_tax_regime="flat_rate"))
    payload = {
        "documentType": "invoice",
        "document": {"taxableAmount": "1000", "vatRate": "0", "vatAmount": "0", "totalAmount": "1000"},
    }
    report = service.validate_payload(payload, now=NOW)
    assert report.status is ValidationStatus.OK


def test_default_regulatory_year_from_settings():
    service = ValidationService(Settings(_env_file=None, default_regulatory_year=2024))
    assert service.validate_document(make_invoice(), now=NOW).regulatory_year == 2024
    options = ValidationOptions(tax_regime=TaxRegime.ORDINARY, regulatory_year=2025)
    assert service.validate_document(make_invoice(), options, now=NOW).regulatory_year == 2025


def test_batch_preserves_input_order(service):
    payloads = [INVOICE_PAYLOAD, PAYSLIP_PAYLOAD, {"documentType": None}, INVOICE_PAYLOAD]
    reports = service.validate_batch(payloads, now=NOW)
    assert [report.document_type for report in reports] == [
        DocumentType.INVOICE,
        DocumentType.PAYSLIP,
        None,
        DocumentType.INVOICE,
    ]


def test_batch_matches_single_validation(service):
    single = [service.validate_payload(payload, now=NOW) for payload in (INVOICE_PAYLOAD, PAYSLIP_PAYLOAD)]
    assert service.validate_batch([INVOICE_PAYLOAD, PAYSLIP_PAYLOAD], now=NOW) == single


def test_to_response(service):
    report = service.validate_payload(PAYSLIP_PAYLOAD, now=NOW)
    data = dump_response(service.to_response(report))
    assert data["status"] == "error"
    assert data["complianceLevel"] == "non-compliant"
    assert Decimal(data["perRuleChecks"]["net_pay"]["declared"]) == Decimal("858")
