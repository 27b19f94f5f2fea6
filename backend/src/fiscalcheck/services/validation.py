"""
Validation service.

Coordinates the boundary between raw payloads and the pure engine:
1. Payload parsing into domain objects
2. Settings-driven defaults (tax regime, regulatory year)
3. Single and batch validation
4. Response serialization

This is the primary interface for callers outside the domain package.
"""

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from fiscalcheck.api.schemas import (
    InvoicePayload,
    OptionsPayload,
    PayslipPayload,
    ValidationReportResponse,
)
from fiscalcheck.config import Settings, get_settings
from fiscalcheck.domain.models import (
    DocumentType,
    NormalizedDocument,
    TaxRegime,
    ValidationOptions,
    ValidationReport,
)
from fiscalcheck.domain.validation import structural_error_report, validate

logger = logging.getLogger(__name__)


PAYLOAD_SCHEMAS: dict[DocumentType, type[InvoicePayload] | type[PayslipPayload]] = {
    DocumentType.INVOICE: InvoicePayload,
    DocumentType.PAYSLIP: PayslipPayload,
}


class ValidationService:
    """
    Validates normalized fiscal documents with application defaults.

    Example:
        service = ValidationService()

        report = service.validate_payload({
            "documentType": "invoice",
            "document": {"taxableAmount": "1000.00", "vatRate": "22", ...},
            "options": {"taxRegime": "ordinary"},
        })

        if report.has_errors:
            # Route to manual review
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize validation service.

        Args:
            settings: Application settings (loaded from environment if None)
        """
        self.settings = settings or get_settings()
        self.default_regime = TaxRegime(self.settings.default_tax_regime)

    def default_options(self) -> ValidationOptions:
        return ValidationOptions(
            tax_regime=self.default_regime,
            regulatory_year=self.settings.default_regulatory_year,
        )

    def validate_document(
        self,
        document: NormalizedDocument,
        options: ValidationOptions | None = None,
        now: datetime | None = None,
    ) -> ValidationReport:
        """
        Validate a domain document, applying the configured regulatory year
        when the options don't set one.
        """
        if options is None:
            options = self.default_options()
        elif options.regulatory_year is None and self.settings.default_regulatory_year:
            options = replace(options, regulatory_year=self.settings.default_regulatory_year)
        return validate(document, options, now=now)

    def validate_payload(
        self,
        payload: Mapping[str, Any],
        now: datetime | None = None,
    ) -> ValidationReport:
        """
        Validate a raw payload from the parsing layer.

        Args:
            payload: Dict with `documentType`, `document` and optional `options`
            now: Validation time (current UTC time if None)

        Returns:
            ValidationReport; malformed payloads produce a structural error
            report instead of raising
        """
        raw_type = payload.get("document_type", payload.get("documentType"))
        try:
            document_type = DocumentType(raw_type)
        except ValueError:
            logger.warning(f"Rejected payload with unsupported document type: {raw_type!r}")
            return structural_error_report(
                f"Unsupported document type: {raw_type!r}",
                now=now,
                document_type_received=str(raw_type),
            )

        schema = PAYLOAD_SCHEMAS[document_type]
        try:
            document = schema.model_validate(payload.get("document") or {}).to_domain()
            options = OptionsPayload.model_validate(payload.get("options") or {}).to_domain(
                default_regime=self.default_regime,
                default_year=self.settings.default_regulatory_year,
            )
        except ValidationError as exc:
            logger.warning(f"Rejected {document_type.value} payload: {exc.error_count()} errors")
            return structural_error_report(
                f"Invalid {document_type.value} payload",
                document_type,
                now=now,
                errors=[
                    {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                    for error in exc.errors()
                ],
            )

        return validate(document, options, now=now)

    def validate_batch(
        self,
        payloads: Iterable[Mapping[str, Any]],
        now: datetime | None = None,
    ) -> list[ValidationReport]:
        """
        Validate many payloads concurrently.

        Reports are returned in input order. Documents are independent, so
        the worker count never changes a report.
        """
        payloads = list(payloads)
        logger.info(
            f"Validating batch of {len(payloads)} documents "
            f"with {self.settings.batch_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=self.settings.batch_workers) as executor:
            reports = list(executor.map(lambda payload: self.validate_payload(payload, now), payloads))

        failed = sum(1 for report in reports if report.has_errors)
        logger.info(f"Batch complete: {len(reports)} reports, {failed} with errors")
        return reports

    @staticmethod
    def to_response(report: ValidationReport) -> ValidationReportResponse:
        return ValidationReportResponse.from_domain(report)


def dump_response(response: BaseModel) -> dict[str, Any]:
    """JSON-compatible dict with camelCase keys."""
    return response.model_dump(mode="json", by_alias=True)
