"""
Domain package - Core fiscal rules with no external dependencies.

This package contains pure Python domain models, regulatory tables and
validation rules for Italian invoices and payslips.
"""

from .models import (
    Invoice,
    NormalizedDocument,
    Payslip,
    ValidationOptions,
    ValidationReport,
)
from .validation import StructuralError, structural_error_report, validate

__all__ = [
    "Invoice",
    "NormalizedDocument",
    "Payslip",
    "StructuralError",
    "ValidationOptions",
    "ValidationReport",
    "structural_error_report",
    "validate",
]
