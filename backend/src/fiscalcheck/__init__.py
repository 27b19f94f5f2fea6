"""
fiscalcheck - Validation engine for Italian fiscal documents.

Checks electronic invoices and payslips against VAT, IRPEF, INPS and CCNL
rules and produces a scored compliance report.
"""

__version__ = "0.1.0"
