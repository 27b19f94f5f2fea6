"""
Services package - Application-level coordination of the domain engine.

Includes settings-driven defaults and batch validation.
"""

from .validation import ValidationService

__all__ = ["ValidationService"]
