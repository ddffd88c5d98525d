"""Validation package for generated documentation."""

from .base import ValidationError, ValidationIssue, Validator, ensure_valid
from .structure import DocumentShapeValidator, SummaryLengthValidator

__all__ = [
    "DocumentShapeValidator",
    "SummaryLengthValidator",
    "ValidationError",
    "ValidationIssue",
    "Validator",
    "ensure_valid",
]
