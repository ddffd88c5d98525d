"""Core validation data structures and helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol, Sequence


@dataclass
class ValidationIssue:
    """Represents a single structural problem with generated markdown."""

    validator: str
    detail: str


class ValidationError(RuntimeError):
    """Raised when generated text fails one or more validators."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue]) -> None:
        super().__init__(message)
        self.issues = list(issues)


class Validator(Protocol):
    """Protocol implemented by generated-output validators."""

    name: str

    def validate(self, text: str) -> List[ValidationIssue]:
        """Run validation and return any issues."""


def ensure_valid(text: str, validators: Iterable[Validator], *, subject: str) -> None:
    """Raise ``ValidationError`` listing every issue the validators report."""

    issues: List[ValidationIssue] = []
    for validator in validators:
        issues.extend(validator.validate(text))
    if issues:
        summary = "; ".join(issue.detail for issue in issues)
        raise ValidationError(f"Generated text for {subject} rejected: {summary}", issues)


__all__ = ["ValidationError", "ValidationIssue", "Validator", "ensure_valid"]
