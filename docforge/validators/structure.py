"""Structural checks on generated documentation."""

from __future__ import annotations

from typing import List

from .base import ValidationIssue

CODE_FENCE = "```"
EXAMPLE_WORD = "Example"


class SummaryLengthValidator:
    """Accepts any text longer than ``min_length`` characters."""

    name = "summary_length"

    def __init__(self, min_length: int = 50) -> None:
        self.min_length = min_length

    def validate(self, text: str) -> List[ValidationIssue]:
        length = len(text.strip())
        if length > self.min_length:
            return []
        return [
            ValidationIssue(
                validator=self.name,
                detail=f"{length} characters, expected more than {self.min_length}",
            )
        ]


class DocumentShapeValidator(SummaryLengthValidator):
    """Per-file documents also need a fenced code block and an Example."""

    name = "document_shape"

    def __init__(self, min_length: int = 100) -> None:
        super().__init__(min_length)

    def validate(self, text: str) -> List[ValidationIssue]:
        issues = super().validate(text)
        if CODE_FENCE not in text:
            issues.append(ValidationIssue(validator=self.name, detail="no fenced code block"))
        if EXAMPLE_WORD not in text:
            issues.append(ValidationIssue(validator=self.name, detail="no Example section"))
        return issues


__all__ = ["DocumentShapeValidator", "SummaryLengthValidator"]
