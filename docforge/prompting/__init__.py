"""Prompt construction for the generative text service."""

from .builder import PromptBuilder, PromptMessage, PromptRequest, language_for_path, truncate_content

__all__ = [
    "PromptBuilder",
    "PromptMessage",
    "PromptRequest",
    "language_for_path",
    "truncate_content",
]
