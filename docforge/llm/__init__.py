"""Generative text service client, rate limiting and retries."""

from .gate import RateLimitGate, default_gate
from .retry import RetryPolicy, call_with_backoff
from .runner import (
    GenerationServiceError,
    LLMRunner,
    PermanentServiceError,
    RateLimitedError,
    TransientServiceError,
)

__all__ = [
    "GenerationServiceError",
    "LLMRunner",
    "PermanentServiceError",
    "RateLimitGate",
    "RateLimitedError",
    "RetryPolicy",
    "TransientServiceError",
    "call_with_backoff",
    "default_gate",
]
