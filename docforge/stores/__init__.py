"""Injected stores for generation results and job progress."""

from .generation_cache import GenerationCache, InMemoryGenerationCache, cache_key
from .job_store import InMemoryJobStore, JobStore

__all__ = [
    "GenerationCache",
    "InMemoryGenerationCache",
    "InMemoryJobStore",
    "JobStore",
    "cache_key",
]
