"""Generation of one documentation page per feature group or file."""

from __future__ import annotations

import asyncio
import json
import posixpath
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import GenerationConfig
from .failsafe import build_symbol_outline_doc
from .llm.gate import RateLimitGate, Sleep, default_gate
from .llm.retry import RetryPolicy, call_with_backoff
from .llm.runner import LLMRunner, PermanentServiceError, RateLimitedError, TransientServiceError
from .logging import get_logger
from .models import GeneratedDocument, ParsedFile
from .postproc.frontmatter import sanitize_id
from .prompting.builder import PromptBuilder, PromptRequest
from .stores.generation_cache import GenerationCache, InMemoryGenerationCache, cache_key
from .stores.job_store import JobStore
from .validators import DocumentShapeValidator, SummaryLengthValidator, ValidationError, Validator
from .validators.base import ensure_valid


class GenerationError(RuntimeError):
    """Raised when the service rejects a unit permanently (auth, bad request)."""


@dataclass(frozen=True)
class GenerationUnit:
    """One prompt's worth of work: a whole feature group or a single file."""

    kind: str  # "group" or "file"
    label: str
    category: str
    files: Tuple[str, ...]
    content: str
    parsed: Tuple[ParsedFile, ...] = field(default=(), compare=False)

    @classmethod
    def for_group(cls, feature: str, files: Sequence[ParsedFile]) -> "GenerationUnit":
        outline = [parsed.to_dict() for parsed in files]
        return cls(
            kind="group",
            label=feature,
            category=feature,
            files=tuple(parsed.path for parsed in files),
            content=json.dumps(outline, indent=2),
            parsed=tuple(files),
        )

    @classmethod
    def for_file(cls, parsed: ParsedFile, source: str, *, category: str) -> "GenerationUnit":
        return cls(
            kind="file",
            label=posixpath.basename(parsed.path),
            category=category,
            files=(parsed.path,),
            content=source,
            parsed=(parsed,),
        )

    @property
    def doc_id(self) -> str:
        if self.kind == "file" and self.files:
            return sanitize_id(posixpath.splitext(self.files[0])[0])
        return sanitize_id(self.label)


class DocumentGenerator:
    """Turns generation units into validated documents.

    Each unit goes through the cache, then the full prompt, then a simplified
    prompt with a larger content budget, and finally a deterministic outline
    built from the extracted symbols. Only a permanent service failure
    escapes, as ``GenerationError``.
    """

    def __init__(
        self,
        runner: LLMRunner,
        *,
        config: GenerationConfig | None = None,
        cache: GenerationCache | None = None,
        jobs: JobStore | None = None,
        gate: RateLimitGate | None = None,
        builder: PromptBuilder | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or GenerationConfig()
        self.runner = runner
        self.cache = cache if cache is not None else InMemoryGenerationCache()
        self.jobs = jobs
        self.gate = gate or default_gate(self.config.cooldown_seconds)
        self.builder = builder or PromptBuilder(
            truncate_chars=self.config.truncate_chars,
            fallback_truncate_chars=self.config.fallback_truncate_chars,
        )
        self.policy = RetryPolicy(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            max_delay=self.config.max_delay,
        )
        self._sleep = sleep
        self.logger = get_logger("generator")

    async def generate(
        self,
        unit: GenerationUnit,
        *,
        position: int = 1,
        job_id: Optional[str] = None,
    ) -> GeneratedDocument:
        key = cache_key(
            unit.kind,
            unit.label,
            unit.files,
            unit.content,
            prefix_chars=self.config.cache_prefix_chars,
        )
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug("Cache hit for %s", unit.label)
            self._note(job_id, f"Using cached documentation for {unit.label}")
            return self._document(unit, cached, position, origin="cache")

        validators = self._validators_for(unit)
        failure = "no attempt made"
        for origin, simplified in (("service", False), ("simplified", True)):
            prompt = self.builder.build(unit, simplified=simplified)
            tier = "simplified prompt" if simplified else "prompt"
            if prompt.truncated:
                self._note(job_id, f"Content for {unit.label} truncated for the {tier}")
            self._note(job_id, f"Requesting documentation for {unit.label} ({tier})")
            try:
                text = await self._call(prompt, unit, job_id)
                ensure_valid(text, validators, subject=unit.label)
            except PermanentServiceError as exc:
                self.logger.error("Service rejected %s: %s", unit.label, exc)
                self._note(job_id, f"ERROR: service rejected {unit.label}: {exc}")
                raise GenerationError(f"Generation failed for {unit.label}: {exc}") from exc
            except TransientServiceError as exc:
                failure = str(exc)
                self.logger.warning("Service unavailable for %s (%s): %s", unit.label, tier, exc)
                self._note(job_id, f"Service unavailable for {unit.label} ({tier}): {exc}")
                continue
            except ValidationError as exc:
                failure = str(exc)
                self.logger.warning("Rejected output for %s (%s): %s", unit.label, tier, exc)
                self._note(job_id, f"Output for {unit.label} failed validation ({tier})")
                continue
            self.cache.store(key, text)
            self._note(job_id, f"Generated documentation for {unit.label}")
            return self._document(unit, text, position, origin=origin)

        self.logger.warning("Falling back to symbol outline for %s", unit.label)
        self._note(job_id, f"Falling back to symbol outline for {unit.label}")
        body = build_symbol_outline_doc(unit, reason=failure)
        return self._document(unit, body, position, origin="template")

    async def _call(self, prompt: PromptRequest, unit: GenerationUnit, job_id: Optional[str]) -> str:
        def on_retry(attempt: int, delay: float, exc: TransientServiceError) -> None:
            cause = "Rate limited" if isinstance(exc, RateLimitedError) else "Transient failure"
            self._note(
                job_id,
                f"{cause} for {unit.label}; retry {attempt}/{self.policy.max_attempts - 1} "
                f"in {delay:.1f}s",
            )

        async def attempt() -> str:
            return await asyncio.to_thread(
                self.runner.run,
                prompt.user,
                system=prompt.system,
                temperature=prompt.temperature,
            )

        return await call_with_backoff(
            attempt,
            policy=self.policy,
            gate=self.gate,
            sleep=self._sleep,
            on_retry=on_retry,
        )

    def _validators_for(self, unit: GenerationUnit) -> List[Validator]:
        if unit.kind == "group":
            return [SummaryLengthValidator(self.config.summary_min_length)]
        return [DocumentShapeValidator(self.config.min_length)]

    @staticmethod
    def _document(
        unit: GenerationUnit, body: str, position: int, *, origin: str
    ) -> GeneratedDocument:
        return GeneratedDocument(
            id=unit.doc_id,
            title=unit.label,
            sidebar_position=position,
            body=body,
            source_files=unit.files,
            category=unit.category,
            origin=origin,
        )

    def _note(self, job_id: Optional[str], message: str) -> None:
        if self.jobs is not None and job_id is not None:
            self.jobs.append(job_id, message)


__all__ = ["DocumentGenerator", "GenerationError", "GenerationUnit"]
