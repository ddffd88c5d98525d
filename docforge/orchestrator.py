"""Job pipeline: parse, classify, generate and materialize documentation."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .analyzers import StructuralParser
from .classifier import classify
from .config import DocForgeConfig, GENERATION_MODES
from .generator import DocumentGenerator, GenerationError, GenerationUnit
from .llm.gate import default_gate
from .llm.runner import LLMRunner
from .logging import get_logger
from .materializer import Materializer
from .models import FeatureGroups, GeneratedDocument, JobStatus, NavigationNode, SourceFile
from .repo_scanner import filter_source_files
from .stores.generation_cache import GenerationCache, InMemoryGenerationCache
from .stores.job_store import InMemoryJobStore, JobStore

_GENERATION_START = 40
_GENERATION_END = 75


class JobFailed(RuntimeError):
    """Internal signal that a job-wide precondition failed."""


class Orchestrator:
    """Coordinates one documentation job from raw files to a sidebar.

    Groups (or files) are generated strictly one after another; the rate
    limit gate is global, so fanning out would only queue on it. Progress
    and errors are reported through the job store, never by raising.
    """

    def __init__(
        self,
        generator: DocumentGenerator,
        *,
        parser: StructuralParser | None = None,
        materializer: Materializer | None = None,
        jobs: JobStore | None = None,
        mode: str = "group",
    ) -> None:
        if mode not in GENERATION_MODES:
            raise ValueError(f"Unknown generation mode: {mode}")
        self.jobs = jobs or generator.jobs or InMemoryJobStore()
        self.generator = generator
        self.generator.jobs = self.jobs
        self.parser = parser or StructuralParser()
        self.materializer = materializer or Materializer()
        self.materializer.jobs = self.jobs
        self.mode = mode
        self.logger = get_logger("orchestrator")
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        config: DocForgeConfig,
        *,
        runner: LLMRunner | None = None,
        jobs: JobStore | None = None,
        cache: GenerationCache | None = None,
    ) -> "Orchestrator":
        llm = config.llm
        runner = runner or LLMRunner(
            llm.model,
            base_url=llm.base_url,
            temperature=0.2 if llm.temperature is None else llm.temperature,
            max_tokens=4096 if llm.max_tokens is None else llm.max_tokens,
            request_timeout=60.0 if llm.request_timeout is None else llm.request_timeout,
            **({"api_key": llm.api_key} if llm.api_key else {}),
        )
        jobs = jobs or InMemoryJobStore()
        generator = DocumentGenerator(
            runner,
            config=config.generation,
            cache=cache if cache is not None else InMemoryGenerationCache(),
            jobs=jobs,
            gate=default_gate(config.generation.cooldown_seconds),
        )
        return cls(
            generator,
            materializer=Materializer(sidebar_format=config.output.sidebar_format),
            jobs=jobs,
            mode=config.generation.mode,
        )

    async def run_job(
        self,
        job_id: str,
        files: Sequence[SourceFile],
        destination: Path,
        *,
        mode: Optional[str] = None,
    ) -> Optional[NavigationNode]:
        """Run a job to completion; returns the sidebar tree, or ``None`` on failure."""

        if self.jobs.read(job_id) is None:
            self.jobs.create(job_id)
        try:
            return await self._run(job_id, files, Path(destination), mode or self.mode)
        except (JobFailed, GenerationError) as exc:
            self._fail(job_id, str(exc))
        except Exception as exc:  # pragma: no cover - unexpected failure
            self._log_exception(f"Job {job_id} crashed", exc)
            self._fail(job_id, f"unexpected error: {exc}")
        return None

    def start_job(
        self,
        files: Sequence[SourceFile],
        destination: Path,
        *,
        job_id: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> Tuple[str, "asyncio.Task[Optional[NavigationNode]]"]:
        """Schedule a job on the running loop and return its id immediately."""

        job_id = job_id or uuid.uuid4().hex
        self.jobs.create(job_id)
        task = asyncio.get_running_loop().create_task(
            self.run_job(job_id, files, destination, mode=mode)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job_id, task

    def run(
        self,
        files: Sequence[SourceFile],
        destination: Path,
        *,
        job_id: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> Tuple[str, Optional[NavigationNode]]:
        """Blocking wrapper used by the CLI."""

        job_id = job_id or uuid.uuid4().hex
        navigation = asyncio.run(self.run_job(job_id, files, destination, mode=mode))
        return job_id, navigation

    # ------------------------------------------------------------------
    # Pipeline phases

    async def _run(
        self, job_id: str, files: Sequence[SourceFile], destination: Path, mode: str
    ) -> NavigationNode:
        if mode not in GENERATION_MODES:
            raise JobFailed(f"unknown generation mode {mode!r}")
        self.jobs.set_status(job_id, JobStatus.INITIALIZING)
        self.jobs.append(job_id, f"Starting documentation job ({mode} mode)", 5, "initializing")
        if not files:
            raise JobFailed("no input files were provided")

        self.jobs.set_status(job_id, JobStatus.ANALYZING)
        candidates = filter_source_files(files)
        self.jobs.append(
            job_id,
            f"Analyzing {len(candidates)} of {len(files)} files after filtering",
            15,
            "analyzing",
        )
        parsed = self.parser.parse_all(candidates)
        if not parsed:
            raise JobFailed("no parseable source files with named declarations")
        self.jobs.append(job_id, f"Extracted symbols from {len(parsed)} files", 20, "analyzing")

        groups = classify(parsed)
        summary = ", ".join(f"{feature} ({len(members)})" for feature, members in groups.items())
        self.jobs.append(job_id, f"Classified files into features: {summary}", 25, "classifying")

        self.jobs.set_status(job_id, JobStatus.GENERATING)
        units = self._units(groups, files, mode)
        self.jobs.append(
            job_id, f"Generating {len(units)} documents", _GENERATION_START, "generating"
        )
        documents: List[GeneratedDocument] = []
        span = _GENERATION_END - _GENERATION_START
        for index, unit in enumerate(units):
            document = await self.generator.generate(unit, position=index + 2, job_id=job_id)
            documents.append(document)
            progress = _GENERATION_START + (span * (index + 1)) // len(units)
            self.jobs.append(
                job_id,
                f"Documented {unit.label} ({index + 1}/{len(units)}, {document.origin})",
                progress,
                "generating",
            )

        self.jobs.set_status(job_id, JobStatus.FINALIZING)
        self.jobs.append(job_id, f"Writing documentation to {destination}", 80, "finalizing")
        navigation = self.materializer.materialize(documents, destination, job_id=job_id)
        persist = getattr(self.generator.cache, "persist", None)
        if callable(persist):
            persist()
        self.jobs.append(job_id, "Rebuilt navigation sidebar", 90, "finalizing")

        self.jobs.append(
            job_id, f"Documentation generated: {len(documents)} documents", 100, "completed"
        )
        self.jobs.set_status(job_id, JobStatus.COMPLETED)
        self.logger.info("Job %s completed with %d documents", job_id, len(documents))
        return navigation

    def _units(
        self, groups: FeatureGroups, files: Sequence[SourceFile], mode: str
    ) -> List[GenerationUnit]:
        if mode == "group":
            return [GenerationUnit.for_group(feature, members) for feature, members in groups.items()]
        sources: Dict[str, SourceFile] = {file.path: file for file in files}
        units: List[GenerationUnit] = []
        for feature, members in groups.items():
            for parsed in members:
                source = sources[parsed.path].text()
                units.append(GenerationUnit.for_file(parsed, source, category=feature))
        return units

    def _fail(self, job_id: str, reason: str) -> None:
        self.logger.error("Job %s failed: %s", job_id, reason)
        self.jobs.append(job_id, f"ERROR: {reason}", step="failed")
        self.jobs.set_status(job_id, JobStatus.FAILED)

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["Orchestrator"]
