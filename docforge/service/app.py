"""FastAPI application exposing documentation jobs and their status."""

from __future__ import annotations

import asyncio
import base64
import binascii
import math
import uuid
from pathlib import Path
from typing import Any, Callable, List, Literal, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import load_config
from ..models import GenerationJob, JobStatus, SourceFile
from ..orchestrator import Orchestrator
from ..repo_scanner import RepoScanner

STATUS_LOG_LIMIT = 50
_FULL_RUN_MINUTES = 5


class FilePayload(BaseModel):
    path: str
    content: str
    encoding: Literal["utf-8", "base64"] = "utf-8"

    def to_source(self) -> SourceFile:
        if self.encoding == "base64":
            try:
                raw = base64.b64decode(self.content, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError(f"{self.path}: invalid base64 content") from exc
        else:
            raw = self.content.encode("utf-8")
        return SourceFile(path=self.path, content=raw)


class JobRequest(BaseModel):
    path: Optional[str] = None
    files: Optional[List[FilePayload]] = None
    output_dir: str = "docs"
    mode: Optional[Literal["group", "file"]] = None
    job_id: Optional[str] = None

    @model_validator(mode="after")
    def check_single_source(self) -> "JobRequest":
        if (self.path is None) == (self.files is None):
            raise ValueError("provide exactly one of 'path' or 'files'")
        return self


class JobAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: str


class JobStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    status: str
    progress_percent: int = Field(alias="progressPercent")
    current_step: str = Field(alias="currentStep")
    log: List[str]
    estimated_time_remaining: Optional[str] = Field(default=None, alias="estimatedTimeRemaining")


class HealthResponse(BaseModel):
    status: str


def estimate_remaining(progress: int) -> Optional[str]:
    """Rough minutes left, assuming a full run takes five minutes."""

    if progress <= 0 or progress >= 100:
        return None
    minutes = math.ceil((100 - progress) * _FULL_RUN_MINUTES / 100)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


def _status_response(job: GenerationJob) -> JobStatusResponse:
    remaining = None if job.status.is_terminal else estimate_remaining(job.progress_percent)
    return JobStatusResponse(
        job_id=job.id,
        status=job.status.value,
        progress_percent=job.progress_percent,
        current_step=job.current_step,
        log=job.log[-STATUS_LOG_LIMIT:],
        estimated_time_remaining=remaining,
    )


def _default_orchestrator() -> Orchestrator:
    return Orchestrator.from_config(load_config(Path.cwd()))


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing docforge jobs."""

    app = FastAPI(title="DocForge Service", version="1.0.0")
    # One orchestrator per app so the job store outlives individual requests.
    orchestrator = orchestrator_factory()
    app.state.orchestrator = orchestrator

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/jobs", response_model=JobAccepted, status_code=202)
    async def create_job(payload: JobRequest, background_tasks: BackgroundTasks) -> JobAccepted:
        if payload.path is not None:
            files = await asyncio.to_thread(RepoScanner().collect, payload.path)
        else:
            try:
                files = [item.to_source() for item in payload.files or []]
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
        job_id = payload.job_id or uuid.uuid4().hex
        orchestrator.jobs.create(job_id)
        background_tasks.add_task(
            orchestrator.run_job,
            job_id,
            files,
            Path(payload.output_dir),
            mode=payload.mode,
        )
        return JobAccepted(job_id=job_id, status=JobStatus.INITIALIZING.value)

    @app.get("/jobs/{job_id}", response_model=JobStatusResponse)
    async def job_status(job_id: str) -> JobStatusResponse:
        job = orchestrator.jobs.read(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")
        return _status_response(job)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(
        _: Any, exc: NotADirectoryError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "estimate_remaining", "run_service"]
