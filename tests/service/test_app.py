"""Tests for the FastAPI service mode."""

from __future__ import annotations

import base64
import threading
from pathlib import Path
from typing import Dict, List

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from docforge.models import JobStatus
from docforge.service.app import create_app, estimate_remaining
from docforge.stores.job_store import InMemoryJobStore


class _StubOrchestrator:
    def __init__(self) -> None:
        self.jobs = InMemoryJobStore()
        self.calls: List[Dict[str, object]] = []
        self.loop_thread: int | None = None

    async def run_job(self, job_id, files, destination, *, mode=None):
        self.loop_thread = threading.get_ident()
        self.calls.append(
            {"job_id": job_id, "files": files, "destination": destination, "mode": mode}
        )
        self.jobs.append(job_id, "Analyzing", 15, "analyzing")
        self.jobs.set_status(job_id, JobStatus.ANALYZING)
        return None


@pytest.fixture
def orchestrator() -> _StubOrchestrator:
    return _StubOrchestrator()


@pytest.fixture
def client(orchestrator: _StubOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_submit_inline_files_starts_job(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    payload = {
        "files": [
            {"path": "src/auth/login.ts", "content": "export function login() {}\n"},
            {
                "path": "src/api/routes.ts",
                "content": base64.b64encode(b"export function routes() {}\n").decode("ascii"),
                "encoding": "base64",
            },
        ],
        "output_dir": str(tmp_path / "docs"),
        "mode": "file",
        "job_id": "job-1",
    }

    response = client.post("/jobs", json=payload)

    assert response.status_code == 202
    assert response.json() == {"jobId": "job-1", "status": "INITIALIZING"}
    call = orchestrator.calls[0]
    assert call["job_id"] == "job-1"
    assert call["mode"] == "file"
    assert call["destination"] == tmp_path / "docs"
    assert [item.content for item in call["files"]] == [
        b"export function login() {}\n",
        b"export function routes() {}\n",
    ]


def test_submit_repository_path(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    (repo / "src" / "main.py").write_text("def main():\n    pass\n", encoding="utf-8")

    response = client.post("/jobs", json={"path": str(repo), "output_dir": str(tmp_path / "docs")})

    assert response.status_code == 202
    job_id = response.json()["jobId"]
    assert job_id
    assert [item.path for item in orchestrator.calls[0]["files"]] == ["src/main.py"]

def test_repository_scan_runs_off_the_event_loop(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path, monkeypatch
) -> None:
    scan_threads: List[int] = []

    def fake_collect(self, root):
        scan_threads.append(threading.get_ident())
        return []

    monkeypatch.setattr("docforge.service.app.RepoScanner.collect", fake_collect)

    response = client.post("/jobs", json={"path": str(tmp_path), "output_dir": str(tmp_path / "docs")})

    assert response.status_code == 202
    assert scan_threads and orchestrator.loop_thread is not None
    assert scan_threads[0] != orchestrator.loop_thread



def test_submit_requires_exactly_one_source(client: TestClient) -> None:
    assert client.post("/jobs", json={}).status_code == 422
    assert (
        client.post("/jobs", json={"path": ".", "files": [{"path": "a.py", "content": ""}]}).status_code
        == 422
    )


def test_submit_rejects_invalid_base64(client: TestClient) -> None:
    response = client.post(
        "/jobs",
        json={"files": [{"path": "a.py", "content": "***", "encoding": "base64"}]},
    )

    assert response.status_code == 422


def test_submit_missing_repository_returns_404(client: TestClient, tmp_path: Path) -> None:
    response = client.post("/jobs", json={"path": str(tmp_path / "missing")})

    assert response.status_code == 404


def test_job_status_uses_camel_case_fields(client: TestClient, tmp_path: Path) -> None:
    client.post(
        "/jobs",
        json={
            "files": [{"path": "a.py", "content": "def a():\n    pass\n"}],
            "output_dir": str(tmp_path / "docs"),
            "job_id": "job-1",
        },
    )

    response = client.get("/jobs/job-1")

    assert response.status_code == 200
    body = response.json()
    assert body["jobId"] == "job-1"
    assert body["status"] == "ANALYZING"
    assert body["progressPercent"] == 15
    assert body["currentStep"] == "analyzing"
    assert body["log"][-1].endswith("Analyzing")
    assert body["estimatedTimeRemaining"] == "5 minutes"


def test_job_status_returns_last_fifty_log_lines(
    client: TestClient, orchestrator: _StubOrchestrator
) -> None:
    orchestrator.jobs.create("busy")
    for index in range(60):
        orchestrator.jobs.append("busy", f"line {index}")

    body = client.get("/jobs/busy").json()

    assert len(body["log"]) == 50
    assert body["log"][0].endswith("line 10")
    assert body["log"][-1].endswith("line 59")


def test_unknown_job_returns_404(client: TestClient) -> None:
    assert client.get("/jobs/missing").status_code == 404


def test_estimate_remaining() -> None:
    assert estimate_remaining(0) is None
    assert estimate_remaining(100) is None
    assert estimate_remaining(80) == "1 minute"
    assert estimate_remaining(40) == "3 minutes"
