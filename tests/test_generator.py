"""Tests for docforge.generator."""

from __future__ import annotations

import asyncio
from typing import Callable, List

import pytest

from docforge.config import GenerationConfig
from docforge.generator import DocumentGenerator, GenerationError, GenerationUnit
from docforge.llm.gate import RateLimitGate
from docforge.llm.runner import LLMRequest, LLMRunner, PermanentServiceError, TransientServiceError
from docforge.models import ParsedFile, SymbolEntry, SymbolKind
from docforge.prompting.constants import TRUNCATION_MARKER
from docforge.stores.generation_cache import InMemoryGenerationCache
from docforge.stores.job_store import InMemoryJobStore

GROUP_DOC = (
    "# Authentication\n\nThe authentication feature signs users in, refreshes their "
    "session and guards private routes.\n"
)
FILE_DOC = (
    "# login.ts\n\nExports the `login` helper used by the sign-in page to exchange "
    "credentials for a session.\n\n## Example\n\n```typescript\nawait login('ada');\n```\n"
)


class ScriptedService:
    """Replays canned replies (strings or exceptions) and records every request."""

    def __init__(self, replies: List[object]) -> None:
        self.replies = list(replies)
        self.requests: List[LLMRequest] = []

    def __call__(self, request: LLMRequest) -> str:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return str(reply)


def _parsed(path: str = "src/auth/login.ts") -> ParsedFile:
    return ParsedFile(
        path=path,
        entries=[
            SymbolEntry(SymbolKind.FUNCTION, "login", 1, 5, exported="named"),
            SymbolEntry(
                SymbolKind.CLASS,
                "Session",
                7,
                20,
                children=[SymbolEntry(SymbolKind.METHOD, "refresh", 9, 12)],
            ),
        ],
    )


def _generator(
    service: Callable[[LLMRequest], str],
    *,
    sleeps: List[float] | None = None,
    cache: InMemoryGenerationCache | None = None,
    jobs: InMemoryJobStore | None = None,
    config: GenerationConfig | None = None,
) -> DocumentGenerator:
    recorded = sleeps if sleeps is not None else []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    return DocumentGenerator(
        LLMRunner(model="test-model", api_key=None, runner=service),
        config=config or GenerationConfig(max_attempts=2),
        cache=cache,
        jobs=jobs,
        gate=RateLimitGate(0, sleep=fake_sleep),
        sleep=fake_sleep,
    )


def test_group_unit_generates_validated_document() -> None:
    service = ScriptedService([GROUP_DOC])
    unit = GenerationUnit.for_group("Authentication", [_parsed(), _parsed("src/auth/jwt.ts")])

    document = asyncio.run(_generator(service).generate(unit, position=3))

    assert document.id == "authentication"
    assert document.title == "Authentication"
    assert document.sidebar_position == 3
    assert document.category == "Authentication"
    assert document.source_files == ("src/auth/login.ts", "src/auth/jwt.ts")
    assert document.body == GROUP_DOC
    assert document.origin == "service"
    assert service.requests[0].temperature == 0.2
    assert service.requests[0].system


def test_cached_unit_is_not_requested_twice() -> None:
    service = ScriptedService([GROUP_DOC])
    generator = _generator(service)
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    first = asyncio.run(generator.generate(unit))
    second = asyncio.run(generator.generate(unit))

    assert len(service.requests) == 1
    assert first == second
    assert second.origin == "cache"


def test_short_output_falls_back_to_simplified_then_outline() -> None:
    service = ScriptedService(["ok"])
    cache = InMemoryGenerationCache()
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    document = asyncio.run(_generator(service, cache=cache).generate(unit))

    assert document.origin == "template"
    assert [request.temperature for request in service.requests] == [0.2, 0.3]
    assert "# Authentication" in document.body
    for name in ("login", "Session", "refresh"):
        assert f"`{name}`" in document.body
    assert len(cache) == 0


def test_transient_primary_failure_uses_simplified_prompt() -> None:
    service = ScriptedService(
        [TransientServiceError("503"), TransientServiceError("503"), GROUP_DOC]
    )
    sleeps: List[float] = []
    cache = InMemoryGenerationCache()
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    document = asyncio.run(_generator(service, sleeps=sleeps, cache=cache).generate(unit))

    assert document.origin == "simplified"
    assert document.body == GROUP_DOC
    assert len(service.requests) == 3
    assert service.requests[-1].temperature == 0.3
    assert sleeps == [1.0]
    assert len(cache) == 1


def test_unreachable_service_yields_outline_document() -> None:
    service = ScriptedService([TransientServiceError("connection refused")])
    sleeps: List[float] = []
    jobs = InMemoryJobStore()
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    document = asyncio.run(
        _generator(service, sleeps=sleeps, jobs=jobs).generate(unit, job_id="job-1")
    )

    assert document.origin == "template"
    assert "connection refused" in document.body
    assert len(service.requests) == 4
    assert sleeps == [1.0, 1.0]
    job = jobs.read("job-1")
    assert job is not None
    assert any("Falling back to symbol outline" in line for line in job.log)
    assert any("retry 1/1" in line for line in job.log)


def test_permanent_failure_raises_generation_error() -> None:
    service = ScriptedService([PermanentServiceError("invalid api key", status=401)])
    jobs = InMemoryJobStore()
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    with pytest.raises(GenerationError):
        asyncio.run(_generator(service, jobs=jobs).generate(unit, job_id="job-1"))

    assert len(service.requests) == 1
    job = jobs.read("job-1")
    assert job is not None
    assert any(line.split("] ", 1)[1].startswith("ERROR:") for line in job.log)


def test_file_unit_requires_example_and_keeps_full_path() -> None:
    service = ScriptedService([FILE_DOC])
    unit = GenerationUnit.for_file(
        _parsed(), "export function login() {}\n", category="Authentication"
    )

    document = asyncio.run(_generator(service).generate(unit))

    assert document.id == "src-auth-login"
    assert document.title == "login.ts"
    assert document.source_files == ("src/auth/login.ts",)
    assert document.origin == "service"
    assert "TypeScript file: login.ts" in service.requests[0].prompt


def test_file_unit_without_example_is_rejected() -> None:
    service = ScriptedService([GROUP_DOC * 2])
    unit = GenerationUnit.for_file(
        _parsed(), "export function login() {}\n", category="Authentication"
    )

    document = asyncio.run(_generator(service).generate(unit))

    assert document.origin == "template"
    assert "## Source Excerpt" in document.body


def test_large_files_are_truncated_in_the_prompt() -> None:
    service = ScriptedService([FILE_DOC])
    jobs = InMemoryJobStore()
    unit = GenerationUnit.for_file(_parsed(), "y" * 40_000, category="Authentication")

    document = asyncio.run(_generator(service, jobs=jobs).generate(unit, job_id="job-1"))

    assert document.source_files == ("src/auth/login.ts",)
    prompt = service.requests[0].prompt
    assert "y" * 30_000 + TRUNCATION_MARKER in prompt
    assert "y" * 30_001 not in prompt
    job = jobs.read("job-1")
    assert job is not None
    assert any("truncated" in line for line in job.log)


class _ResetResponse:
    def read(self):
        raise ConnectionResetError(104, "Connection reset by peer")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_dropped_connection_yields_outline_document(monkeypatch) -> None:
    calls: List[object] = []

    def fake_urlopen(request, timeout=None):
        calls.append(request)
        return _ResetResponse()

    monkeypatch.setattr("docforge.llm.runner.urlopen", fake_urlopen)
    sleeps: List[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    generator = DocumentGenerator(
        LLMRunner(model="test-model", base_url="http://service/v1", api_key=None),
        config=GenerationConfig(max_attempts=2),
        gate=RateLimitGate(0, sleep=fake_sleep),
        sleep=fake_sleep,
    )
    unit = GenerationUnit.for_group("Authentication", [_parsed()])

    document = asyncio.run(generator.generate(unit))

    assert document.origin == "template"
    assert "Connection reset by peer" in document.body
    assert len(calls) == 4
