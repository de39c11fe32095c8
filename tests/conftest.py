"""Pytest configuration and shared fixtures."""

import asyncio
import json
from collections.abc import AsyncGenerator, Generator
from typing import Any
from urllib.parse import unquote

import httpx
import pytest
import structlog

from teleprompter import MemoryKV, RegistryClient

BASE_URL = "https://registry.test"


class FakeRegistry:
    """In-memory prompt registry served through ``httpx.MockTransport``.

    Keeps full version history per id; a delete hides the current pointer
    but leaves the history readable.
    """

    def __init__(self) -> None:
        self.history: dict[str, list[dict[str, Any]]] = {}
        self.deleted: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def seed(self, prompt_id: str, *bodies: str) -> None:
        for body in bodies:
            self._write(prompt_id, body)

    def current(self, prompt_id: str) -> dict[str, Any] | None:
        if prompt_id in self.deleted or prompt_id not in self.history:
            return None
        return self.history[prompt_id][-1]

    def _write(self, prompt_id: str, body: str) -> None:
        versions = self.history.setdefault(prompt_id, [])
        version = versions[-1]["version"] + 1 if versions else 1
        versions.append({"id": prompt_id, "body": body, "version": version})
        self.deleted.discard(prompt_id)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, text="registry unavailable")

        raw_path = request.url.raw_path.decode().split("?", 1)[0]
        parts = [unquote(p) for p in raw_path.strip("/").split("/")]
        method = request.method

        if parts == ["prompts"] and method == "GET":
            current = [self.current(pid) for pid in self.history]
            return httpx.Response(200, json=[p for p in current if p is not None])

        if parts == ["prompts"] and method == "POST":
            payload = json.loads(request.content)
            if not payload.get("id") or "body" not in payload:
                return httpx.Response(400)
            self._write(payload["id"], payload["body"])
            return httpx.Response(201)

        if len(parts) == 2 and parts[0] == "prompts":
            prompt = self.current(parts[1])
            if prompt is None:
                return httpx.Response(404)
            if method == "GET":
                return httpx.Response(200, json=prompt)
            if method == "DELETE":
                self.deleted.add(parts[1])
                return httpx.Response(204)

        if len(parts) == 3 and parts[0] == "prompts" and parts[2] == "versions":
            if parts[1] not in self.history:
                return httpx.Response(404)
            return httpx.Response(200, json=self.history[parts[1]])

        return httpx.Response(404)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any logging configuration a test (or the CLI) applied."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
async def client(registry: FakeRegistry) -> AsyncGenerator[RegistryClient, None]:
    """Registry client backed by the fake registry through an injected dispatcher."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(registry.handle), base_url=BASE_URL)
    yield RegistryClient(http)
    await http.aclose()


@pytest.fixture
def sync_client(registry: FakeRegistry) -> Generator[RegistryClient, None, None]:
    """Same as ``client`` but usable from synchronous tests such as CLI runs."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(registry.handle), base_url=BASE_URL)
    yield RegistryClient(http)
    asyncio.run(http.aclose())


@pytest.fixture
def kv() -> MemoryKV:
    return MemoryKV()
