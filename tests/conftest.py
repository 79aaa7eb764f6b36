"""Shared fixtures: a temporary database and a fake web served over httpx.MockTransport."""

import asyncio
from typing import Optional

import httpx
import pytest

from webanalyzer.config import AnalyzerConfig
from webanalyzer.database import LocalSqliteDatabase


class FakeWeb:
    """Routes requests by host + path to canned pages, statuses and errors.

    Keys look like ``example.com/about``; the site root is ``example.com/``.
    """

    def __init__(self, delay: float = 0.0):
        self.pages: dict[str, str] = {}
        self.statuses: dict[str, int] = {}
        self.errors: dict[str, Exception] = {}
        self.responses: dict[str, httpx.Response] = {}
        self.requests: list[tuple[str, str]] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.probes_in_flight = 0
        self.max_probes_in_flight = 0
        self.gate: Optional[asyncio.Event] = None

    @staticmethod
    def key(request: httpx.Request) -> str:
        return f"{request.url.host}{request.url.path}"

    async def handler(self, request: httpx.Request) -> httpx.Response:
        key = self.key(request)
        self.requests.append((request.method, key))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        is_probe = request.method == "HEAD"
        if is_probe:
            self.probes_in_flight += 1
            self.max_probes_in_flight = max(self.max_probes_in_flight, self.probes_in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.gate is not None:
                await self.gate.wait()

            if key in self.errors:
                raise self.errors[key]
            if key in self.responses:
                return self.responses[key]
            if request.method == "GET" and key in self.pages:
                return httpx.Response(self.statuses.get(key, 200), html=self.pages[key])
            default = 200 if key in self.pages else 404
            return httpx.Response(self.statuses.get(key, default))
        finally:
            self.in_flight -= 1
            if is_probe:
                self.probes_in_flight -= 1

    def probes(self) -> list[str]:
        return [key for method, key in self.requests if method == "HEAD"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class BrokenStream(httpx.AsyncByteStream):
    """Response body that fails while being read."""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


@pytest.fixture
def db(tmp_path):
    """A fresh SQLite database for one test."""
    database = LocalSqliteDatabase(db_url=f"sqlite:///{tmp_path / 'test_analyzer.db'}")
    yield database
    database.close()


@pytest.fixture
def web():
    return FakeWeb()


@pytest.fixture
def config():
    """Default pipeline configuration with the cross-job pool disabled."""
    return AnalyzerConfig(global_probe_limit=0)


@pytest.fixture
def make_web():
    """Factory for FakeWeb instances with custom settings."""
    return FakeWeb


@pytest.fixture
def broken_body():
    """A 200 response whose body fails mid-read."""
    return httpx.Response(200, stream=BrokenStream())
