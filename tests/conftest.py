"""Shared test fixtures for linkaudit test suite."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import pytest

from linkaudit.domain.entities import (
    CheckEvent,
    LinkRecord,
    OutcomeKind,
    ProbeOutcome,
    ValidatedTarget,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def link_record() -> LinkRecord:
    """Minimal valid LinkRecord."""
    return LinkRecord(
        id=17,
        owner_id=204,
        name="Latin I - reading list",
        raw_url="https://example.com/reading-list",
    )


@pytest.fixture()
def make_records() -> Callable[..., list[LinkRecord]]:
    """Factory: ``make_records(["https://a", "bad"], owner_id=3)``."""

    def _make(urls: list[str], owner_id: int = 1) -> list[LinkRecord]:
        return [
            LinkRecord(id=i + 1, owner_id=owner_id, name=f"link {i + 1}", raw_url=url)
            for i, url in enumerate(urls)
        ]

    return _make


# ---------------------------------------------------------------------------
# Port fakes
# ---------------------------------------------------------------------------


@dataclass
class RecordingSink:
    """ResultSink that keeps every event it receives."""

    events: list[CheckEvent] = field(default_factory=list)

    def emit(self, event: CheckEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[OutcomeKind]:
        return [e.outcome.kind for e in self.events]

    def outcomes_by_url(self) -> dict[str, ProbeOutcome]:
        return {e.record.raw_url: e.outcome for e in self.events}


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


class FakeProber:
    """Prober returning scripted outcomes per URL, tracking concurrency.

    ``outcomes`` maps target URL -> ProbeOutcome (or an exception to raise).
    Unknown URLs succeed with 200.
    """

    def __init__(
        self,
        outcomes: dict[str, ProbeOutcome | Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.outcomes = outcomes or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(
        self, target: ValidatedTarget, timeout: float | None = None
    ) -> ProbeOutcome:
        self.calls.append(target.url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            result = self.outcomes.get(target.url, ProbeOutcome.success(200, "OK"))
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture()
def fake_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture()
def make_prober() -> type[FakeProber]:
    """The FakeProber class, for tests that script outcomes or delays."""
    return FakeProber


# ---------------------------------------------------------------------------
# Local TCP servers for timeout behaviour
# ---------------------------------------------------------------------------

_Handler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


@asynccontextmanager
async def _serve(handler: _Handler) -> AsyncIterator[str]:
    """Run *handler* on 127.0.0.1 and yield the server's base URL."""
    connections: set[asyncio.Task] = set()

    async def _tracked(
        reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        connections.add(task)
        try:
            await handler(reader, writer)
        except (ConnectionError, asyncio.IncompleteReadError, asyncio.CancelledError):
            pass
        finally:
            connections.discard(task)
            writer.close()

    server = await asyncio.start_server(_tracked, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.close()
        for task in list(connections):
            task.cancel()
        await asyncio.gather(*connections, return_exceptions=True)
        await server.wait_closed()


async def _drip_headers(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> None:
    """Send a status line, then one header line every 0.2s, never finishing."""
    writer.write(b"HTTP/1.1 200 OK\r\n")
    await writer.drain()
    for i in range(1000):
        await asyncio.sleep(0.2)
        writer.write(f"X-Drip-{i}: x\r\n".encode())
        await writer.drain()


async def _never_reply(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> None:
    """Accept the connection and wait for the client to hang up."""
    await reader.read()


async def _reply_ok(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> None:
    await reader.readuntil(b"\r\n\r\n")
    writer.write(
        b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\nConnection: close\r\n\r\n"
    )
    await writer.drain()


@pytest.fixture()
async def dripping_server() -> AsyncIterator[str]:
    """Server that trickles response headers forever."""
    async with _serve(_drip_headers) as base_url:
        yield base_url


@pytest.fixture()
async def silent_server() -> AsyncIterator[str]:
    """Server that accepts connections and never responds."""
    async with _serve(_never_reply) as base_url:
        yield base_url


@pytest.fixture()
async def ok_server() -> AsyncIterator[str]:
    """Server that answers every request with ``200 OK``."""
    async with _serve(_reply_ok) as base_url:
        yield base_url
