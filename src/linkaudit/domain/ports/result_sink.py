"""Port for consumers of per-record outcome events."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkaudit.domain.entities import CheckEvent


@runtime_checkable
class ResultSinkPort(Protocol):
    """Receives exactly one event per processed record.

    ``emit`` is called from the event loop and must not block for long;
    events arrive in progress order (``position.completed`` ascending).
    """

    def emit(self, event: CheckEvent) -> None: ...
