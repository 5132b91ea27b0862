"""Ports for URL validation and existence probing."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkaudit.domain.entities import ProbeOutcome, ValidatedTarget


@runtime_checkable
class UriValidatorPort(Protocol):
    def __call__(self, raw_url: str) -> ValidatedTarget | ProbeOutcome:
        """Return a target, or a MALFORMED_URL outcome. Never raises."""
        ...


@runtime_checkable
class ProberPort(Protocol):
    """Single existence check against a validated target.

    Must be safe to call concurrently; transport failures are returned
    as NETWORK_FAILURE outcomes, never raised.
    """

    async def probe(
        self, target: ValidatedTarget, timeout: float | None = None
    ) -> ProbeOutcome: ...
