from __future__ import annotations


class LinkAuditError(Exception):
    """Base error for link audit domain/usecases."""


class InvalidRecord(LinkAuditError, ValueError):
    """A provider row lacks a usable URL; the row is dropped, not the batch."""

    def __init__(
        self,
        message: str,
        *,
        record_id: int | None = None,
        owner_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.record_id = record_id
        self.owner_id = owner_id


class ProviderConnectionError(LinkAuditError):
    """The record provider could not be opened or queried. Batch-fatal."""
