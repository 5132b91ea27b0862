"""Port for sources of link records (database table, CSV export, ...)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkaudit.domain.entities import RawLinkRow


@runtime_checkable
class RecordProviderPort(Protocol):
    """Supplies the finite set of rows to check before validation starts.

    Implementations are context managers: ``__enter__`` opens the backing
    store (raising ``ProviderConnectionError`` on failure) and ``__exit__``
    always releases it.
    """

    def __enter__(self) -> RecordProviderPort: ...

    def __exit__(self, *exc_info: object) -> None: ...

    def fetch_rows(self) -> list[RawLinkRow]:
        """Return every ``(id, owner_id, name, raw_url)`` row.

        Raises:
            ProviderConnectionError: If the store cannot be queried.
        """
        ...
