"""CSV-backed record provider (``id,owner_id,name,url`` export)."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import TextIO

import structlog

from linkaudit.domain.entities import ProviderConnectionError, RawLinkRow

log = structlog.get_logger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("id", "owner_id", "name", "url")


class CsvRecordProvider:
    """Reads link rows from a CSV file with a header row.

    Extra columns are ignored. ``id``/``owner_id`` values are passed on
    as strings and converted by ``LinkRecord.from_row``; rows
    with non-integer ids are dropped by ``build_records``.
    """

    def __init__(self, path: Path, *, encoding: str = "utf-8") -> None:
        self.path = path
        self.encoding = encoding
        self._handle: TextIO | None = None

    def __enter__(self) -> CsvRecordProvider:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        if self._handle is not None:
            return
        try:
            self._handle = self.path.open(encoding=self.encoding, newline="")
        except OSError as e:
            raise ProviderConnectionError(f"cannot open {self.path}: {e}") from e
        log.info("csv_opened", path=str(self.path))

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def fetch_rows(self) -> list[RawLinkRow]:
        if self._handle is None:
            raise ProviderConnectionError("provider is not open")

        reader = csv.DictReader(self._handle)
        header = reader.fieldnames or []
        missing = [c for c in REQUIRED_COLUMNS if c not in header]
        if missing:
            raise ProviderConnectionError(
                f"{self.path} is missing columns: {', '.join(missing)}"
            )

        rows = [
            RawLinkRow(
                id=entry["id"],
                owner_id=entry["owner_id"],
                name=entry["name"],
                raw_url=entry["url"] or None,
            )
            for entry in reader
        ]
        log.info("records_fetched", path=str(self.path), count=len(rows))
        return rows
