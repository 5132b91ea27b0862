"""Link records, probe outcomes and progress events."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .errors import InvalidRecord


class RawLinkRow(NamedTuple):
    """One row as yielded by a record provider (not validated yet).

    Text-based providers may hand over ids as strings.
    """

    id: int | str
    owner_id: int | str
    name: Optional[str]
    raw_url: Optional[str]


@dataclass(frozen=True)
class LinkRecord:
    """A single external link to check.

    ``owner_id`` identifies the containing collection (e.g. a course) and
    is only used for reporting context.
    """

    id: int
    owner_id: int
    name: str
    raw_url: str

    def __post_init__(self) -> None:
        if self.raw_url is None or not str(self.raw_url).strip():
            raise InvalidRecord(
                f"record {self.id} (owner {self.owner_id}) has no url",
                record_id=self.id,
                owner_id=self.owner_id,
            )
        if self.name is None:
            object.__setattr__(self, "name", "")

    @classmethod
    def from_row(cls, row: RawLinkRow) -> LinkRecord:
        return cls(
            id=int(row.id),
            owner_id=int(row.owner_id),
            name=row.name if row.name is not None else "",
            raw_url=row.raw_url,  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class ValidatedTarget:
    """Well-formed absolute URL ready to be probed."""

    url: str
    scheme: str
    host: str


class OutcomeKind(enum.Enum):
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    MALFORMED_URL = "malformed_url"
    NETWORK_FAILURE = "network_failure"


@dataclass(frozen=True)
class ProbeOutcome:
    """Classified result of checking one link record."""

    kind: OutcomeKind
    status_code: int | None = None
    reason: str | None = None
    detail: str | None = None

    @classmethod
    def success(cls, status_code: int, reason: str | None = None) -> ProbeOutcome:
        return cls(OutcomeKind.SUCCESS, status_code=status_code, reason=reason)

    @classmethod
    def http_error(cls, status_code: int, reason: str | None = None) -> ProbeOutcome:
        return cls(OutcomeKind.HTTP_ERROR, status_code=status_code, reason=reason)

    @classmethod
    def malformed_url(cls, detail: str) -> ProbeOutcome:
        return cls(OutcomeKind.MALFORMED_URL, detail=detail)

    @classmethod
    def network_failure(cls, detail: str) -> ProbeOutcome:
        return cls(OutcomeKind.NETWORK_FAILURE, detail=detail)

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def label(self) -> str:
        """Short tag for human-readable log lines (``200 OK``, ``timeout``...)."""
        if self.status_code is not None:
            if self.reason:
                return f"{self.status_code} {self.reason}"
            return str(self.status_code)
        return self.detail or self.kind.value


@dataclass(frozen=True)
class ProgressPosition:
    """(completed, total) pair attached to every outcome event."""

    completed: int
    total: int

    @property
    def is_final(self) -> bool:
        return self.completed == self.total

    def __str__(self) -> str:
        width = max(6, len(str(self.total)))
        return f"{self.completed:0{width}d}/{self.total:0{width}d}"


@dataclass(frozen=True)
class CheckEvent:
    position: ProgressPosition
    outcome: ProbeOutcome
    record: LinkRecord


@dataclass
class CheckSummary:
    """Aggregate result of one batch run."""

    total: int
    counts: dict[OutcomeKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in OutcomeKind}
    )
    skipped: int = 0
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return sum(self.counts.values())

    @property
    def broken(self) -> int:
        return self.completed - self.counts[OutcomeKind.SUCCESS]

    def record(self, outcome: ProbeOutcome) -> None:
        self.counts[outcome.kind] += 1

    def as_log_fields(self) -> dict[str, int | bool]:
        fields: dict[str, int | bool] = {
            "total": self.total,
            "completed": self.completed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
        }
        for kind, count in self.counts.items():
            fields[kind.value] = count
        return fields
