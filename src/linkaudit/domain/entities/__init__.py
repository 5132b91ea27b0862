from .errors import InvalidRecord, LinkAuditError, ProviderConnectionError
from .link import (
    CheckEvent,
    CheckSummary,
    LinkRecord,
    OutcomeKind,
    ProbeOutcome,
    ProgressPosition,
    RawLinkRow,
    ValidatedTarget,
)

__all__ = [
    "CheckEvent",
    "CheckSummary",
    "InvalidRecord",
    "LinkAuditError",
    "LinkRecord",
    "OutcomeKind",
    "ProbeOutcome",
    "ProgressPosition",
    "ProviderConnectionError",
    "RawLinkRow",
    "ValidatedTarget",
]
