"""Result sink that reports every outcome through structlog."""

from __future__ import annotations

import structlog

from linkaudit.domain.entities import CheckEvent, OutcomeKind

log = structlog.get_logger(__name__)

DEFAULT_OWNER_URL_TEMPLATE = "https://moodle.example.org/course/view.php?id={owner_id}"


class LogResultSink:
    """Logs one line per record; failures get a follow-up remediation link.

    Severity:
        SUCCESS          -> info
        HTTP_ERROR       -> error
        NETWORK_FAILURE  -> error
        MALFORMED_URL    -> warning

    Every non-success event is followed by a warning carrying the URL of
    the owning collection (``owner_url_template`` formatted with
    ``owner_id`` and ``record_id``).
    """

    def __init__(self, owner_url_template: str = DEFAULT_OWNER_URL_TEMPLATE) -> None:
        self.owner_url_template = owner_url_template

    def owner_url(self, event: CheckEvent) -> str:
        return self.owner_url_template.format(
            owner_id=event.record.owner_id,
            record_id=event.record.id,
        )

    def emit(self, event: CheckEvent) -> None:
        record = event.record
        outcome = event.outcome
        fields = {
            "progress": str(event.position),
            "outcome": outcome.label,
            "record_id": record.id,
            "owner_id": record.owner_id,
            "name": record.name,
            "url": record.raw_url,
        }

        if outcome.kind is OutcomeKind.SUCCESS:
            log.info("link_ok", **fields)
            return

        if outcome.kind is OutcomeKind.HTTP_ERROR:
            log.error("link_http_error", status_code=outcome.status_code, **fields)
        elif outcome.kind is OutcomeKind.NETWORK_FAILURE:
            log.error("link_network_failure", **fields)
        else:
            log.warning("link_malformed", **fields)

        log.warning(
            "link_fix_here",
            progress=fields["progress"],
            record_id=record.id,
            owner_url=self.owner_url(event),
        )
