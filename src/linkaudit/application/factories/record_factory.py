"""Factory for building LinkRecord entities from provider rows."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from linkaudit.domain.entities import InvalidRecord, LinkRecord, RawLinkRow

log = structlog.get_logger(__name__)


def build_records(rows: Iterable[RawLinkRow]) -> list[LinkRecord]:
    """Convert raw provider rows into LinkRecords.

    Rows without a usable URL (or with non-integer ids) are dropped with
    a warning; the remaining rows are still ingested.
    """
    records: list[LinkRecord] = []
    dropped = 0

    for row in rows:
        try:
            records.append(LinkRecord.from_row(RawLinkRow(*row)))
        except InvalidRecord as e:
            dropped += 1
            log.warning(
                "invalid_record_dropped",
                record_id=e.record_id,
                owner_id=e.owner_id,
                reason=str(e),
            )
        except (TypeError, ValueError) as e:
            dropped += 1
            log.warning("unparseable_row_dropped", row=repr(row), error=str(e))

    log.info("records_built", accepted=len(records), dropped=dropped)
    return records
