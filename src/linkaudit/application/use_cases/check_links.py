"""Link check use case: concurrent, bounded validation of a record batch."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from linkaudit.domain.entities import (
    CheckEvent,
    CheckSummary,
    LinkRecord,
    ProbeOutcome,
    ProgressPosition,
)
from linkaudit.domain.ports import ProberPort, ResultSinkPort, UriValidatorPort
from linkaudit.infrastructure.graceful_shutdown import GracefulShutdown
from linkaudit.infrastructure.validation import validate_url

log = structlog.get_logger(__name__)


class CheckRunner:
    """Checks every record of a batch exactly once, many at a time.

    Flow per record:
        1. Wait for a concurrency slot (skip if shutdown was requested)
        2. Validate the URL; malformed URLs are reported without probing
        3. Probe the target
        4. Advance the progress counter and emit one event to the sink

    Step 4 runs on the event loop without an ``await`` between the
    increment and ``sink.emit``, so events reach the sink in progress
    order and the final event always carries ``completed == total``.

    Args:
        prober: Existence prober (shared across all concurrent checks).
        max_concurrent: Max records in flight at once.
        validator: URL validator (default: ``validate_url``).
        shutdown: Optional stop signal; new probes stop once requested.
    """

    def __init__(
        self,
        prober: ProberPort,
        *,
        max_concurrent: int = 10,
        validator: UriValidatorPort = validate_url,
        shutdown: GracefulShutdown | None = None,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.prober = prober
        self.max_concurrent = max_concurrent
        self.validator = validator
        self.shutdown = shutdown or GracefulShutdown()

    async def run(
        self, records: Sequence[LinkRecord], sink: ResultSinkPort
    ) -> CheckSummary:
        """Check all *records*, emitting one event per record to *sink*.

        Returns once every started record has been reported. Records that
        never started because shutdown was requested are counted as
        ``skipped`` in the summary and produce no event.
        """
        total = len(records)
        summary = CheckSummary(total=total)
        semaphore = asyncio.Semaphore(self.max_concurrent)
        completed = 0

        log.info(
            "link_check_started",
            total=total,
            max_concurrent=self.max_concurrent,
        )

        def _report(record: LinkRecord, outcome: ProbeOutcome) -> None:
            nonlocal completed
            completed += 1
            summary.record(outcome)
            event = CheckEvent(
                position=ProgressPosition(completed=completed, total=total),
                outcome=outcome,
                record=record,
            )
            try:
                sink.emit(event)
            except Exception:  # noqa: BLE001
                log.error(
                    "result_sink_failed",
                    record_id=record.id,
                    position=str(event.position),
                    exc_info=True,
                )

        async def _check_one(record: LinkRecord) -> None:
            async with semaphore:
                if self.shutdown.is_shutting_down:
                    summary.skipped += 1
                    return
                self.shutdown.check_started()
                try:
                    outcome = await self._determine_outcome(record)
                    _report(record, outcome)
                finally:
                    self.shutdown.check_finished()

        await asyncio.gather(*(_check_one(record) for record in records))

        summary.cancelled = self.shutdown.is_shutting_down and summary.skipped > 0
        log.info("link_check_finished", **summary.as_log_fields())
        return summary

    async def _determine_outcome(self, record: LinkRecord) -> ProbeOutcome:
        """Validate then probe; unexpected errors stay inside this record."""
        try:
            target = self.validator(record.raw_url)
            if isinstance(target, ProbeOutcome):
                return target
            return await self.prober.probe(target)
        except Exception as e:  # noqa: BLE001
            log.warning(
                "link_check_unexpected_error",
                record_id=record.id,
                owner_id=record.owner_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ProbeOutcome.network_failure(f"unexpected: {type(e).__name__}")
