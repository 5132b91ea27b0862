"""Graceful shutdown helper: stop dispatching checks, let in-flight ones finish."""

from __future__ import annotations

import structlog

log = structlog.get_logger(__name__)


class GracefulShutdown:
    """Track in-flight checks and signal the runner to stop dispatching.

    Usage::

        gs = GracefulShutdown()
        loop.add_signal_handler(signal.SIGINT, gs.request_stop)

        # In the runner, per record:
        if gs.is_shutting_down:
            ...  # skip, never started
        gs.check_started()
        try:
            ...
        finally:
            gs.check_finished()
    """

    def __init__(self) -> None:
        self._active = 0
        self._shutting_down = False

    @property
    def active_checks(self) -> int:
        return self._active

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    def request_stop(self) -> None:
        """Stop issuing new probes; in-flight probes run to completion."""
        if self._shutting_down:
            return
        self._shutting_down = True
        log.warning("shutdown_requested", active_checks=self._active)

    def check_started(self) -> None:
        self._active += 1

    def check_finished(self) -> None:
        self._active -= 1
        if self._active < 0:
            self._active = 0
