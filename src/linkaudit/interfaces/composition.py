"""Composition root: builds providers, the HTTP client and the runner from config."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import httpx
import structlog

from linkaudit.application.use_cases import CheckRunner
from linkaudit.domain.entities import CheckSummary, LinkRecord
from linkaudit.domain.ports import RecordProviderPort, ResultSinkPort
from linkaudit.infrastructure.config import AppConfig
from linkaudit.infrastructure.graceful_shutdown import GracefulShutdown
from linkaudit.infrastructure.persistence import (
    CsvRecordProvider,
    SqlRecordProvider,
    build_database_url,
)
from linkaudit.infrastructure.resource_detector import default_max_concurrent
from linkaudit.infrastructure.validation import HttpProber

log = structlog.get_logger(__name__)


def build_record_provider(
    config: AppConfig, csv_path: Path | None = None
) -> RecordProviderPort:
    """CSV export when *csv_path* is given, the configured database otherwise."""
    if csv_path is not None:
        return CsvRecordProvider(csv_path)

    db = config.database
    url = db.url or build_database_url(
        driver=db.driver,
        host=db.host,
        port=db.port,
        database=db.name,
        username=db.user,
        password=db.password,
    )
    return SqlRecordProvider(
        url,
        table_name=db.table,
        id_column=db.id_column,
        owner_column=db.owner_column,
        name_column=db.name_column,
        url_column=db.url_column,
    )


def build_http_client(config: AppConfig, max_concurrent: int) -> httpx.AsyncClient:
    """Process-wide client shared read-only by every probe."""
    return httpx.AsyncClient(
        headers={"User-Agent": config.http_user_agent},
        timeout=config.http_timeout_seconds,
        follow_redirects=config.http_follow_redirects,
        limits=httpx.Limits(
            max_connections=max_concurrent,
            max_keepalive_connections=max_concurrent,
        ),
    )


def resolve_max_concurrent(config: AppConfig) -> int:
    if config.max_concurrent is not None:
        return config.max_concurrent
    return default_max_concurrent()


@contextmanager
def _stop_on_signals(
    loop: asyncio.AbstractEventLoop, shutdown: GracefulShutdown
) -> Iterator[None]:
    """Wire SIGINT/SIGTERM to ``shutdown.request_stop`` where the loop supports it."""
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.request_stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Windows event loops / non-main threads
            log.debug("signal_handler_unavailable", signal=sig.name)
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def run_check(
    config: AppConfig,
    records: Sequence[LinkRecord],
    sink: ResultSinkPort,
    *,
    shutdown: GracefulShutdown | None = None,
    install_signal_handlers: bool = True,
) -> CheckSummary:
    """Probe *records* with a freshly built client and runner."""
    shutdown = shutdown or GracefulShutdown()
    max_concurrent = resolve_max_concurrent(config)

    async with build_http_client(config, max_concurrent) as http_client:
        prober = HttpProber(
            http_client,
            timeout_seconds=config.http_timeout_seconds,
            follow_redirects=config.http_follow_redirects,
            success_policy=config.success_policy,
        )
        runner = CheckRunner(
            prober,
            max_concurrent=max_concurrent,
            shutdown=shutdown,
        )

        if install_signal_handlers:
            with _stop_on_signals(asyncio.get_running_loop(), shutdown):
                summary = await runner.run(records, sink)
        else:
            summary = await runner.run(records, sink)

    return summary
