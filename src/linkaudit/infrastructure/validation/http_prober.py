"""HTTP existence probe using a single HEAD request."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Literal

import structlog
from httpx import HTTPError, TimeoutException

from linkaudit.domain.entities import ProbeOutcome, ValidatedTarget

if TYPE_CHECKING:
    from httpx import AsyncClient

log = structlog.get_logger(__name__)

SuccessPolicy = Literal["2xx", "exact"]

DEFAULT_TIMEOUT_SECONDS = 3.0


def is_success_status(status_code: int, policy: SuccessPolicy = "2xx") -> bool:
    """Classify a received status code.

    ``2xx``: any 200-299 response counts as success.
    ``exact``: only ``200 OK`` counts.
    """
    if policy == "exact":
        return status_code == 200
    return 200 <= status_code < 300


class HttpProber:
    """Checks that a target exists via one HEAD request (no body transfer).

    The shared ``httpx.AsyncClient`` is injected and never reconfigured
    per call, so one prober instance can serve any number of concurrent
    checks. Each probe is single-shot: no retry, no GET fallback.

    Args:
        http_client: Shared httpx.AsyncClient (injected).
        timeout_seconds: Per-request timeout (default: 3s).
        follow_redirects: Follow redirects and classify the final response.
        success_policy: Which status codes count as success.
    """

    def __init__(
        self,
        http_client: AsyncClient,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        follow_redirects: bool = True,
        success_policy: SuccessPolicy = "2xx",
    ) -> None:
        self.http_client = http_client
        self.timeout = timeout_seconds
        self.follow_redirects = follow_redirects
        self.success_policy = success_policy

    async def probe(
        self, target: ValidatedTarget, timeout: float | None = None
    ) -> ProbeOutcome:
        """Probe *target* and return the classified outcome. Never raises."""
        effective_timeout = self.timeout if timeout is None else timeout
        try:
            # httpx applies its timeout per connect/read/write step; the
            # outer deadline bounds the whole attempt including redirects.
            async with asyncio.timeout(effective_timeout):
                response = await self.http_client.head(
                    target.url,
                    timeout=effective_timeout,
                    follow_redirects=self.follow_redirects,
                )
        except (TimeoutException, TimeoutError):
            log.debug("probe_timeout", url=target.url, timeout=effective_timeout)
            return ProbeOutcome.network_failure("timeout")
        except HTTPError as e:
            log.debug(
                "probe_transport_error",
                url=target.url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ProbeOutcome.network_failure(_describe_transport_error(e))
        except Exception as e:  # noqa: BLE001
            log.debug("probe_failed", url=target.url, error=str(e))
            return ProbeOutcome.network_failure(f"unexpected: {type(e).__name__}")

        status_code = response.status_code
        reason = response.reason_phrase or None

        log.debug("probe_result", url=target.url, status_code=status_code)

        if is_success_status(status_code, self.success_policy):
            return ProbeOutcome.success(status_code, reason)
        return ProbeOutcome.http_error(status_code, reason)


def _describe_transport_error(e: HTTPError) -> str:
    """Map an httpx transport exception onto a short failure tag."""
    name = type(e).__name__
    tags = {
        "ConnectError": "connect_error",
        "ReadError": "read_error",
        "WriteError": "write_error",
        "RemoteProtocolError": "protocol_error",
        "LocalProtocolError": "protocol_error",
        "ProxyError": "proxy_error",
        "UnsupportedProtocol": "unsupported_protocol",
        "TooManyRedirects": "too_many_redirects",
    }
    return tags.get(name, name)
