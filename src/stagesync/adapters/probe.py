"""HTTP existence probes for attachment URLs."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from stagesync.adapters.http_resilience import ResilientClient
from stagesync.config.http_resilience import ResilienceConfig
from stagesync.config.staging import ProbeConfig, get_probe_config

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class HttpUrlProbe:
    """Send a ``HEAD`` request to every URL concurrently.

    Each URL gets at most ``timeout_seconds`` (retries included) once the rate
    limiter admits it; a timeout, a transport error or a non-2xx status marks
    the URL as missing.
    """

    config: ProbeConfig = field(default_factory=get_probe_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(self, urls: Sequence[str]) -> Mapping[str, bool]:
        if not urls:
            return {}
        return asyncio.run(self._probe_all(urls))

    async def _probe_all(self, urls: Sequence[str]) -> dict[str, bool]:
        async with self.client_factory(self.config.resilience) as client:
            results = await asyncio.gather(*(self._probe(client, url) for url in urls))
        return dict(zip(urls, results, strict=True))

    async def _probe(self, client: ResilientClient, url: str) -> bool:
        try:
            response = await client.head(url, deadline=self.config.timeout_seconds)
        except TimeoutError:
            log.warning("Probe of %s timed out after %ss", url, self.config.timeout_seconds)
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.warning("Probe of %s failed: %s", url, exc)
            return False
        if not response.is_success:
            log.debug("Probe of %s answered %s", url, response.status_code)
        return response.is_success
