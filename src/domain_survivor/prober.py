from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp
from aiohttp_socks import ProxyConnector, ProxyError  # type: ignore[import-not-found]
from loguru import logger

from .baseline import BaselineGenerator
from .classifier import classify, decode_body, is_redirect
from .config import ScanConfig
from .proxies import ProxyEndpoint, ProxyRotator
from .status import ScanStats

PROTOCOLS = ("http", "https")

_ROTATE = object()  # fetch(): take the next proxy from the rotator


@dataclass(frozen=True)
class ProbeOutcome:
    url: str
    status: Optional[int] = None
    body: bytes = b""
    error: Optional[str] = None
    endpoint: Optional[ProxyEndpoint] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None


def build_timeout(config: ScanConfig) -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=float(max(0.1, config.timeout)))


def build_headers(config: ScanConfig) -> dict:
    return {
        "Accept": "*/*",
        "User-Agent": config.user_agent,
    }


class Prober:
    """
    Tries http then https against one domain and reports whether it matches.

    - One GET per protocol, each through the next proxy from the rotator.
    - Transport errors fall through to the next protocol.
    - A 3xx while dropping redirects ends the domain as a non-match.
    - The first response the classifier accepts ends the domain as a match.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: ScanConfig,
        rotator: Optional[ProxyRotator] = None,
        stats: Optional[ScanStats] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.rotator = rotator or ProxyRotator()
        self.stats = stats
        self.baseline = BaselineGenerator(self.fetch)

    def _count(self, name: str) -> None:
        if self.stats is not None:
            self.stats.incr(name)

    async def probe(self, domain: str) -> bool:
        cfg = self.config
        baseline: Optional[bytes] = None
        if cfg.use_baseline:
            baseline = await self.baseline.capture(domain)
            if baseline is None:
                self._count("baseline_failures")
                return False

        for protocol in PROTOCOLS:
            outcome = await self.fetch(f"{protocol}://{domain}", read_body=None)
            if outcome.error is not None:
                logger.debug("probe: error fetching {} via {}: {}", outcome.url, outcome.endpoint or "direct", outcome.error)
                self._count("transport_errors")
                continue

            if cfg.log_fetch_ip:
                await self.log_egress_ip(outcome)

            if cfg.drop_redirects and is_redirect(outcome.status):
                logger.debug("probe: skipping redirect {} ({})", outcome.url, outcome.status)
                self._count("redirects_dropped")
                return False

            if classify(outcome, baseline, cfg):
                logger.info("probe: match {} status={}", outcome.url, outcome.status)
                return True
        return False

    async def fetch(self, url: str, read_body: Optional[bool] = False, endpoint=_ROTATE) -> ProbeOutcome:
        """
        Single GET of `url`. Never raises for network trouble; the reason lands
        in ProbeOutcome.error instead.

        `read_body`: True always reads the body, False never does, None reads
        it only when the classifier will compare it against a baseline.
        `endpoint` defaults to the rotator's next proxy; pass None to force a
        direct request or an explicit ProxyEndpoint to pin the egress.
        """
        if endpoint is _ROTATE:
            endpoint = self.rotator.next()
        t0 = time.monotonic()
        err: Optional[str] = None
        try:
            if endpoint is not None and endpoint.is_socks:
                connector = ProxyConnector.from_url(endpoint.url, rdns=True, ssl=self.config.verify_ssl)
                async with aiohttp.ClientSession(
                    headers=build_headers(self.config),
                    timeout=build_timeout(self.config),
                    connector=connector,
                    trust_env=False,
                ) as socks_session:
                    return await self._get(socks_session, url, None, read_body, t0, endpoint)
            return await self._get(self.session, url, endpoint, read_body, t0, endpoint)
        except asyncio.TimeoutError:
            err = "timeout"
        except aiohttp.ClientProxyConnectionError as e:
            err = f"proxy_connect:{e.__class__.__name__}"
        except aiohttp.ClientSSLError:
            err = "tls"
        except aiohttp.ClientError as e:
            err = f"client:{e.__class__.__name__}"
        except ProxyError as e:
            err = f"socks:{e}"
        except OSError as e:
            err = f"os:{e.__class__.__name__}"
        except ValueError as e:
            err = f"invalid:{e}"
        return ProbeOutcome(url=url, error=err, endpoint=endpoint, elapsed=time.monotonic() - t0)

    async def _get(
        self,
        session: aiohttp.ClientSession,
        url: str,
        proxy: Optional[ProxyEndpoint],
        read_body: Optional[bool],
        t0: float,
        endpoint: Optional[ProxyEndpoint],
    ) -> ProbeOutcome:
        kwargs = {"allow_redirects": not self.config.drop_redirects}
        if proxy is not None:
            kwargs["proxy"] = proxy.address
            kwargs["proxy_auth"] = proxy.auth
        async with session.get(url, **kwargs) as resp:
            body = b""
            if read_body or (read_body is None and self.config.wants_body(resp.status)):
                body = await resp.read()
            return ProbeOutcome(
                url=url,
                status=resp.status,
                body=body,
                endpoint=endpoint,
                elapsed=time.monotonic() - t0,
            )

    async def log_egress_ip(self, outcome: ProbeOutcome) -> None:
        """Ask the IP-echo service which address the same proxy egresses from. Diagnostic only."""
        echo = await self.fetch(self.config.ip_echo_url, read_body=True, endpoint=outcome.endpoint)
        if echo.error is not None:
            logger.warning("probe: error getting fetch IP for {}: {}", outcome.url, echo.error)
            return
        logger.info("probe: fetched {} using IP: {}", outcome.url, decode_body(echo.body).strip())
