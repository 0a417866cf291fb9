from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional
from urllib.parse import quote, unquote, urlsplit

import aiohttp

from .config import ProxySettings

logger = logging.getLogger("domainsurvivor.proxies")

SUPPORTED_SCHEMES = ("http", "https", "socks4", "socks5")


@dataclass(frozen=True)
class ProxyEndpoint:
    scheme: str
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def is_socks(self) -> bool:
        return self.scheme.startswith("socks")

    @property
    def address(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def url(self) -> str:
        """Full URL, credentials included (the form aiohttp_socks expects)."""
        if self.username is None:
            return self.address
        creds = quote(self.username, safe="")
        if self.password is not None:
            creds += ":" + quote(self.password, safe="")
        return f"{self.scheme}://{creds}@{self.host}:{self.port}"

    @property
    def auth(self) -> Optional[aiohttp.BasicAuth]:
        if self.username is None:
            return None
        return aiohttp.BasicAuth(self.username, self.password or "")

    def __str__(self) -> str:
        # Never leak credentials into logs
        return self.address


def parse_endpoint(uri: str) -> Optional[ProxyEndpoint]:
    s = (uri or "").strip()
    if not s or s.startswith("#"):
        return None
    if "://" not in s:
        s = "http://" + s
    try:
        u = urlsplit(s)
        scheme = (u.scheme or "").lower()
        if scheme not in SUPPORTED_SCHEMES:
            return None
        host = u.hostname or ""
        if not host:
            return None
        default_port = 443 if scheme == "https" else (1080 if scheme.startswith("socks") else 80)
        port = u.port or default_port
    except ValueError:
        return None
    username = unquote(u.username) if u.username is not None else None
    password = unquote(u.password) if u.password is not None else None
    return ProxyEndpoint(scheme=scheme, host=host, port=int(port), username=username, password=password)


class ProxyRotator:
    """
    Round-robin view over a fixed list of egress proxies.

    - next() hands out endpoints in order i, i+1, ... (mod k) under a lock, so
      concurrent callers never share a cursor value.
    - Shared credentials are injected into endpoints that do not carry their own.
    - An empty rotator means direct connections: next() returns None.
    - No health tracking; a dead proxy stays in rotation.
    """

    def __init__(
        self,
        endpoints: Iterable[ProxyEndpoint] = (),
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._idx = 0
        self._endpoints: List[ProxyEndpoint] = []
        for ep in endpoints:
            if ep.username is None and username and password:
                ep = replace(ep, username=username, password=password)
            self._endpoints.append(ep)

    @classmethod
    def from_addresses(
        cls,
        addresses: Iterable[str],
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "ProxyRotator":
        endpoints: List[ProxyEndpoint] = []
        for addr in addresses:
            ep = parse_endpoint(addr)
            if ep is None:
                logger.warning("proxies: skipping invalid entry %r", addr)
                continue
            endpoints.append(ep)
        return cls(endpoints, username=username, password=password)

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> "ProxyRotator":
        return cls.from_addresses(settings.addresses, settings.username, settings.password)

    def __len__(self) -> int:
        return len(self._endpoints)

    def snapshot(self) -> List[ProxyEndpoint]:
        return list(self._endpoints)

    def next(self) -> Optional[ProxyEndpoint]:
        with self._lock:
            n = len(self._endpoints)
            if n == 0:
                return None
            ep = self._endpoints[self._idx]
            self._idx = (self._idx + 1) % n
            return ep
