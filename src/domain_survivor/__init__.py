"""Bulk domain liveness / status prober with baseline filtering and proxy rotation."""
from __future__ import annotations

from .classifier import classify, similarity
from .config import ProxySettings, ScanConfig, load_config_from_env, load_proxy_settings
from .limiter import ConcurrencyLimiter
from .prober import ProbeOutcome, Prober
from .proxies import ProxyEndpoint, ProxyRotator, parse_endpoint
from .scanner import run_scan, scan_domains
from .sink import ResultSink
from .status import ScanStats

__version__ = "0.1.0"

__all__ = [
    "ConcurrencyLimiter",
    "ProbeOutcome",
    "Prober",
    "ProxyEndpoint",
    "ProxyRotator",
    "ProxySettings",
    "ResultSink",
    "ScanConfig",
    "ScanStats",
    "classify",
    "load_config_from_env",
    "load_proxy_settings",
    "parse_endpoint",
    "run_scan",
    "scan_domains",
    "similarity",
]
