from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger("domainsurvivor.config")

DEFAULT_IP_ECHO_URL = "https://ip.oxylabs.io/location"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

_FALSE_STRINGS = ("0", "false", "no", "off", "")


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_STRINGS


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class ScanConfig:
    # Match criteria
    target_status: int = 200
    check_alive: bool = False
    use_baseline: bool = False
    baseline_threshold: float = 0.9
    drop_redirects: bool = False
    # Transport
    workers: int = 100
    timeout: float = 5.0
    new_connection: bool = False
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    # Diagnostics
    log_fetch_ip: bool = False
    ip_echo_url: str = DEFAULT_IP_ECHO_URL
    status_interval: float = 5.0
    # Feed
    batch_size: int = 1000
    input_path: Optional[str] = None
    output_path: Optional[str] = None

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if not 0.0 <= self.baseline_threshold <= 1.0:
            raise ValueError(f"baseline threshold must be within [0, 1], got {self.baseline_threshold}")
        if self.batch_size < 1:
            raise ValueError(f"batch size must be >= 1, got {self.batch_size}")
        if self.status_interval < 0:
            raise ValueError(f"status interval must be >= 0, got {self.status_interval}")

    def wants_body(self, status: int) -> bool:
        """True when the classifier will compare this response's body to a baseline."""
        return self.use_baseline and not self.check_alive and status == self.target_status


def load_config_from_env(env: Optional[Mapping[str, str]] = None) -> ScanConfig:
    env = os.environ if env is None else env
    return ScanConfig(
        target_status=_env_int(env, "DOMSURV_STATUS_CODE", 200),
        check_alive=_env_bool(env, "DOMSURV_CHECK_ALIVE", False),
        use_baseline=_env_bool(env, "DOMSURV_BASELINE", False),
        baseline_threshold=_env_float(env, "DOMSURV_BASELINE_THRESHOLD", 0.9),
        drop_redirects=_env_bool(env, "DOMSURV_DROP_REDIRECTS", False),
        workers=_env_int(env, "DOMSURV_WORKERS", 100),
        timeout=_env_float(env, "DOMSURV_TIMEOUT", 5.0),
        new_connection=_env_bool(env, "DOMSURV_NEW_CONNECTION", False),
        verify_ssl=_env_bool(env, "DOMSURV_VERIFY_SSL", True),
        user_agent=env.get("DOMSURV_USER_AGENT") or DEFAULT_USER_AGENT,
        log_fetch_ip=_env_bool(env, "DOMSURV_LOG_FETCH_IP", False),
        ip_echo_url=env.get("DOMSURV_IP_ECHO_URL") or DEFAULT_IP_ECHO_URL,
        status_interval=_env_float(env, "DOMSURV_STATUS_INTERVAL_SECONDS", 5.0),
        batch_size=_env_int(env, "DOMSURV_BATCH_SIZE", 1000),
        input_path=env.get("DOMSURV_INPUT") or None,
        output_path=env.get("DOMSURV_OUTPUT") or None,
    )


@dataclass(frozen=True)
class ProxySettings:
    addresses: Tuple[str, ...] = ()
    username: Optional[str] = None
    password: Optional[str] = None


def load_proxy_settings(env_file: Optional[str] = ".env", env: Optional[Mapping[str, str]] = None) -> ProxySettings:
    """
    Read proxy settings, loading `env_file` into the process environment first.

    - PROXY_ADDRESSES: comma-separated endpoints, e.g. proxy1:8080,socks5://proxy2:1080
    - PROXY_USERNAME / PROXY_PASSWORD: shared credentials applied to every endpoint
    Values already present in the environment win over the file.
    """
    if env is None:
        if env_file and os.path.isfile(env_file):
            load_dotenv(env_file, override=False)
        elif env_file:
            logger.info("no %s file found, proceeding without file-based proxies", env_file)
        env = os.environ

    raw = env.get("PROXY_ADDRESSES") or ""
    addresses = tuple(a.strip() for a in raw.split(",") if a.strip())
    username = env.get("PROXY_USERNAME") or None
    password = env.get("PROXY_PASSWORD") or None
    return ProxySettings(addresses=addresses, username=username, password=password)
