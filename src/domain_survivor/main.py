from __future__ import annotations

import argparse
import logging
import os
import sys
import threading

from loguru import logger as engine_logger

from .config import ScanConfig, load_config_from_env, load_proxy_settings
from .proxies import ProxyRotator
from .scanner import run_scan
from .status import ScanStats, status_ticker
from .utils import count_domains, open_output, read_domains

logger = logging.getLogger("domainsurvivor.main")

# CLI dest -> environment variable; CLI > env > defaults
CLI_TO_ENV = {
    "input_path": "DOMSURV_INPUT",
    "output_path": "DOMSURV_OUTPUT",
    "workers": "DOMSURV_WORKERS",
    "timeout": "DOMSURV_TIMEOUT",
    "target_status": "DOMSURV_STATUS_CODE",
    "check_alive": "DOMSURV_CHECK_ALIVE",
    "use_baseline": "DOMSURV_BASELINE",
    "baseline_threshold": "DOMSURV_BASELINE_THRESHOLD",
    "drop_redirects": "DOMSURV_DROP_REDIRECTS",
    "new_connection": "DOMSURV_NEW_CONNECTION",
    "log_fetch_ip": "DOMSURV_LOG_FETCH_IP",
    "batch_size": "DOMSURV_BATCH_SIZE",
    "status_interval": "DOMSURV_STATUS_INTERVAL_SECONDS",
}


def _configure_logging(level: str) -> None:
    level = (level or "INFO").upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(threadName)s: %(message)s",
        )
    engine_logger.remove()
    engine_logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="domainsurvivor",
        description="Probe a list of domains over http/https and keep the ones matching the criteria.",
    )
    # No defaults here: omitted flags fall back to env, then to ScanConfig defaults.
    ap.add_argument("-l", "--list", dest="input_path", help="Input file containing a list of domains")
    ap.add_argument("-o", "--output", dest="output_path", help="Output file for domains matching criteria")
    ap.add_argument("-t", "--workers", dest="workers", type=int, help="Number of concurrent workers (default 100)")
    ap.add_argument("--timeout", dest="timeout", type=float, help="Timeout in seconds for each HTTP request (default 5)")
    ap.add_argument("--status", dest="target_status", type=int, help="HTTP status code to match (default 200)")
    ap.add_argument("--alive", dest="check_alive", action="store_const", const=True,
                    help="Check for alive domains (any successful response)")
    ap.add_argument("--baseline", dest="use_baseline", action="store_const", const=True,
                    help="Enable baseline comparison against a random nonexistent path")
    ap.add_argument("--threshold", dest="baseline_threshold", type=float, help="Baseline similarity threshold (default 0.9)")
    ap.add_argument("--drop-redirects", dest="drop_redirects", action="store_const", const=True,
                    help="Drop redirected responses")
    ap.add_argument("--new-connection", "--new_connection", dest="new_connection", action="store_const", const=True,
                    help="Create a new HTTP connection for each request to allow IP rotation")
    ap.add_argument("--log-fetch-ip", "--log_fetch_ip", dest="log_fetch_ip", action="store_const", const=True,
                    help="Log the egress IP used for each fetch to verify IP rotation")
    ap.add_argument("--batch-size", dest="batch_size", type=int, help="Domains buffered ahead of admission (default 1000)")
    ap.add_argument("--status-interval", dest="status_interval", type=float,
                    help="Seconds between progress lines, 0 disables (default 5)")
    ap.add_argument("--env-file", dest="env_file", default=".env", help="File holding PROXY_* settings (default .env)")
    return ap


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)

    for attr, env_key in CLI_TO_ENV.items():
        value = getattr(args, attr, None)
        if value is not None:
            os.environ[env_key] = str(value)

    _configure_logging(os.environ.get("DOMSURV_LOG_LEVEL", "INFO"))

    try:
        cfg: ScanConfig = load_config_from_env()
    except ValueError as e:
        logger.error("config: %s", e)
        return 1

    if not cfg.input_path or not cfg.output_path:
        logger.error("both input file (-l) and output file (-o) are required")
        return 1

    settings = load_proxy_settings(args.env_file)
    rotator = ProxyRotator.from_settings(settings)

    logger.info(
        "config: input='%s' output='%s' workers=%d timeout=%.1fs status=%d alive=%s baseline=%s threshold=%.2f proxies=%d",
        cfg.input_path,
        cfg.output_path,
        cfg.workers,
        cfg.timeout,
        cfg.target_status,
        cfg.check_alive,
        cfg.use_baseline,
        cfg.baseline_threshold,
        len(rotator),
    )

    try:
        total = count_domains(cfg.input_path)
    except OSError as e:
        logger.error("error opening input file: %s", e)
        return 1

    try:
        out = open_output(cfg.output_path)
    except OSError as e:
        logger.error("error creating output file: %s", e)
        return 1

    stats = ScanStats(workers=cfg.workers)
    stop_ticker = threading.Event()
    ticker_t = threading.Thread(
        target=status_ticker,
        name="status-ticker",
        args=(stats, stop_ticker, cfg.status_interval, total),
        daemon=True,
    )
    if cfg.status_interval > 0:
        ticker_t.start()

    try:
        with out:
            run_scan(read_domains(cfg.input_path), cfg, out, rotator=rotator, stats=stats)
    except KeyboardInterrupt:
        logger.warning("interrupted after %s", stats.summary())
        return 130
    except OSError as e:
        logger.error("error reading input file: %s", e)
        return 1
    finally:
        stop_ticker.set()
        if ticker_t.is_alive():
            ticker_t.join(timeout=5.0)

    logger.info("scanning completed. Results saved to %s", cfg.output_path)
    logger.info("summary: %s", stats.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
