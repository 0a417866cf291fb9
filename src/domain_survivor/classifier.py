from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rapidfuzz.distance import JaroWinkler

from .config import ScanConfig

if TYPE_CHECKING:
    from .prober import ProbeOutcome

# Jaro-Winkler: prefix bonus of 0.1 per shared leading char (at most 4),
# applied only once the plain Jaro score exceeds 0.7.
PREFIX_WEIGHT = 0.1

# Jaro-Winkler is quadratic and runs on the event loop; only the leading
# bytes of each body are compared.
MAX_COMPARE_BYTES = 32 * 1024


def is_redirect(status: Optional[int]) -> bool:
    return status is not None and 300 <= status < 400


def decode_body(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")


def similarity(baseline: bytes, body: bytes) -> float:
    """
    Jaro-Winkler similarity of two response bodies, 1.0 meaning identical.
    Bytes past MAX_COMPARE_BYTES are ignored on both sides.
    """
    a = decode_body(baseline[:MAX_COMPARE_BYTES])
    b = decode_body(body[:MAX_COMPARE_BYTES])
    return JaroWinkler.similarity(a, b, prefix_weight=PREFIX_WEIGHT)


def classify(outcome: "ProbeOutcome", baseline: Optional[bytes], config: ScanConfig) -> bool:
    """
    Decide whether a received response makes its domain a match.

    Rules, first hit wins:
    - alive mode: any response matches, baseline ignored
    - status == target: match, unless baseline mode is on and the body is at
      least `baseline_threshold` similar to the baseline (catch-all page)
    - anything else: no match
    """
    if outcome.status is None:
        return False
    if config.check_alive:
        return True
    if outcome.status != config.target_status:
        return False
    if not config.use_baseline:
        return True
    if baseline is None:
        return False
    return similarity(baseline, outcome.body) < config.baseline_threshold
