"""
Baseline capture for wildcard / soft-404 suppression.

Many hosts answer every path with the same catch-all page. Fetching a path
that almost certainly does not exist gives a reference body; a real response
that looks like it is treated as the same catch-all content.
"""
from __future__ import annotations

import random
import string
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from loguru import logger

if TYPE_CHECKING:
    from .prober import ProbeOutcome

FetchFn = Callable[..., Awaitable["ProbeOutcome"]]

_ALPHABET = string.ascii_letters + string.digits
_rng = random.SystemRandom()

PATH_LENGTH = 12
PARAM_KEY_LENGTH = 6
PARAM_VALUE_LENGTH = 12


def random_token(length: int) -> str:
    return "".join(_rng.choice(_ALPHABET) for _ in range(length))


def baseline_url(domain: str) -> str:
    return (
        f"http://{domain}/{random_token(PATH_LENGTH)}"
        f"?{random_token(PARAM_KEY_LENGTH)}={random_token(PARAM_VALUE_LENGTH)}"
    )


class BaselineGenerator:
    """Captures one throwaway response body per domain through the prober's fetch path."""

    def __init__(self, fetch: FetchFn) -> None:
        self._fetch = fetch

    async def capture(self, domain: str) -> Optional[bytes]:
        """Return the baseline body, or None when it could not be fetched."""
        url = baseline_url(domain)
        outcome = await self._fetch(url, read_body=True)
        if outcome.error is not None:
            logger.debug("baseline: {} failed: {}", domain, outcome.error)
            return None
        return outcome.body
