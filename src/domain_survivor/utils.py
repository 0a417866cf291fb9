from __future__ import annotations

from typing import IO, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


def normalize_domain(line: str) -> Optional[str]:
    s = (line or "").strip()
    if not s or s.startswith("#"):
        return None
    lowered = s.lower()
    for prefix in ("http://", "https://"):
        if lowered.startswith(prefix):
            s = s[len(prefix):]
            break
    s = s.rstrip("/")
    return s or None


def iter_domains(lines: Iterable[str]) -> Iterator[str]:
    """Yield one domain per non-blank, non-comment line, scheme and trailing slash stripped."""
    for line in lines:
        d = normalize_domain(line)
        if d:
            yield d


def read_domains(path: str) -> Iterator[str]:
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        yield from iter_domains(fh)


def count_domains(path: str) -> int:
    return sum(1 for _ in read_domains(path))


def open_output(path: str) -> IO[str]:
    return open(path, "w", encoding="utf-8")


def batched(items: Iterable[T], size: int) -> Iterator[List[T]]:
    batch: List[T] = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch
