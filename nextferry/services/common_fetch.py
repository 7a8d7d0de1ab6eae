# nextferry/services/common_fetch.py
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

log = logging.getLogger("common_fetch")


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    label: str
    data: T | None = None
    error: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def fetch_with_retry(
    fetch: Callable[[], T],
    *,
    label: str,
    attempts: int = 1,
    delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchOutcome[T]:
    last_error: str | None = None
    tries = max(1, attempts)

    for i in range(tries):
        try:
            return FetchOutcome(label=label, data=fetch(), attempts=i + 1)
        except Exception as e:
            last_error = f"client_exc: {e!r}"
            log.warning("fetch %s failed (attempt %d/%d): %r", label, i + 1, tries, e)
        if i < tries - 1 and delay > 0:
            sleep(delay)

    return FetchOutcome(label=label, error=last_error, attempts=tries)
