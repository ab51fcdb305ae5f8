from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

log = logging.getLogger("vedi.timing")


@contextmanager
def timed(operation: str) -> Iterator[None]:
    """Log how long an operation took and whether it raised. Re-raises."""
    started = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        duration_ms = (time.perf_counter() - started) * 1000
        log.debug("%s: %.1fms %s", operation, duration_ms, "ok" if ok else "failed")
