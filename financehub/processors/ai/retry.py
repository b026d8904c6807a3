from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional, TypeVar

from ...utils.logging import get_logger
from .base import GenerationError, GenerationTimeout

T = TypeVar("T")
logger = get_logger("sfh.ai.retry")


def call_with_timeout(fn: Callable[[], T], timeout: float) -> T:
    """Run ``fn`` in a worker thread and give up after ``timeout`` seconds.

    The worker is abandoned on timeout; its result, if any, is discarded.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sfh-llm")
    future = executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout as exc:
        future.cancel()
        raise GenerationTimeout(f"LLM call exceeded {timeout:.0f}s timeout") from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def with_retries(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    delay: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
    on_failure: Optional[Callable[[int, Exception], None]] = None,
) -> T:
    """Call ``fn`` up to ``attempts`` times with a fixed delay between tries.

    Only ``GenerationError`` is retried, and only while ``retryable`` is set.
    """
    last_exc: GenerationError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except GenerationError as exc:
            last_exc = exc
            if on_failure is not None:
                on_failure(attempt, exc)
            if not exc.retryable:
                logger.warning("LLM call failed without retry: %s", exc)
                break
            if attempt >= attempts:
                break
            logger.warning("LLM call failed (attempt %s/%s): %s; retrying in %.1fs", attempt, attempts, exc, delay)
            sleep(delay)
    if last_exc is None:
        raise ValueError("attempts must be at least 1")
    raise last_exc
