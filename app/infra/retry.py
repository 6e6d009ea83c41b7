# app/infra/retry.py
import random
import time
from typing import Callable, Tuple, Type, TypeVar

from app.core.logging_config import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


def _sleep_with_jitter(base: float, factor: float, attempt: int, cap: float) -> float:
    # exponential backoff met jitter
    delay = min(base * (factor ** attempt), cap)
    return delay + random.uniform(0, delay * 0.25)


def retry_on(
    fn: Callable[[], T],
    *,
    retry_on_exc: Tuple[Type[BaseException], ...],
    attempts: int = 3,
    base: float = 0.05,
    factor: float = 2.0,
    cap: float = 1.0,
) -> T:
    """
    Run fn() and re-run it when it raises one of retry_on_exc.
    fn must be a complete unit of work (own transaction), anything else propagates.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for i in range(attempts):
        try:
            return fn()
        except retry_on_exc as e:
            if i == attempts - 1:
                raise
            sleep_s = _sleep_with_jitter(base, factor, i, cap)
            logger.warning("retry", attempt=i + 1, sleep_s=round(sleep_s, 3), exc=type(e).__name__)
            time.sleep(sleep_s)
    raise AssertionError("unreachable")
