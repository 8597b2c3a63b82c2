# util/timing.py
import time
from contextlib import contextmanager
from typing import Any, Iterator
import logging


@contextmanager
def timed(
    logger: logging.Logger, name: str, level: int = logging.INFO, **kv: Any
) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "intent.embed", n=142):
          ...
    Emits one record on exit: "<name>.done ms=<int> key=val ..."
    Exceptions propagate; the duration is still logged.
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.log(level, "%s.done ms=%d%s", name, dt_ms, suffix)
