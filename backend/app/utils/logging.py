"""
PageFit — Export logging: the "pagefit" logger, request ids and step timing.

Every line an export writes carries the short request/job id, so the
collector, assembler and verifier output of concurrent exports can be
told apart in one log stream.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Generator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("pagefit")

RULE = "=" * 60


def new_request_id() -> str:
    """Short id used for requests, jobs and their log lines."""
    return uuid.uuid4().hex[:12]


def _tag(request_id: str | None) -> str:
    return f"[{request_id}] " if request_id else ""


def log_banner(message: str, *args, request_id: str | None = None) -> None:
    """A message framed by rules, for the start and end of an export."""
    logger.info(RULE)
    logger.info(_tag(request_id) + message, *args)
    logger.info(RULE)


@contextmanager
def step_timer(step_name: str, request_id: str | None = None) -> Generator[None, None, None]:
    """
    Log the start and duration of a step.

    A step left by an exception logs a failure line with the error type
    and its duration; the exception itself propagates unchanged.
    """
    tag = _tag(request_id)
    logger.info("%s▶ %s — started", tag, step_name)
    start = time.perf_counter()
    try:
        yield
    except BaseException as exc:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.warning("%s✗ %s — failed after %.0f ms (%s)", tag, step_name, elapsed_ms, type(exc).__name__)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s✔ %s — finished in %.0f ms", tag, step_name, elapsed_ms)
