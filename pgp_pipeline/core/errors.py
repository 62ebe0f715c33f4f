"""
Failure translation at the caller boundary.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from pgp_pipeline.exceptions import OpenPGPError, PrimitiveError

logger = structlog.get_logger(__name__)


@contextmanager
def translate_errors(description: str, *, debug: bool = False) -> Iterator[None]:
    """
    Attach an operation-level description to any failure raised inside.

    OpenPGPError instances keep their kind and are re-raised as-is. Anything
    else is wrapped in a PrimitiveError chained to the original cause.

    Example:
        with translate_errors("Error encrypting message"):
            ...
    """
    try:
        yield
    except OpenPGPError as e:
        e.description = description
        _log_failure(e, debug=debug)
        raise
    except Exception as e:
        error = PrimitiveError(str(e) or type(e).__name__)
        error.description = description
        _log_failure(e, debug=debug)
        raise error from e


def _log_failure(error: BaseException, *, debug: bool) -> None:
    if not debug:
        return
    logger.error(
        "Pipeline operation failed",
        error_type=type(error).__name__,
        exc_info=error,
    )
