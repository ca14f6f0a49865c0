"""
Optimistic update helper.

The local change is applied first so the UI reflects it immediately; if the
remote call then fails, the compensating action puts the local state back
and the original error propagates.
"""

from typing import Awaitable, Callable, TypeVar

import structlog


logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def commit_with_compensation(
    apply: Callable[[], None],
    remote: Callable[[], Awaitable[T]],
    compensate: Callable[[], None],
) -> T:
    """
    Run `apply`, then await `remote()`; on failure run `compensate` and re-raise.

    Returns:
        Whatever `remote()` returned.
    """
    apply()
    try:
        return await remote()
    except Exception as e:
        logger.warning("optimistic_update_reverted", error=str(e))
        compensate()
        raise
