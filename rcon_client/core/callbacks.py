from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


async def invoke(handler: Optional[Callable[..., Any]], *args: Any) -> None:
    """Call a user handler, sync or async. Handler errors are logged, never propagated."""
    if handler is None:
        return
    try:
        result = handler(*args)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        logger.exception("Handler %r failed: %s", handler, exc)


__all__ = ["invoke"]
