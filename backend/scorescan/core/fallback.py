import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def never_fail(fallback: Callable[..., T]) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Wraps a coroutine function so that any exception is logged and replaced
    by fallback(*args, **kwargs), called with the same arguments.
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await fn(*args, **kwargs)
            except Exception:
                logger.exception("%s failed, returning fallback result", fn.__qualname__)
                return fallback(*args, **kwargs)

        return wrapper

    return decorator
