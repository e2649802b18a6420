"""Utility decorators for Teamflow."""

from functools import wraps
from typing import Any, Callable, TypeVar

from utils.logging import logger

T = TypeVar("T")


def log_execution(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log function execution start and end.

    Args:
        func (Callable): Function to decorate.

    Returns:
        Callable: Decorated function with logging.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        logger.debug(f"Starting execution of {func.__name__}")
        try:
            result = func(*args, **kwargs)
            logger.debug(f"Completed execution of {func.__name__}")
            return result
        except Exception as e:
            logger.error(f"Error in {func.__name__}: {e}")
            raise

    return wrapper
