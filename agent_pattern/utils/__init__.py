"""Utility functions for common operations"""
import functools
import inspect
import os
import time
from datetime import datetime
from typing import Callable, Literal, Optional

from agent_pattern.exceptions import ConfigurationError


_TIME_FORMATS = {
    "readable": "%Y-%m-%d %H:%M:%S",
    "logfile": "%Y%m%d%H%M%S",
}


def get_current_time(
    format: Literal["readable", "iso", "timestamp", "logfile"] = "readable",
) -> str:
    """Get current local time in specified format

    Args:
        format: Time format
            - 'readable': 'YYYY-MM-DD HH:MM:SS' (default)
            - 'iso': ISO 8601 format
            - 'timestamp': Unix timestamp in seconds as string
            - 'logfile': 'YYYYMMDDHHMMSS' (for log file names)

    Examples:
        >>> get_current_time()
        '2024-01-15 14:30:45'
        >>> get_current_time(format='timestamp')
        '1705324245'
    """
    now = datetime.now()
    if format == "iso":
        return now.isoformat()
    if format == "timestamp":
        return str(int(now.timestamp()))
    if format not in _TIME_FORMATS:
        raise ValueError(f"Unknown time format: {format}")
    return now.strftime(_TIME_FORMATS[format])


def get_env_var(key: str) -> str:
    """Read a required environment variable.

    Raises:
        ConfigurationError: If the variable is unset or empty
    """
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(f'Environment variable "{key}" is not set.')
    return value


def preview(text: Optional[str], limit: int = 100) -> str:
    """Shorten text for log lines, marking the cut with '...'."""
    if not text:
        return ""
    return text[:limit] + "..." if len(text) > limit else text


def log_execution_time(log_level: str = "INFO"):
    """
    Decorator to log how long a coroutine function takes.

    Args:
        log_level: Log level to use ('DEBUG', 'INFO', 'WARNING', 'ERROR')

    Raises:
        TypeError: If applied to a regular (non-async) function

    Examples:
        >>> @log_execution_time(log_level='DEBUG')
        ... async def my_async_function(x):
        ...     await asyncio.sleep(0.1)
        ...     return x * 2
        >>> await my_async_function(5)
        # Logs: "Function 'module.my_async_function' executed in 0.1010s"
    """
    def decorator(func: Callable) -> Callable:
        # Import logger here to avoid circular import
        from agent_pattern.logger import logger

        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"log_execution_time expects an async function, got {func!r}")

        func_name = f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start_time
                logger.error(
                    f"Function '{func_name}' failed after {elapsed:.4f}s: {e}"
                )
                raise
            elapsed = time.perf_counter() - start_time
            getattr(logger, log_level.lower())(f"Function '{func_name}' executed in {elapsed:.4f}s")
            return result

        return async_wrapper

    return decorator


__all__ = [
    'get_current_time',
    'get_env_var',
    'preview',
    'log_execution_time',
]
