"""Error handling decorators for the image classifier services."""

import functools
import time
import logging
from typing import Optional, Tuple, Type, Any

from image_classifier.logging_config import get_logger, log_performance

logger = get_logger("error_decorators")


def retry_on_error(max_attempts: int = 3, delay: float = 1.0, backoff_factor: float = 1.0,
                   exceptions: Optional[Tuple[Type[Exception], ...]] = None):
    """Decorator to retry a function on failure with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries in seconds
        backoff_factor: Factor to increase delay with each retry
        exceptions: Exception types to catch and retry

    Returns:
        Decorated function that re-raises the last error once all attempts fail
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            exceptions_to_catch = exceptions or (Exception,)
            last_exception = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions_to_catch as e:
                    last_exception = e
                    logger.warning(f"Attempt {attempt}/{max_attempts} failed for {func.__name__}: {e}")

                    if attempt < max_attempts:
                        sleep_time = delay * (backoff_factor ** (attempt - 1))
                        logger.debug(f"Retrying in {sleep_time:.2f} seconds")
                        time.sleep(sleep_time)

            logger.error(f"All {max_attempts} attempts failed for {func.__name__}")
            raise last_exception
        return wrapper
    return decorator


def log_execution_time(label: Optional[str] = None, level: int = logging.DEBUG):
    """Decorator to log function execution time to the performance log.

    Args:
        label: Name used in the log line, defaults to the function name
        level: Logging level for the component log message
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed_ms = (time.time() - start_time) * 1000
                name = label or func.__name__
                logger.log(level, f"{name} took {elapsed_ms:.1f} ms")
                log_performance(name, {"elapsed_ms": f"{elapsed_ms:.1f}"})
        return wrapper
    return decorator


def safe_operation(default_return: Any = None, log_exception: bool = True):
    """Decorator to make a function safe by catching all exceptions.

    Args:
        default_return: Value to return if an exception occurs
        log_exception: Whether to log the exception

    Returns:
        Decorated function that never raises exceptions
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log_exception:
                    logger.error(f"Exception in {func.__name__}: {e}", exc_info=True)
                return default_return
        return wrapper
    return decorator
