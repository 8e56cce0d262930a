"""
Base classes and utilities for the service layer.

Services return a ServiceResult for expected outcomes (unknown slug, missing
product, store failure) so views can map error codes onto HTTP statuses
without catching exceptions themselves.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Success-or-failure envelope for service operations.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable message, for logs only

    Examples:
        >>> result = service_err(ErrorCodes.CATEGORY_NOT_FOUND, "Unknown category slug 'shoes'")
        >>> result.ok
        False
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None


def service_ok(value: T) -> ServiceResult[T]:
    """Create a successful ServiceResult."""
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "category_not_found")
        error_detail: Human-readable error message
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for marketplace services.

    Provides a per-class logger and the ``log_performance`` decorator.

    Usage:
        class RankedListingService(BaseService):
            @BaseService.log_performance
            def list_ranked(self, query):
                self.logger.info("Listing %s", query)
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator logging execution time and outcome of a service method.

        Exceptions are logged with traceback and re-raised.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.perf_counter()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.perf_counter() - start_time) * 1000

                if isinstance(result, ServiceResult) and not result.ok:
                    self.logger.warning(
                        f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms: {result.error_detail}"
                    )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.perf_counter() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across marketplace services."""

    # Taxonomy errors
    CATEGORY_NOT_FOUND = "category_not_found"
    SUBCATEGORY_NOT_FOUND = "subcategory_not_found"

    # Product errors
    PRODUCT_NOT_FOUND = "product_not_found"
    INVALID_PRODUCT_ID = "invalid_product_id"

    # Validation errors
    INVALID_INPUT = "invalid_input"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
