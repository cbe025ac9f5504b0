"""``Result`` envelope returned by stores, applications and composites."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from extensions import get_logger

from .errors import DiscoveryServiceError, describe

T = TypeVar("T")


@dataclass
class ErrorResult:
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


@dataclass
class Result(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorResult] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None

    def unwrap(self) -> T:
        """Return ``data`` or raise :class:`DiscoveryServiceError` for a failed result."""
        if self.success:
            return self.data
        error = self.error or ErrorResult("STORE_ERROR", describe("STORE_ERROR")[0])
        _, status = describe(error.code)
        raise DiscoveryServiceError(
            error.message,
            status_code=status,
            payload={"error": error.code, **error.details},
            code=error.code,
        )


def success_result(data: T = None) -> Result[T]:
    return Result(success=True, data=data)


def error_result(code: str, message: Optional[str] = None, **details: Any) -> Result[Any]:
    default_message, _ = describe(code)
    return Result(success=False, error=ErrorResult(code=code, message=message or default_message, details=details))


def result_from_exception(exc: DiscoveryServiceError) -> Result[Any]:
    return Result(success=False, error=ErrorResult(code=exc.code, message=exc.message, details=exc.details))


def guarded(error_code: str) -> Callable:
    """Wrap an ``async`` method taking ``(self, context, ...)`` so it always returns a ``Result``.

    Missing account ids short-circuit to ``ACCOUNT_ID_REQUIRED``. A raised
    :class:`DiscoveryServiceError` keeps its own code; anything else is logged
    and reported under ``error_code``.
    """

    def decorator(func: Callable[..., Awaitable[Result[Any]]]):
        @functools.wraps(func)
        async def wrapper(self, context, *args, **kwargs) -> Result[Any]:
            if context is None or not getattr(context, "account_id", None):
                return error_result("ACCOUNT_ID_REQUIRED")
            try:
                return await func(self, context, *args, **kwargs)
            except DiscoveryServiceError as exc:
                if exc.code == "STORE_ERROR":
                    get_logger().warning("%s hit a store failure: %s", func.__qualname__, exc.details)
                return result_from_exception(exc)
            except Exception as exc:
                get_logger().exception("%s failed: %s", func.__qualname__, exc)
                return error_result(error_code, original_error=str(exc))

        return wrapper

    return decorator
