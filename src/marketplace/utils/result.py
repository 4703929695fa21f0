from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from marketplace.errors import MarketplaceError
from marketplace.utils.logger import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a repository or use-case call.

    Exactly one of ``value`` / ``error`` is meaningful: check ``ok`` first.
    """

    value: Optional[T] = None
    error: Optional[MarketplaceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: MarketplaceError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def returns_result(
    fn: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[Result[T]]]:
    """Wrap an async method so MarketplaceError becomes Result.failure."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs) -> Result[T]:
        try:
            return Result.success(await fn(*args, **kwargs))
        except MarketplaceError as e:
            _logger.warning(f"{fn.__qualname__} failed: {e}")
            return Result.failure(e)

    return wrapper
