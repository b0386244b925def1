"""Result of running a unit of work: a value or the exception it raised.

The wrapping layer captures the outcome of the traced callback and hands it to
the tracer, which logs a normal or exceptional end depending on the variant.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The unit of work returned normally.

    Attributes:
        value: Return value of the unit of work.
    """

    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """The unit of work raised.

    Attributes:
        error: The exception object, unchanged.
    """

    error: BaseException

    def unwrap(self) -> NoReturn:
        """Re-raise the captured exception (same object, original traceback)."""
        raise self.error


Outcome = Union[Success[T], Failure]


def capture(callback: Callable[[], T]) -> "Outcome[T]":
    """Run a zero-argument callable and capture how it finished.

    Args:
        callback: Unit of work.

    Returns:
        Success with the return value, or Failure with the raised exception.
        BaseException subclasses (KeyboardInterrupt, CancelledError, ...) are
        captured too so trace bookkeeping is always released.
    """
    try:
        return Success(callback())
    except BaseException as e:  # noqa: BLE001 - re-raised by Failure.unwrap()
        return Failure(e)


async def capture_async(callback: Callable[[], Awaitable[T]]) -> "Outcome[T]":
    """Async counterpart of capture() for coroutine functions."""
    try:
        return Success(await callback())
    except BaseException as e:  # noqa: BLE001 - re-raised by Failure.unwrap()
        return Failure(e)
