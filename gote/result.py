"""
Success-or-failure return values.

Every operation that talks to the remote store returns ``Success(value)`` or
``Failure(error)`` instead of raising. The two variants are separate classes,
so the unused side does not exist at all; ``match`` statements work on them::

    match await service.get_user_id():
        case Success(user_id):
            ...
        case Failure(error):
            ...
"""
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, ParamSpec, TypeVar, Union

from .errors import Error

logger = logging.getLogger(__name__)

S = TypeVar("S")
F = TypeVar("F")
T = TypeVar("T")
P = ParamSpec("P")


class ResultAccessError(RuntimeError):
    """Reading the payload of the other variant. Always a bug in the caller."""


@dataclass(frozen=True)
class Success(Generic[S]):
    value: S

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def get_success(self) -> S:
        return self.value

    def get_failure(self):
        raise ResultAccessError(f"get_failure() called on {self!r}")

    def map(self, fn: Callable[[S], T]) -> "Success[T]":
        return Success(fn(self.value))

    def map_error(self, fn: Callable[[Any], Any]) -> "Success[S]":
        return self

    def match(self, on_success: Callable[[S], T], on_failure: Callable[[Any], T]) -> T:
        return on_success(self.value)


@dataclass(frozen=True)
class Failure(Generic[F]):
    error: F

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def get_success(self):
        raise ResultAccessError(f"get_success() called on {self!r}")

    def get_failure(self) -> F:
        return self.error

    def map(self, fn: Callable[[Any], Any]) -> "Failure[F]":
        return self

    def map_error(self, fn: Callable[[F], T]) -> "Failure[T]":
        return Failure(fn(self.error))

    def match(self, on_success: Callable[[Any], T], on_failure: Callable[[F], T]) -> T:
        return on_failure(self.error)


Result = Union[Success[S], Failure[F]]


def as_result(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[Result[T, Error]]]:
    """
    Wrap a coroutine so its return value becomes ``Success`` and any exception
    becomes ``Failure(Error)``. A coroutine that already returns a Success or
    Failure is passed through untouched.
    ``ResultAccessError`` is re-raised: it is a programming error, not a
    remote failure.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, Error]:
        try:
            value = await func(*args, **kwargs)
        except ResultAccessError:
            raise
        except Exception as e:
            error = Error.from_exception(e)
            logger.warning("%s failed: [%s] %s", func.__name__, error.code, error.message)
            return Failure(error)
        if isinstance(value, (Success, Failure)):
            return value
        return Success(value)

    return wrapper
