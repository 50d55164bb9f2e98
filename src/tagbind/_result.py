from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, NoReturn, TypeVar, Union

from ._errors import RegistryError


if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import ParamSpec

    P = ParamSpec("P")

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: RegistryError

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Union[Ok[T], Err]  # noqa: UP007


def capture(call: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> Result[T]:
    """Run a registry operation and return its outcome instead of raising.

    Only `RegistryError` is converted into `Err`; anything else a factory
    raises propagates.

    Example:
      match capture(registry.resolve, Widget):
          case Ok(value=widget): ...
          case Err(error=NotFoundError()): ...

    """
    try:
        return Ok(call(*args, **kwargs))
    except RegistryError as e:
        return Err(e)
