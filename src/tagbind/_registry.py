from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    NamedTuple,
    TypeVar,
    overload,
)

from ._errors import CircularDependencyError, DuplicateRegistrationError, NotFoundError, describe_token
from ._result import capture


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._result import Result

    T = TypeVar("T")

    Token = type[T] | str
    Factory = Callable[["Registry"], T]


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class RegistrationKey(NamedTuple):
    tag: str | None
    token: Any

    def __str__(self) -> str:
        return f"{describe_token(self.token)}[tag={self.tag!r}]"


_EMPTY = object()


class _Cell:
    """Write-once slot holding a singleton value.

    Emptiness is tracked with a sentinel, so a factory that returns `None`
    still fills the cell.
    """

    __slots__ = ("_value",)

    def __init__(self, value: object = _EMPTY) -> None:
        self._value = value

    @property
    def is_filled(self) -> bool:
        return self._value is not _EMPTY

    def get(self) -> object:
        if self._value is _EMPTY:
            msg = "Cell is empty"
            raise LookupError(msg)
        return self._value

    def fill(self, value: object) -> None:
        if self._value is not _EMPTY:
            msg = "Cell is already filled"
            raise RuntimeError(msg)
        self._value = value


@dataclass
class Registration:
    factory: Callable[[Registry], object] | None
    lifetime: Lifetime
    cell: _Cell | None = None  # singletons only
    # guards the singleton check-then-fill of this registration only
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.is_singleton and self.cell is None:
            msg = "Singleton registrations need a cell"
            raise ValueError(msg)
        if not self.is_singleton and self.factory is None:
            msg = "Transient registrations need a factory"
            raise ValueError(msg)

    @property
    def is_singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON


class Registry:
    """Dependency registry keyed by (tag, token).

    - register singleton factories, transient factories or ready-made instances
    - resolve locally first, then through the parent chain
    - circular resolution chains raise instead of recursing forever.

    Factories receive the registry `resolve` was called on, which may be a
    child of the registry owning the registration.
    """

    def __init__(self, parent: Registry | None = None) -> None:
        self._parent = parent
        self._registrations: dict[RegistrationKey, Registration] = {}
        self._lock = threading.RLock()
        # keys in flight, per thread
        self._local = threading.local()

    @property
    def parent(self) -> Registry | None:
        return self._parent

    def create_child(self) -> Registry:
        """Create a registry that resolves in itself first, then falls back to this one."""
        return Registry(parent=self)

    def register_singleton(self, token: Token[T], factory: Factory[T], *, tag: str | None = None) -> None:
        """Register a factory whose result is built on first resolution and then reused.

        Example:
          registry.register_singleton(Database, lambda r: Database(r.resolve(Settings)))

        """
        self._add(RegistrationKey(tag, token), Registration(factory=factory, lifetime=Lifetime.SINGLETON, cell=_Cell()))

    def register_transient(self, token: Token[T], factory: Factory[T], *, tag: str | None = None) -> None:
        """Register a factory invoked anew on every resolution."""
        self._add(RegistrationKey(tag, token), Registration(factory=factory, lifetime=Lifetime.TRANSIENT))

    def register_instance(self, token: Token[T], instance: object, *, tag: str | None = None) -> None:
        """Register a pre-built instance (always singleton)."""
        self._add(
            RegistrationKey(tag, token),
            Registration(factory=None, lifetime=Lifetime.SINGLETON, cell=_Cell(instance)),
        )

    def _add(self, key: RegistrationKey, registration: Registration) -> None:
        with self._lock:
            if key in self._registrations:
                raise DuplicateRegistrationError(tag=key.tag, token=key.token)
            self._registrations[key] = registration
        logger.debug("Registered %s %s", registration.lifetime.value, key)

    def is_registered(self, token: Token[T], tag: str | None = None, *, local: bool = False) -> bool:
        key = RegistrationKey(tag, token)
        registry: Registry | None = self
        while registry is not None:
            if key in registry._registrations:  # noqa: SLF001
                return True
            if local:
                return False
            registry = registry._parent  # noqa: SLF001
        return False

    @overload
    def resolve(self, token: type[T], tag: str | None = None) -> T: ...

    @overload
    def resolve(self, token: str, tag: str | None = None) -> object: ...

    def resolve(self, token: Token[T], tag: str | None = None) -> object:
        """Resolve the (tag, token) key to a value.

        - If this registry holds a registration for the key: use it.
        - Otherwise delegate to the parent, or raise `NotFoundError` without one.
        """
        return self._resolve(RegistrationKey(tag, token), requester=self)

    def try_resolve(self, token: Token[T], tag: str | None = None) -> Result[T]:
        """Like `resolve`, but return `Ok(value)` or `Err(error)` instead of raising."""
        return capture(self.resolve, token, tag)

    def _resolve(self, key: RegistrationKey, requester: Registry) -> object:
        in_flight = self._in_flight()
        if key in in_flight:
            raise CircularDependencyError(tag=key.tag, token=key.token)

        in_flight.add(key)
        try:
            reg = self._registrations.get(key)
            if reg is not None:
                return self._produce(key, reg, requester)

            if self._parent is None:
                raise NotFoundError(tag=key.tag, token=key.token)

            logger.debug("No local registration for %s, falling back to parent", key)
            return self._parent._resolve(key, requester)  # noqa: SLF001
        finally:
            in_flight.discard(key)

    def _produce(self, key: RegistrationKey, reg: Registration, requester: Registry) -> object:
        if reg.cell is None:
            return reg.factory(requester)  # type: ignore[misc]

        with reg.lock:
            if not reg.cell.is_filled and reg.factory is not None:
                reg.cell.fill(reg.factory(requester))
                logger.debug("Built singleton %s", key)
            return reg.cell.get()

    def _in_flight(self) -> set[RegistrationKey]:
        keys = getattr(self._local, "keys", None)
        if keys is None:
            keys = self._local.keys = set()
        return keys
