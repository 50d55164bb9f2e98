"""Hierarchical dependency registry.

This package provides a small dependency registry for Python, allowing
registration of factories and pre-built instances under a (tag, type) key and
their resolution with singleton or transient lifetimes, fallback through a
parent registry and detection of circular resolution chains.

Exports:
- `Registry`: registers factories/instances and resolves them, locally first,
  then through its parent.
- `Lifetime`: Enum for controlling object lifetimes (singleton or transient).
- `RegistrationKey`: the (tag, token) pair registrations are stored under.
- `RegistryError` and its subclasses `DuplicateRegistrationError`,
  `ResolutionError`, `CircularDependencyError` and `NotFoundError`.
- `Ok`, `Err`, `Result`, `capture`: error-union return values for callers that
  prefer not to catch exceptions.
"""

from ._errors import (
    CircularDependencyError,
    DuplicateRegistrationError,
    NotFoundError,
    RegistryError,
    ResolutionError,
)
from ._registry import Lifetime, RegistrationKey, Registry
from ._result import Err, Ok, Result, capture


__all__ = [
    "CircularDependencyError",
    "DuplicateRegistrationError",
    "Err",
    "Lifetime",
    "NotFoundError",
    "Ok",
    "RegistrationKey",
    "Registry",
    "RegistryError",
    "ResolutionError",
    "Result",
    "capture",
]
