from __future__ import annotations

import inspect


def describe_token(token: object) -> str:
    if inspect.isclass(token):
        return token.__qualname__
    return repr(token)


class RegistryError(RuntimeError):
    """Base class for errors raised by a `Registry`.

    Carries the `tag` and `token` of the key the failing operation was about.
    """

    def __init__(self, msg: str, *, tag: str | None, token: object) -> None:
        super().__init__(msg)
        self.tag = tag
        self.token = token


class DuplicateRegistrationError(RegistryError):
    def __init__(self, *, tag: str | None, token: object) -> None:
        msg = f"Token {describe_token(token)} with tag {tag!r} is already registered."
        super().__init__(msg, tag=tag, token=token)


class ResolutionError(RegistryError):
    pass


class CircularDependencyError(ResolutionError):
    def __init__(self, *, tag: str | None, token: object) -> None:
        msg = f"Circular dependency detected for token {describe_token(token)} with tag {tag!r}."
        super().__init__(msg, tag=tag, token=token)


class NotFoundError(ResolutionError):
    def __init__(self, *, tag: str | None, token: object) -> None:
        msg = f"No registration found for token {describe_token(token)} with tag {tag!r}."
        super().__init__(msg, tag=tag, token=token)
