"""Route and MiddlewareEntry frozen dataclasses."""

from dataclasses import dataclass

from quickrest._internal.types import Handler
from quickrest.errors import ConfigurationError

WILDCARD = "*"
"""Matches any method (middleware only) or any path."""

HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "CONNECT", "TRACE"}
)


def check_path(path: str) -> str:
    """Validate a registration path: ``*`` or an absolute path.

    Raises ``ConfigurationError`` for anything else. Paths are matched
    literally, so ``{param}`` or ``<param>`` placeholders are rejected
    rather than silently never matching.
    """
    if path == WILDCARD:
        return path
    if not path.startswith("/"):
        msg = f"Route path must be '*' or start with '/', got {path!r}."
        raise ConfigurationError(msg)
    if any(ch in path for ch in "{}<>*"):
        msg = (
            f"Route path {path!r} contains a pattern character. "
            "Paths are matched exactly; only a bare '*' matches every path."
        )
        raise ConfigurationError(msg)
    return path


def check_method(method: str, *, allow_wildcard: bool) -> str:
    """Normalize *method* to upper case and validate it."""
    normalized = method.upper()
    if normalized == WILDCARD:
        if allow_wildcard:
            return normalized
        msg = "Routes need a concrete HTTP method; '*' is only valid for middleware."
        raise ConfigurationError(msg)
    if normalized not in HTTP_METHODS:
        msg = f"Unknown HTTP method {method!r}."
        raise ConfigurationError(msg)
    return normalized


@dataclass(frozen=True, slots=True)
class MiddlewareEntry:
    """One middleware handler scoped to a method and path.

    Either field may be ``WILDCARD``.
    """

    method: str
    path: str
    handler: Handler

    def matches(self, method: str, path: str) -> bool:
        return (self.path == path or self.path == WILDCARD) and (
            self.method == method or self.method == WILDCARD
        )


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    ``middleware`` records the inline middleware given at registration.
    The dispatcher runs them through the matching ``MiddlewareEntry``
    objects, not through this field.
    """

    method: str
    path: str
    handler: Handler
    middleware: tuple[Handler, ...] = ()

    def __post_init__(self) -> None:
        if self.method == WILDCARD:
            msg = "A Route's method can never be the wildcard."
            raise ConfigurationError(msg)

    def matches(self, method: str, path: str) -> bool:
        """Exact method match; the path may match through ``*``."""
        return (self.path == path or self.path == WILDCARD) and self.method == method

    def middleware_entries(self) -> tuple[MiddlewareEntry, ...]:
        """The inline middleware wrapped as entries on this route's method+path."""
        return tuple(MiddlewareEntry(self.method, self.path, mw) for mw in self.middleware)
