"""quickrest exception hierarchy.

HTTP-level failures (404, 401, ...) are not exceptions here: they are
written to the response by the dispatcher or by handlers. Exceptions
are reserved for misuse of the registration API.
"""


class QuickRestError(Exception):
    """Base for all quickrest-specific errors."""


class ConfigurationError(QuickRestError):
    """Raised when a route, middleware, or server setting is invalid.

    Raised eagerly at registration time so mistakes surface at startup,
    not on the first request.
    """
