"""Shared type aliases used across quickrest modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Middleware or route handler: called as handler(request, response),
# sync or async.
Handler: TypeAlias = Callable[..., Any]

# Callback run once the server is ready to accept connections
ListeningCallback: TypeAlias = Callable[..., Any]
