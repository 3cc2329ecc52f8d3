"""Run user callables that may be ``def`` or ``async def``.

Middleware, route handlers and the ``on_listening`` callback all go
through ``invoke``, which is the one place that awaits them.
"""

import inspect
from typing import Any

from quickrest._internal.types import Handler, ListeningCallback


async def invoke(handler: Handler | ListeningCallback, *args: Any) -> None:
    """Call *handler* with *args* and wait until it has finished.

    Return values are discarded: handlers answer through the
    ``ResponseWriter``, never by returning a response.
    """
    outcome = handler(*args)
    if inspect.isawaitable(outcome):
        await outcome
