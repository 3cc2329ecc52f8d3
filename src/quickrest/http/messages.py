"""Default response bodies for the status helpers.

One ``Messages`` instance is built when the server is constructed and
shared by reference with every ``ResponseWriter``.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Messages:
    """Default body text for each status helper.

    Override the ones you need::

        messages = Messages(not_found="Nothing here")
    """

    not_found: str = "Not found"
    unauthorized: str = "Unauthorized"
    forbidden: str = "Forbidden"
    bad_request: str = "Bad request"
    conflict: str = "Conflict"
    unprocessable_entity: str = "Unprocessable entity"
    too_many_requests: str = "Too many requests"
    unknown_error: str = "Unknown error"
