"""Header mapping shared by requests and test responses.

Built once from the raw ASGI byte pairs: names are lower-cased and
values decoded as latin-1 up front. Routing never looks at headers, so
handlers are the only readers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType


class Headers(Mapping[str, str]):
    """Lower-cased header names, each with every value that was sent.

    ``headers["X-Token"]`` is the first value for that name, in any
    case. ``get_list`` returns all of them in arrival order.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, tuple[str, ...]] | None = None) -> None:
        self._values: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {name.lower(): tuple(found) for name, found in (values or {}).items()}
        )

    @classmethod
    def from_raw(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        """Group ASGI ``(name, value)`` byte pairs by lower-cased name."""
        grouped: dict[str, list[str]] = {}
        for name, value in raw:
            key = bytes(name).decode("latin-1").lower()
            grouped.setdefault(key, []).append(bytes(value).decode("latin-1"))
        return cls({key: tuple(found) for key, found in grouped.items()})

    def __getitem__(self, key: str) -> str:
        if not isinstance(key, str):
            raise KeyError(key)
        return self._values[key.lower()][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({dict(self._values)!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, or an empty list."""
        return list(self._values.get(key.lower(), ()))
