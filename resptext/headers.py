from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


def _sanitize_header(name: str, value: str) -> tuple[str, str]:
    """
    Sanitize header name and value to prevent HTTP header injection (CRLF injection).
    Strips CR, LF, and null bytes from both name and value.
    """
    clean_name = name.replace("\r", "").replace("\n", "").replace("\x00", "")
    clean_value = value.replace("\r", "").replace("\n", "").replace("\x00", "")
    return clean_name, clean_value


class Headers:
    """
    Ordered multimap of response header fields.

    Field names compare case-insensitively; the original casing and the
    order in which fields arrived are preserved in ``raw``.
    """

    def __init__(
        self,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self.raw: list[tuple[str, str]] = []
        if headers is None:
            return
        items = headers.items() if isinstance(headers, Mapping) else headers
        for name, value in items:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        self.raw.append(_sanitize_header(name, value))

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for ``name``, or ``default`` when absent."""
        key = name.lower()
        for field, value in self.raw:
            if field.lower() == key:
                return value
        return default

    def get_list(self, name: str) -> list[str]:
        key = name.lower()
        return [value for field, value in self.raw if field.lower() == key]

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self.get(name) is not None

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for field, _ in self.raw:
            key = field.lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(self.raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return [(n.lower(), v) for n, v in self.raw] == [
            (n.lower(), v) for n, v in other.raw
        ]

    def __repr__(self) -> str:
        return f"Headers({self.raw!r})"
