from __future__ import annotations

import codecs
import inspect
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from os import PathLike
from typing import Any, Protocol, TypeVar, cast

from .charset import UTF_8, lookup_encoding, resolve_encoding
from .compression import AsyncDecompressingReader, DecompressingReader
from .decoder import DEFAULT_CHUNK_SIZE, decode_async, decode_blocking
from .errors import BodyConsumedError, BodyReadError
from .headers import Headers
from .sources import SupportsAsyncRead, SupportsRead

T = TypeVar("T")


class EffectiveUri(str):
    """
    The URI a response was actually served from. Differs from the requested
    URI when at least one redirect was followed.
    """


@dataclass(frozen=True)
class Metrics:
    """Transfer statistics recorded by the transport for a single request."""

    upload_bytes: int = 0
    upload_total: int | None = None
    download_bytes: int = 0
    download_total: int | None = None
    name_lookup_time: float = 0.0
    connect_time: float = 0.0
    secure_connect_time: float = 0.0
    transfer_start_time: float = 0.0
    transfer_time: float = 0.0
    total_time: float = 0.0
    redirect_time: float = 0.0


class Extensions:
    """Per-response metadata keyed by type, populated by the transport layer."""

    def __init__(self, values: Iterable[object] = ()) -> None:
        self._values: dict[type, object] = {}
        for value in values:
            self.insert(value)

    def insert(self, value: object) -> None:
        self._values[type(value)] = value

    def get(self, kind: type[T]) -> T | None:
        return cast("T | None", self._values.get(kind))

    def __contains__(self, kind: object) -> bool:
        return kind in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Extensions({list(self._values.values())!r})"


class _Writer(Protocol):
    def write(self, data: bytes, /) -> Any: ...


def _read(body: SupportsRead, size: int) -> bytes:
    # Same read-error policy as decode_blocking: retry EINTR, wrap other OSErrors.
    while True:
        try:
            return body.read(size)
        except InterruptedError:
            continue
        except OSError as exc:
            raise BodyReadError(f"failed to read response body: {exc}") from exc


async def _aread(body: SupportsAsyncRead, size: int) -> bytes:
    while True:
        try:
            return await body.read(size)
        except InterruptedError:
            continue
        except OSError as exc:
            raise BodyReadError(f"failed to read response body: {exc}") from exc


class _BaseResponse:
    def __init__(
        self,
        status_code: int,
        reason: str,
        http_version: str,
        headers: Headers | Mapping[str, str] | Iterable[tuple[str, str]],
        extensions: Extensions | Iterable[object] | None,
        encoding: str | None,
        chunk_size: int,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.http_version = http_version
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        if isinstance(extensions, Extensions):
            self.extensions = extensions
        else:
            self.extensions = Extensions(extensions or ())
        self.chunk_size = chunk_size
        self._explicit_encoding = encoding
        self._consumed_by: str | None = None

    @property
    def raw_headers(self) -> list[tuple[str, str]]:
        return self.headers.raw

    @property
    def effective_uri(self) -> EffectiveUri | None:
        return self.extensions.get(EffectiveUri)

    @property
    def metrics(self) -> Metrics | None:
        return self.extensions.get(Metrics)

    @property
    def codec(self) -> codecs.CodecInfo:
        """Codec used by text decoding: explicit override first, then Content-Type."""
        if self._explicit_encoding is not None:
            return lookup_encoding(self._explicit_encoding) or UTF_8
        return resolve_encoding(self.headers)

    @property
    def encoding(self) -> str:
        return self.codec.name

    def _consume(self, method: str) -> None:
        if self._consumed_by is not None:
            raise BodyConsumedError(
                f"{method}() called but the body was already consumed by {self._consumed_by}()"
            )
        self._consumed_by = method


class Response(_BaseResponse):
    """
    HTTP response whose body is read on demand from a blocking byte source.

    The body can be consumed once, by any one of ``text()``, ``json()``,
    ``content()``, ``copy_to()`` or ``copy_to_file()``.
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        http_version: str,
        headers: Headers | Mapping[str, str] | Iterable[tuple[str, str]],
        body: SupportsRead,
        extensions: Extensions | Iterable[object] | None = None,
        encoding: str | None = None,
        auto_decompress: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__(
            status_code, reason, http_version, headers, extensions, encoding, chunk_size
        )
        content_encoding = self.headers.get("content-encoding")
        if auto_decompress and content_encoding:
            body = DecompressingReader(body, content_encoding)
        self.body = body

    def text(self) -> str:
        self._consume("text")
        return decode_blocking(self.body, self.codec, self.chunk_size)

    def content(self) -> bytes:
        self._consume("content")
        chunks: list[bytes] = []
        while chunk := _read(self.body, self.chunk_size):
            chunks.append(chunk)
        return b"".join(chunks)

    def json(self) -> Any:
        return json.loads(self.content())

    def copy_to(self, writer: _Writer) -> int:
        """Copy the body into ``writer``. Returns the number of bytes written."""
        self._consume("copy_to")
        written = 0
        while chunk := _read(self.body, self.chunk_size):
            writer.write(chunk)
            written += len(chunk)
        return written

    def copy_to_file(self, path: str | PathLike[str]) -> int:
        """Write the body to ``path``, truncating any existing file."""
        with open(path, "wb") as f:
            return self.copy_to(f)

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"


class AsyncResponse(_BaseResponse):
    """``Response`` counterpart whose body is read from an asyncio byte source."""

    def __init__(
        self,
        status_code: int,
        reason: str,
        http_version: str,
        headers: Headers | Mapping[str, str] | Iterable[tuple[str, str]],
        body: SupportsAsyncRead,
        extensions: Extensions | Iterable[object] | None = None,
        encoding: str | None = None,
        auto_decompress: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__(
            status_code, reason, http_version, headers, extensions, encoding, chunk_size
        )
        content_encoding = self.headers.get("content-encoding")
        if auto_decompress and content_encoding:
            body = AsyncDecompressingReader(body, content_encoding)
        self.body = body

    async def atext(self) -> str:
        self._consume("atext")
        return await decode_async(self.body, self.codec, self.chunk_size)

    async def acontent(self) -> bytes:
        self._consume("acontent")
        chunks: list[bytes] = []
        while chunk := await _aread(self.body, self.chunk_size):
            chunks.append(chunk)
        return b"".join(chunks)

    async def ajson(self) -> Any:
        return json.loads(await self.acontent())

    async def acopy_to(self, writer: Any) -> int:
        """
        Copy the body into ``writer``. Works with plain file objects, with
        writers whose ``write()`` is a coroutine, and with
        ``asyncio.StreamWriter`` (drained after every chunk).
        """
        self._consume("acopy_to")
        drain = getattr(writer, "drain", None)
        written = 0
        while chunk := await _aread(self.body, self.chunk_size):
            result = writer.write(chunk)
            if inspect.isawaitable(result):
                await result
            if drain is not None:
                await drain()
            written += len(chunk)
        return written

    def __repr__(self) -> str:
        return f"<AsyncResponse [{self.status_code}]>"
