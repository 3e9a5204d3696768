"""
Content-Encoding removal for response bodies.

Supports gzip, deflate, and brotli (br) encodings, both one-shot and as
incremental readers that sit between the transport body and the text decoder.

``DEFAULT_ACCEPT_ENCODING`` lists the codings these readers can undo. It is
not used here; transports send it as the request's Accept-Encoding so that
servers only pick codings a ``Response`` can decode.
"""

from __future__ import annotations

import zlib

from .errors import ContentDecodingError
from .sources import SupportsAsyncRead, SupportsRead

# Brotli is optional but included in dependencies
try:
    import brotli

    BROTLI_AVAILABLE = True
except ImportError:
    BROTLI_AVAILABLE = False

# Codings this module can undo.
DEFAULT_ACCEPT_ENCODING = "gzip, deflate, br" if BROTLI_AVAILABLE else "gzip, deflate"

_DECODER_ERRORS: tuple[type[Exception], ...] = (zlib.error,)
if BROTLI_AVAILABLE:
    _DECODER_ERRORS += (brotli.error,)


class ContentDecoder:
    def decompress(self, data: bytes) -> bytes:
        raise NotImplementedError()

    def flush(self) -> bytes:
        raise NotImplementedError()


class IdentityDecoder(ContentDecoder):
    def decompress(self, data: bytes) -> bytes:
        return data

    def flush(self) -> bytes:
        return b""


class DeflateDecoder(ContentDecoder):
    """Deflate that accepts both zlib-wrapped and raw streams."""

    def __init__(self) -> None:
        self._first_try = True
        self._data = b""
        self._obj = zlib.decompressobj()

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return data

        if not self._first_try:
            return self._obj.decompress(data)

        self._data += data
        try:
            decompressed = self._obj.decompress(data)
            if decompressed:
                self._first_try = False
                self._data = b""
            return decompressed
        except zlib.error:
            # Not zlib-wrapped, retry everything seen so far as raw deflate
            self._first_try = False
            self._obj = zlib.decompressobj(-zlib.MAX_WBITS)
            buffered, self._data = self._data, b""
            return self._obj.decompress(buffered)

    def flush(self) -> bytes:
        return self._obj.flush()


class GzipDecoderState:

    FIRST_MEMBER = 0
    OTHER_MEMBERS = 1
    SWALLOW_DATA = 2


class GzipDecoder(ContentDecoder):
    """
    Gzip, including bodies made of several concatenated members. Bytes after
    the first complete member that do not start another member are dropped,
    as other gzip clients do.
    """

    def __init__(self) -> None:
        self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        self._state = GzipDecoderState.FIRST_MEMBER

    def decompress(self, data: bytes) -> bytes:
        ret = bytearray()
        if self._state == GzipDecoderState.SWALLOW_DATA or not data:
            return bytes(ret)
        while True:
            try:
                ret += self._obj.decompress(data)
            except zlib.error:
                previous_state = self._state
                self._state = GzipDecoderState.SWALLOW_DATA
                if previous_state == GzipDecoderState.OTHER_MEMBERS:
                    return bytes(ret)
                raise
            data = self._obj.unused_data
            if not data:
                return bytes(ret)
            self._state = GzipDecoderState.OTHER_MEMBERS
            self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)

    def flush(self) -> bytes:
        if self._state == GzipDecoderState.SWALLOW_DATA:
            return b""
        return self._obj.flush()


class BrotliDecoder(ContentDecoder):
    def __init__(self) -> None:
        self._obj = brotli.Decompressor()

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return b""
        return self._obj.process(data)

    def flush(self) -> bytes:
        return b""


class MultiDecoder(ContentDecoder):
    """
    Undo several codings. Content-Encoding lists them in the order they were
    applied, so they are removed last to first.
    """

    def __init__(self, decoders: list[ContentDecoder]) -> None:
        self._decoders = decoders

    def decompress(self, data: bytes) -> bytes:
        for decoder in reversed(self._decoders):
            data = decoder.decompress(data)
        return data

    def flush(self) -> bytes:
        data = b""
        for decoder in reversed(self._decoders):
            data = decoder.decompress(data) + decoder.flush()
        return data


def _get_single_decoder(encoding: str) -> ContentDecoder:
    if encoding in ("gzip", "x-gzip"):
        return GzipDecoder()
    if encoding == "deflate":
        return DeflateDecoder()
    if encoding == "br" and BROTLI_AVAILABLE:
        return BrotliDecoder()
    # identity, or something we cannot undo: pass it through untouched
    return IdentityDecoder()


def get_decoder(content_encoding: str | None) -> ContentDecoder:
    """Build a decoder for a Content-Encoding header value."""
    encodings = [
        e.strip() for e in (content_encoding or "").lower().split(",") if e.strip()
    ]
    if not encodings:
        return IdentityDecoder()
    if len(encodings) == 1:
        return _get_single_decoder(encodings[0])
    return MultiDecoder([_get_single_decoder(e) for e in encodings])


def decode_body(body: bytes, content_encoding: str) -> bytes:
    """
    Decode response body based on Content-Encoding header.

    Args:
        body: Raw response body bytes
        content_encoding: Value of Content-Encoding header

    Returns:
        Decoded body bytes

    Raises:
        ContentDecodingError: If the body is not valid for its declared coding
    """
    if not content_encoding or not body:
        return body

    decoder = get_decoder(content_encoding)
    try:
        return decoder.decompress(body) + decoder.flush()
    except _DECODER_ERRORS as exc:
        raise ContentDecodingError(
            f"failed to decode {content_encoding!r} body: {exc}"
        ) from exc


class _DecompressingBase:
    def __init__(self, content_encoding: str | None) -> None:
        self._decoder = get_decoder(content_encoding)
        self._content_encoding = content_encoding
        self._done = False

    def _decode(self, data: bytes) -> bytes:
        try:
            if data:
                return self._decoder.decompress(data)
            self._done = True
            return self._decoder.flush()
        except _DECODER_ERRORS as exc:
            raise ContentDecodingError(
                f"failed to decode {self._content_encoding!r} body: {exc}"
            ) from exc


class DecompressingReader(_DecompressingBase):
    """
    Wrap a body source so that ``read(n)`` returns decompressed bytes.

    A single read may return more than ``n`` bytes when a small compressed
    chunk inflates; ``b""`` is only returned at the real end of the stream.
    """

    def __init__(self, source: SupportsRead, content_encoding: str | None) -> None:
        super().__init__(content_encoding)
        self._source = source

    def read(self, size: int = -1) -> bytes:
        while not self._done:
            out = self._decode(self._source.read(size))
            if out:
                return out
        return b""


class AsyncDecompressingReader(_DecompressingBase):
    """Async counterpart of ``DecompressingReader``."""

    def __init__(self, source: SupportsAsyncRead, content_encoding: str | None) -> None:
        super().__init__(content_encoding)
        self._source = source

    async def read(self, size: int = -1) -> bytes:
        while not self._done:
            out = self._decode(await self._source.read(size))
            if out:
                return out
        return b""
