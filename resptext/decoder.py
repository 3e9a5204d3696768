"""
Incremental decoding of a response body into text.

Both the blocking and the asyncio entry points drive the same generator,
``_decode_steps``. The generator yields how many bytes it wants next and is
sent each chunk as it arrives, so the drivers only differ in how a chunk is
obtained.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Generator

from .charset import UTF_8
from .errors import BodyReadError
from .sources import SupportsAsyncRead, SupportsRead

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192

_BOMS = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
)
_BOM_SNIFF_LEN = 3


def _sniff_bom(head: bytes, encoding: codecs.CodecInfo) -> tuple[codecs.CodecInfo, int]:
    """Return the encoding selected by a leading BOM and the BOM's length."""
    # FF FE 00 00 is a UTF-32LE mark, not UTF-16LE followed by NUL.
    if encoding.name.startswith("utf-32"):
        return encoding, 0
    for bom, name in _BOMS:
        if head.startswith(bom):
            info = codecs.lookup(name)
            if info.name != encoding.name:
                logger.debug("byte order mark overrides %s with %s", encoding.name, info.name)
            return info, len(bom)
    return encoding, 0


def _read_chunk(chunk_size: int) -> Generator[int, bytes, bytes]:
    while True:
        try:
            return (yield chunk_size)
        except InterruptedError:
            logger.debug("body read interrupted, retrying")
        except OSError as exc:
            raise BodyReadError(f"failed to read response body: {exc}") from exc


def _decode_steps(
    encoding: codecs.CodecInfo, chunk_size: int
) -> Generator[int, bytes, str]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer")

    parts: list[str] = []

    head = b""
    while len(head) < _BOM_SNIFF_LEN:
        chunk = yield from _read_chunk(chunk_size)
        if not chunk:
            break
        head += chunk

    encoding, skip = _sniff_bom(head, encoding)
    decoder = encoding.incrementaldecoder("replace")
    if len(head) < _BOM_SNIFF_LEN:
        parts.append(decoder.decode(head[skip:], final=True))
        return "".join(parts)
    parts.append(decoder.decode(head[skip:]))

    while True:
        chunk = yield from _read_chunk(chunk_size)
        if not chunk:
            parts.append(decoder.decode(b"", final=True))
            return "".join(parts)
        parts.append(decoder.decode(chunk))


def decode_blocking(
    source: SupportsRead,
    encoding: codecs.CodecInfo = UTF_8,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """
    Read ``source`` to exhaustion and decode it as ``encoding``.

    Args:
        source: Object with a ``read(n)`` method returning ``b""`` at end of stream
        encoding: Codec to decode with, usually from ``resolve_encoding()``
        chunk_size: Maximum number of bytes requested per read

    Returns:
        The decoded text. Malformed sequences become U+FFFD.

    Raises:
        BodyReadError: If a read fails with anything but ``InterruptedError``
    """
    steps = _decode_steps(encoding, chunk_size)
    try:
        size = next(steps)
        while True:
            try:
                chunk = source.read(size)
            except OSError as exc:
                size = steps.throw(exc)
            else:
                size = steps.send(chunk)
    except StopIteration as stop:
        return stop.value
    finally:
        steps.close()


async def decode_async(
    source: SupportsAsyncRead,
    encoding: codecs.CodecInfo = UTF_8,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Asyncio counterpart of ``decode_blocking()``; suspends only while awaiting reads."""
    steps = _decode_steps(encoding, chunk_size)
    try:
        size = next(steps)
        while True:
            try:
                chunk = await source.read(size)
            except OSError as exc:
                size = steps.throw(exc)
            else:
                size = steps.send(chunk)
    except StopIteration as stop:
        return stop.value
    finally:
        steps.close()
