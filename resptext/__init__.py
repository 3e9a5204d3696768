from resptext.charset import UTF_8, lookup_encoding, parse_content_type, resolve_encoding
from resptext.compression import (
    DEFAULT_ACCEPT_ENCODING,
    AsyncDecompressingReader,
    DecompressingReader,
    decode_body,
)
from resptext.decoder import DEFAULT_CHUNK_SIZE, decode_async, decode_blocking
from resptext.errors import (
    BodyConsumedError,
    BodyReadError,
    ContentDecodingError,
    DecodeError,
    RespTextError,
)
from resptext.headers import Headers
from resptext.models import AsyncResponse, EffectiveUri, Extensions, Metrics, Response
from resptext.sources import AsyncIterableReader, IterableReader

__all__ = [
    "UTF_8",
    "lookup_encoding",
    "parse_content_type",
    "resolve_encoding",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_ACCEPT_ENCODING",
    "decode_async",
    "decode_blocking",
    "decode_body",
    "DecompressingReader",
    "AsyncDecompressingReader",
    "IterableReader",
    "AsyncIterableReader",
    "Headers",
    "Response",
    "AsyncResponse",
    "EffectiveUri",
    "Extensions",
    "Metrics",
    "RespTextError",
    "DecodeError",
    "BodyReadError",
    "ContentDecodingError",
    "BodyConsumedError",
]
