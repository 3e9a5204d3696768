"""
Character encoding resolution from the Content-Type header.

Resolution never fails: a missing header, a header that is not a valid
media type, a missing ``charset`` parameter or an unknown label all
resolve to UTF-8.
"""

from __future__ import annotations

import codecs
import logging
import re
from collections.abc import Iterable, Mapping

from .headers import Headers

logger = logging.getLogger(__name__)

UTF_8 = codecs.lookup("utf-8")

_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"\s*({_TOKEN})/({_TOKEN})\s*")
_PARAM_RE = re.compile(
    rf';\s*(?:({_TOKEN})\s*=\s*({_TOKEN}|"(?:[^"\\]|\\.)*")\s*)?'
)
_QUOTED_PAIR_RE = re.compile(r"\\(.)")

# Labels browsers accept that the codec registry does not know about.
_WEB_LABELS = {
    "unicode-1-1-utf-8": "utf-8",
    "unicode11utf8": "utf-8",
    "unicode20utf8": "utf-8",
    "x-unicode20utf8": "utf-8",
    "x-sjis": "shift_jis",
    "x-gbk": "gbk",
    "x-euc-jp": "euc_jp",
    "x-x-big5": "big5",
    "x-mac-roman": "mac-roman",
    "x-mac-cyrillic": "mac-cyrillic",
    "x-mac-ukrainian": "mac-cyrillic",
    "dos-874": "cp874",
    "iso-8859-8-i": "iso-8859-8",
    "csiso88598i": "iso-8859-8",
    "logical": "iso-8859-8",
}

# Text codecs that transform escapes or hostnames rather than name a charset.
_TRANSFER_CODECS = frozenset(
    {"idna", "punycode", "unicode-escape", "raw-unicode-escape", "undefined"}
)

HeaderSource = Headers | Mapping[str, str | bytes] | Iterable[tuple[str, str | bytes]]


class InvalidContentType(ValueError):
    """Raised when a Content-Type value is not a structured media type."""


def parse_content_type(value: str) -> tuple[str, list[tuple[str, str]]]:
    """
    Parse a Content-Type value into its media type and parameters.

    Args:
        value: Raw header value, e.g. ``text/html; charset="utf-8"``

    Returns:
        The lowercased ``type/subtype`` and the parameters in order of
        appearance, with lowercased names and unquoted values.

    Raises:
        InvalidContentType: If the value is not ``type/subtype`` followed
            by ``; name=value`` parameters.
    """
    match = _MEDIA_TYPE_RE.match(value)
    if match is None:
        raise InvalidContentType(f"invalid media type: {value!r}")
    mime_type = f"{match.group(1)}/{match.group(2)}".lower()

    params: list[tuple[str, str]] = []
    pos = match.end()
    while pos < len(value):
        param = _PARAM_RE.match(value, pos)
        if param is None:
            raise InvalidContentType(f"invalid parameter at offset {pos}: {value!r}")
        name, raw = param.group(1), param.group(2)
        if name is not None:
            if raw.startswith('"'):
                raw = _QUOTED_PAIR_RE.sub(r"\1", raw[1:-1])
            params.append((name.lower(), raw))
        pos = param.end()
    return mime_type, params


def lookup_encoding(label: str) -> codecs.CodecInfo | None:
    """Look up a charset label, returning None for unknown or non-text codecs."""
    normalized = label.strip().lower()
    if not normalized:
        return None
    name = _WEB_LABELS.get(normalized, normalized)
    try:
        info = codecs.lookup(name)
    except (LookupError, ValueError):
        return None
    # base64, zlib, rot13 and friends are registered codecs but not charsets.
    if not getattr(info, "_is_text_encoding", True):
        return None
    if info.name.replace("_", "-") in _TRANSFER_CODECS:
        return None
    # Body decoding relies on errors="replace" never raising.
    try:
        info.incrementaldecoder("replace").decode(b"\xff", final=True)
    except (UnicodeError, LookupError, ValueError, TypeError):
        return None
    return info


def _content_type(headers: HeaderSource) -> str | bytes | None:
    if isinstance(headers, Headers):
        return headers.get("content-type")
    items = headers.items() if isinstance(headers, Mapping) else headers
    for name, value in items:
        if name.lower() == "content-type":
            return value
    return None


def resolve_encoding(headers: HeaderSource) -> codecs.CodecInfo:
    """
    Pick the encoding for a response body from its headers.

    Only the first Content-Type field is consulted, and within it the first
    ``charset`` parameter.
    """
    content_type = _content_type(headers)
    if content_type is None:
        return UTF_8

    if isinstance(content_type, bytes):
        try:
            content_type = content_type.decode("ascii")
        except UnicodeDecodeError as exc:
            logger.warning("could not parse Content-Type header: %s", exc)
            return UTF_8

    try:
        _, params = parse_content_type(content_type)
    except InvalidContentType as exc:
        logger.warning("could not parse Content-Type header: %s", exc)
        return UTF_8

    for name, value in params:
        if name == "charset":
            return lookup_encoding(value) or UTF_8
    return UTF_8
