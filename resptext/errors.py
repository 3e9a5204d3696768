class RespTextError(Exception):
    """Base error for resptext."""


class DecodeError(RespTextError):
    """Raised when a response body cannot be turned into text."""


class BodyReadError(DecodeError):
    """Raised when reading the response body fails with a non-transient I/O error."""


class ContentDecodingError(DecodeError):
    """Raised when a compressed body (gzip, deflate, br) is corrupt."""


class BodyConsumedError(RespTextError):
    """Raised when a one-shot response body is read a second time."""
