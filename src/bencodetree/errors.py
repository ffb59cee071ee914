"""
Exceptions raised while decoding, encoding or narrowing Bencode values.
"""
from typing import Optional

__all__ = [
    "BencodeError",
    "BencodeDecodeError",
    "BencodeEndOfStream",
    "BencodeInvalidCast",
    "BencodeInvalidArgument",
]


class BencodeError(Exception):
    """Base class for all Bencode errors."""


class BencodeDecodeError(BencodeError, ValueError):
    """
    Malformed Bencode data.

    `offset` is the absolute byte position where the problem was detected,
    or None when it is not known.
    """
    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} at offset {offset}"
        super().__init__(message)
        self.offset = offset


class BencodeEndOfStream(BencodeDecodeError, EOFError):
    """Input ended before a value was complete."""


class BencodeInvalidCast(BencodeError, TypeError):
    """A value does not have the type the caller asked for."""


class BencodeInvalidArgument(BencodeError, TypeError, ValueError):
    """Caller supplied None or an otherwise unusable argument."""
