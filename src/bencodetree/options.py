"""
Decoder configuration: strict/relaxed policies and limits.
"""
import codecs
from dataclasses import dataclass
from enum import Enum

from .errors import BencodeInvalidArgument

__all__ = [
    "Policy",
    "DecodeOptions",
    "STRICT",
    "RELAXED",
    "DEFAULT_ENCODING",
    "DEFAULT_MAX_DEPTH",
    "MAX_LENGTH_DIGITS",
    "MAX_INTEGER_DIGITS",
    "INTEGER_BOUND",
    "READ_CHUNK_SIZE",
    "check_encoding",
]

DEFAULT_ENCODING = "utf-8"

# Containers nested deeper than this are rejected
DEFAULT_MAX_DEPTH = 128

# Longest accepted run of ASCII digits in a string length prefix
MAX_LENGTH_DIGITS = 20

# int() and str() refuse longer decimal strings by default
MAX_INTEGER_DIGITS = 4300

# Integers must satisfy abs(n) < INTEGER_BOUND
INTEGER_BOUND = 10 ** MAX_INTEGER_DIGITS

# Largest single read() request made to an underlying stream
READ_CHUNK_SIZE = 64 * 1024


def check_encoding(encoding) -> str:
    """Returns encoding unchanged if Python knows it, else raises BencodeInvalidArgument."""
    if not isinstance(encoding, str):
        raise BencodeInvalidArgument("encoding must be a string")
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise BencodeInvalidArgument(f"Unknown text encoding: {encoding!r}") from exc
    return encoding


class Policy(Enum):
    """How the decoder treats input that is valid but not canonical."""
    STRICT = "strict"
    RELAXED = "relaxed"


@dataclass(frozen=True)
class DecodeOptions:
    """
    Settings for BencodeDecoder.

    encoding       -- text encoding attached to decoded strings for display;
                      never affects the stored bytes
    max_depth      -- maximum number of nested lists/dictionaries
    duplicate_keys -- STRICT fails on a repeated dictionary key,
                      RELAXED keeps the last value
    key_order      -- STRICT fails on unsorted dictionary keys,
                      RELAXED accepts any order
    integer_form   -- STRICT only accepts canonical integers,
                      RELAXED also accepts leading zeros and -0
    """
    encoding: str = DEFAULT_ENCODING
    max_depth: int = DEFAULT_MAX_DEPTH
    duplicate_keys: Policy = Policy.RELAXED
    key_order: Policy = Policy.RELAXED
    integer_form: Policy = Policy.STRICT

    def __post_init__(self):
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise BencodeInvalidArgument("max_depth must be an integer")
        if self.max_depth < 1:
            raise BencodeInvalidArgument(f"max_depth must be at least 1, got {self.max_depth}")

        check_encoding(self.encoding)

        for name in ("duplicate_keys", "key_order", "integer_form"):
            if not isinstance(getattr(self, name), Policy):
                raise BencodeInvalidArgument(f"{name} must be a Policy")


STRICT = DecodeOptions(
    duplicate_keys=Policy.STRICT,
    key_order=Policy.STRICT,
    integer_form=Policy.STRICT,
)

RELAXED = DecodeOptions(
    duplicate_keys=Policy.RELAXED,
    key_order=Policy.RELAXED,
    integer_form=Policy.RELAXED,
)
