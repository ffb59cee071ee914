"""
Bencode decoder for byte strings, binary streams and asyncio streams.

The parsing functions are generators: they yield reader requests such as
("peek",) or ("read", n) and receive the result back. The same parsing
code is therefore driven by BencodeReader for blocking input and by
AsyncBencodeReader for asyncio streams.
"""
import inspect
import logging
import re
from dataclasses import fields, replace
from typing import Optional

from .errors import BencodeDecodeError, BencodeInvalidArgument
from .options import INTEGER_BOUND, MAX_INTEGER_DIGITS, MAX_LENGTH_DIGITS, DecodeOptions, Policy
from .reader import AsyncBencodeReader, BencodeReader
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, narrow

__all__ = ["BencodeDecoder", "decode", "decode_as", "decode_async"]

logger = logging.getLogger(__name__)

TOKEN_INTEGER = b"i"
TOKEN_LIST = b"l"
TOKEN_DICT = b"d"
TOKEN_END = b"e"
TOKEN_STRING_SEPARATOR = b":"
DIGITS = b"0123456789"

_CANONICAL_INT = re.compile(rb"-?(?:0|[1-9][0-9]*)")
_RELAXED_INT = re.compile(rb"-?[0-9]+")

_PEEK = ("peek",)
_TELL = ("tell",)


def _read(n):
    return ("read", n)


def _read_until(delimiter, limit):
    return ("read_until", delimiter, limit)


def _run(steps, reader):
    """Drives a parsing generator with a blocking reader."""
    try:
        request = next(steps)
        while True:
            name, *args = request
            request = steps.send(getattr(reader, name)(*args))
    except StopIteration as done:
        return done.value


async def _run_async(steps, reader):
    """Drives a parsing generator with an asyncio reader."""
    try:
        request = next(steps)
        while True:
            name, *args = request
            result = getattr(reader, name)(*args)
            if inspect.isawaitable(result):
                result = await result
            request = steps.send(result)
    except StopIteration as done:
        return done.value


class BencodeDecoder:
    """
    Decodes Bencoded data into BencodeType trees.

    A decoder holds nothing but its options, so one instance can decode
    any number of independent sources.
    """
    def __init__(self, options: Optional[DecodeOptions] = None):
        if options is None:
            options = DecodeOptions()
        elif not isinstance(options, DecodeOptions):
            raise BencodeInvalidArgument("options must be a DecodeOptions instance.")
        self.options = options

    def decode(self, reader: BencodeReader):
        """Decodes the next value from the reader (bytes and file objects are wrapped)."""
        if not isinstance(reader, BencodeReader):
            reader = BencodeReader(reader)
        return _run(self._parse_value(0), reader)

    def decode_as(self, reader: BencodeReader, cls, item_type=None):
        """Decodes the next value and checks it is a `cls` (with `item_type` items, if given)."""
        return _narrow_root(self.decode(reader), cls, item_type)

    async def decode_async(self, reader: AsyncBencodeReader):
        """Decodes the next value from an asyncio reader."""
        if not isinstance(reader, AsyncBencodeReader):
            reader = AsyncBencodeReader(reader)
        return await _run_async(self._parse_value(0), reader)

    # --------------------------
    # Parsing functions
    # --------------------------

    def _parse_value(self, depth):
        ch = yield _PEEK

        if ch == TOKEN_INTEGER:
            return (yield from self._parse_int())

        if ch in DIGITS:  # Bencode strings start with length, which is a digit
            return (yield from self._parse_string())

        if ch == TOKEN_LIST:
            return (yield from self._parse_list(depth + 1))

        if ch == TOKEN_DICT:
            return (yield from self._parse_dict(depth + 1))

        offset = yield _TELL
        raise BencodeDecodeError(f"Invalid token {ch!r}", offset)

    def _check_depth(self, depth, offset):
        if depth > self.options.max_depth:
            raise BencodeDecodeError(
                f"Nesting exceeds maximum depth of {self.options.max_depth}", offset
            )

    def _parse_int(self):
        """Parses an integer from the Bencoded data."""
        yield _read(1)  # skip 'i'
        start = yield _TELL
        number_bytes = yield _read_until(TOKEN_END, MAX_INTEGER_DIGITS + 1)

        canonical = bool(_CANONICAL_INT.fullmatch(number_bytes)) and number_bytes != b"-0"
        if not canonical:
            if self.options.integer_form is Policy.STRICT or not _RELAXED_INT.fullmatch(number_bytes):
                raise BencodeDecodeError(f"Invalid integer format {number_bytes!r}", start)
            logger.debug("[Decoder] Accepted non-canonical integer %r at offset %d", number_bytes, start)

        try:
            num = int(number_bytes)
        except ValueError as exc:
            raise BencodeDecodeError(f"Invalid integer format {number_bytes!r}", start) from exc

        if not -INTEGER_BOUND < num < INTEGER_BOUND:
            raise BencodeDecodeError(f"Integer exceeds {MAX_INTEGER_DIGITS} digits", start)

        return BencodeInt(num)

    def _parse_string(self):
        """Parses a byte string from the Bencoded data."""
        start = yield _TELL
        # read length until ':'
        length_bytes = yield _read_until(TOKEN_STRING_SEPARATOR, MAX_LENGTH_DIGITS)

        if not length_bytes.isdigit():
            raise BencodeDecodeError(f"Invalid string length {length_bytes!r}", start)

        string_bytes = yield _read(int(length_bytes))
        return BencodeString(string_bytes, self.options.encoding)

    def _parse_list(self, depth):
        """Parses a list from the Bencoded data."""
        offset = yield _TELL
        self._check_depth(depth, offset)
        yield _read(1)  # skip 'l'
        items = []

        while (yield _PEEK) != TOKEN_END:
            items.append((yield from self._parse_value(depth)))

        yield _read(1)  # skip 'e'
        return BencodeList(items, self.options.encoding)

    def _parse_dict(self, depth):
        """Parses a dictionary from the Bencoded data."""
        offset = yield _TELL
        self._check_depth(depth, offset)
        yield _read(1)  # skip 'd'
        obj = {}
        previous = None

        while True:
            ch = yield _PEEK
            if ch == TOKEN_END:
                break

            # keys MUST be strings
            key_offset = yield _TELL
            if ch not in DIGITS:
                raise BencodeDecodeError(f"Dictionary key must be a byte string, got {ch!r}", key_offset)
            key = (yield from self._parse_string()).value

            if previous is not None and key < previous:
                if self.options.key_order is Policy.STRICT:
                    raise BencodeDecodeError(f"Dictionary key {key!r} is out of order", key_offset)
                logger.debug("[Decoder] Accepted out-of-order key %r at offset %d", key, key_offset)

            if key in obj:
                if self.options.duplicate_keys is Policy.STRICT:
                    raise BencodeDecodeError(f"Duplicate dictionary key {key!r}", key_offset)
                logger.debug("[Decoder] Duplicate key %r at offset %d replaces earlier value", key, key_offset)

            obj[key] = yield from self._parse_value(depth)
            previous = key

        yield _read(1)  # skip 'e'
        return BencodeDict(obj, self.options.encoding)


def _narrow_root(value, cls, item_type):
    value = narrow(value, cls)
    if item_type is not None:
        if not isinstance(value, (BencodeList, BencodeDict)):
            raise BencodeInvalidArgument("item_type only applies to BencodeList and BencodeDict.")
        value = value.as_type(item_type)
    return value


def _resolve_options(options, overrides):
    if options is None:
        options = DecodeOptions()
    elif not isinstance(options, DecodeOptions):
        raise BencodeInvalidArgument("options must be a DecodeOptions instance.")

    if overrides:
        unknown = set(overrides) - {f.name for f in fields(DecodeOptions)}
        if unknown:
            raise BencodeInvalidArgument(f"Unknown decode options: {', '.join(sorted(unknown))}")
        options = replace(options, **overrides)
    return options


def decode(data, options: Optional[DecodeOptions] = None, check_trailer: bool = False, **overrides):
    """
    Convenience function to decode Bencoded data.

    `data` may be bytes, a binary file-like object or a BencodeReader.
    Keyword overrides are applied on top of `options`, for example
    decode(data, max_depth=16). With `check_trailer`, bytes left after the
    first value are an error.
    """
    reader = data if isinstance(data, BencodeReader) else BencodeReader(data)
    result = BencodeDecoder(_resolve_options(options, overrides)).decode(reader)

    if check_trailer and not reader.at_end():
        raise BencodeDecodeError("Trailing data after value", reader.position)
    return result


def decode_as(data, cls, item_type=None, options: Optional[DecodeOptions] = None, **overrides):
    """
    Decodes data and checks the result is a `cls`.

    With `item_type`, every element of a list (or value of a dictionary)
    must also be an `item_type`. Raises BencodeInvalidCast otherwise.
    """
    return _narrow_root(decode(data, options, **overrides), cls, item_type)


async def decode_async(stream, options: Optional[DecodeOptions] = None, **overrides):
    """Decodes one value from an asyncio stream (or AsyncBencodeReader)."""
    reader = stream if isinstance(stream, AsyncBencodeReader) else AsyncBencodeReader(stream)
    return await BencodeDecoder(_resolve_options(options, overrides)).decode_async(reader)
