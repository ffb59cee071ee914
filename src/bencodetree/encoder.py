"""
Bencode encoder producing canonical bytes.

Dictionaries are always written with keys sorted by their raw bytes, so
equal values always encode to identical bytes.
"""
from operator import itemgetter

from .errors import BencodeInvalidArgument
from .options import DEFAULT_ENCODING
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, key_to_bytes

__all__ = [
    "encode",
    "encode_to",
    "encode_int",
    "encode_bytes",
    "encode_str",
    "encode_list",
    "encode_dict",
]


def encode(obj, encoding: str = DEFAULT_ENCODING) -> bytes:
    """
    Encodes a Python object or BencodeType into bencoded bytes.

    `encoding` is only used to turn plain str values (and str dict keys)
    into bytes; the bytes of a BencodeString are written unchanged.
    """
    # bool is an int subclass
    if isinstance(obj, bool):
        raise BencodeInvalidArgument("Bencode has no boolean type.")

    if isinstance(obj, (int, BencodeInt)):
        # plain ints get the same digit limit as BencodeInt
        value = BencodeInt(obj).value if isinstance(obj, int) else obj.value
        return encode_int(value)

    if isinstance(obj, BencodeString):
        return encode_bytes(obj.value)

    if isinstance(obj, str):
        return encode_str(obj, encoding)

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return encode_bytes(bytes(obj))

    if isinstance(obj, (list, tuple, BencodeList)):
        return encode_list(obj, encoding)

    if isinstance(obj, (dict, BencodeDict)):
        return encode_dict(obj, encoding)

    if obj is None:
        raise BencodeInvalidArgument("None cannot be bencoded.")
    raise BencodeInvalidArgument(f"Cannot bencode object of type {type(obj).__name__}")


def encode_to(obj, stream, encoding: str = DEFAULT_ENCODING) -> int:
    """Writes the bencoded form of obj to a binary stream and returns the byte count."""
    if stream is None:
        raise BencodeInvalidArgument("stream cannot be None.")
    data = encode(obj, encoding)
    stream.write(data)
    return len(data)


# ------------------------------------------------------------
#   Encoding primitives
# ------------------------------------------------------------

def encode_int(n: int) -> bytes:
    """Encodes an integer to bencoded bytes (e.g., i123e)."""
    return b"i%de" % n


def encode_bytes(b: bytes) -> bytes:
    """Encodes bytes to bencoded bytes (e.g., 4:spam)."""
    return b"%d:" % len(b) + b


def encode_str(s: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encodes a string to bencoded bytes (e.g., 4:spam)."""
    try:
        b = s.encode(encoding)
    except UnicodeEncodeError as exc:
        raise BencodeInvalidArgument(f"Text cannot be encoded as {encoding}") from exc
    return encode_bytes(b)


def encode_list(lst, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encodes a list to bencoded bytes (e.g., l4:spame)."""
    encoded_items = b"".join(encode(x, encoding) for x in lst)
    return b"l" + encoded_items + b"e"


def encode_dict(d, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encodes a dictionary to bencoded bytes (e.g., d3:cow3:moo4:spam4:eggse)."""
    if isinstance(d, BencodeDict):
        items = d.sorted_items()
    else:
        items = _sorted_plain_items(d, encoding)

    parts = [b"d"]
    for key_bytes, value in items:
        parts.append(encode_bytes(key_bytes))
        parts.append(encode(value, encoding))
    parts.append(b"e")
    return b"".join(parts)


def _sorted_plain_items(d: dict, encoding: str) -> list:
    normalized = {}
    for key, value in d.items():
        key_bytes = key_to_bytes(key, encoding)
        if key_bytes in normalized:
            raise BencodeInvalidArgument(f"Duplicate dictionary key {key_bytes!r}")
        normalized[key_bytes] = value
    return sorted(normalized.items(), key=itemgetter(0))
