"""
Data structures for representing Bencoded types.

Every decoded or encodable unit is one of four variants: BencodeInt,
BencodeString, BencodeList and BencodeDict. Containers accept plain Python
values (int, str, bytes, list, tuple, dict) and convert them on insertion.
"""
from collections.abc import Mapping, MutableMapping, MutableSequence
from operator import itemgetter
from typing import Optional

from .errors import BencodeInvalidArgument, BencodeInvalidCast
from .options import DEFAULT_ENCODING, INTEGER_BOUND, MAX_INTEGER_DIGITS, check_encoding

__all__ = [
    "BencodeType",
    "BencodeInt",
    "BencodeString",
    "BencodeList",
    "BencodeDict",
    "to_bencode",
    "key_to_bytes",
    "narrow",
]


def to_bencode(obj, encoding: str = DEFAULT_ENCODING) -> "BencodeType":
    """Converts a plain Python value into the matching BencodeType."""
    if isinstance(obj, BencodeType):
        return obj
    if obj is None:
        raise BencodeInvalidArgument("None cannot be bencoded.")
    # bool is an int subclass
    if isinstance(obj, bool):
        raise BencodeInvalidArgument("Bencode has no boolean type.")
    if isinstance(obj, int):
        return BencodeInt(obj)
    if isinstance(obj, (str, bytes, bytearray, memoryview)):
        return BencodeString(obj, encoding)
    if isinstance(obj, Mapping):
        return BencodeDict(obj, encoding)
    if isinstance(obj, (list, tuple)):
        return BencodeList(obj, encoding)
    raise BencodeInvalidArgument(f"Cannot bencode object of type {type(obj).__name__}")


def key_to_bytes(key, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Normalizes a dictionary key to the raw bytes it is stored and sorted by."""
    if isinstance(key, BencodeString):
        return key.value
    if isinstance(key, (bytes, bytearray, memoryview)):
        return bytes(key)
    if isinstance(key, str):
        return key.encode(encoding)
    if key is None:
        raise BencodeInvalidArgument("BencodeDict keys cannot be None.")
    raise BencodeInvalidArgument("BencodeDict keys must be bytes.")


def _check_type(cls):
    if not (isinstance(cls, type) and issubclass(cls, BencodeType)):
        raise BencodeInvalidArgument(f"{cls!r} is not a Bencode type.")


def narrow(value, cls):
    """Returns value if it is an instance of the Bencode type cls, else raises BencodeInvalidCast."""
    _check_type(cls)
    if not isinstance(value, cls):
        raise BencodeInvalidCast(f"Expected {cls.__name__}, got {type(value).__name__}")
    return value


def _adopt(container, item):
    """
    Converts item for storage inside container.

    Rejects an item that is the container itself or already holds it at
    any depth, since the resulting tree could never be encoded.
    """
    item = to_bencode(item, container.encoding)
    pending = [item]
    seen = set()
    while pending:
        node = pending.pop()
        if node is container:
            raise BencodeInvalidArgument(
                f"{type(container).__name__} cannot contain itself."
            )
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, BencodeList):
            pending.extend(node._items)
        elif isinstance(node, BencodeDict):
            pending.extend(node._items.values())
    return item


class BencodeType:
    """Base class for all Bencode data types."""
    __slots__ = ()

    def encode(self, encoding: Optional[str] = None) -> bytes:
        """
        Returns the canonical bencoded bytes of this value.

        `encoding` is passed on to the encoder; stored strings are bytes
        already, so it never changes the output of a tree of Bencode types.
        """
        from .encoder import encode
        return encode(self, encoding or DEFAULT_ENCODING)

    def to_python(self):
        """Returns the value as plain int / bytes / list / dict."""
        raise NotImplementedError


class BencodeInt(BencodeType):
    """
    Represents a Bencoded integer.

    Values may have at most MAX_INTEGER_DIGITS decimal digits, the most
    that int() and str() convert by default.
    """
    __slots__ = ("_value",)

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise BencodeInvalidArgument("BencodeInt requires an integer.")
        if not -INTEGER_BOUND < value < INTEGER_BOUND:
            raise BencodeInvalidArgument(
                f"BencodeInt is limited to {MAX_INTEGER_DIGITS} digits."
            )
        self._value = int(value)

    @property
    def value(self) -> int:
        return self._value

    def to_python(self) -> int:
        return self._value

    def __int__(self):
        return self._value

    def __index__(self):
        return self._value

    def __eq__(self, other):
        if isinstance(other, BencodeInt):
            return self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash((BencodeInt, self._value))

    def __repr__(self):
        return f"BencodeInt({self._value})"


class BencodeString(BencodeType):
    """
    Represents a Bencoded byte string.

    The raw bytes are the value; they need not be valid text. `encoding`
    only controls how the bytes are rendered as text (and how a str passed
    to the constructor becomes bytes). Equality ignores it.
    """
    __slots__ = ("_value", "encoding")

    def __init__(self, value, encoding: str = DEFAULT_ENCODING):
        if encoding is None:
            raise BencodeInvalidArgument("encoding cannot be None.")
        check_encoding(encoding)
        if isinstance(value, str):
            try:
                value = value.encode(encoding)
            except UnicodeEncodeError as exc:
                raise BencodeInvalidArgument(f"Text cannot be encoded as {encoding}") from exc
        elif not isinstance(value, (bytes, bytearray, memoryview)):
            raise BencodeInvalidArgument("BencodeString requires bytes or str.")
        self._value = bytes(value)
        self.encoding = encoding

    @property
    def value(self) -> bytes:
        return self._value

    @property
    def text(self) -> str:
        """The bytes decoded with this string's encoding. Raises UnicodeDecodeError."""
        return self._value.decode(self.encoding)

    def decode_text(self, encoding: Optional[str] = None, errors: str = "strict") -> str:
        return self._value.decode(encoding or self.encoding, errors)

    def to_python(self) -> bytes:
        return self._value

    def __len__(self):
        return len(self._value)

    def __bytes__(self):
        return self._value

    def __str__(self):
        return self._value.decode(self.encoding, "replace")

    def __eq__(self, other):
        if isinstance(other, BencodeString):
            return self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash((BencodeString, self._value))

    def __repr__(self):
        return f"BencodeString({self._value!r})"


class BencodeList(BencodeType, MutableSequence):
    """
    Represents a Bencoded list.

    Order is significant: two lists are equal only if they hold equal
    items in the same order.
    """
    __slots__ = ("_items", "encoding")

    def __init__(self, value=None, encoding: str = DEFAULT_ENCODING):
        self.encoding = check_encoding(encoding)
        self._items = []
        if value is None:
            return
        if isinstance(value, (str, bytes, bytearray, memoryview, Mapping)):
            raise BencodeInvalidArgument("BencodeList requires a list.")
        try:
            items = iter(value)
        except TypeError as exc:
            raise BencodeInvalidArgument("BencodeList requires a list.") from exc
        self.extend(items)

    @property
    def value(self) -> list:
        """The underlying list of BencodeType items."""
        return self._items

    def __getitem__(self, index):
        if isinstance(index, slice):
            return BencodeList(self._items[index], self.encoding)
        return self._items[index]

    def __setitem__(self, index, item):
        if isinstance(index, slice):
            self._items[index] = [_adopt(self, x) for x in item]
        else:
            self._items[index] = _adopt(self, item)

    def __delitem__(self, index):
        del self._items[index]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def insert(self, index, item):
        self._items.insert(index, _adopt(self, item))

    # --------------------------
    # Typed access
    # --------------------------

    def get_as(self, index: int, cls):
        """Returns the item at index, checked to be a `cls`."""
        return narrow(self._items[index], cls)

    def as_type(self, cls) -> "BencodeList":
        """Returns a list with the same items after checking every item is a `cls`."""
        _check_type(cls)
        for i, item in enumerate(self._items):
            if not isinstance(item, cls):
                raise BencodeInvalidCast(
                    f"Item {i} is {type(item).__name__}, expected {cls.__name__}"
                )
        return BencodeList(self._items, self.encoding)

    def as_strings(self, encoding: Optional[str] = None) -> list:
        """Renders every item (which must be a BencodeString) as text."""
        return [s.decode_text(encoding, "replace") for s in self.as_type(BencodeString)]

    def to_python(self) -> list:
        return [item.to_python() for item in self._items]

    def __eq__(self, other):
        if isinstance(other, BencodeList):
            return self._items == other._items
        return NotImplemented

    def __hash__(self):
        return hash((BencodeList, tuple(self._items)))

    def __repr__(self):
        return f"BencodeList({self._items!r})"


class BencodeDict(BencodeType, MutableMapping):
    """
    Represents a Bencoded dictionary.

    Keys are stored as raw bytes; str keys are encoded with `encoding`.
    Setting an existing key replaces its value. Insertion order is kept
    for iteration, but equality ignores it and encoding always emits keys
    sorted by their bytes.
    """
    __slots__ = ("_items", "encoding")

    def __init__(self, value=None, encoding: str = DEFAULT_ENCODING):
        self.encoding = check_encoding(encoding)
        self._items = {}
        if value is None:
            return
        if not isinstance(value, Mapping):
            raise BencodeInvalidArgument("BencodeDict requires a dict.")
        for k, v in value.items():
            self[k] = v

    @property
    def value(self) -> dict:
        """The underlying dict of bytes -> BencodeType."""
        return self._items

    def __getitem__(self, key):
        return self._items[key_to_bytes(key, self.encoding)]

    def __setitem__(self, key, item):
        self._items[key_to_bytes(key, self.encoding)] = _adopt(self, item)

    def __delitem__(self, key):
        del self._items[key_to_bytes(key, self.encoding)]

    def __contains__(self, key):
        try:
            return key_to_bytes(key, self.encoding) in self._items
        except BencodeInvalidArgument:
            return False

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def sorted_items(self) -> list:
        """Returns (key, value) pairs in canonical order, by raw key bytes."""
        return sorted(self._items.items(), key=itemgetter(0))

    # --------------------------
    # Typed access
    # --------------------------

    def get_as(self, key, cls, required: bool = False):
        """
        Returns the value for key, checked to be a `cls`.

        A missing key returns None, or raises KeyError when `required`.
        """
        try:
            item = self[key]
        except KeyError:
            if required:
                raise
            return None
        return narrow(item, cls)

    def as_type(self, cls) -> "BencodeDict":
        """Returns a copy after checking every value is a `cls`."""
        _check_type(cls)
        for key, item in self._items.items():
            if not isinstance(item, cls):
                raise BencodeInvalidCast(
                    f"Value for {key!r} is {type(item).__name__}, expected {cls.__name__}"
                )
        return BencodeDict(self._items, self.encoding)

    def to_python(self) -> dict:
        return {k: v.to_python() for k, v in self._items.items()}

    def __eq__(self, other):
        if isinstance(other, BencodeDict):
            return self._items == other._items
        return NotImplemented

    def __hash__(self):
        return hash((BencodeDict, frozenset(self._items.items())))

    def __repr__(self):
        return f"BencodeDict({self._items!r})"
