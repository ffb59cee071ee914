import io
import logging
import tempfile

import pytest

from bencodetree import (
    RELAXED,
    STRICT,
    BencodeDecodeError,
    BencodeDecoder,
    BencodeDict,
    BencodeEndOfStream,
    BencodeInt,
    BencodeInvalidArgument,
    BencodeInvalidCast,
    BencodeList,
    BencodeReader,
    BencodeString,
    DecodeOptions,
    Policy,
)
from bencodetree.decoder import decode, decode_as
from bencodetree.encoder import encode
from bencodetree.options import MAX_INTEGER_DIGITS


def test_decode_simple_list():
    obj = decode(b"l11:hello worldi987e6:foobare")
    assert obj == BencodeList(["hello world", 987, "foobar"])


def test_decode_complex():
    raw = b"l4:spami666el3:foo3:bari123ed9:more spam9:more eggsee6:foobard7:numbersli1ei2ei3eeee"
    obj = decode(raw)

    assert obj[2][3] == BencodeDict({"more spam": "more eggs"})
    assert obj[4]["numbers"] == BencodeList([1, 2, 3])
    assert encode(obj) == raw


def test_decode_empty_containers():
    assert decode(b"le") == BencodeList()
    assert decode(b"de") == BencodeDict()
    assert decode(b"0:") == BencodeString(b"")


def test_decode_raw_bytes():
    obj = decode(b"4:\x00\xff\xfe\x80")
    assert obj.value == b"\x00\xff\xfe\x80"
    assert encode(obj) == b"4:\x00\xff\xfe\x80"


def test_decode_attaches_display_encoding():
    raw = b"12:" + "æøå äö èéê ñ".encode("iso-8859-1")
    obj = decode(raw, encoding="iso-8859-1")
    assert obj.encoding == "iso-8859-1"
    assert obj.text == "æøå äö èéê ñ"
    assert len(obj) == 12


def test_decode_large_integers():
    assert decode(b"i-9223372036854775809e") == BencodeInt(-(2 ** 63) - 1)
    assert decode(b"i123456789012345678901234567890e").value == 123456789012345678901234567890


def test_integer_digit_limit():
    nines = b"9" * MAX_INTEGER_DIGITS
    assert decode(b"i" + nines + b"e").value == 10 ** MAX_INTEGER_DIGITS - 1
    assert decode(b"i-" + nines + b"e").value == -(10 ** MAX_INTEGER_DIGITS - 1)

    with pytest.raises(BencodeDecodeError) as info:
        decode(b"i1" + b"0" * MAX_INTEGER_DIGITS + b"e")
    assert info.value.offset == 1


def test_string_length_with_leading_zero_is_accepted():
    assert decode(b"03:abc") == BencodeString(b"abc")


def test_decode_from_file_object():
    stream = io.BytesIO(b"d3:cow3:moo4:spaml1:a1:bee")
    obj = decode(stream)
    assert obj == BencodeDict({"cow": "moo", "spam": ["a", "b"]})


def test_decoder_reads_consecutive_values_from_one_reader():
    reader = BencodeReader(b"i1e3:abcle")
    decoder = BencodeDecoder()

    assert decoder.decode(reader) == BencodeInt(1)
    assert decoder.decode(reader) == BencodeString(b"abc")
    assert decoder.decode(reader) == BencodeList()
    assert reader.at_end()


def test_check_trailer():
    assert decode(b"i1eXYZ") == BencodeInt(1)
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"i1eXYZ", check_trailer=True)
    assert info.value.offset == 3


# --------------------------
# Malformed input
# --------------------------

def test_truncated_string():
    with pytest.raises(BencodeEndOfStream) as info:
        decode(b"5:ab")
    assert info.value.offset == 4


def test_huge_string_length_on_short_input():
    with pytest.raises(BencodeEndOfStream) as info:
        decode(b"99999999999999999999:x")
    assert info.value.offset == 22


def test_huge_string_length_in_file():
    with tempfile.TemporaryFile() as f:
        f.write(b"d4:spam999999999999999:xe")
        f.seek(0)
        with pytest.raises(BencodeEndOfStream):
            decode(f)


def test_unterminated_integer():
    with pytest.raises(BencodeEndOfStream) as info:
        decode(b"i123")
    assert info.value.offset == 4


def test_unknown_token():
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"x")
    assert info.value.offset == 0
    assert "offset 0" in str(info.value)


def test_unknown_token_inside_list():
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"li1ex")
    assert info.value.offset == 4


def test_empty_input():
    with pytest.raises(BencodeEndOfStream) as info:
        decode(b"")
    assert info.value.offset == 0


def test_unterminated_list():
    with pytest.raises(BencodeEndOfStream):
        decode(b"li1e")


@pytest.mark.parametrize("raw", [b"ie", b"i-e", b"i01e", b"i-0e", b"i1.5e", b"i+1e", b"i 1e"])
def test_invalid_integers(raw):
    with pytest.raises(BencodeDecodeError) as info:
        decode(raw)
    assert info.value.offset == 1


@pytest.mark.parametrize("raw", [b"3a:abc", b"1-:a"])
def test_invalid_string_length(raw):
    with pytest.raises(BencodeDecodeError) as info:
        decode(raw)
    assert info.value.offset == 0


def test_missing_length_separator():
    with pytest.raises(BencodeDecodeError):
        decode(b"1" * 40)


def test_dict_key_must_be_string():
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"di1ei2ee")
    assert info.value.offset == 1


def test_errors_are_builtin_exceptions():
    with pytest.raises(ValueError):
        decode(b"x")
    with pytest.raises(EOFError):
        decode(b"5:ab")


# --------------------------
# Nesting depth
# --------------------------

def test_depth_limit():
    options = DecodeOptions(max_depth=4)
    assert decode(b"llllleeeee", max_depth=5) == decode(b"llllleeeee")

    with pytest.raises(BencodeDecodeError) as info:
        decode(b"llllleeeee", options)
    assert info.value.offset == 4


def test_default_depth_limit():
    ok = b"l" * 128 + b"e" * 128
    assert isinstance(decode(ok), BencodeList)

    too_deep = b"l" * 129 + b"e" * 129
    with pytest.raises(BencodeDecodeError):
        decode(too_deep)


def test_hostile_depth_does_not_crash():
    with pytest.raises(BencodeDecodeError):
        decode(b"d1:a" * 100000)


# --------------------------
# Strict / relaxed policies
# --------------------------

def test_duplicate_key_strict_fails():
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"d3:foo1:a3:foo1:be", STRICT)
    assert info.value.offset == 9


def test_duplicate_key_relaxed_last_wins(caplog):
    with caplog.at_level(logging.DEBUG, logger="bencodetree.decoder"):
        obj = decode(b"d3:foo1:a3:foo1:be", RELAXED)

    assert obj == BencodeDict({"foo": "b"})
    assert "Duplicate key" in caplog.text


def test_key_order_strict_fails():
    with pytest.raises(BencodeDecodeError) as info:
        decode(b"d1:bi1e1:ai2ee", STRICT)
    assert info.value.offset == 7


def test_key_order_relaxed_accepts():
    obj = decode(b"d1:bi1e1:ai2ee", RELAXED)
    assert obj == BencodeDict({"a": 2, "b": 1})
    assert encode(obj) == b"d1:ai2e1:bi1ee"


def test_key_order_compares_raw_bytes():
    assert decode(b"d1:Z0:1:a0:1:\xff0:e", STRICT) is not None
    with pytest.raises(BencodeDecodeError):
        decode(b"d1:\xff0:1:a0:e", STRICT)


def test_policies_are_independent():
    options = DecodeOptions(duplicate_keys=Policy.STRICT, key_order=Policy.RELAXED)
    assert decode(b"d1:bi1e1:ai2ee", options) == BencodeDict({"a": 2, "b": 1})
    with pytest.raises(BencodeDecodeError):
        decode(b"d1:ai1e1:ai2ee", options)


def test_relaxed_integer_form():
    assert decode(b"i007e", integer_form=Policy.RELAXED) == BencodeInt(7)
    assert decode(b"i-0e", RELAXED) == BencodeInt(0)
    with pytest.raises(BencodeDecodeError):
        decode(b"i-e", RELAXED)
    with pytest.raises(BencodeDecodeError):
        decode(b"ie", RELAXED)


def test_default_options():
    options = DecodeOptions()
    assert options.duplicate_keys is Policy.RELAXED
    assert options.key_order is Policy.RELAXED
    assert options.integer_form is Policy.STRICT


def test_invalid_options():
    with pytest.raises(BencodeInvalidArgument):
        DecodeOptions(max_depth=0)
    with pytest.raises(BencodeInvalidArgument):
        DecodeOptions(encoding="no-such-codec")
    with pytest.raises(BencodeInvalidArgument):
        DecodeOptions(key_order="strict")
    with pytest.raises(BencodeInvalidArgument):
        decode(b"i1e", strictness=True)
    with pytest.raises(BencodeInvalidArgument):
        BencodeDecoder(options={"max_depth": 3})


def test_none_source():
    with pytest.raises(BencodeInvalidArgument):
        decode(None)


# --------------------------
# Typed decoding
# --------------------------

def test_decode_as():
    bdict = decode_as(b"d3:cow3:mooe", BencodeDict)
    assert bdict.get_as("cow", BencodeString).text == "moo"

    with pytest.raises(BencodeInvalidCast):
        decode_as(b"i1e", BencodeList)


def test_decode_as_with_item_type():
    numbers = decode_as(b"li1ei2ei3ee", BencodeList, BencodeInt)
    assert [n.value for n in numbers] == [1, 2, 3]

    with pytest.raises(BencodeInvalidCast):
        decode_as(b"li1e1:xe", BencodeList, BencodeInt)

    files = decode_as(b"d1:ad1:xi1eee", BencodeDict, BencodeDict)
    assert files["a"]["x"] == BencodeInt(1)

    with pytest.raises(BencodeInvalidArgument):
        decode_as(b"i1e", BencodeInt, BencodeInt)


def test_decoder_decode_as():
    decoder = BencodeDecoder(STRICT)
    assert decoder.decode_as(BencodeReader(b"4:spam"), BencodeString) == BencodeString(b"spam")


# --------------------------
# Round trip
# --------------------------

@pytest.mark.parametrize("value", [
    BencodeInt(0),
    BencodeInt(-1),
    BencodeString(b""),
    BencodeString(b"\x00" * 300),
    BencodeList([BencodeList([BencodeList()])]),
    BencodeDict({"z": {"b": [1, "x"], "a": -7}, "\x00": b"\xff"}),
])
def test_roundtrip(value):
    assert decode(encode(value), STRICT) == value
