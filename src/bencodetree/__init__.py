"""
Bencode value trees: decoding, encoding and typed access.
"""
from .decoder import BencodeDecoder, decode, decode_as, decode_async
from .encoder import encode, encode_to
from .errors import (
    BencodeDecodeError,
    BencodeEndOfStream,
    BencodeError,
    BencodeInvalidArgument,
    BencodeInvalidCast,
)
from .options import RELAXED, STRICT, DecodeOptions, Policy
from .reader import AsyncBencodeReader, BencodeReader
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, BencodeType, to_bencode

__version__ = "0.1.0"

__all__ = [
    'decode', 'decode_as', 'decode_async', 'encode', 'encode_to', 'to_bencode',
    'BencodeDecoder', 'BencodeReader', 'AsyncBencodeReader',
    'BencodeType', 'BencodeInt', 'BencodeString', 'BencodeList', 'BencodeDict',
    'DecodeOptions', 'Policy', 'STRICT', 'RELAXED',
    'BencodeError', 'BencodeDecodeError', 'BencodeEndOfStream',
    'BencodeInvalidCast', 'BencodeInvalidArgument',
]
