"""
Forward-only byte readers used by the decoder.

Both readers keep at most one byte of lookahead and never seek, so they
work over pipes, sockets and other non-seekable streams.
"""
import asyncio
import io

from .errors import BencodeDecodeError, BencodeEndOfStream, BencodeInvalidArgument
from .options import READ_CHUNK_SIZE

__all__ = ["BencodeReader", "AsyncBencodeReader"]


class BencodeReader:
    """
    Peekable cursor over bytes or a binary file-like object.
    """
    def __init__(self, source):
        if source is None:
            raise BencodeInvalidArgument("source cannot be None.")
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        elif not callable(getattr(source, "read", None)):
            raise BencodeInvalidArgument(f"Cannot read Bencode from {type(source).__name__}")

        self._stream = source
        self._lookahead = b""
        self._pos = 0  # bytes handed out to callers

    @property
    def position(self) -> int:
        """Absolute offset of the next unread byte."""
        return self._pos

    def tell(self) -> int:
        return self._pos

    # --------------------------
    # Low-level utilities
    # --------------------------

    def _fill(self, n: int) -> bytes:
        """
        Reads up to n bytes, retrying short reads until the stream is exhausted.

        No single read() asks for more than READ_CHUNK_SIZE bytes.
        """
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._stream.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    # --------------------------
    # Public operations
    # --------------------------

    def peek(self) -> bytes:
        """Returns the next byte without consuming it."""
        if not self._lookahead:
            self._lookahead = self._fill(1)
            if not self._lookahead:
                raise BencodeEndOfStream("Unexpected end of input", self._pos)
        return self._lookahead

    def at_end(self) -> bool:
        if self._lookahead:
            return False
        self._lookahead = self._fill(1)
        return not self._lookahead

    def read(self, n: int) -> bytes:
        """Consumes exactly n bytes."""
        if n < 0:
            raise BencodeInvalidArgument(f"Cannot read {n} bytes.")
        if n == 0:
            return b""

        data = self._lookahead + self._fill(n - len(self._lookahead))
        self._lookahead = b""
        self._pos += len(data)

        if len(data) < n:
            raise BencodeEndOfStream(f"Expected {n} bytes, got {len(data)}", self._pos)
        return data

    def read_until(self, delimiter: bytes, limit: int) -> bytes:
        """
        Consumes bytes up to and including `delimiter` and returns the bytes before it.

        Fails if more than `limit` bytes come before the delimiter.
        """
        buf = bytearray()
        while True:
            ch = self.read(1)
            if ch == delimiter:
                return bytes(buf)
            if len(buf) >= limit:
                raise BencodeDecodeError(
                    f"Missing {delimiter!r} within {limit} bytes", self._pos - 1
                )
            buf += ch


class AsyncBencodeReader:
    """
    BencodeReader counterpart for asyncio streams.

    Wraps any object with a coroutine `readexactly(n)` that raises
    asyncio.IncompleteReadError on a short read, such as asyncio.StreamReader.
    """
    def __init__(self, stream):
        if stream is None:
            raise BencodeInvalidArgument("stream cannot be None.")
        if not callable(getattr(stream, "readexactly", None)):
            raise BencodeInvalidArgument(f"Cannot read Bencode from {type(stream).__name__}")

        self._stream = stream
        self._lookahead = b""
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def tell(self) -> int:
        return self._pos

    async def _fill(self, n: int) -> bytes:
        chunks = []
        remaining = n
        while remaining > 0:
            try:
                chunk = await self._stream.readexactly(min(remaining, READ_CHUNK_SIZE))
            except asyncio.IncompleteReadError as exc:
                chunks.append(exc.partial)
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    async def peek(self) -> bytes:
        if not self._lookahead:
            self._lookahead = await self._fill(1)
            if not self._lookahead:
                raise BencodeEndOfStream("Unexpected end of input", self._pos)
        return self._lookahead

    async def at_end(self) -> bool:
        if self._lookahead:
            return False
        self._lookahead = await self._fill(1)
        return not self._lookahead

    async def read(self, n: int) -> bytes:
        if n < 0:
            raise BencodeInvalidArgument(f"Cannot read {n} bytes.")
        if n == 0:
            return b""

        data = self._lookahead + await self._fill(n - len(self._lookahead))
        self._lookahead = b""
        self._pos += len(data)

        if len(data) < n:
            raise BencodeEndOfStream(f"Expected {n} bytes, got {len(data)}", self._pos)
        return data

    async def read_until(self, delimiter: bytes, limit: int) -> bytes:
        buf = bytearray()
        while True:
            ch = await self.read(1)
            if ch == delimiter:
                return bytes(buf)
            if len(buf) >= limit:
                raise BencodeDecodeError(
                    f"Missing {delimiter!r} within {limit} bytes", self._pos - 1
                )
            buf += ch
