"""Low-level demo reading: header parsing, byte reader, errors and helpers."""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, Union

MAX_OS_PATH = 260

FILESTAMP_SOURCE1 = "HL2DEMO"
FILESTAMP_SOURCE2 = "PBDEMS2"

_MSG_QUEUE_MIN_SIZE = 50_000
_MSG_QUEUE_MAX_SIZE = 500_000

_SKIP_CHUNK = 1 << 16


class DemoParseError(Exception):
    """Base class of errors raised while parsing a demo."""


class ParsingCancelledError(DemoParseError):
    """Parsing was cancelled before it finished."""

    def __init__(self, message: str = "parsing was cancelled before it finished") -> None:
        super().__init__(message)


class UnexpectedEndOfDemoError(DemoParseError, EOFError):
    """The demo stream ended unexpectedly; the demo is incomplete or corrupt."""

    def __init__(self, message: str = "demo stream ended unexpectedly") -> None:
        super().__init__(message)


class InvalidFileTypeError(DemoParseError, ValueError):
    """The input is not a recognised demo file."""

    def __init__(
        self,
        message: str = "invalid file type; expecting HL2DEMO or PBDEMS2 in the first 8 bytes",
    ) -> None:
        super().__init__(message)


@dataclass
class DemoHeader:
    """Metadata found at the start of a demo file."""

    filestamp: str = ""
    protocol: int = 0
    network_protocol: int = 0
    server_name: str = ""
    client_name: str = ""
    map_name: str = ""
    game_directory: str = ""
    playback_time: timedelta = timedelta(0)
    playback_ticks: int = 0
    playback_frames: int = 0
    signon_length: int = 0


class BitReader:
    """Sequential little-endian reader over a byte string or binary stream.

    Reading past the end raises UnexpectedEndOfDemoError.
    """

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO]) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._stream: BinaryIO = io.BytesIO(bytes(source))
        else:
            self._stream = source
        self.position = 0

    def __enter__(self) -> "BitReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()

    def _read_exact(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"cannot read a negative number of bytes: {count}")
        parts = []
        remaining = count
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                raise UnexpectedEndOfDemoError()
            parts.append(chunk)
            remaining -= len(chunk)
        self.position += count
        return b"".join(parts)

    def read_byte(self) -> int:
        """Read a single unsigned byte."""
        return self._read_exact(1)[0]

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes."""
        return self._read_exact(count)

    def read_int32(self) -> int:
        """Read a signed 32-bit little-endian integer."""
        return struct.unpack("<i", self._read_exact(4))[0]

    def read_float(self) -> float:
        """Read a 32-bit little-endian IEEE float."""
        return struct.unpack("<f", self._read_exact(4))[0]

    def read_cstring(self, length: int) -> str:
        """Read ``length`` bytes and return the text before the first NUL."""
        raw = self._read_exact(length)
        return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")

    def read_varint32(self) -> int:
        """Read a variable-length unsigned 32-bit integer (at most 5 bytes)."""
        result = 0
        for shift in range(0, 35, 7):
            byte = self.read_byte()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
        return result & 0xFFFFFFFF

    def skip_bytes(self, count: int) -> None:
        """Skip ``count`` bytes."""
        if count < 0:
            raise ValueError(f"cannot skip a negative number of bytes: {count}")
        remaining = count
        while remaining > 0:
            step = min(remaining, _SKIP_CHUNK)
            self._read_exact(step)
            remaining -= step


def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def read_header(reader: BitReader) -> DemoHeader:
    """Parse the demo header from ``reader``.

    Raises InvalidFileTypeError if the filestamp is neither HL2DEMO nor PBDEMS2.
    """
    header = DemoHeader(filestamp=reader.read_cstring(8))

    if header.filestamp == FILESTAMP_SOURCE1:
        header.protocol = reader.read_int32()
        header.network_protocol = reader.read_int32()
        header.server_name = reader.read_cstring(MAX_OS_PATH)
        header.client_name = reader.read_cstring(MAX_OS_PATH)
        header.map_name = reader.read_cstring(MAX_OS_PATH)
        header.game_directory = reader.read_cstring(MAX_OS_PATH)
        nanoseconds = int(_float32(reader.read_float() * _float32(1e9)))
        header.playback_time = timedelta(microseconds=nanoseconds / 1000)
        header.playback_ticks = reader.read_int32()
        header.playback_frames = reader.read_int32()
        header.signon_length = reader.read_int32()
    elif header.filestamp == FILESTAMP_SOURCE2:
        reader.skip_bytes(8)
    else:
        raise InvalidFileTypeError()

    return header


def msg_queue_size(ticks: int) -> int:
    """Message queue size for a demo of ``ticks`` ticks, clamped to a sane range."""
    return max(_MSG_QUEUE_MIN_SIZE, min(_MSG_QUEUE_MAX_SIZE, ticks))


def legacy_tick_rate(header: DemoHeader) -> float:
    """Tick rate derived from the header, or 0 if the playback time is zero."""
    seconds = header.playback_time.total_seconds()
    if seconds == 0:
        return 0.0
    return header.playback_ticks / seconds


def legacy_tick_time(header: DemoHeader) -> timedelta:
    """Duration of one tick derived from the header, or zero if there are no ticks."""
    if header.playback_ticks == 0:
        return timedelta(0)
    nanoseconds = (header.playback_time // timedelta(microseconds=1)) * 1000
    quotient = abs(nanoseconds) // abs(header.playback_ticks)
    if (nanoseconds < 0) != (header.playback_ticks < 0):
        quotient = -quotient
    return timedelta(microseconds=quotient / 1000)


def _read_uvarint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while pos < len(data):
        byte = data[pos]
        pos += 1
        if shift == 63 and byte > 1:
            raise ValueError("snappy: decoded block is too large")
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 63:
            break
    raise ValueError("snappy: corrupt input")


def snappy_decompress(data: bytes) -> bytes:
    """Decode a snappy block; raises ValueError for corrupt input."""
    data = bytes(data)
    length, pos = _read_uvarint(data, 0)
    if length > 0xFFFFFFFF:
        raise ValueError("snappy: decoded block is too large")

    out = bytearray()
    while pos < len(data):
        tag = data[pos]
        pos += 1
        kind = tag & 0x03

        if kind == 0:
            size = tag >> 2
            if size >= 60:
                extra = size - 59
                if pos + extra > len(data):
                    raise ValueError("snappy: corrupt input")
                size = int.from_bytes(data[pos:pos + extra], "little")
                pos += extra
            size += 1
            if pos + size > len(data) or len(out) + size > length:
                raise ValueError("snappy: corrupt input")
            out += data[pos:pos + size]
            pos += size
            continue

        if kind == 1:
            if pos + 1 > len(data):
                raise ValueError("snappy: corrupt input")
            size = 4 + ((tag >> 2) & 0x07)
            offset = ((tag >> 5) << 8) | data[pos]
            pos += 1
        else:
            width = 2 if kind == 2 else 4
            if pos + width > len(data):
                raise ValueError("snappy: corrupt input")
            size = 1 + (tag >> 2)
            offset = int.from_bytes(data[pos:pos + width], "little")
            pos += width

        if offset <= 0 or offset > len(out) or len(out) + size > length:
            raise ValueError("snappy: corrupt input")
        pattern = bytes(out[-offset:])
        out += (pattern * (size // offset + 1))[:size]

    if len(out) != length:
        raise ValueError("snappy: corrupt input")
    return bytes(out)