"""Offset-indexed record primitives shared by the STB and STL codecs.

Both formats are a sequence of little-endian int32 absolute offsets pointing
into the same file, each locating a variable-length record.  Reading works on
an in-memory copy of the whole file.  Writing appends to a growable buffer:
offset tables are reserved as zeroed placeholder blocks and patched by index
once every record they point at has been written, so the cursor never has to
seek back.

Two string encodings are used:
  bstring - 7-bit varint byte length (low group first, high bit = more follows)
  sstring - uint16 byte length
Lengths always count encoded bytes, never characters.
"""

import os
import shutil
import struct
import tempfile
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from constants import ENCODING_CANDIDATES
from utils.logging import log_warning

from .errors import (
    DecodeFailure,
    EncodeFailure,
    OffsetOutOfRange,
    TableError,
    TruncatedRecord,
)

_VARINT_MAX_BYTES = 5
_INT32_MAX = 0x7FFFFFFF
_UINT16_MAX = 0xFFFF


class BinaryReader:
    """Cursor over a table file's bytes using one text encoding."""

    def __init__(self, data: bytes, encoding: str):
        self._data = data
        self._pos = 0
        self.encoding = encoding

    def __len__(self) -> int:
        return len(self._data)

    def tell(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def seek(self, offset: int) -> None:
        """Move to an absolute offset from the start of the file."""
        if offset < 0 or offset > len(self._data):
            raise OffsetOutOfRange(
                f"Offset {offset} outside file (length {len(self._data)})"
            )
        self._pos = offset

    def read_bytes(self, count: int) -> bytes:
        if count < 0 or count > self.remaining():
            raise TruncatedRecord(
                f"Need {count} bytes at offset {self._pos}, "
                f"only {self.remaining()} remain"
            )
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def read_int32(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_uint16(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_varint(self) -> int:
        start = self._pos
        result = 0
        shift = 0
        for _ in range(_VARINT_MAX_BYTES):
            byte = self.read_bytes(1)[0]
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7
        raise TruncatedRecord(f"Length prefix at offset {start} exceeds {_VARINT_MAX_BYTES} bytes")

    def _decode(self, raw: bytes, start: int) -> str:
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeFailure(
                f"Cannot decode {len(raw)} bytes at offset {start} as {self.encoding}: {e.reason}"
            ) from e

    def read_bstring(self) -> str:
        start = self._pos
        length = self.read_varint()
        return self._decode(self.read_bytes(length), start)

    def read_sstring(self) -> str:
        start = self._pos
        length = self.read_uint16()
        return self._decode(self.read_bytes(length), start)


class OffsetTable:
    """A reserved block of int32 offsets, patched once its records are written."""

    def __init__(self, writer: "BinaryWriter", position: int, count: int):
        self._writer = writer
        self.position = position
        self.offsets: List[int] = [0] * count

    def __len__(self) -> int:
        return len(self.offsets)

    def mark(self, index: int) -> int:
        """Record the writer's current position as the start of record ``index``."""
        offset = self._writer.tell()
        self.offsets[index] = offset
        return offset

    def patch(self) -> None:
        for i, offset in enumerate(self.offsets):
            self._writer.patch_int32(self.position + i * 4, offset)


class BinaryWriter:
    """Growable in-memory image of a table file."""

    def __init__(self, encoding: str):
        self._buffer = bytearray()
        self.encoding = encoding

    def tell(self) -> int:
        return len(self._buffer)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def write_bytes(self, data: bytes) -> None:
        self._buffer += data

    def write_int32(self, value: int) -> None:
        try:
            self._buffer += struct.pack("<i", value)
        except struct.error as e:
            raise EncodeFailure(f"Value {value!r} does not fit in int32") from e

    def write_uint16(self, value: int) -> None:
        try:
            self._buffer += struct.pack("<H", value)
        except struct.error as e:
            raise EncodeFailure(f"Value {value!r} does not fit in uint16") from e

    def write_varint(self, value: int) -> None:
        if value < 0 or value > _INT32_MAX:
            raise EncodeFailure(f"Length {value} cannot be written as a varint")
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buffer.append(byte | 0x80)
            else:
                self._buffer.append(byte)
                return

    def _encode(self, text: Optional[str]) -> bytes:
        if text is None:
            text = ""
        try:
            return text.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise EncodeFailure(
                f"Cannot encode {text!r} as {self.encoding}: {e.reason}"
            ) from e

    def write_bstring(self, text: Optional[str]) -> None:
        raw = self._encode(text)
        self.write_varint(len(raw))
        self.write_bytes(raw)

    def write_sstring(self, text: Optional[str]) -> None:
        raw = self._encode(text)
        if len(raw) > _UINT16_MAX:
            raise EncodeFailure(f"String of {len(raw)} bytes exceeds the uint16 length prefix")
        self.write_uint16(len(raw))
        self.write_bytes(raw)

    def reserve_offsets(self, count: int) -> OffsetTable:
        """Write ``count`` zeroed int32 placeholders and return their table."""
        table = OffsetTable(self, self.tell(), count)
        self._buffer += bytes(count * 4)
        return table

    def patch_int32(self, position: int, value: int) -> None:
        struct.pack_into("<i", self._buffer, position, value)


@dataclass
class ReadResult:
    """Value of a fail-soft read; ``error`` is set when ``value`` is a fallback."""

    value: Any
    error: Optional[TableError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_soft(read: Callable[[], Any], fallback: Any) -> ReadResult:
    """Run ``read``, substituting ``fallback`` for a truncated or out-of-range record.

    DecodeFailure propagates; it aborts the parse under the current encoding.
    """
    try:
        return ReadResult(read())
    except (TruncatedRecord, OffsetOutOfRange) as e:
        return ReadResult(fallback, e)


def read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _copy_mode(path: str, tmp_path: str) -> None:
    """Give the temp file the permissions the replaced file had, or the umask default."""
    if os.path.exists(path):
        shutil.copymode(path, tmp_path)
        return
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(tmp_path, 0o666 & ~umask)


def write_file(path: str, data: bytes) -> None:
    """Write ``data`` to ``path`` through a sibling temp file and an atomic replace."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        _copy_mode(path, tmp_path)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def decode_with_fallback(
    data: bytes,
    parse: Callable[[bytes, str], Any],
    label: str,
    encodings: Iterable[str] = ENCODING_CANDIDATES,
) -> Tuple[Any, Optional[str]]:
    """Parse ``data`` under each candidate encoding until one succeeds.

    Each candidate is a whole-parse retry; nothing from a failed attempt is
    kept.  Returns ``(result, encoding)`` or ``(None, None)`` when every
    candidate fails.
    """
    for encoding in encodings:
        try:
            return parse(data, encoding), encoding
        except TableError as e:
            log_warning(
                f"Error loading {label} with {encoding} encoding: "
                f"{type(e).__name__}: {e}"
            )
    return None, None
