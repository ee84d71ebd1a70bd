"""STB (generic data table) reader and writer.

Layout (integers LE, strings are sstrings in the table's encoding):

    magic "STB1"
    data_offset                   int32, absolute offset of the cell block
    row_count                     int32, including header row 0
    column_count                  int32, including column 0 (row names)
    row_height                    int32
    column_widths[column_count+1] uint16
    column_titles[column_count]   -> cells[0]
    title
    row_names[row_count-1]        -> cells[r][0]
    -- data_offset --
    cells[r][c] for r >= 1, c >= 1, row-major

The file grid is rectangular; in memory rows may be ragged, and short rows
are padded with empty cells on save.
"""

import traceback
from functools import partial
from typing import List, Optional

from constants import (
    ENCODING_CANDIDATES,
    SAVE_ENCODING,
    STB_DEFAULT_COLUMN_WIDTH,
    STB_MAGIC,
)
from utils.logging import log_error, log_event

from .binary_io import (
    BinaryReader,
    BinaryWriter,
    decode_with_fallback,
    read_file,
    write_file,
)
from .errors import DecodeFailure, TruncatedRecord
from .models import DataTable

# Every sstring carries at least its uint16 length prefix
_MIN_STRING_SIZE = 2


def _require(reader: BinaryReader, count: int, item_size: int, what: str) -> None:
    """Fail before allocating when ``count`` items cannot fit in what is left."""
    if count * item_size > reader.remaining():
        raise TruncatedRecord(
            f"{count} {what} do not fit in the {reader.remaining()} remaining bytes"
        )


def parse_stb_bytes(data: bytes, encoding: str, file_path: str = "") -> DataTable:
    """Parse an STB image under one encoding.

    Raises:
        DecodeFailure: Bad magic, impossible dimensions, or undecodable text.
        TruncatedRecord: The file is cut short.
        OffsetOutOfRange: The data offset points outside the file.
    """
    reader = BinaryReader(data, encoding)

    magic = reader.read_bytes(len(STB_MAGIC))
    if magic != STB_MAGIC:
        raise DecodeFailure(f"Not an STB file (magic: {magic!r})")

    data_offset = reader.read_int32()
    row_count = reader.read_int32()
    column_count = reader.read_int32()
    row_height = reader.read_int32()
    if row_count < 1 or column_count < 1:
        raise DecodeFailure(f"Invalid table size: {row_count} rows x {column_count} columns")

    _require(reader, column_count + 1, 2, "column widths")
    column_widths = [reader.read_uint16() for _ in range(column_count + 1)]

    _require(reader, column_count, _MIN_STRING_SIZE, "column titles")
    header = [reader.read_sstring() for _ in range(column_count)]
    title = reader.read_sstring()

    _require(reader, row_count - 1, _MIN_STRING_SIZE, "row names")
    row_names = [reader.read_sstring() for _ in range(row_count - 1)]

    reader.seek(data_offset)
    _require(reader, (row_count - 1) * (column_count - 1), _MIN_STRING_SIZE, "cells")

    cells: List[List[str]] = [header]
    for name in row_names:
        row = [name]
        row.extend(reader.read_sstring() for _ in range(column_count - 1))
        cells.append(row)

    return DataTable(
        cells=cells,
        title=title,
        row_height=row_height,
        column_widths=column_widths,
        file_path=file_path,
    )


def load_stb(path: str, encodings=ENCODING_CANDIDATES) -> DataTable:
    """Load an STB file, returning an empty table if it cannot be parsed."""
    try:
        data = read_file(path)
    except OSError as e:
        log_error(f"Failed to read STB file {path}", type(e).__name__, traceback.format_exc())
        return DataTable(file_path=path)

    table, encoding = decode_with_fallback(
        data,
        partial(parse_stb_bytes, file_path=path),
        f"STB file {path}",
        encodings,
    )
    if table is None:
        log_error(f"Failed to load STB file {path} with any encoding")
        return DataTable(file_path=path)

    log_event(
        f"Loaded {path}: {table.row_count} rows, "
        f"{table.column_count} columns ({encoding})"
    )
    return table


def _cell_text(value) -> str:
    return "" if value is None else str(value)


def build_stb_bytes(table: DataTable, encoding: str = SAVE_ENCODING) -> bytes:
    """Serialize ``table`` as a rectangular STB1 image.

    Raises:
        EncodeFailure: A cell is not representable in ``encoding`` or too long.
    """
    cells = table.cells or [[]]
    row_count = len(cells)
    column_count = max(1, max(len(row) for row in cells))

    def padded(row: List[str]) -> List[str]:
        return [_cell_text(v) for v in row] + [""] * (column_count - len(row))

    widths = list(table.column_widths[: column_count + 1])
    widths += [STB_DEFAULT_COLUMN_WIDTH] * (column_count + 1 - len(widths))

    writer = BinaryWriter(encoding)
    writer.write_bytes(STB_MAGIC)
    data_offset = writer.reserve_offsets(1)
    writer.write_int32(row_count)
    writer.write_int32(column_count)
    writer.write_int32(table.row_height)
    for width in widths:
        writer.write_uint16(width)

    for column_title in padded(cells[0]):
        writer.write_sstring(column_title)
    writer.write_sstring(table.title)

    body = [padded(row) for row in cells[1:]]
    for row in body:
        writer.write_sstring(row[0])

    data_offset.mark(0)
    for row in body:
        for value in row[1:]:
            writer.write_sstring(value)
    data_offset.patch()

    return writer.getvalue()


def save_stb(
    table: DataTable,
    path: Optional[str] = None,
    encoding: str = SAVE_ENCODING,
) -> str:
    """Write ``table`` to ``path`` (default: where it was loaded from).

    Returns:
        The path written.
    """
    target = path or table.file_path
    if not target:
        raise ValueError("STB table has no file path to save to")

    write_file(target, build_stb_bytes(table, encoding))
    table.file_path = target
    log_event(f"Saved {target}: {table.row_count} rows, {table.column_count} columns ({encoding})")
    return target
