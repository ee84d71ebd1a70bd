"""STL (localized string table) reader and writer.

Layout (integers int32 LE, strings are bstrings in the table's encoding):

    type
    entry_count
    entries[entry_count]          string_id, numeric_id
    language_count
    language_offsets[language_count]
    per language, at its offset:  entry_offsets[entry_count]
    per (language, entry):        text [comment [quest1 quest2]]

The optional row fields depend only on the type tag (see RowShape).

Parsing is fail-soft per record: a truncated or out-of-range language or
entry offset is logged and replaced by an empty row.  A string that does not
decode means the encoding guess is wrong, so the whole parse is restarted
under the next candidate encoding.  load_stl() never raises.
"""

import traceback
from functools import partial
from typing import List, Optional

from constants import (
    DEFAULT_LANGUAGE_COUNT,
    ENCODING_CANDIDATES,
    MAX_LANGUAGE_COUNT,
    SAVE_ENCODING,
)
from utils.logging import log_error, log_event, log_warning

from .binary_io import (
    BinaryReader,
    BinaryWriter,
    ReadResult,
    decode_with_fallback,
    read_file,
    read_soft,
    write_file,
)
from .errors import InvalidLanguageCount, OffsetOutOfRange, TruncatedRecord
from .models import Entry, Row, RowShape, StringTable

# Smallest directory entry: 1-byte empty string_id + int32 numeric_id
_MIN_ENTRY_SIZE = 5


def _checked_language_count(count: int) -> ReadResult:
    if count <= 0:
        return ReadResult(
            DEFAULT_LANGUAGE_COUNT,
            InvalidLanguageCount(f"Invalid language count in STL file: {count}."),
        )
    if count > MAX_LANGUAGE_COUNT:
        return ReadResult(
            DEFAULT_LANGUAGE_COUNT,
            InvalidLanguageCount(f"Suspiciously high language count in STL file: {count}."),
        )
    return ReadResult(count)


def _read_entries(reader: BinaryReader) -> List[Entry]:
    entry_count = reader.read_int32()
    if entry_count < 0 or entry_count * _MIN_ENTRY_SIZE > reader.remaining():
        raise TruncatedRecord(
            f"Entry count {entry_count} does not fit in the "
            f"{reader.remaining()} remaining bytes"
        )
    entries = []
    for _ in range(entry_count):
        string_id = reader.read_bstring()
        numeric_id = reader.read_int32()
        entries.append(Entry(string_id=string_id, numeric_id=numeric_id))
    return entries


def _read_entry_offsets(
    reader: BinaryReader,
    language: int,
    language_offset: ReadResult,
    entry_count: int,
) -> List[ReadResult]:
    """Entry offsets of one language; a skipped language yields all fallbacks."""
    if entry_count == 0:
        return []
    if not language_offset.ok:
        return [ReadResult(0, language_offset.error)] * entry_count

    offset = language_offset.value
    if offset < 0 or offset >= len(reader):
        error = OffsetOutOfRange(
            f"Invalid language offset at index {language}: {offset} "
            f"(file length: {len(reader)})"
        )
        log_warning(f"{error} Skipping language.")
        return [ReadResult(0, error)] * entry_count

    reader.seek(offset)
    offsets = []
    for entry in range(entry_count):
        result = read_soft(reader.read_int32, 0)
        if not result.ok:
            log_warning(
                f"Failed to read entry offset for language {language}, entry {entry}: "
                f"{result.error}. Using 0 as fallback."
            )
        offsets.append(result)
    return offsets


def _read_row_fields(reader: BinaryReader, shape: RowShape, offset: int) -> Row:
    reader.seek(offset)
    row = Row()
    for name in shape.fields:
        setattr(row, name, reader.read_bstring())
    return row


def _read_row(
    reader: BinaryReader,
    shape: RowShape,
    language: int,
    entry: int,
    offset: ReadResult,
) -> Row:
    if not offset.ok:
        return Row()
    result = read_soft(partial(_read_row_fields, reader, shape, offset.value), None)
    if not result.ok:
        log_warning(
            f"Failed to read row for language {language}, entry {entry}: "
            f"{result.error}. Using empty row."
        )
        return Row()
    return result.value


def parse_stl_bytes(data: bytes, encoding: str, file_path: str = "") -> StringTable:
    """Parse an STL image under one encoding.

    Raises:
        DecodeFailure: A string is not valid in ``encoding``.
        TruncatedRecord: The header or entry directory is cut short.
    """
    reader = BinaryReader(data, encoding)

    type_tag = reader.read_bstring()
    shape = RowShape.for_type(type_tag)

    entries = _read_entries(reader)

    counted = _checked_language_count(reader.read_int32())
    if not counted.ok:
        log_warning(f"{counted.error} Using default count of {DEFAULT_LANGUAGE_COUNT}.")
    language_count = counted.value

    language_offsets = []
    for language in range(language_count):
        result = read_soft(reader.read_int32, 0)
        if not result.ok:
            log_warning(
                f"Failed to read language offset {language}: {result.error}. "
                f"Using 0 as fallback."
            )
        language_offsets.append(result)

    entry_offsets = [
        _read_entry_offsets(reader, language, offset, len(entries))
        for language, offset in enumerate(language_offsets)
    ]

    rows = []
    for language, offsets in enumerate(entry_offsets):
        rows.append([
            _read_row(reader, shape, language, entry, offset)
            for entry, offset in enumerate(offsets)
        ])

    return StringTable(type_tag=type_tag, entries=entries, rows=rows, file_path=file_path)


def load_stl(path: str, encodings=ENCODING_CANDIDATES) -> StringTable:
    """Load an STL file, returning an empty table if it cannot be parsed."""
    try:
        data = read_file(path)
    except OSError as e:
        log_error(f"Failed to read STL file {path}", type(e).__name__, traceback.format_exc())
        return StringTable(file_path=path)

    table, encoding = decode_with_fallback(
        data,
        partial(parse_stl_bytes, file_path=path),
        f"STL file {path}",
        encodings,
    )
    if table is None:
        log_error(f"Failed to load STL file {path} with any encoding")
        return StringTable(file_path=path)

    log_event(
        f"Loaded {path}: {len(table.entries)} entries, "
        f"{table.language_count} languages ({encoding})"
    )
    return table


def _fit_rows(rows: List[Row], entry_count: int, language: int) -> List[Row]:
    """Pad or cut a language's rows so its offset table matches entry_count."""
    if len(rows) == entry_count:
        return rows
    log_warning(
        f"Language {language} has {len(rows)} rows for {entry_count} entries; "
        f"{'padding with empty rows' if len(rows) < entry_count else 'dropping extra rows'}."
    )
    if len(rows) < entry_count:
        return list(rows) + [Row() for _ in range(entry_count - len(rows))]
    return rows[:entry_count]


def build_stl_bytes(table: StringTable, encoding: str = SAVE_ENCODING) -> bytes:
    """Serialize ``table``, recomputing every offset.

    Raises:
        EncodeFailure: Text is not representable in ``encoding``.
    """
    writer = BinaryWriter(encoding)
    shape = table.shape
    entry_count = len(table.entries)

    writer.write_bstring(table.type_tag)
    writer.write_int32(entry_count)
    for entry in table.entries:
        writer.write_bstring(entry.string_id)
        writer.write_int32(entry.numeric_id)

    writer.write_int32(len(table.rows))
    language_table = writer.reserve_offsets(len(table.rows))

    entry_tables = []
    for language in range(len(table.rows)):
        language_table.mark(language)
        entry_tables.append(writer.reserve_offsets(entry_count))

    for language, rows in enumerate(table.rows):
        entry_table = entry_tables[language]
        for entry, row in enumerate(_fit_rows(rows, entry_count, language)):
            entry_table.mark(entry)
            for name in shape.fields:
                writer.write_bstring(getattr(row, name))
        entry_table.patch()

    language_table.patch()
    return writer.getvalue()


def save_stl(
    table: StringTable,
    path: Optional[str] = None,
    encoding: str = SAVE_ENCODING,
) -> str:
    """Write ``table`` to ``path`` (default: where it was loaded from).

    Returns:
        The path written.
    """
    target = path or table.file_path
    if not target:
        raise ValueError("STL table has no file path to save to")

    write_file(target, build_stl_bytes(table, encoding))
    table.file_path = target
    log_event(
        f"Saved {target}: {len(table.entries)} entries, "
        f"{table.language_count} languages ({encoding})"
    )
    return target
