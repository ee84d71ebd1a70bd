"""Data models for STB data tables and STL string tables."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from constants import (
    DISPLAY_LANGUAGE,
    STB_DEFAULT_ROW_HEIGHT,
    STL_TYPE_ITEM,
    STL_TYPE_QUEST,
)


class RowShape(Enum):
    """Which Row fields an STL table serializes, chosen once from its type tag."""

    TEXT = ("text",)
    ITEM = ("text", "comment")
    QUEST = ("text", "comment", "quest1", "quest2")

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.value

    @classmethod
    def for_type(cls, type_tag: str) -> "RowShape":
        if type_tag == STL_TYPE_QUEST:
            return cls.QUEST
        if type_tag == STL_TYPE_ITEM:
            return cls.ITEM
        return cls.TEXT


@dataclass
class Entry:
    """Directory record of an STL table."""

    string_id: str
    numeric_id: int = 0


@dataclass
class Row:
    """Localized payload for one entry in one language.

    All fields exist on every row; only those in the table's RowShape are
    read from or written to the file.
    """

    text: str = ""
    comment: str = ""
    quest1: str = ""
    quest2: str = ""


@dataclass
class StringTable:
    """A loaded STL file: entries plus one row list per language."""

    type_tag: str = ""
    entries: List[Entry] = field(default_factory=list)
    rows: List[List[Row]] = field(default_factory=list)  # rows[language][entry]
    file_path: str = ""

    @property
    def shape(self) -> RowShape:
        return RowShape.for_type(self.type_tag)

    @property
    def language_count(self) -> int:
        return len(self.rows)

    def is_empty(self) -> bool:
        return not self.entries and not self.rows

    def index_of(self, string_id: str) -> Optional[int]:
        """Ordinal of ``string_id`` (case-insensitive), or None."""
        wanted = string_id.lower()
        for i, entry in enumerate(self.entries):
            if entry.string_id.lower() == wanted:
                return i
        return None

    def search(self, string_id: str) -> str:
        """Display text for ``string_id``, or ``string_id`` itself on a miss."""
        index = self.index_of(string_id)
        if index is None or len(self.rows) <= DISPLAY_LANGUAGE:
            return string_id
        language = self.rows[DISPLAY_LANGUAGE]
        if index >= len(language):
            return string_id
        return language[index].text


@dataclass
class DataTable:
    """A loaded STB file as a grid of text cells.

    Row 0 holds the column titles and is skipped by consumers; column 0 of
    each data row is the row name.  Rows may have different lengths.
    """

    cells: List[List[str]] = field(default_factory=list)
    title: str = ""
    row_height: int = STB_DEFAULT_ROW_HEIGHT
    column_widths: List[int] = field(default_factory=list)
    file_path: str = ""

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.cells), default=0)

    def is_empty(self) -> bool:
        return not self.cells

    def get_cell(self, row: int, column: int, default: str = "") -> str:
        if row < 0 or row >= len(self.cells):
            return default
        cells = self.cells[row]
        if column < 0 or column >= len(cells):
            return default
        return cells[column]

    def set_cell(self, row: int, column: int, value: str) -> None:
        if row < 0 or row >= len(self.cells):
            raise IndexError(f"Row {row} out of range (rows: {len(self.cells)})")
        if column < 0:
            raise IndexError(f"Column {column} out of range")
        cells = self.cells[row]
        if column >= len(cells):
            cells.extend([""] * (column + 1 - len(cells)))
        cells[column] = value

    def append_row(self, values: Optional[List[str]] = None) -> int:
        """Append a row (empty by default) and return its index."""
        self.cells.append(list(values) if values is not None else [])
        return len(self.cells) - 1

    def remove_row(self, index: int) -> List[str]:
        if index < 0 or index >= len(self.cells):
            raise IndexError(f"Row {index} out of range (rows: {len(self.cells)})")
        return self.cells.pop(index)

    def data_rows(self) -> Iterator[Tuple[int, List[str]]]:
        """Yield ``(index, row)`` for every row after the header."""
        for index in range(1, len(self.cells)):
            yield index, self.cells[index]
