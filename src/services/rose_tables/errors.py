"""Error taxonomy for the STB/STL table codecs."""


class TableError(Exception):
    """Base class for every table codec failure."""
    pass


class MissingFile(TableError):
    """Raised when a required table file does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Required file not found: {path}")
        self.path = path


class DecodeFailure(TableError):
    """Raised when the bytes cannot be parsed under the active encoding."""
    pass


class EncodeFailure(TableError):
    """Raised when text cannot be written in the save encoding."""
    pass


class TruncatedRecord(TableError):
    """Raised when a read runs past the end of the data."""
    pass


class OffsetOutOfRange(TableError):
    """Raised when an absolute offset points outside the file."""
    pass


class InvalidLanguageCount(TableError):
    """Describes a language count outside the accepted range."""
    pass
