from .errors import (  # noqa: F401
    TableError,
    MissingFile,
    DecodeFailure,
    EncodeFailure,
    TruncatedRecord,
    OffsetOutOfRange,
    InvalidLanguageCount,
)
from .models import (  # noqa: F401
    Entry,
    Row,
    RowShape,
    StringTable,
    DataTable,
)
from .binary_io import (  # noqa: F401
    BinaryReader,
    BinaryWriter,
    OffsetTable,
    ReadResult,
    read_soft,
)
from .stl import load_stl, save_stl, parse_stl_bytes, build_stl_bytes  # noqa: F401
from .stb import load_stb, save_stb, parse_stb_bytes, build_stb_bytes  # noqa: F401
