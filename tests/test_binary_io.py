"""Tests for the offset-indexed record primitives."""

import os
import stat
import struct
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from services.rose_tables.binary_io import (  # noqa: E402
    BinaryReader,
    BinaryWriter,
    ReadResult,
    decode_with_fallback,
    read_file,
    read_soft,
    write_file,
)
from services.rose_tables.errors import (  # noqa: E402
    DecodeFailure,
    EncodeFailure,
    OffsetOutOfRange,
    TruncatedRecord,
)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def test_varint_lengths():
    writer = BinaryWriter("euc_kr")
    writer.write_varint(127)
    writer.write_varint(300)
    assert writer.getvalue() == b"\x7f\xac\x02"

    reader = BinaryReader(writer.getvalue(), "euc_kr")
    assert reader.read_varint() == 127
    assert reader.read_varint() == 300
    assert reader.remaining() == 0


def test_bstring_prefix_counts_encoded_bytes():
    writer = BinaryWriter("euc_kr")
    writer.write_bstring("가나")
    data = writer.getvalue()
    # Two Hangul syllables are four EUC-KR bytes
    assert data[0] == 4
    assert len(data) == 5
    assert BinaryReader(data, "euc_kr").read_bstring() == "가나"


def test_long_bstring_uses_two_byte_prefix():
    text = "x" * 200
    writer = BinaryWriter("euc_kr")
    writer.write_bstring(text)
    data = writer.getvalue()
    assert data[:2] == b"\xc8\x01"
    assert BinaryReader(data, "euc_kr").read_bstring() == text


def test_sstring_prefix():
    writer = BinaryWriter("euc_kr")
    writer.write_sstring("Sword")
    assert writer.getvalue() == b"\x05\x00Sword"


def test_truncated_prefix_raises():
    reader = BinaryReader(b"\x05abc", "euc_kr")
    with pytest.raises(TruncatedRecord):
        reader.read_bstring()


def test_int32_past_end_raises():
    reader = BinaryReader(b"\x01\x00", "euc_kr")
    with pytest.raises(TruncatedRecord):
        reader.read_int32()


def test_seek_is_absolute_and_bounded():
    reader = BinaryReader(b"\x00" * 8, "euc_kr")
    reader.seek(8)
    assert reader.tell() == 8
    reader.seek(2)
    assert reader.tell() == 2
    with pytest.raises(OffsetOutOfRange):
        reader.seek(9)
    with pytest.raises(OffsetOutOfRange):
        reader.seek(-1)


def test_undecodable_bytes_raise_decode_failure():
    shift_jis = "あいう".encode("shift_jis")
    data = bytes([len(shift_jis)]) + shift_jis
    with pytest.raises(DecodeFailure):
        BinaryReader(data, "euc_kr").read_bstring()
    assert BinaryReader(data, "shift_jis").read_bstring() == "あいう"


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def test_offset_table_patch():
    writer = BinaryWriter("euc_kr")
    table = writer.reserve_offsets(2)
    assert writer.getvalue() == b"\x00" * 8

    assert table.mark(0) == 8
    writer.write_bstring("ab")
    assert table.mark(1) == 11
    writer.write_bstring("")
    table.patch()

    data = writer.getvalue()
    assert struct.unpack_from("<2i", data, 0) == (8, 11)
    # Patching never moves the write position
    assert writer.tell() == len(data) == 12

    reader = BinaryReader(data, "euc_kr")
    reader.seek(8)
    assert reader.read_bstring() == "ab"


def test_unencodable_text_raises_encode_failure():
    writer = BinaryWriter("euc_kr")
    with pytest.raises(EncodeFailure):
        writer.write_bstring("\U0001F600")


def test_oversized_sstring_raises_encode_failure():
    writer = BinaryWriter("euc_kr")
    with pytest.raises(EncodeFailure):
        writer.write_sstring("x" * 70000)


def test_none_writes_empty_string():
    writer = BinaryWriter("euc_kr")
    writer.write_bstring(None)
    assert writer.getvalue() == b"\x00"


# ---------------------------------------------------------------------------
# Fail-soft reads and encoding fallback
# ---------------------------------------------------------------------------

def test_read_soft_substitutes_fallback():
    reader = BinaryReader(b"\x01", "euc_kr")
    result = read_soft(reader.read_int32, 0)
    assert isinstance(result, ReadResult)
    assert not result.ok
    assert result.value == 0
    assert isinstance(result.error, TruncatedRecord)

    ok = read_soft(lambda: 42, 0)
    assert ok.ok and ok.value == 42


def test_read_soft_lets_decode_failure_through():
    def bad_read():
        raise DecodeFailure("wrong encoding")

    with pytest.raises(DecodeFailure):
        read_soft(bad_read, "")


def test_decode_with_fallback_tries_next_encoding():
    tried = []

    def parse(data, encoding):
        tried.append(encoding)
        if encoding == "euc_kr":
            raise DecodeFailure("not Korean")
        return data.decode(encoding)

    result, encoding = decode_with_fallback("あ".encode("shift_jis"), parse, "sample")
    assert result == "あ"
    assert encoding == "shift_jis"
    assert tried == ["euc_kr", "shift_jis"]


def test_decode_with_fallback_all_fail():
    def parse(data, encoding):
        raise TruncatedRecord("short")

    assert decode_with_fallback(b"", parse, "sample") == (None, None)


def test_write_file_replaces_atomically(tmp_path):
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    path = str(out_dir / "table.bin")
    write_file(path, b"first")
    write_file(path, b"second")
    assert read_file(path) == b"second"
    # No temp file left behind
    assert os.listdir(out_dir) == ["table.bin"]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_write_file_keeps_existing_mode(tmp_path):
    path = str(tmp_path / "LIST_NPC_S.STL")
    write_file(path, b"first")
    os.chmod(path, 0o644)

    write_file(path, b"second")
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
def test_write_file_new_file_follows_umask(tmp_path):
    old_umask = os.umask(0o022)
    try:
        path = str(tmp_path / "new.STB")
        write_file(path, b"data")
    finally:
        os.umask(old_umask)
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
