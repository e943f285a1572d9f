"""Tests for the chunked byte source."""

import pytest

from riftopen.errors import UnavailableSourceError
from riftopen.io.source import ByteSource, DEFAULT_CHUNK_SIZE


class TestByteSource:
    """Reading files as fixed-size chunks."""

    def test_default_chunk_size(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x01" * (DEFAULT_CHUNK_SIZE + 10))

        with ByteSource(path) as source:
            sizes = [len(chunk) for chunk in source.chunks()]

        assert DEFAULT_CHUNK_SIZE == 4096
        assert sizes == [4096, 10]

    def test_chunks_and_bytes_read(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(bytes(range(10)))

        with ByteSource(path, chunk_size=4) as source:
            chunks = list(source.chunks())

        assert chunks == [bytes([0, 1, 2, 3]), bytes([4, 5, 6, 7]), bytes([8, 9])]
        assert source.bytes_read == 10

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")

        with ByteSource(path) as source:
            assert list(source.chunks()) == []
        assert source.bytes_read == 0

    def test_closes_on_exit(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")

        with ByteSource(path) as source:
            assert not source.closed
        assert source.closed

    def test_chunks_opens_lazily(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")

        source = ByteSource(path)
        try:
            assert b"".join(source.chunks()) == b"abc"
        finally:
            source.close()

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.bin"

        with pytest.raises(UnavailableSourceError) as exc_info:
            ByteSource(missing).open()

        error = exc_info.value
        assert error.path == str(missing)
        assert error.details["reason"] == "FileNotFoundError"
        assert not error.fatal

    def test_directory_is_unavailable(self, tmp_path):
        with pytest.raises(UnavailableSourceError):
            ByteSource(tmp_path).open()

    def test_rejects_bad_chunk_size(self, tmp_path):
        with pytest.raises(ValueError):
            ByteSource(tmp_path / "x", chunk_size=0)
