"""Chunked file byte source."""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from ..errors import UnavailableSourceError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


class ByteSource:
    """
    Reads a file as a sequence of fixed-size chunks.

    Usable as a context manager::

        with ByteSource(path) as source:
            for chunk in source.chunks():
                ...
    """

    def __init__(self, path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.path = Path(path)
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self._handle: Optional[BinaryIO] = None

    def open(self) -> "ByteSource":
        """
        Open the underlying file.

        Raises:
            UnavailableSourceError: the file is missing or unreadable
        """
        try:
            self._handle = open(self.path, "rb")
        except OSError as e:
            raise UnavailableSourceError(
                f"Cannot open byte source {self.path}: {e.strerror or e}",
                path=str(self.path),
                reason=type(e).__name__
            ) from e
        logger.debug(f"Opened byte source {self.path}")
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def chunks(self) -> Iterator[bytes]:
        """Yield chunks of at most ``chunk_size`` bytes until end of file."""
        if self._handle is None:
            self.open()
        while True:
            try:
                chunk = self._handle.read(self.chunk_size)
            except OSError as e:
                raise UnavailableSourceError(
                    f"Read failed on {self.path}: {e}",
                    path=str(self.path),
                    reason=type(e).__name__
                ) from e
            if not chunk:
                return
            self.bytes_read += len(chunk)
            yield chunk

    def __enter__(self) -> "ByteSource":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
