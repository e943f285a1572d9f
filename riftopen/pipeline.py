"""
File-level driver: byte source -> duplex encoder -> position index.

``RiftSession`` owns the index and the encoder's running position, so
independent streams never share state unless they share a session.
"""

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ContextManager, Dict, Optional, Union

from .config import RiftConfig
from .core.entry import Polarity
from .core.index import BalancedIndex
from .core.transform import DuplexEncoder, BytesLike
from .errors import UnavailableSourceError
from .io.source import ByteSource

logger = logging.getLogger(__name__)


@dataclass
class TransformResult:
    """Outcome of encoding one file."""
    output: bytes
    polarity: Polarity
    bytes_read: int = 0
    capacity_exhausted: bool = False
    source_available: bool = True
    error: Optional[str] = None

    @property
    def produced(self) -> int:
        return len(self.output)

    def __len__(self) -> int:
        return self.produced

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "produced": self.produced,
            "bytes_read": self.bytes_read,
            "polarity": self.polarity.pass_name,
            "capacity_exhausted": self.capacity_exhausted,
            "source_available": self.source_available,
            "error": self.error,
            "output": self.output.hex().upper(),
        }


class RiftSession:
    """
    One index plus the encoder that feeds it.

    With ``lock=True`` every mutation (encoding, measurements, bulk
    pruning) runs under a single re-entrant lock, which makes a session
    safe to share between threads. Without it the session is confined to
    one thread.
    """

    def __init__(self, config: Optional[RiftConfig] = None, lock: bool = False):
        self.config = config or RiftConfig()
        self.index = BalancedIndex(
            prune_threshold=self.config.prune_threshold,
            streak_threshold=self.config.prune_streak,
            streak_buckets=self.config.streak_buckets,
        )
        self.encoder = DuplexEncoder(self.index)
        self._lock = threading.RLock() if lock else None

    def _guard(self) -> ContextManager:
        return self._lock if self._lock is not None else nullcontext()

    @property
    def position(self) -> int:
        return self.encoder.position

    def encode(self, data: BytesLike, polarity_a: bool = True) -> bytes:
        with self._guard():
            return self.encoder.encode(data, polarity_a)

    def mark_measurement(self, key: int, confidence: float,
                         polarity: Optional[Polarity] = None) -> bool:
        with self._guard():
            return self.index.mark_measurement(key, confidence, polarity)

    def prune_negative(self) -> int:
        with self._guard():
            return self.index.prune_negative()

    def transform_file(self, path: Union[str, Path],
                       output_capacity: Optional[int] = None,
                       polarity_a: bool = True) -> TransformResult:
        """
        Encode a whole file, stopping early once ``output_capacity`` bytes
        have been produced.

        An unopenable file yields an empty result with
        ``source_available=False``; it is never raised. A read failure
        part-way through keeps the output produced so far and records the
        error on the result.
        """
        capacity = self.config.output_capacity if output_capacity is None else output_capacity
        if capacity < 0:
            raise ValueError(f"output_capacity must be non-negative, got {capacity}")

        polarity = Polarity.from_flag(polarity_a)
        source = ByteSource(path, chunk_size=self.config.chunk_size)
        try:
            source.open()
        except UnavailableSourceError as e:
            logger.warning(e.message)
            return TransformResult(output=b"", polarity=polarity,
                                   source_available=False, error=e.message)

        out = bytearray()
        result = TransformResult(output=b"", polarity=polarity)
        try:
            for chunk in source.chunks():
                remaining = capacity - len(out)
                if remaining <= 0:
                    result.capacity_exhausted = True
                    break
                if (len(chunk) + 1) // 2 > remaining:
                    chunk = chunk[:2 * remaining]
                    result.capacity_exhausted = True
                out += self.encode(chunk, polarity_a)
                if result.capacity_exhausted:
                    break
        except UnavailableSourceError as e:
            logger.error(f"{e.message}; keeping {len(out)} encoded bytes")
            result.error = e.message
        finally:
            result.bytes_read = source.bytes_read
            source.close()

        result.output = bytes(out)
        logger.info(
            f"Encoded {path}: {result.bytes_read} -> {result.produced} bytes "
            f"(polarity {polarity.pass_name})"
        )
        return result


def transform_file(path: Union[str, Path],
                   output_capacity: Optional[int] = None,
                   polarity_a: bool = True,
                   session: Optional[RiftSession] = None) -> TransformResult:
    """
    Encode ``path`` in a session and return the result.

    A fresh session is created when none is given, so the index starts
    empty and positions start at 1.
    """
    session = session or RiftSession()
    return session.transform_file(path, output_capacity, polarity_a)
