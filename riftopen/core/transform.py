"""
Sparse duplex 2->1 encoding.

Input is consumed two bytes at a time; each pair collapses to one output
byte. Every output byte is recorded in the position index under its
1-based running output position, which persists across ``encode`` calls
on the same encoder.
"""

import logging
from typing import Optional, Union

import numpy as np

from ..errors import PositionOverflowError
from .entry import Polarity, UINT32_MAX
from .index import BalancedIndex

logger = logging.getLogger(__name__)

CONJUGATE_MASK = 0x0F
EPSILON_PAD = 0x00
FULL_CONFIDENCE = 1.0

BytesLike = Union[bytes, bytearray, memoryview]


def conjugate(x: int) -> int:
    """XOR against 0xF. Only the low nibble changes."""
    return CONJUGATE_MASK ^ x


def combine(a: int, b: int, polarity_a: bool) -> int:
    """Collapse one input pair into an output byte."""
    if polarity_a:
        return a ^ conjugate(b)
    return conjugate(a) ^ b


def combine_pairs(data: BytesLike, polarity_a: bool) -> np.ndarray:
    """
    Vectorized ``combine`` over a whole buffer.

    An odd trailing byte is paired with the epsilon pad. The result has
    ``ceil(len(data) / 2)`` elements.
    """
    buf = np.frombuffer(bytes(data), dtype=np.uint8)
    if buf.size % 2:
        buf = np.append(buf, np.uint8(EPSILON_PAD))
    a = buf[0::2]
    b = buf[1::2]
    mask = np.uint8(CONJUGATE_MASK)
    if polarity_a:
        return np.bitwise_xor(a, np.bitwise_xor(b, mask))
    return np.bitwise_xor(np.bitwise_xor(a, mask), b)


class DuplexEncoder:
    """
    Stateful encoder for one logical output stream.

    Holds the running output position and the index it feeds. Use one
    encoder per stream; ``reset`` starts a new stream on the same index.
    """

    def __init__(self, index: Optional[BalancedIndex] = None) -> None:
        self.index = index if index is not None else BalancedIndex()
        self._position = 0

    @property
    def position(self) -> int:
        """Position of the last emitted byte (0 before any output)."""
        return self._position

    def reset(self) -> None:
        self._position = 0

    def encode(self, data: BytesLike, polarity_a: bool = True) -> bytes:
        """
        Encode ``data`` and index every output byte.

        Args:
            data: Input bytes
            polarity_a: True for pass A (conjugate the second byte),
                False for pass B (conjugate the first)

        Returns:
            The encoded bytes, ``ceil(len(data) / 2)`` of them

        Raises:
            PositionOverflowError: the stream would exceed 2**32 - 1 positions
            IndexAllocationError: the index could not grow (fatal)
        """
        out = combine_pairs(data, polarity_a)
        if self._position + out.size > UINT32_MAX:
            raise PositionOverflowError(
                f"Output position would exceed {UINT32_MAX}",
                position=self._position + out.size
            )

        polarity = Polarity.from_flag(polarity_a)
        insert = self.index.insert
        for value in out.tolist():
            insert(self._position + 1, value, FULL_CONFIDENCE, polarity)
            self._position += 1

        logger.debug(
            f"Encoded {len(data)} -> {out.size} bytes "
            f"(polarity {polarity.pass_name}, position {self._position})"
        )
        return out.tobytes()
