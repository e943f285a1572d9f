"""Index entry and polarity data structures."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np


UINT32_MAX = 0xFFFFFFFF


class Polarity(Enum):
    """Provenance tag of an encoding pass and of each index entry."""
    POSITIVE = "+"
    NEGATIVE = "-"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def pass_name(self) -> str:
        """Name of the encoding pass that produces this polarity ('A' or 'B')."""
        return "A" if self is Polarity.POSITIVE else "B"

    @classmethod
    def from_flag(cls, polarity_a: bool) -> "Polarity":
        """Map the encoder's ``polarity_a`` flag onto a polarity."""
        return cls.POSITIVE if polarity_a else cls.NEGATIVE

    @classmethod
    def parse(cls, raw: Union[str, bool, "Polarity"]) -> "Polarity":
        """
        Parse a polarity from user input.

        Accepts '+', '-', 'positive', 'negative', 'pos', 'neg', and the
        pass names 'A' / 'B' in any case.
        """
        if isinstance(raw, Polarity):
            return raw
        if isinstance(raw, bool):
            return cls.from_flag(raw)

        text = str(raw).strip().lower()
        if text in ("+", "positive", "pos", "a"):
            return cls.POSITIVE
        if text in ("-", "negative", "neg", "b"):
            return cls.NEGATIVE
        raise ValueError(f"Unknown polarity: {raw!r}")


def to_float32(value: float) -> float:
    """Round a confidence to single precision."""
    return float(np.float32(value))


@dataclass(eq=False)
class IndexEntry:
    """
    A node of the position index.

    ``key`` is the 1-based output position of the byte in ``value``.
    Pruned entries stay in the tree with ``value == 0`` and
    ``confidence == 0.0``.
    """

    key: int
    value: int
    polarity: Polarity
    confidence: float = 1.0
    height: int = 1

    # Tree links, owned by BalancedIndex
    left: Optional["IndexEntry"] = field(default=None, repr=False)
    right: Optional["IndexEntry"] = field(default=None, repr=False)
    parent: Optional["IndexEntry"] = field(default=None, repr=False)

    @property
    def pruned(self) -> bool:
        return self.value == 0 and self.confidence == 0.0

    @property
    def balance(self) -> int:
        """Left height minus right height."""
        return height_of(self.left) - height_of(self.right)

    def tombstone(self) -> None:
        """Logically delete the entry."""
        self.value = 0
        self.confidence = 0.0


def height_of(node: Optional[IndexEntry]) -> int:
    return node.height if node is not None else 0
