"""Core data structures: the position index and the duplex encoder."""

from .entry import IndexEntry, Polarity
from .index import BalancedIndex, IndexStats
from .streak import StreakCounter
from .transform import DuplexEncoder, combine, combine_pairs, conjugate

__all__ = [
    "IndexEntry",
    "Polarity",
    "BalancedIndex",
    "IndexStats",
    "StreakCounter",
    "DuplexEncoder",
    "combine",
    "combine_pairs",
    "conjugate",
]
