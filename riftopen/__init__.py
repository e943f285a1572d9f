"""riftopen - sparse duplex 2->1 byte encoder with a pruned AVL position index."""

__version__ = "0.1.0"

from .core.entry import IndexEntry, Polarity
from .core.index import BalancedIndex
from .core.transform import DuplexEncoder
from .pipeline import RiftSession, TransformResult, transform_file

__all__ = [
    "IndexEntry",
    "Polarity",
    "BalancedIndex",
    "DuplexEncoder",
    "RiftSession",
    "TransformResult",
    "transform_file",
    "__version__",
]
