"""
Height-balanced position index.

Maps 32-bit output positions to ``IndexEntry`` records in an AVL tree.
Entries are never removed: pruning tombstones them in place, so keys stay
discoverable by ``find`` for the lifetime of the index.

The index does no locking of its own. Share one instance between threads
only behind a single lock around every mutation (``RiftSession`` can hold
one for you).
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterator, List, Optional

from ..errors import IndexAllocationError, IndexInvariantError
from .entry import IndexEntry, Polarity, UINT32_MAX, height_of, to_float32
from .streak import StreakCounter, DEFAULT_BUCKETS, DEFAULT_STREAK_THRESHOLD

logger = logging.getLogger(__name__)

DEFAULT_PRUNE_THRESHOLD = 0.5


@dataclass
class IndexStats:
    """Summary counts for an index."""
    size: int
    height: int
    pruned: int
    positive: int
    negative: int
    root_key: Optional[int]
    active_streaks: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BalancedIndex:
    """
    AVL tree keyed by output position.

    Duplicate inserts update the existing entry in place. New keys are
    linked at their BST position and every ancestor is rebalanced on the
    way back up to the root.
    """

    def __init__(self,
                 prune_threshold: float = DEFAULT_PRUNE_THRESHOLD,
                 streak_threshold: int = DEFAULT_STREAK_THRESHOLD,
                 streak_buckets: int = DEFAULT_BUCKETS) -> None:
        """
        Initialize an empty index.

        Args:
            prune_threshold: Measurements below this confidence qualify for pruning
            streak_threshold: Qualifying measurements per bucket before pruning
            streak_buckets: Number of streak buckets (keys are bucketed modulo this)
        """
        self.root: Optional[IndexEntry] = None
        self.prune_threshold = prune_threshold
        self.streaks = StreakCounter(streak_buckets, streak_threshold)
        self._size = 0

    # ----------------------------
    # Insertion
    # ----------------------------
    def insert(self, key: int, value: int, confidence: float, polarity: Polarity) -> None:
        """
        Insert or update the entry for ``key``.

        Raises:
            ValueError: key outside uint32 or value outside uint8
            IndexAllocationError: the new node could not be created (fatal)
        """
        if not 0 <= key <= UINT32_MAX:
            raise ValueError(f"key must fit in 32 bits, got {key}")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"value must fit in 8 bits, got {value}")
        confidence = to_float32(confidence)

        parent: Optional[IndexEntry] = None
        cur = self.root
        while cur is not None:
            if key == cur.key:
                cur.value = value
                cur.confidence = confidence
                cur.polarity = polarity
                return
            parent = cur
            cur = cur.left if key < cur.key else cur.right

        node = self._new_node(key, value, confidence, polarity)
        node.parent = parent
        if parent is None:
            self.root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node
        self._size += 1

        self._rebalance_up(parent)

    def _new_node(self, key: int, value: int, confidence: float,
                  polarity: Polarity) -> IndexEntry:
        try:
            return IndexEntry(key=key, value=value, polarity=polarity,
                              confidence=confidence)
        except MemoryError as e:
            logger.critical(f"Could not allocate index node for key {key}")
            raise IndexAllocationError(
                f"Out of memory creating index node for key {key}",
                key=key,
                details={'size': self._size}
            ) from e

    # ----------------------------
    # Balancing
    # ----------------------------
    @staticmethod
    def _update_height(node: IndexEntry) -> None:
        node.height = 1 + max(height_of(node.left), height_of(node.right))

    def _replace_child(self, old: IndexEntry, new: IndexEntry) -> None:
        parent = old.parent
        new.parent = parent
        if parent is None:
            self.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new

    def _rotate_left(self, x: IndexEntry) -> IndexEntry:
        y = x.right
        if y is None:
            return x
        x.right = y.left
        if y.left is not None:
            y.left.parent = x
        self._replace_child(x, y)
        y.left = x
        x.parent = y
        self._update_height(x)
        self._update_height(y)
        return y

    def _rotate_right(self, x: IndexEntry) -> IndexEntry:
        y = x.left
        if y is None:
            return x
        x.left = y.right
        if y.right is not None:
            y.right.parent = x
        self._replace_child(x, y)
        y.right = x
        x.parent = y
        self._update_height(x)
        self._update_height(y)
        return y

    def _rebalance_up(self, node: Optional[IndexEntry]) -> None:
        while node is not None:
            self._update_height(node)
            balance = node.balance
            if balance > 1:
                # left-right case
                if node.left.balance < 0:
                    self._rotate_left(node.left)
                node = self._rotate_right(node)
            elif balance < -1:
                # right-left case
                if node.right.balance > 0:
                    self._rotate_right(node.right)
                node = self._rotate_left(node)
            node = node.parent

    # ----------------------------
    # Queries
    # ----------------------------
    def find(self, key: int) -> Optional[IndexEntry]:
        """Return the entry for ``key`` or None. Never touches streaks."""
        cur = self.root
        while cur is not None:
            if key == cur.key:
                return cur
            cur = cur.left if key < cur.key else cur.right
        return None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, int) and self.find(key) is not None

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[IndexEntry]:
        """Yield entries in ascending key order."""
        stack: List[IndexEntry] = []
        cur = self.root
        while stack or cur is not None:
            while cur is not None:
                stack.append(cur)
                cur = cur.left
            cur = stack.pop()
            yield cur
            cur = cur.right

    def keys(self) -> List[int]:
        return [entry.key for entry in self]

    @property
    def height(self) -> int:
        return height_of(self.root)

    @property
    def root_key(self) -> Optional[int]:
        return self.root.key if self.root is not None else None

    def pruned_count(self) -> int:
        return sum(1 for entry in self if entry.pruned)

    def stats(self) -> IndexStats:
        positive = negative = pruned = 0
        for entry in self:
            if entry.pruned:
                pruned += 1
            if entry.polarity is Polarity.POSITIVE:
                positive += 1
            else:
                negative += 1
        return IndexStats(
            size=self._size,
            height=self.height,
            pruned=pruned,
            positive=positive,
            negative=negative,
            root_key=self.root_key,
            active_streaks=self.streaks.active_buckets(),
        )

    # ----------------------------
    # Maintenance
    # ----------------------------
    def mark_measurement(self, key: int, confidence: float,
                         polarity: Optional[Polarity] = None) -> bool:
        """
        Record a measurement against ``key`` and apply the pruning policy.

        The measurement overwrites the entry's confidence, and its polarity
        when one is given. A measurement qualifies when the confidence is
        below ``prune_threshold`` or the entry is now negative; once the
        entry's streak bucket reaches the streak threshold the entry is
        tombstoned. A confident positive measurement resets the bucket.

        Returns:
            True if this call pruned the entry. Absent keys are a no-op.
        """
        entry = self.find(key)
        if entry is None:
            return False

        entry.confidence = to_float32(confidence)
        if polarity is not None:
            entry.polarity = polarity

        if entry.confidence < self.prune_threshold or entry.polarity is Polarity.NEGATIVE:
            streak = self.streaks.record_miss(key)
            if self.streaks.triggered(key):
                entry.tombstone()
                logger.debug(f"Pruned key {key} (streak {streak})")
                return True
        else:
            self.streaks.reset(key)
        return False

    def prune_negative(self) -> int:
        """
        Tombstone every negative-polarity entry that is not already pruned.

        Streak counters are left alone.

        Returns:
            Number of entries pruned by this call
        """
        count = 0
        for entry in self:
            if entry.polarity is Polarity.NEGATIVE and not entry.pruned:
                entry.tombstone()
                count += 1
        logger.debug(f"Bulk-pruned {count} negative entries")
        return count

    # ----------------------------
    # Verification
    # ----------------------------
    def check_invariants(self) -> None:
        """
        Verify ordering, balance, heights, parent links and size.

        Raises:
            IndexInvariantError: on the first violation found
        """
        if self.root is not None and self.root.parent is not None:
            raise IndexInvariantError("Root has a parent", key=self.root.key,
                                      invariant='parent')
        count = self._check_subtree(self.root, None, None)
        if count != self._size:
            raise IndexInvariantError(
                f"Node count {count} does not match size {self._size}",
                invariant='size'
            )

    def _check_subtree(self, node: Optional[IndexEntry],
                       low: Optional[int], high: Optional[int]) -> int:
        if node is None:
            return 0
        if (low is not None and node.key <= low) or (high is not None and node.key >= high):
            raise IndexInvariantError(f"Key {node.key} out of order", key=node.key,
                                      invariant='order')
        for child in (node.left, node.right):
            if child is not None and child.parent is not node:
                raise IndexInvariantError(f"Broken parent link under {node.key}",
                                          key=child.key, invariant='parent')

        count = 1
        count += self._check_subtree(node.left, low, node.key)
        count += self._check_subtree(node.right, node.key, high)

        if node.height != 1 + max(height_of(node.left), height_of(node.right)):
            raise IndexInvariantError(f"Stale height at {node.key}", key=node.key,
                                      invariant='height')
        if abs(node.balance) > 1:
            raise IndexInvariantError(
                f"Unbalanced at {node.key} (balance {node.balance})",
                key=node.key,
                invariant='balance'
            )
        return count
