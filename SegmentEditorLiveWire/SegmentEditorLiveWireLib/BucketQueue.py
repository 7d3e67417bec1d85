"""Approximate priority queue for small, bounded costs.

Items are stored in 2**bits FIFO buckets indexed by
round(granularity * cost) modulo the bucket count. Popping scans forward
from the last dequeued bucket, wrapping around, and returns the oldest
item of the first non-empty bucket.

The ordering is exact up to the bucket resolution as long as no item is
pushed a full rotation or more past the bucket being scanned. An item
pushed while popping a cost c must therefore cost less than
c + max_step, where max_step = 1 - 1/granularity; the search caps every
step at max_step.

Costs are not stored in the queue. They are read from a cost table owned
by the caller, so the cost of an item must not change while it is
queued: remove it, update the cost, and push it again.
"""

import logging
from collections import deque

import numpy as np

from .LiveWireDataStructures import Point

logger = logging.getLogger(__name__)


class BucketQueue:
    """Rotating bucket queue over points whose costs live in a 2D table.

    Args:
        bits: Bucket resolution; the queue has 2**bits buckets.
        costs: Cost table indexed as costs[y, x]. The queue keeps a
            reference and reads it on push and remove.
    """

    def __init__(self, bits: int, costs: np.ndarray):
        self.bits = bits
        self.granularity = 1 << bits
        self.mask = self.granularity - 1
        # Largest step that cannot wrap into the bucket being scanned
        self.max_step = 1.0 - 1.0 / self.granularity
        self.costs = costs

        self._buckets: list[deque] = [deque() for _ in range(self.granularity)]
        self._loc = 0
        self._count = 0

    def bucket_index(self, item: Point) -> int:
        """Bucket holding item at its current cost."""
        value = self.granularity * float(self.costs[item.y, item.x])
        return int(value + 0.5) & self.mask

    def push(self, item: Point) -> None:
        self._buckets[self.bucket_index(item)].append(item)
        self._count += 1

    def pop(self) -> Point:
        """Remove and return the lowest-cost item.

        Raises:
            IndexError: If the queue is empty.
        """
        if self._count == 0:
            raise IndexError("pop from an empty BucketQueue")

        while not self._buckets[self._loc]:
            self._loc = (self._loc + 1) & self.mask

        self._count -= 1
        return self._buckets[self._loc].popleft()

    def remove(self, item: Point) -> bool:
        """Remove a queued item.

        The item's cost must be the one it was pushed with. Removing an
        item that is not queued leaves the queue untouched.

        Returns:
            True if the item was removed, False if it was not queued.
        """
        bucket = self._buckets[self.bucket_index(item)]
        try:
            bucket.remove(item)
        except ValueError:
            logger.debug(f"BucketQueue.remove: {item} is not queued")
            return False

        self._count -= 1
        return True

    def is_empty(self) -> bool:
        return self._count == 0

    def __len__(self) -> int:
        return self._count

    def __bool__(self) -> bool:
        return self._count > 0
