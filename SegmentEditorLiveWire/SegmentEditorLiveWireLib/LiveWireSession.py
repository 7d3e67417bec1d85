"""Headless live-wire tracing session.

Drives a Scissors engine the way the live-wire drawing tool does: the
user places anchors, the path from the last anchor follows the cursor,
each new anchor commits the current path to the region outline, trains
the cost function on it, and re-seeds the search. Closing the outline
traces back to the first anchor.

Rendering and input handling are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

import numpy as np

from .LiveWireDataStructures import Point
from .Scissors import Scissors

logger = logging.getLogger(__name__)


class ROI:
    """Region of interest outline: an ordered, closed list of points."""

    def __init__(self, points: Optional[list[Point]] = None):
        self._points: list[Point] = list(points or [])

    def get_point(self, index: int) -> Point:
        return self._points[index]

    def add_point(self, point: Point) -> None:
        self._points.append(point)

    def add_points(self, points: list[Point]) -> None:
        self._points.extend(points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def to_array(self) -> np.ndarray:
        """Points as an (N, 2) integer array of (x, y)."""
        if not self._points:
            return np.zeros((0, 2), dtype=np.int64)
        return np.array([p.as_tuple() for p in self._points], dtype=np.int64)


class LiveWireSession:
    """Anchor-by-anchor boundary tracing on one image.

    Args:
        scissors: Engine with image data already loaded.
        train_on_commit: Train the cost function on each committed path.
    """

    def __init__(self, scissors: Scissors, train_on_commit: bool = True):
        self.scissors = scissors
        self.train_on_commit = train_on_commit
        self.anchors: list[Point] = []
        self.roi = ROI()
        self.closed = False

    @property
    def is_started(self) -> bool:
        return len(self.anchors) > 0

    @property
    def last_anchor(self) -> Optional[Point]:
        return self.anchors[-1] if self.anchors else None

    def start(self, point: Point) -> None:
        """Place the first anchor and start searching from it."""
        self.scissors.set_point(point)
        self.anchors = [point]
        self.roi = ROI([point])
        self.closed = False
        logger.debug(f"Live-wire session started at {point}")

    def step(self):
        """Run one batch of the search; returns the batch from do_work()."""
        return self.scissors.do_work()

    def preview(self, point: Point) -> list[Point]:
        """Current path from the last anchor to point.

        Empty until the search has reached point.
        """
        if not self.is_started:
            return []
        return self.scissors.get_path(point)

    def _wait_for(self, point: Point) -> None:
        if not self.scissors.is_working:
            self.scissors.set_working(True)
        while not self.scissors.is_visited(point):
            if not self.scissors.do_work():
                break

    def commit(self, point: Point) -> list[Point]:
        """Add an anchor at point, keeping the path that leads to it.

        Runs the search until point is reached if needed.

        Returns:
            The committed path, from the previous anchor to point.

        Raises:
            RuntimeError: If the session has not been started or is closed.
            IndexError: If point lies outside the image.
        """
        if not self.is_started:
            raise RuntimeError("Live-wire session not started")
        if self.closed:
            raise RuntimeError("Live-wire session already closed")
        if not self.scissors.contains(point):
            raise IndexError(
                f"Anchor {point} outside {self.scissors.width}x{self.scissors.height} image"
            )

        self._wait_for(point)
        path = self.scissors.get_path(point)

        # The first point is the previous anchor, already in the outline
        self.roi.add_points(path[1:])

        if self.train_on_commit:
            self.scissors.train(path)

        self.anchors.append(point)
        self.scissors.set_point(point)
        logger.debug(f"Committed {len(path)} point live-wire segment to {point}")
        return path

    def close(self) -> ROI:
        """Trace from the last anchor back to the first and close the outline.

        Returns:
            The closed ROI.
        """
        if not self.is_started:
            raise RuntimeError("Live-wire session not started")
        if self.closed:
            return self.roi

        first = self.anchors[0]
        if len(self.anchors) > 1:
            self._wait_for(first)
            path = self.scissors.get_path(first)
            # Skip the last anchor (already present) and the first (start of outline)
            self.roi.add_points(path[1:-1])

        self.scissors.set_working(False)
        self.closed = True
        logger.info(f"Closed live-wire outline with {len(self.roi)} points")
        return self.roi

    def cancel(self) -> None:
        """Stop searching and drop anchors and outline."""
        self.scissors.set_working(False)
        self.anchors = []
        self.roi = ROI()
        self.closed = False
