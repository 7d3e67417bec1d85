"""Intelligent scissors shortest-path engine.

Computes minimum-cost paths from a seed pixel to every pixel of the image
with a Dijkstra-style expansion over the 8-connected grid. The expansion
is incremental: each do_work() call finalizes at most points_per_batch
pixels and returns them, so a caller can run the search from a UI timer
and draw the live-wire to the cursor as soon as the cursor pixel has been
reached.

Typical use:
    scissors = Scissors()
    scissors.set_dimensions(width, height)
    scissors.set_data(rgba_buffer)
    scissors.set_point(Point(10, 20))
    while not scissors.is_done:
        batch = scissors.do_work()
    path = scissors.get_path(Point(40, 25))

Ref: Eric N. Mortensen, William A. Barrett, Interactive Segmentation with
Intelligent Scissors, Graphical Models and Image Processing 60(5), 1998.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Optional, Sequence

import numpy as np

from .BucketQueue import BucketQueue
from .CostFunction import CostFunction, get_cost_function
from .FieldCache import FieldCache
from .FieldPreprocessor import FieldPreprocessor, ImageFields, PixelData
from .LiveWireConfig import LiveWireConfig
from .LiveWireDataStructures import BatchEntry, Point
from .TrainingTables import TrainingTables

logger = logging.getLogger(__name__)


class SearchState:
    """Mutable state of the search from one seed.

    Once a pixel is popped from the queue it is marked visited and its
    cost and parent are final.
    """

    def __init__(self, width: int, height: int, seed: Point, bits: int):
        self.seed = seed
        self.visited = np.zeros((height, width), dtype=bool)
        self.cost = np.full((height, width), np.inf, dtype=np.float64)
        self.parents = np.full((height, width), None, dtype=object)
        self.queue = BucketQueue(bits, self.cost)
        self.visited_count = 0

        self.cost[seed.y, seed.x] = 0.0
        self.queue.push(seed)


class Scissors:
    """Live-wire engine for one image at a time.

    Args:
        config: Engine options. Defaults to LiveWireConfig().
        field_cache: Optional cache of derived fields shared between
            engines. A private cache is created when config.cache_fields
            is set and none is given.
    """

    def __init__(
        self,
        config: Optional[LiveWireConfig] = None,
        field_cache: Optional[FieldCache] = None,
    ):
        self.config = (config or LiveWireConfig()).validate()
        self.preprocessor = FieldPreprocessor(
            edge_width=self.config.edge_width,
            laplace_threshold=self.config.laplace_threshold,
        )
        if field_cache is None and self.config.cache_fields:
            field_cache = FieldCache()
        self.field_cache = field_cache

        self.cost_function_class = get_cost_function(self.config.cost_function)
        self.training = TrainingTables.from_config(self.config)

        self.fields: Optional[ImageFields] = None
        self.cost_function: Optional[CostFunction] = None
        self.state: Optional[SearchState] = None
        self.working = False

    # Image setup

    @property
    def width(self) -> int:
        return self.preprocessor.width

    @property
    def height(self) -> int:
        return self.preprocessor.height

    def set_dimensions(self, width: int, height: int) -> None:
        self.preprocessor.set_dimensions(width, height)

    def set_data(self, data: PixelData) -> None:
        """Load a flat RGBA pixel buffer and derive the cost fields.

        Any previous search is discarded and training is reset.

        Raises:
            ConfigurationError: If set_dimensions() has not been called.
            ValueError: If the buffer length does not match the dimensions.
        """
        if self.field_cache is not None and self.preprocessor.has_dimensions:
            fields = self.field_cache.get_or_compute(
                data, self.width, self.height, self.preprocessor.build
            )
        else:
            fields = self.preprocessor.build(data)

        self.fields = fields
        self.cost_function = self.cost_function_class(fields, self.training)
        self.training.reset()
        self.state = None
        self.working = False

        logger.info(
            f"Loaded {self.width}x{self.height} image for live-wire "
            f"(cost function: {self.cost_function.name})"
        )

    # Search control

    def set_working(self, working: bool) -> None:
        """Pause (False) or resume (True) the search without losing state."""
        self.working = working

    @property
    def is_working(self) -> bool:
        return self.working

    def set_point(self, seed: Point) -> None:
        """Start a new search from seed, discarding the previous one.

        Raises:
            RuntimeError: If no image data has been loaded.
            IndexError: If seed lies outside the image.
        """
        if self.fields is None:
            raise RuntimeError("No image data loaded; call set_data() first")
        if not self.contains(seed):
            raise IndexError(f"Seed {seed} outside {self.width}x{self.height} image")

        seed = Point(int(seed.x), int(seed.y))
        self.state = SearchState(
            self.width, self.height, seed, self.config.search_granularity_bits
        )
        self.working = True
        logger.info(f"Live-wire seed set at ({seed.x}, {seed.y})")

    def contains(self, point: Point) -> bool:
        return 0 <= point.x < self.width and 0 <= point.y < self.height

    def adj(self, p: Point) -> list[Point]:
        """8-connected neighbours of p inside the image, row by row."""
        sx = max(p.x - 1, 0)
        sy = max(p.y - 1, 0)
        ex = min(p.x + 1, self.width - 1)
        ey = min(p.y + 1, self.height - 1)

        neighbours = []
        for y in range(sy, ey + 1):
            for x in range(sx, ex + 1):
                if x != p.x or y != p.y:
                    neighbours.append(Point(x, y))
        return neighbours

    def dist(self, p: Point, q: Point) -> float:
        """Cost of the step from p to an adjacent pixel q."""
        if self.cost_function is None:
            raise RuntimeError("No image data loaded; call set_data() first")
        return self.cost_function.dist(p, q)

    def do_work(self) -> Optional[list[BatchEntry]]:
        """Finalize up to points_per_batch more pixels.

        Returns:
            The newly finalized pixels, each paired with its parent (None
            for the seed), in the order they were finalized. An empty list
            once every pixel has been reached. None while paused or before
            a seed has been set.
        """
        if not self.working or self.state is None:
            return None

        start_time = time.perf_counter()

        state = self.state
        queue = state.queue
        visited = state.visited
        cost = state.cost
        parents = state.parents
        dist = self.cost_function.dist
        max_step = queue.max_step
        limit = self.config.points_per_batch

        new_points: list[BatchEntry] = []
        while not queue.is_empty() and len(new_points) < limit:
            p = queue.pop()
            visited[p.y, p.x] = True
            state.visited_count += 1
            new_points.append((p, parents[p.y, p.x]))

            p_cost = cost[p.y, p.x]
            for q in self.adj(p):
                if visited[q.y, q.x]:
                    continue

                candidate = p_cost + min(dist(p, q), max_step)
                q_cost = cost[q.y, q.x]
                if candidate < q_cost:
                    if not math.isinf(q_cost):
                        # Already queued; must remove it before its cost changes
                        queue.remove(q)

                    cost[q.y, q.x] = candidate
                    parents[q.y, q.x] = p
                    queue.push(q)

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Live-wire batch: {len(new_points)} pixels in {elapsed:.1f}ms "
            f"({state.visited_count}/{self.width * self.height} visited)"
        )
        if new_points and queue.is_empty():
            logger.info(f"Live-wire search from {state.seed} complete")

        return new_points

    def run(self, max_batches: Optional[int] = None) -> int:
        """Call do_work() until the search finishes, pauses, or max_batches.

        Returns:
            Number of pixels finalized.
        """
        total = 0
        batches = 0
        while max_batches is None or batches < max_batches:
            batch = self.do_work()
            if not batch:
                break
            total += len(batch)
            batches += 1
        return total

    # Search queries

    @property
    def is_done(self) -> bool:
        """True once every reachable pixel has been finalized."""
        return self.state is not None and self.state.queue.is_empty()

    @property
    def visited_count(self) -> int:
        return 0 if self.state is None else self.state.visited_count

    @property
    def seed(self) -> Optional[Point]:
        return None if self.state is None else self.state.seed

    def is_visited(self, point: Point) -> bool:
        return (
            self.state is not None
            and self.contains(point)
            and bool(self.state.visited[point.y, point.x])
        )

    def get_cost(self, point: Point) -> float:
        """Current path cost to point (infinite if not reached or outside)."""
        if self.state is None or not self.contains(point):
            return math.inf
        return float(self.state.cost[point.y, point.x])

    def get_parent(self, point: Point) -> Optional[Point]:
        if self.state is None or not self.contains(point):
            return None
        return self.state.parents[point.y, point.x]

    def get_path(self, point: Point) -> list[Point]:
        """Live-wire path from the seed to point.

        Returns:
            Points ordered from the seed to point, or an empty list if
            point has not been visited yet.
        """
        if not self.is_visited(point):
            logger.debug(f"No live-wire path yet to {point}")
            return []

        parents = self.state.parents
        path = []
        current: Optional[Point] = Point(int(point.x), int(point.y))
        limit = self.width * self.height
        while current is not None and len(path) < limit:
            path.append(current)
            current = parents[current.y, current.x]

        path.reverse()
        return path

    # Training

    @property
    def trained(self) -> bool:
        return self.training.trained

    def find_training_points(self, point: Point) -> list[Point]:
        """Walk parents from point, collecting at most training_length points."""
        points: list[Point] = []
        if self.state is None:
            return points

        parents = self.state.parents
        current: Optional[Point] = point
        while current is not None and len(points) < self.config.training_length:
            points.append(current)
            current = parents[current.y, current.x]
        return points

    def train(self, path: Sequence[Point]) -> bool:
        """Adapt the cost function to a committed path.

        The training points are gathered by walking parents back from the
        last point of path, so the current search must still be the one
        that produced path.

        Returns:
            True if training happened, False if there were too few points.
        """
        if self.fields is None or not path:
            return False

        points = self.find_training_points(path[-1])
        return self.training.train(points, self.fields)

    def reset_training(self) -> None:
        """Go back to the static weighting; tables are kept."""
        self.training.trained = False
