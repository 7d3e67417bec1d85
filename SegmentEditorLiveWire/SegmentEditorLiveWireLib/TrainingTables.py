"""On-line training of the live-wire cost function.

A committed boundary tells us what the user's edge looks like. For each
feature (edge greyscale, gradient, inside and outside greyscale) we build
a histogram of the values seen along the last stretch of the committed
path, invert it so that frequent values become cheap, and smooth it into
a lookup table. The trained cost function reads these tables instead of
the raw feature values.

Ref: Mortensen & Barrett, Interactive Segmentation with Intelligent
Scissors, Graphical Models and Image Processing 60(5), 1998.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .FieldPreprocessor import ImageFields
from .LiveWireDataStructures import Point

logger = logging.getLogger(__name__)

# Five-tap smoothing kernel; truncated variants are used at the ends.
SMOOTHING_KERNEL = (0.05, 0.25, 0.4, 0.25, 0.05)
SMOOTHING_EDGE_KERNEL = (0.4, 0.5, 0.1)
SMOOTHING_NEAR_EDGE_KERNEL = (0.25, 0.4, 0.25, 0.1)


def training_index(granularity: int, value: float) -> int:
    """Quantize a feature value in [0, 1] to a table index."""
    idx = int(np.floor((granularity - 1) * float(value) + 0.5))
    return min(max(idx, 0), granularity - 1)


def smooth_table(buffer: np.ndarray) -> np.ndarray:
    """Smooth a weight table with the five-tap kernel.

    The first two and last two entries use truncated kernels that still
    sum to one, weighted towards the inner neighbours.
    """
    buffer = np.asarray(buffer, dtype=np.float64)
    n = len(buffer)
    out = np.empty(n, dtype=np.float64)

    k = SMOOTHING_KERNEL
    out[2 : n - 2] = (
        k[0] * buffer[0 : n - 4]
        + k[1] * buffer[1 : n - 3]
        + k[2] * buffer[2 : n - 2]
        + k[3] * buffer[3 : n - 1]
        + k[4] * buffer[4:n]
    )

    e = SMOOTHING_EDGE_KERNEL
    ne = SMOOTHING_NEAR_EDGE_KERNEL
    out[0] = e[0] * buffer[0] + e[1] * buffer[1] + e[2] * buffer[2]
    out[1] = ne[0] * buffer[0] + ne[1] * buffer[1] + ne[2] * buffer[2] + ne[3] * buffer[3]
    out[n - 2] = (
        ne[0] * buffer[n - 1] + ne[1] * buffer[n - 2] + ne[2] * buffer[n - 3] + ne[3] * buffer[n - 4]
    )
    out[n - 1] = e[0] * buffer[n - 1] + e[1] * buffer[n - 2] + e[2] * buffer[n - 3]
    return out


def default_table(granularity: int) -> np.ndarray:
    """Untrained table: the identity ramp, so lookups return the raw value."""
    return np.linspace(0.0, 1.0, granularity)


class TrainingTables:
    """Lookup tables mapping raw feature values to trained weights.

    Tables are rebuilt from scratch on every successful training call.
    When fewer than min_training_points points are supplied, training is
    skipped and the tables and trained flag are left as they were.
    """

    def __init__(
        self,
        edge_granularity: int = 256,
        gradient_granularity: int = 1024,
        inside_granularity: int = 256,
        outside_granularity: int = 256,
        min_training_points: int = 8,
        gradient_points_needed: int = 32,
    ):
        self.edge_granularity = edge_granularity
        self.gradient_granularity = gradient_granularity
        self.inside_granularity = inside_granularity
        self.outside_granularity = outside_granularity
        self.min_training_points = min_training_points
        self.gradient_points_needed = gradient_points_needed

        self.trained = False
        self.training_points: list[Point] = []
        self.reset()

    @classmethod
    def from_config(cls, config) -> TrainingTables:
        return cls(
            edge_granularity=config.edge_granularity,
            gradient_granularity=config.gradient_granularity,
            inside_granularity=config.inside_granularity,
            outside_granularity=config.outside_granularity,
            min_training_points=config.min_training_points,
            gradient_points_needed=config.gradient_points_needed,
        )

    def reset(self) -> None:
        """Restore default tables and clear the trained flag."""
        self.edge = default_table(self.edge_granularity)
        self.gradient = default_table(self.gradient_granularity)
        self.inside = default_table(self.inside_granularity)
        self.outside = default_table(self.outside_granularity)
        self.trained = False
        self.training_points = []

    # Lookups

    def trained_edge(self, value: float) -> float:
        return float(self.edge[training_index(self.edge_granularity, value)])

    def trained_gradient(self, value: float) -> float:
        return float(self.gradient[training_index(self.gradient_granularity, value)])

    def trained_inside(self, value: float) -> float:
        return float(self.inside[training_index(self.inside_granularity, value)])

    def trained_outside(self, value: float) -> float:
        return float(self.outside[training_index(self.outside_granularity, value)])

    # Training

    def train(self, points: Sequence[Point], fields: ImageFields) -> bool:
        """Rebuild all tables from the feature values along points.

        Args:
            points: Training points, most recent first.
            fields: Fields of the image the points belong to.

        Returns:
            True if the tables were rebuilt, False if there were too few
            points.
        """
        points = list(points)
        if len(points) < self.min_training_points:
            logger.debug(
                f"Skipping training: {len(points)} points, "
                f"need at least {self.min_training_points}"
            )
            return False

        self.training_points = points
        self.edge = self._calculate_training(self.edge_granularity, fields.greyscale.values, points)
        self.gradient = self._calculate_training(self.gradient_granularity, fields.gradient, points)
        self.inside = self._calculate_training(self.inside_granularity, fields.inside, points)
        self.outside = self._calculate_training(self.outside_granularity, fields.outside, points)

        if len(points) < self.gradient_points_needed:
            # A short path gives a spiky gradient map; fall back towards
            # the static weights
            self._add_in_static_gradient(len(points), self.gradient_points_needed)

        self.trained = True
        logger.debug(f"Trained cost function on {len(points)} points")
        return True

    def _calculate_training(
        self, granularity: int, values: np.ndarray, points: Sequence[Point]
    ) -> np.ndarray:
        """Histogram, invert, scale and smooth one feature."""
        buffer = np.zeros(granularity, dtype=np.float64)
        for p in points:
            buffer[training_index(granularity, values[p.y, p.x])] += 1

        max_count = max(1.0, float(buffer.max()))
        buffer = 1.0 - buffer / max_count

        return smooth_table(buffer)

    def _add_in_static_gradient(self, have: int, need: int) -> None:
        ramp = 1.0 - np.arange(self.gradient_granularity) * (need - have) / (
            need * self.gradient_granularity
        )
        self.gradient = np.minimum(self.gradient, ramp)
