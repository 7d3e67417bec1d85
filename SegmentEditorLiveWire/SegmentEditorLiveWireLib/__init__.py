"""SegmentEditorLiveWireLib - Intelligent scissors boundary tracing.

This library computes live-wire paths on raster images: minimum-cost
paths from a seed pixel to every other pixel, over an edge cost that
can be trained on the boundary segments the user accepts.
"""

from .BucketQueue import BucketQueue
from .CostFunction import (
    COST_FUNCTIONS,
    CostFunction,
    GradientCostFunction,
    ScissorsCostFunction,
    get_cost_function,
)
from .Exceptions import ConfigurationError
from .FieldCache import CacheStats, FieldCache, image_key
from .FieldPreprocessor import (
    FieldPreprocessor,
    GreyscaleField,
    ImageFields,
    build_fields,
    compute_gradient,
    compute_laplace,
    compute_sides,
    grad_unit_vector,
)
from .LiveWireConfig import LiveWireConfig
from .LiveWireDataStructures import BatchEntry, Point, UnitVector
from .LiveWireSession import ROI, LiveWireSession
from .Scissors import Scissors, SearchState
from .TrainingTables import TrainingTables, smooth_table, training_index

__all__ = [
    # Engine
    "Scissors",
    "SearchState",
    "BucketQueue",
    # Fields
    "FieldPreprocessor",
    "GreyscaleField",
    "ImageFields",
    "build_fields",
    "compute_gradient",
    "compute_laplace",
    "compute_sides",
    "grad_unit_vector",
    "FieldCache",
    "CacheStats",
    "image_key",
    # Cost
    "CostFunction",
    "ScissorsCostFunction",
    "GradientCostFunction",
    "COST_FUNCTIONS",
    "get_cost_function",
    "TrainingTables",
    "smooth_table",
    "training_index",
    # Session
    "LiveWireSession",
    "ROI",
    # Types and config
    "Point",
    "UnitVector",
    "BatchEntry",
    "LiveWireConfig",
    "ConfigurationError",
]
