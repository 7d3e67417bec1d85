"""Local edge costs between adjacent pixels.

The search expands over the 8-connected pixel grid and asks the cost
function for the cost of each step p -> q. Every cost is kept in [0, 1];
the bucket queue relies on that bound.

Cost functions are registered by name so the engine can be configured
with LiveWireConfig.cost_function.
"""

import logging
import math

from .FieldPreprocessor import ImageFields, grad_unit_vector
from .LiveWireDataStructures import Point, UnitVector
from .TrainingTables import TrainingTables

logger = logging.getLogger(__name__)

TWO_THIRDS_PI = 2.0 / (3.0 * math.pi)
SQRT1_2 = math.sqrt(0.5)


def _clamp01(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def _clamp_unit(value: float) -> float:
    if value < -1.0:
        return -1.0
    if value > 1.0:
        return 1.0
    return value


class CostFunction:
    """Base class for step costs over precomputed image fields.

    Each instance owns two scratch unit vectors reused by
    gradient_direction(), so separate engines never share state.
    """

    name = "base"

    def __init__(self, fields: ImageFields, training: TrainingTables):
        self.fields = fields
        self.training = training
        self._unit_p = UnitVector()
        self._unit_q = UnitVector()

    def gradient_direction(self, p: Point, q: Point) -> float:
        """Direction cost in [0, 1] for stepping from p to q.

        Low when the step runs along the edge at both pixels, i.e.
        perpendicular to both gradient vectors.
        """
        fields = self.fields
        up = grad_unit_vector(fields.grad_x, fields.grad_y, p.x, p.y, self._unit_p)
        uq = grad_unit_vector(fields.grad_x, fields.grad_y, q.x, q.y, self._unit_q)

        step_x = q.x - p.x
        step_y = q.y - p.y
        dp = up.y * step_x - up.x * step_y
        dq = uq.y * step_x - uq.x * step_y

        # Keep dp positive for consistency
        if dp < 0:
            dp = -dp
            dq = -dq

        if p.x != q.x and p.y != q.y:
            dp *= SQRT1_2
            dq *= SQRT1_2

        direction = TWO_THIRDS_PI * (math.acos(_clamp_unit(dp)) + math.acos(_clamp_unit(dq)))
        return _clamp01(direction)

    def dist(self, p: Point, q: Point) -> float:
        raise NotImplementedError


class ScissorsCostFunction(CostFunction):
    """Weighted gradient, Laplacian and direction cost.

    Uses the static weights until the training tables have been trained,
    then the trained weighting.
    """

    name = "intelligent_scissors"

    def dist(self, p: Point, q: Point) -> float:
        fields = self.fields
        grad = float(fields.gradient[q.y, q.x])

        if p.x == q.x or p.y == q.y:
            # Axis-aligned steps are shorter than diagonal ones
            grad *= SQRT1_2

        grad = _clamp01(grad)
        lap = _clamp01(float(fields.laplace[q.y, q.x]))
        direction = self.gradient_direction(p, q)

        training = self.training
        if training.trained:
            grad_t = _clamp01(training.trained_gradient(grad))
            edge_t = _clamp01(training.trained_edge(fields.greyscale.values[p.y, p.x]))
            inside_t = _clamp01(training.trained_inside(fields.inside[p.y, p.x]))
            outside_t = _clamp01(training.trained_outside(fields.outside[p.y, p.x]))

            return 0.3 * grad_t + 0.3 * lap + 0.1 * (direction + edge_t + inside_t + outside_t)

        return 0.43 * grad + 0.43 * lap + 0.11 * direction


class GradientCostFunction(CostFunction):
    """Gradient magnitude only; ignores the Laplacian, direction and training."""

    name = "gradient_magnitude"

    def dist(self, p: Point, q: Point) -> float:
        grad = float(self.fields.gradient[q.y, q.x])
        if p.x == q.x or p.y == q.y:
            grad *= SQRT1_2
        return _clamp01(grad)


COST_FUNCTIONS: dict[str, type[CostFunction]] = {
    ScissorsCostFunction.name: ScissorsCostFunction,
    GradientCostFunction.name: GradientCostFunction,
}


def get_cost_function(name: str) -> type[CostFunction]:
    """Resolve a cost function class by name.

    Raises:
        LookupError: If no cost function is registered under name.
    """
    try:
        return COST_FUNCTIONS[name]
    except KeyError:
        raise LookupError(
            f"Unknown cost function: '{name}' (available: {', '.join(sorted(COST_FUNCTIONS))})"
        ) from None
