"""Field preprocessing for the live-wire cost function.

Derives, once per image, the fields read by the cost function:

- greyscale: average of the RGB channels, scaled to [0, 1]
- gradient: inverted, normalized gradient magnitude (0 = strongest edge)
- laplace: thresholded Laplacian-of-Gaussian response (0 or 1)
- grad_x, grad_y: raw first differences
- inside, outside: greyscale sampled on each side of the local edge

All fields are numpy arrays in (y, x) ordering.
"""

import logging
import time
from dataclasses import dataclass
from typing import Union

import numpy as np

from .Exceptions import ConfigurationError
from .LiveWireDataStructures import UnitVector

logger = logging.getLogger(__name__)

# Guards the unit vector computation against zero gradients
GRADIENT_EPSILON = 1e-100

# Laplacian-of-Gaussian stencil offsets (dy, dx) and weights, centre excluded
_LAPLACE_TAPS = (
    (-2, 0, 1.0),
    (-1, -1, 1.0),
    (-1, 0, 2.0),
    (-1, 1, 1.0),
    (0, -2, 1.0),
    (0, -1, 2.0),
    (0, 1, 2.0),
    (0, 2, 1.0),
    (1, -1, 1.0),
    (1, 0, 2.0),
    (1, 1, 1.0),
    (2, 0, 1.0),
)
_LAPLACE_CENTRE = -16.0

PixelData = Union[bytes, bytearray, memoryview, np.ndarray, list]


class GreyscaleField:
    """Greyscale image with discrete derivative helpers.

    Differences are backward-differenced on the last row and column, i.e.
    the last column reuses the difference of the penultimate one.
    """

    def __init__(self, values: np.ndarray):
        self.values = np.asarray(values, dtype=np.float64)
        if self.values.ndim != 2:
            raise ValueError(f"Greyscale values must be 2D, got shape {self.values.shape}")

    @classmethod
    def from_rgba(cls, data: PixelData, width: int, height: int) -> "GreyscaleField":
        """Build the field from a flat RGBA buffer (values 0-255)."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(data, dtype=np.uint8)
        else:
            flat = np.asarray(data).ravel()

        expected = width * height * 4
        if flat.size != expected:
            raise ValueError(
                f"Pixel buffer has {flat.size} values, expected {expected} "
                f"for a {width}x{height} RGBA image"
            )

        rgba = flat.astype(np.float64).reshape(height, width, 4)
        return cls(rgba[..., :3].sum(axis=-1) / (3 * 255))

    @property
    def height(self) -> int:
        return self.values.shape[0]

    @property
    def width(self) -> int:
        return self.values.shape[1]

    def __getitem__(self, index):
        return self.values[index]

    def dx(self, x: int, y: int) -> float:
        if x + 1 == self.width:
            x -= 1
        return float(self.values[y, x + 1] - self.values[y, x])

    def dy(self, x: int, y: int) -> float:
        if y + 1 == self.height:
            y -= 1
        return float(self.values[y, x] - self.values[y + 1, x])

    def grad_magnitude(self, x: int, y: int) -> float:
        dx = self.dx(x, y)
        dy = self.dy(x, y)
        return float(np.sqrt(dx * dx + dy * dy))

    def laplace(self, x: int, y: int) -> float:
        """Laplacian-of-Gaussian response at an interior pixel.

        Raises:
            IndexError: If (x, y) is within 2 pixels of the image border.
        """
        if not (2 <= x < self.width - 2 and 2 <= y < self.height - 2):
            raise IndexError(f"Laplacian undefined at border pixel ({x}, {y})")

        lap = _LAPLACE_CENTRE * self.values[y, x]
        for dy, dx, weight in _LAPLACE_TAPS:
            lap += weight * self.values[y + dy, x + dx]
        return float(lap)

    def dx_array(self) -> np.ndarray:
        """Horizontal differences for the whole image."""
        g = self.values
        out = np.empty_like(g)
        out[:, :-1] = g[:, 1:] - g[:, :-1]
        out[:, -1] = out[:, -2]
        return out

    def dy_array(self) -> np.ndarray:
        """Vertical differences (top minus bottom) for the whole image."""
        g = self.values
        out = np.empty_like(g)
        out[:-1, :] = g[:-1, :] - g[1:, :]
        out[-1, :] = out[-2, :]
        return out

    def laplace_array(self) -> np.ndarray:
        """Laplacian response on the interior, NaN on the 2-pixel border."""
        g = self.values
        h, w = g.shape
        out = np.full_like(g, np.nan)
        if h < 5 or w < 5:
            return out

        lap = _LAPLACE_CENTRE * g[2 : h - 2, 2 : w - 2]
        for dy, dx, weight in _LAPLACE_TAPS:
            lap = lap + weight * g[2 + dy : h - 2 + dy, 2 + dx : w - 2 + dx]
        out[2 : h - 2, 2 : w - 2] = lap
        return out


@dataclass
class ImageFields:
    """Derived fields for one image, all shaped (height, width)."""

    width: int
    height: int
    greyscale: GreyscaleField
    gradient: np.ndarray
    laplace: np.ndarray
    grad_x: np.ndarray
    grad_y: np.ndarray
    inside: np.ndarray
    outside: np.ndarray


def compute_greyscale(data: PixelData, width: int, height: int) -> GreyscaleField:
    return GreyscaleField.from_rgba(data, width, height)


def compute_gradient(greyscale: GreyscaleField) -> np.ndarray:
    """Inverted gradient magnitude scaled to [0, 1].

    The last row and column copy the penultimate ones. A flat image (no
    gradient anywhere) has no edges to follow, so every pixel gets the
    maximum cost of 1.
    """
    dx = greyscale.dx_array()
    dy = greyscale.dy_array()
    gradient = np.sqrt(dx * dx + dy * dy)
    gradient[:, -1] = gradient[:, -2]
    gradient[-1, :] = gradient[-2, :]

    max_gradient = float(gradient.max())
    if max_gradient <= 0.0:
        logger.warning("Image has no intensity gradient; all gradient costs set to 1")
        return np.ones_like(gradient)

    return 1.0 - gradient / max_gradient


def compute_laplace(greyscale: GreyscaleField, threshold: float = 0.33) -> np.ndarray:
    """Binary Laplacian field: 1 above threshold and on the border, else 0."""
    lap = greyscale.laplace_array()
    laplace = np.ones_like(lap)
    interior = ~np.isnan(lap)
    laplace[interior] = (lap[interior] > threshold).astype(np.float64)
    return laplace


def compute_grad_x(greyscale: GreyscaleField) -> np.ndarray:
    return greyscale.dx_array()


def compute_grad_y(greyscale: GreyscaleField) -> np.ndarray:
    return greyscale.dy_array()


def grad_unit_vector(
    grad_x: np.ndarray, grad_y: np.ndarray, x: int, y: int, out: UnitVector
) -> UnitVector:
    """Write the unit gradient vector at (x, y) into out."""
    ox = float(grad_x[y, x])
    oy = float(grad_y[y, x])

    magnitude = max(np.sqrt(ox * ox + oy * oy), GRADIENT_EPSILON)

    out.x = ox / magnitude
    out.y = oy / magnitude
    return out


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5).astype(np.intp)


def compute_sides(
    edge_width: float, grad_x: np.ndarray, grad_y: np.ndarray, greyscale: GreyscaleField
) -> tuple[np.ndarray, np.ndarray]:
    """Sample greyscale on either side of each pixel's edge.

    The samples lie edge_width pixels away along the gradient rotated by 90
    degrees, clamped to the image bounds.

    Returns:
        Tuple of (inside, outside) arrays.
    """
    height, width = grad_x.shape
    magnitude = np.maximum(np.sqrt(grad_x * grad_x + grad_y * grad_y), GRADIENT_EPSILON)
    ux = grad_x / magnitude
    uy = grad_y / magnitude

    ys, xs = np.mgrid[0:height, 0:width]

    # (x, y) rotated by 90 degrees is (y, -x)
    ix = np.clip(_round_half_up(xs + edge_width * uy), 0, width - 1)
    iy = np.clip(_round_half_up(ys - edge_width * ux), 0, height - 1)
    ox = np.clip(_round_half_up(xs - edge_width * uy), 0, width - 1)
    oy = np.clip(_round_half_up(ys + edge_width * ux), 0, height - 1)

    inside = greyscale.values[iy, ix]
    outside = greyscale.values[oy, ox]
    return inside, outside


def build_fields(
    data: PixelData,
    width: int,
    height: int,
    edge_width: float = 2,
    laplace_threshold: float = 0.33,
) -> ImageFields:
    """Compute every derived field for an RGBA image.

    Args:
        data: Flat RGBA buffer of length width * height * 4.
        width: Image width in pixels.
        height: Image height in pixels.
        edge_width: Side sampling offset in pixels.
        laplace_threshold: Laplacian threshold for the binary field.

    Returns:
        ImageFields with all derived fields.
    """
    start_time = time.perf_counter()

    greyscale = compute_greyscale(data, width, height)
    grad_x = compute_grad_x(greyscale)
    grad_y = compute_grad_y(greyscale)
    inside, outside = compute_sides(edge_width, grad_x, grad_y, greyscale)

    fields = ImageFields(
        width=width,
        height=height,
        greyscale=greyscale,
        gradient=compute_gradient(greyscale),
        laplace=compute_laplace(greyscale, laplace_threshold),
        grad_x=grad_x,
        grad_y=grad_y,
        inside=inside,
        outside=outside,
    )

    elapsed = (time.perf_counter() - start_time) * 1000
    logger.debug(f"Computed live-wire fields for {width}x{height} image: {elapsed:.1f}ms")
    return fields


class FieldPreprocessor:
    """Builds ImageFields once the image dimensions are known."""

    def __init__(self, edge_width: float = 2, laplace_threshold: float = 0.33):
        self.edge_width = edge_width
        self.laplace_threshold = laplace_threshold
        self.width = -1
        self.height = -1

    def set_dimensions(self, width: int, height: int) -> None:
        if width < 2 or height < 2:
            raise ConfigurationError(f"Image must be at least 2x2 pixels, got {width}x{height}")
        self.width = width
        self.height = height

    @property
    def has_dimensions(self) -> bool:
        return self.width != -1 and self.height != -1

    def build(self, data: PixelData) -> ImageFields:
        """Derive all fields from the pixel buffer.

        Raises:
            ConfigurationError: If set_dimensions() has not been called.
            ValueError: If the buffer length does not match the dimensions.
        """
        if not self.has_dimensions:
            raise ConfigurationError("Dimensions have not been set.")

        return build_fields(
            data,
            self.width,
            self.height,
            edge_width=self.edge_width,
            laplace_threshold=self.laplace_threshold,
        )
