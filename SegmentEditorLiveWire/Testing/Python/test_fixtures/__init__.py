"""Test fixtures and synthetic data generators for live-wire tests."""

from .synthetic_image import (
    create_disk_image,
    create_ramp_image,
    create_random_image,
    create_uniform_image,
    create_vertical_edge_image,
    grey_to_rgba,
)

__all__ = [
    "grey_to_rgba",
    "create_uniform_image",
    "create_vertical_edge_image",
    "create_ramp_image",
    "create_disk_image",
    "create_random_image",
]
