"""Pytest configuration and fixtures for SegmentEditorLiveWire tests."""

import importlib.util
import os
import sys

import pytest

# Add module and test directories for imports when not installed
_THIS_DIR = os.path.dirname(os.path.abspath(__file__))
_MODULE_DIR = os.path.dirname(os.path.dirname(_THIS_DIR))
for _path in (_MODULE_DIR, _THIS_DIR):
    if _path not in sys.path:
        sys.path.insert(0, _path)

from SegmentEditorLiveWireLib import LiveWireConfig, Scissors  # noqa: E402
from test_fixtures.synthetic_image import (  # noqa: E402
    create_disk_image,
    create_uniform_image,
    create_vertical_edge_image,
)

HAS_YAML = importlib.util.find_spec("yaml") is not None


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "requires_yaml: mark test as requiring PyYAML")
    config.addinivalue_line("markers", "slow: mark test as running a full-image search")


# Skip decorators
requires_yaml = pytest.mark.skipif(not HAS_YAML, reason="PyYAML not available")


def make_scissors(data, width, height, config=None):
    """Create an engine with the image already loaded."""
    scissors = Scissors(config)
    scissors.set_dimensions(width, height)
    scissors.set_data(data)
    return scissors


@pytest.fixture
def default_config():
    """Default engine configuration."""
    return LiveWireConfig()


@pytest.fixture
def edge_image():
    """8x8 image with a strong vertical edge at column 4."""
    return create_vertical_edge_image(size=(8, 8), edge_column=4)


@pytest.fixture
def flat_image():
    """16x16 image with no gradient."""
    return create_uniform_image(size=(16, 16), intensity=100.0)


@pytest.fixture
def disk_image():
    """32x32 bright disk of radius 8 on a dark background, with its mask."""
    return create_disk_image(size=(32, 32), radius=8.0)


@pytest.fixture
def edge_scissors(edge_image):
    """Engine loaded with the 8x8 vertical edge image."""
    return make_scissors(edge_image, 8, 8)
