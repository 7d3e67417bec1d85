#!/usr/bin/env python3
"""Trace a live-wire outline on an image from the command line.

Places the given anchors in order, commits the live-wire path between
each pair (training the cost function as it goes), optionally closes the
outline back to the first anchor, and prints the resulting ROI.

Usage:
    python scripts/trace_livewire.py [--image IMAGE.npy] [--config CONFIG.yaml]
        --anchor X Y [--anchor X Y ...] [--close] [--json]

Without --image, a synthetic 64x64 bright disk is traced.

Examples:
    # Trace around the synthetic disk
    python scripts/trace_livewire.py --anchor 32 16 --anchor 48 32 \\
        --anchor 32 48 --anchor 16 32 --close

    # Trace on a saved greyscale array with a custom config
    python scripts/trace_livewire.py --image slice.npy --config livewire.yaml \\
        --anchor 10 20 --anchor 40 25 --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import numpy as np

# Setup paths
SCRIPT_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "SegmentEditorLiveWire"))

from SegmentEditorLiveWireLib import (  # noqa: E402
    LiveWireConfig,
    LiveWireSession,
    Point,
    Scissors,
)

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Trace a live-wire outline")
    parser.add_argument("--image", type=Path, help="Image as .npy (HxW grey, HxWx3 or HxWx4)")
    parser.add_argument("--config", type=Path, help="Path to YAML config file")
    parser.add_argument(
        "--anchor",
        nargs=2,
        type=int,
        action="append",
        metavar=("X", "Y"),
        required=True,
        help="Anchor point; repeat for each anchor",
    )
    parser.add_argument("--close", action="store_true", help="Close the outline")
    parser.add_argument("--json", action="store_true", help="Output ROI as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args()


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Convert a 0-255 image array to a flat RGBA buffer."""
    image = np.clip(image, 0, 255).astype(np.uint8)
    if image.ndim == 2:
        image = np.stack([image, image, image], axis=-1)
    if image.shape[-1] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=-1)
    if image.ndim != 3 or image.shape[-1] != 4:
        raise ValueError(f"Unsupported image shape: {image.shape}")
    return image.ravel()


def synthetic_disk(size: int = 64, radius: float = 16.0) -> np.ndarray:
    """Bright disk centred in a dark square image."""
    y, x = np.ogrid[:size, :size]
    mask = (x - size // 2) ** 2 + (y - size // 2) ** 2 <= radius**2
    return np.where(mask, 220.0, 30.0)


def trace(image: np.ndarray, config: LiveWireConfig, anchors: list[Point], close: bool):
    """Run a session over the anchors and return it."""
    height, width = image.shape[:2]

    scissors = Scissors(config)
    scissors.set_dimensions(width, height)
    scissors.set_data(to_rgba(image))

    session = LiveWireSession(scissors)
    session.start(anchors[0])
    for anchor in anchors[1:]:
        path = session.commit(anchor)
        logger.info(f"Segment to ({anchor.x}, {anchor.y}): {len(path)} points")

    if close:
        session.close()
    return session


def main():
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    config = LiveWireConfig.load(args.config) if args.config else LiveWireConfig()

    if args.image:
        if not args.image.exists():
            logger.error(f"Image not found: {args.image}")
            sys.exit(1)
        image = np.load(args.image)
    else:
        image = synthetic_disk()

    anchors = [Point(x, y) for x, y in args.anchor]

    start_time = time.perf_counter()
    try:
        session = trace(image, config, anchors, args.close)
    except (IndexError, ValueError) as e:
        logger.error(f"Tracing failed: {e}")
        sys.exit(1)
    elapsed = (time.perf_counter() - start_time) * 1000

    points = session.roi.to_array().tolist()
    if args.json:
        print(json.dumps({"closed": session.closed, "points": points}))
    else:
        print(f"ROI: {len(points)} points, closed={session.closed}, {elapsed:.1f}ms")
        for x, y in points:
            print(f"  {x} {y}")


if __name__ == "__main__":
    main()
