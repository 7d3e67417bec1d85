"""Configuration for the live-wire engine.

Holds the tunable options of the search (batch size, bucket queue
resolution), the side sampling offset and the training table sizes.
Configurations can be built in code, from a plain dictionary, or from a
YAML file.

Example YAML:
    search:
      points_per_batch: 500
      search_granularity_bits: 8
    training:
      training_length: 32
      gradient_points_needed: 32
    fields:
      edge_width: 2
      laplace_threshold: 0.33
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from .Exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Sections accepted in YAML files. Keys are flattened into the dataclass.
_SECTIONS = ("search", "training", "fields", "cost")


@dataclass
class LiveWireConfig:
    """Options recognized by the live-wire engine."""

    # Search
    points_per_batch: int = 500
    search_granularity_bits: int = 8

    # Training
    training_length: int = 32
    min_training_points: int = 8
    gradient_points_needed: int = 32
    edge_granularity: int = 256
    gradient_granularity: int = 1024
    inside_granularity: int = 256
    outside_granularity: int = 256

    # Fields
    edge_width: int = 2
    laplace_threshold: float = 0.33
    cache_fields: bool = True

    # Cost
    cost_function: str = "intelligent_scissors"

    source_path: Optional[Path] = field(default=None, compare=False)

    @property
    def search_granularity(self) -> int:
        """Number of buckets in the search queue."""
        return 1 << self.search_granularity_bits

    def validate(self) -> LiveWireConfig:
        """Check option ranges.

        Returns:
            The config itself, for chaining.

        Raises:
            ConfigurationError: If any option is out of range.
        """
        if self.points_per_batch < 1:
            raise ConfigurationError(
                f"points_per_batch must be positive, got {self.points_per_batch}"
            )
        if not 1 <= self.search_granularity_bits <= 16:
            raise ConfigurationError(
                f"search_granularity_bits must be in [1, 16], got {self.search_granularity_bits}"
            )
        for name in (
            "edge_granularity",
            "gradient_granularity",
            "inside_granularity",
            "outside_granularity",
        ):
            value = getattr(self, name)
            # The smoothing kernel reads two buckets on each side
            if value < 5:
                raise ConfigurationError(f"{name} must be at least 5, got {value}")
        if self.edge_width < 0:
            raise ConfigurationError(f"edge_width must not be negative, got {self.edge_width}")
        if self.min_training_points < 1:
            raise ConfigurationError(
                f"min_training_points must be positive, got {self.min_training_points}"
            )
        if self.training_length < self.min_training_points:
            raise ConfigurationError(
                f"training_length ({self.training_length}) is below "
                f"min_training_points ({self.min_training_points})"
            )
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LiveWireConfig:
        """Create a config from a dictionary.

        Nested section dictionaries (search, training, fields, cost) are
        flattened. Unknown keys are logged and ignored.

        Args:
            data: Option values.

        Returns:
            Validated LiveWireConfig.
        """
        flat: dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key in _SECTIONS and isinstance(value, dict):
                flat.update(value)
            else:
                flat[key] = value

        known = {f.name for f in fields(cls) if f.name != "source_path"}
        kwargs = {}
        for key, value in flat.items():
            if key in known:
                kwargs[key] = value
            else:
                logger.warning(f"Ignoring unknown live-wire option '{key}'")

        return cls(**kwargs).validate()

    @classmethod
    def load(cls, config_path: Path | str) -> LiveWireConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to YAML config file.

        Returns:
            Loaded LiveWireConfig.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ConfigurationError: If an option is out of range.
        """
        import yaml

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        config = cls.from_dict(data or {})
        config.source_path = config_path

        logger.info(f"Loaded live-wire config from {config_path}")
        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary (without the source path)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "source_path"}
