"""
Configuration management for the DoG spot detector.
Settings are plain dataclasses that can be saved to and loaded from JSON or YAML.
"""

from dataclasses import dataclass, fields, asdict
from typing import Dict, Any
from pathlib import Path
import json
import logging
import math

import yaml


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DogDetectorSettings:
    """Settings for one DoG detection call."""

    # Detection
    expected_radius: float = 1.0  # Physical units, same as calibration
    threshold: float = 0.0  # Minimum raw intensity at a peak pixel

    # Optional stages
    use_median_filter: bool = False
    do_subpixel_localization: bool = True

    # Median filter footprint half-width in pixels (3x3 for 1)
    median_radius: int = 1

    # Sub-pixel localization
    max_subpixel_moves: int = 4

    # Execution context for the scale-space stage
    num_threads: int = 1

    def validate(self) -> None:
        """Check that every setting is usable.

        Raises:
            ValueError: If a setting is out of range.
        """
        if not math.isfinite(self.expected_radius) or self.expected_radius <= 0:
            raise ValueError(f"expected_radius must be a positive number, got {self.expected_radius}")
        if not math.isfinite(self.threshold):
            raise ValueError(f"threshold must be finite, got {self.threshold}")
        if self.median_radius < 1:
            raise ValueError(f"median_radius must be >= 1, got {self.median_radius}")
        if self.max_subpixel_moves < 0:
            raise ValueError(f"max_subpixel_moves must be >= 0, got {self.max_subpixel_moves}")
        if self.num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {self.num_threads}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary.

        Returns:
            Dict[str, Any]: Settings as dictionary.
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DogDetectorSettings':
        """Build settings from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown detector settings: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, filepath: Path, format: str = 'auto') -> None:
        """Save settings to file.

        Args:
            filepath: Path to save settings.
            format: File format ('json', 'yaml', or 'auto' to detect from extension).
        """
        filepath = Path(filepath)

        if format == 'auto':
            format = 'yaml' if filepath.suffix.lower() in ['.yml', '.yaml'] else 'json'

        settings_dict = self.to_dict()

        with open(filepath, 'w') as f:
            if format == 'yaml':
                yaml.dump(settings_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(settings_dict, f, indent=2)

    @classmethod
    def load(cls, filepath: Path) -> 'DogDetectorSettings':
        """Load settings from JSON or YAML file.

        Args:
            filepath: Path to settings file.

        Returns:
            DogDetectorSettings: Loaded settings object.
        """
        filepath = Path(filepath)

        with open(filepath, 'r') as f:
            if filepath.suffix.lower() in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {filepath} does not contain a mapping")

        return cls.from_dict(data)


def create_default_settings(**overrides: Any) -> DogDetectorSettings:
    """Create detector settings with optional overrides.

    Args:
        **overrides: Field values replacing the defaults.

    Returns:
        DogDetectorSettings: Validated settings.
    """
    settings = DogDetectorSettings.from_dict(overrides)
    settings.validate()
    return settings
