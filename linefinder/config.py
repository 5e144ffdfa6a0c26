"""
Configuration management for linefinder
"""

import math
import numbers
from dataclasses import dataclass, fields, replace, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from linefinder.exceptions import ConfigurationError

DEFAULT_CONFIG = {
    "hough": {
        "theta_min": -90.0,
        "theta_max": 89.0,
        "theta_step": 1.0,
        "rho_resolution": 1.0
    },
    "peaks": {
        "num_peaks": 1,
        "threshold": None,      # 0.5 * max(accumulator)
        "nhood_size": None      # smallest odd >= accumulator size / 50
    },
    "lines": {
        "fill_gap": 20.0,
        "min_length": 40.0,
        "num_lines": None
    }
}


def _is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def validate_nhood_size(nhood_size: Any) -> Tuple[int, int]:
    """Check a suppression window and return it as a tuple of two ints."""
    try:
        rows, cols = nhood_size
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"nhood_size must be a pair of odd positive integers, got {nhood_size!r}")
    for value in (rows, cols):
        if not _is_int(value) or value < 1 or value % 2 == 0:
            raise ConfigurationError(
                f"nhood_size must be a pair of odd positive integers, got {nhood_size!r}")
    return int(rows), int(cols)


def validate_num_peaks(num_peaks: Any, name: str = "num_peaks") -> int:
    if not _is_int(num_peaks) or num_peaks < 1:
        raise ConfigurationError(f"{name} must be an integer >= 1, got {num_peaks!r}")
    return int(num_peaks)


def validate_non_negative(value: Any, name: str) -> float:
    if not _is_number(value) or not math.isfinite(value) or value < 0:
        raise ConfigurationError(f"{name} must be a finite number >= 0, got {value!r}")
    return float(value)


def validate_theta_range(theta_min: Any, theta_max: Any, theta_step: Any):
    for name, value in (("theta_min", theta_min), ("theta_max", theta_max),
                        ("theta_step", theta_step)):
        if not _is_number(value) or not math.isfinite(value):
            raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
    if theta_min >= theta_max:
        raise ConfigurationError(
            f"theta_min ({theta_min}) must be smaller than theta_max ({theta_max})")
    if theta_step <= 0:
        raise ConfigurationError(f"theta_step must be > 0, got {theta_step!r}")


def validate_rho_resolution(rho_resolution: Any) -> float:
    if not _is_number(rho_resolution) or not math.isfinite(rho_resolution) or rho_resolution <= 0:
        raise ConfigurationError(f"rho_resolution must be > 0, got {rho_resolution!r}")
    return float(rho_resolution)


def image_diagonal(shape: Tuple[int, ...]) -> int:
    """Ceiling of the image diagonal, the largest possible |rho|."""
    height, width = shape[:2]
    return int(math.ceil(math.hypot(width, height)))


@dataclass(frozen=True)
class DetectionConfig:
    """Immutable parameter set for one detection run."""

    theta_min: float = -90.0
    theta_max: float = 89.0
    theta_step: float = 1.0
    rho_resolution: float = 1.0
    nhood_size: Optional[Tuple[int, int]] = None
    num_peaks: int = 1
    threshold: Optional[float] = None
    fill_gap: float = 20.0
    min_length: float = 40.0
    num_lines: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigurationError if any parameter is out of range."""
        validate_theta_range(self.theta_min, self.theta_max, self.theta_step)
        validate_rho_resolution(self.rho_resolution)
        if self.nhood_size is not None:
            # lists from YAML become tuples so the config stays hashable
            object.__setattr__(self, "nhood_size", validate_nhood_size(self.nhood_size))
        validate_num_peaks(self.num_peaks)
        if self.threshold is not None:
            validate_non_negative(self.threshold, "threshold")
        validate_non_negative(self.fill_gap, "fill_gap")
        validate_non_negative(self.min_length, "min_length")
        if self.num_lines is not None:
            validate_num_peaks(self.num_lines, "num_lines")

    def replace(self, **changes) -> "DetectionConfig":
        """Return a copy with ``changes`` applied (validated)."""
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigurationError(f"Unknown parameters: {sorted(unknown)}")
        return replace(self, **changes)

    def resolve(self, image_shape: Tuple[int, ...]) -> "DetectionConfig":
        """
        Apply the ``num_lines`` shortcut for an image of the given shape.

        With ``num_lines`` set, every peak is accepted (threshold 0), gaps up
        to the image diagonal are bridged, and exactly ``num_lines`` peaks are
        requested.
        """
        if self.num_lines is None:
            return self
        return replace(
            self,
            threshold=0.0,
            fill_gap=float(image_diagonal(image_shape)),
            num_peaks=self.num_lines,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.nhood_size is not None:
            data["nhood_size"] = list(self.nhood_size)
        return data

    @classmethod
    def from_dict(cls, mapping: Optional[Mapping[str, Any]]) -> "DetectionConfig":
        """
        Build a config from a flat or sectioned mapping.

        Keys are matched case-insensitively with underscores ignored, so
        ``fillGap``, ``FILL_GAP`` and ``fill_gap`` all name the same field.
        """
        if not mapping:
            return cls()
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(mapping).__name__}")

        flat: Dict[str, Any] = {}
        for key, value in mapping.items():
            if key in DEFAULT_CONFIG and isinstance(value, Mapping):
                flat.update(value)
            else:
                flat[key] = value

        lookup = {f.name.replace("_", "").lower(): f.name for f in fields(cls)}
        kwargs = {}
        for key, value in flat.items():
            name = lookup.get(str(key).replace("_", "").lower())
            if name is None:
                raise ConfigurationError(f"Unknown parameter: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DetectionConfig":
        """Load a config from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})


def load_config(source: Union[None, str, Path, Mapping[str, Any], DetectionConfig] = None) -> DetectionConfig:
    """Coerce None, a mapping, a YAML path or a config into a DetectionConfig."""
    if source is None:
        return DetectionConfig()
    if isinstance(source, DetectionConfig):
        return source
    if isinstance(source, (str, Path)):
        return DetectionConfig.from_yaml(source)
    return DetectionConfig.from_dict(source)
