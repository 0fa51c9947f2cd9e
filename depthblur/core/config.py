"""Motion blur configuration: tunables, strategy selection and frame context."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Tuple, Optional, Dict, Any, Union
import numpy as np
import yaml


ACCUMULATION_POLICIES = ("symmetric", "gated")
CAMERA_MODELS = ("perspective", "matrix")

# Scale tying motion-vector units to the blur extent.
BLUR_DISTANCE_SCALE = 0.1
SIGMA_FLOOR = 1e-4
WEIGHT_EPSILON = 1e-4


@dataclass
class BlurConfig:
    """Deployment configuration for depth-aware motion blur.

    Each range parameter is (min, max) and mirrors the host control range;
    `sample` draws uniformly from them, `defaults` returns the default values.
    Exactly one accumulation policy and one camera model are used per deployment.
    """
    # Strategy
    accumulation: str = "gated"  # "symmetric" | "gated"
    camera_model: str = "perspective"  # "perspective" | "matrix"

    # Blur extent
    blur_length: Tuple[float, float] = (0.1, 2.0)
    max_samples: Tuple[int, int] = (3, 32)
    high_quality: bool = False

    # Weighting
    depth_threshold: Tuple[float, float] = (0.001, 0.1)
    gaussian_sigma: Tuple[float, float] = (0.1, 3.0)
    bilateral_depth_sigma: Tuple[float, float] = (0.001, 0.1)
    weight_epsilon: float = WEIGHT_EPSILON

    # Defaults
    default_blur_length: float = 0.25
    default_max_samples: int = 5
    default_depth_threshold: float = 0.01
    default_gaussian_sigma: float = 1.0
    default_bilateral_depth_sigma: float = 0.01

    # Rows per evaluation tile; 0 evaluates the whole frame at once
    tile_rows: int = 0

    device: str = "cpu"

    def __post_init__(self):
        if self.accumulation not in ACCUMULATION_POLICIES:
            raise ValueError(f"Unknown accumulation policy: {self.accumulation}")
        if self.camera_model not in CAMERA_MODELS:
            raise ValueError(f"Unknown camera model: {self.camera_model}")
        # YAML and dict round trips hand back lists
        for name in ("blur_length", "max_samples", "depth_threshold", "gaussian_sigma", "bilateral_depth_sigma"):
            setattr(self, name, tuple(getattr(self, name)))

    def defaults(self) -> "BlurParams":
        """Default parameters for a single frame."""
        return BlurParams(
            blur_length=self.default_blur_length,
            max_samples=self.default_max_samples,
            high_quality=self.high_quality,
            depth_threshold=self.default_depth_threshold,
            gaussian_sigma=self.default_gaussian_sigma,
            bilateral_depth_sigma=self.default_bilateral_depth_sigma,
            accumulation=self.accumulation,
            weight_epsilon=self.weight_epsilon,
            device=self.device,
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> "BlurParams":
        """Sample random parameters from config ranges."""
        if rng is None:
            rng = np.random.default_rng()

        def _uniform(r: Tuple[float, float]) -> float:
            return float(rng.uniform(r[0], r[1]))

        return BlurParams(
            blur_length=_uniform(self.blur_length),
            max_samples=int(rng.integers(self.max_samples[0], self.max_samples[1], endpoint=True)),
            high_quality=self.high_quality,
            depth_threshold=_uniform(self.depth_threshold),
            gaussian_sigma=_uniform(self.gaussian_sigma),
            bilateral_depth_sigma=_uniform(self.bilateral_depth_sigma),
            accumulation=self.accumulation,
            weight_epsilon=self.weight_epsilon,
            device=self.device,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BlurConfig":
        return cls(**d)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "BlurConfig":
        """Load config from a YAML file; a top-level `blur` section is used if present."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("blur", data))


@dataclass
class BlurParams:
    """Concrete tunables for a single frame."""
    blur_length: float = 0.25
    max_samples: int = 5
    high_quality: bool = False
    depth_threshold: float = 0.01
    gaussian_sigma: float = 1.0
    bilateral_depth_sigma: float = 0.01
    accumulation: str = "gated"
    weight_epsilon: float = WEIGHT_EPSILON
    device: str = "cpu"

    def sanitized(self) -> "BlurParams":
        """Copy with degenerate values clamped.

        Sigmas are floored at SIGMA_FLOOR and max_samples at 1 so the weight
        functions and the sample step never divide by zero.
        """
        if self.accumulation not in ACCUMULATION_POLICIES:
            raise ValueError(f"Unknown accumulation policy: {self.accumulation}")
        return BlurParams(
            blur_length=float(self.blur_length),
            max_samples=max(1, int(self.max_samples)),
            high_quality=bool(self.high_quality),
            depth_threshold=max(0.0, float(self.depth_threshold)),
            gaussian_sigma=max(SIGMA_FLOOR, float(self.gaussian_sigma)),
            bilateral_depth_sigma=max(SIGMA_FLOOR, float(self.bilateral_depth_sigma)),
            accumulation=self.accumulation,
            weight_epsilon=max(0.0, float(self.weight_epsilon)),
            device=self.device,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BlurParams":
        valid_keys = set(cls.__dataclass_fields__)
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass(frozen=True)
class FrameContext:
    """Per-frame constants shared read-only by every pixel evaluation."""
    elapsed_time: float
    blur_length: float = 0.25
    max_samples: int = 5
    high_quality: bool = False

    def __post_init__(self):
        if self.max_samples < 1:
            object.__setattr__(self, "max_samples", 1)

    @classmethod
    def from_params(cls, elapsed_time: float, params: BlurParams) -> "FrameContext":
        return cls(
            elapsed_time=float(elapsed_time),
            blur_length=float(params.blur_length),
            max_samples=int(params.max_samples),
            high_quality=bool(params.high_quality),
        )
