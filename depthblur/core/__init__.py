"""depthblur core: depth-aware per-pixel motion blur."""

from .config import BlurConfig, BlurParams, FrameContext
from .buffers import FrameBuffers
from .camera import (
    PerspectiveCamera,
    MatrixCamera,
    camera_from_dict,
    perspective_matrix,
    linearize_depth,
    reconstruct,
    reconstruct_perspective,
    reconstruct_matrix,
)
from .weights import gaussian_weight, bilateral_weight, combined_weight
from .resample import cross_resample
from .kernel import shade, shade_pixel, candidate_offsets
from .engine import MotionBlurEngine

__all__ = [
    "BlurConfig",
    "BlurParams",
    "FrameContext",
    "FrameBuffers",
    "PerspectiveCamera",
    "MatrixCamera",
    "camera_from_dict",
    "perspective_matrix",
    "linearize_depth",
    "reconstruct",
    "reconstruct_perspective",
    "reconstruct_matrix",
    "gaussian_weight",
    "bilateral_weight",
    "combined_weight",
    "cross_resample",
    "shade",
    "shade_pixel",
    "candidate_offsets",
    "MotionBlurEngine",
]
