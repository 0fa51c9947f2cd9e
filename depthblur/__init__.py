"""depthblur: Depth-aware per-pixel motion blur post-processing.

Main components:
- core: Blur kernel and engine (BlurConfig, MotionBlurEngine)
- generators: CSV parameter sweeps and batch blurring
- codecs: Frame capture storage and buffer files
"""

from .core import (
    BlurConfig,
    BlurParams,
    FrameContext,
    FrameBuffers,
    MotionBlurEngine,
    PerspectiveCamera,
    MatrixCamera,
    perspective_matrix,
    reconstruct,
    gaussian_weight,
    bilateral_weight,
    cross_resample,
    shade,
    shade_pixel,
)
from .generators import CSVGenerator, DatasetGenerator
from .codecs import FrameCodec

__version__ = "0.1.0"
__all__ = [
    # Core
    "BlurConfig",
    "BlurParams",
    "FrameContext",
    "FrameBuffers",
    "MotionBlurEngine",
    "PerspectiveCamera",
    "MatrixCamera",
    "perspective_matrix",
    "reconstruct",
    "gaussian_weight",
    "bilateral_weight",
    "cross_resample",
    "shade",
    "shade_pixel",
    # Generators
    "CSVGenerator",
    "DatasetGenerator",
    # Codecs
    "FrameCodec",
]
