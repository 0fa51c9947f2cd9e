"""depthblur codecs: frame capture storage and buffer files."""

from .frame import FrameCodec
from .images import load_color, save_color, load_depth, load_motion

__all__ = ["FrameCodec", "load_color", "save_color", "load_depth", "load_motion"]
