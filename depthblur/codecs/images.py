"""Loose buffer files: color images, depth and motion maps."""

from pathlib import Path
from typing import Union
import cv2
import numpy as np
from PIL import Image


def load_color(path: Union[str, Path]) -> np.ndarray:
    """Load image as float32 [H, W, 4] RGBA in [0, 1]."""
    img = Image.open(path).convert("RGBA")
    return np.array(img, dtype=np.float32) / 255.0


def save_color(path: Union[str, Path], img: np.ndarray) -> None:
    """Save float32 [H, W, 3|4] image in [0, 1]."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img = (img.clip(0, 1) * 255).round().astype(np.uint8)
    Image.fromarray(img).save(path)


def _read_raw(path: Path) -> np.ndarray:
    if path.suffix == ".npy":
        return np.load(path)
    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED | cv2.IMREAD_ANYDEPTH)
    if raw is None:
        raise ValueError(f"Could not read buffer: {path}")
    return raw


def _normalize(raw: np.ndarray) -> np.ndarray:
    if raw.dtype == np.uint16:
        return raw.astype(np.float32) / 65535.0
    if raw.dtype == np.uint8:
        return raw.astype(np.float32) / 255.0
    return raw.astype(np.float32)


def load_depth(path: Union[str, Path]) -> np.ndarray:
    """Load normalized depth [H, W] from .npy, .exr or 16-bit .png."""
    depth = _normalize(_read_raw(Path(path)))
    if depth.ndim == 3:
        depth = depth[..., 0]
    return depth


def load_motion(path: Union[str, Path]) -> np.ndarray:
    """Load UV motion vectors [H, W, 2] from .npy ([2, H, W] accepted), .exr or 16-bit .png."""
    path = Path(path)
    raw = _read_raw(path)
    if path.suffix != ".npy" and raw.ndim == 3 and raw.shape[-1] >= 3:
        # OpenCV loads BGR or BGRA: keep red, green
        raw = raw[..., [2, 1]]
    motion = raw.astype(np.float32)
    if motion.ndim == 3 and motion.shape[0] == 2 and motion.shape[-1] != 2:
        motion = motion.transpose(1, 2, 0)
    if motion.ndim != 3 or motion.shape[-1] != 2:
        raise ValueError(f"Motion buffer must be [H, W, 2], got {motion.shape}")
    return motion
