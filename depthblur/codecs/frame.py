"""Frame capture encoding/decoding for storage."""

import numpy as np
from pathlib import Path
from typing import Dict, Any, Union, Optional

from ..core.camera import Camera, camera_from_dict


class FrameCodec:
    """Encode/decode a captured frame to/from a .npy file.

    Format: Single .npy file containing a dict with:
        - color: [H, W, C] color buffer
        - motion: [H, W, 2] UV motion vectors
        - depth: [H, W] normalized depth
        - elapsed_time: seconds since the previous frame
        - camera: serialized camera model
        - params: dict of blur parameters (optional)
        - meta: additional metadata (optional)
    """

    VERSION = 1

    @classmethod
    def encode(
        cls,
        color: np.ndarray,
        motion: np.ndarray,
        depth: np.ndarray,
        elapsed_time: float,
        camera: Union[Camera, Dict[str, Any]],
        params: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        compress: bool = True,
    ) -> Dict[str, Any]:
        """Encode a frame to a dict for saving.

        Args:
            color: [H, W, C] color
            motion: [H, W, 2] motion vectors
            depth: [H, W] depth
            elapsed_time: frame time in seconds
            camera: camera model or its dict
            params: blur parameters
            meta: additional metadata
            compress: use float16 for buffers

        Returns:
            dict ready for np.save
        """
        dtype = np.float16 if compress else np.float32

        if color.shape[:2] != motion.shape[:2] or color.shape[:2] != depth.shape[:2]:
            raise ValueError(
                f"Buffer resolution mismatch: color {color.shape}, motion {motion.shape}, depth {depth.shape}"
            )

        data = {
            "version": cls.VERSION,
            "color": color.astype(dtype),
            "motion": motion.astype(dtype),
            # 16-bit floats lose too much precision near the far plane
            "depth": depth.astype(np.float32),
            "elapsed_time": float(elapsed_time),
            "camera": camera if isinstance(camera, dict) else camera.to_dict(),
        }

        if params is not None:
            data["params"] = cls._serialize_params(params)

        if meta is not None:
            data["meta"] = meta

        return data

    @classmethod
    def decode(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Decode a frame from a loaded dict.

        Returns:
            dict with float32 buffers, elapsed_time and a camera object
        """
        result = {
            "color": data["color"].astype(np.float32),
            "motion": data["motion"].astype(np.float32),
            "depth": data["depth"].astype(np.float32),
            "elapsed_time": float(data["elapsed_time"]),
            "camera": camera_from_dict(data["camera"]),
        }

        if "params" in data:
            result["params"] = data["params"]

        if "meta" in data:
            result["meta"] = data["meta"]

        result["version"] = data.get("version", 0)

        return result

    @classmethod
    def save(cls, path: Union[str, Path], **kwargs) -> None:
        """Save a frame to .npy file."""
        data = cls.encode(**kwargs)
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        np.save(path, data, allow_pickle=True)

    @classmethod
    def load(cls, path: Union[str, Path]) -> Dict[str, Any]:
        """Load a frame from .npy file."""
        data = np.load(path, allow_pickle=True).item()
        return cls.decode(data)

    @staticmethod
    def _serialize_params(params: Dict[str, Any]) -> Dict[str, Any]:
        """Serialize params to JSON-safe types."""
        serialized = {}
        for k, v in params.items():
            if isinstance(v, np.ndarray):
                serialized[k] = v.tolist()
            elif isinstance(v, (np.floating, np.integer)):
                serialized[k] = float(v) if isinstance(v, np.floating) else int(v)
            elif hasattr(v, "item"):
                serialized[k] = v.item()
            else:
                serialized[k] = v
        return serialized
