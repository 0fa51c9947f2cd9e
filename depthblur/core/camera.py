"""Camera models and view-space reconstruction from depth."""

import math
from dataclasses import dataclass, field
from typing import Dict, Any, Union
import numpy as np
import torch


@dataclass(frozen=True)
class PerspectiveCamera:
    """Analytic perspective camera described by field of view and aspect ratio.

    z_near / z_far must match the projection that produced the depth buffer.
    """
    fov_degrees: float = 60.0
    aspect_ratio: float = 16.0 / 9.0
    z_near: float = 0.1
    z_far: float = 1000.0

    model = "perspective"

    @property
    def focal(self) -> float:
        return 1.0 / math.tan(math.radians(self.fov_degrees) / 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "fov_degrees": float(self.fov_degrees),
            "aspect_ratio": float(self.aspect_ratio),
            "z_near": float(self.z_near),
            "z_far": float(self.z_far),
        }


@dataclass(frozen=True)
class MatrixCamera:
    """Camera given by a 4x4 inverse view-projection matrix.

    With `transpose=True` the matrix is transposed before use, which converts a
    row-vector (mul(v, M)) layout into the column-vector form applied here.
    Whether the host layout needs it has to be checked against the host, not assumed.
    """
    inverse_view_projection: np.ndarray = field(default_factory=lambda: np.eye(4))
    transpose: bool = True

    model = "matrix"

    def __post_init__(self):
        m = np.asarray(self.inverse_view_projection, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError(f"inverse_view_projection must be 4x4, got {m.shape}")
        object.__setattr__(self, "inverse_view_projection", m)

    @classmethod
    def from_view_projection(cls, view_projection: np.ndarray, transpose: bool = False) -> "MatrixCamera":
        """Invert a column-vector view-projection matrix."""
        inv = np.linalg.inv(np.asarray(view_projection, dtype=np.float64))
        return cls(inv.T if transpose else inv, transpose=transpose)

    def matrix(self, device=None, dtype=torch.float32) -> torch.Tensor:
        """Effective column-vector matrix as a tensor."""
        m = self.inverse_view_projection.T if self.transpose else self.inverse_view_projection
        return torch.as_tensor(np.ascontiguousarray(m), device=device, dtype=dtype)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "inverse_view_projection": self.inverse_view_projection.tolist(),
            "transpose": bool(self.transpose),
        }


Camera = Union[PerspectiveCamera, MatrixCamera]


def camera_from_dict(d: Dict[str, Any]) -> Camera:
    d = dict(d)
    model = d.pop("model", "perspective")
    if model == "perspective":
        return PerspectiveCamera(**d)
    elif model == "matrix":
        return MatrixCamera(**d)
    raise ValueError(f"Unknown camera model: {model}")


def perspective_matrix(fov_degrees: float, aspect_ratio: float, z_near: float = 0.1, z_far: float = 1000.0) -> np.ndarray:
    """Standard OpenGL projection (column vectors, view looks down -Z)."""
    f = 1.0 / math.tan(math.radians(fov_degrees) / 2)
    return np.array([
        [f / aspect_ratio, 0.0, 0.0, 0.0],
        [0.0, f, 0.0, 0.0],
        [0.0, 0.0, (z_far + z_near) / (z_near - z_far), 2 * z_far * z_near / (z_near - z_far)],
        [0.0, 0.0, -1.0, 0.0],
    ])


def linearize_depth(depth: torch.Tensor, z_near: float = 0.1, z_far: float = 1000.0) -> torch.Tensor:
    """Map normalized depth [0, 1] to linear depth via its NDC value."""
    ndc_z = depth * 2 - 1
    return z_near / (z_far - ndc_z * (z_far - z_near))


def reconstruct_perspective(uv: torch.Tensor, depth: torch.Tensor, camera: PerspectiveCamera) -> torch.Tensor:
    """View-space position from FOV/aspect.

    Args:
        uv: [..., 2] screen coordinates in [0, 1]
        depth: [...] normalized depth
        camera: PerspectiveCamera

    Returns:
        position: [..., 3], camera looking down -Z
    """
    ndc = uv * 2 - 1
    f = camera.focal
    x = ndc[..., 0] / (f * camera.aspect_ratio)
    y = ndc[..., 1] / f
    linear = linearize_depth(depth, camera.z_near, camera.z_far)
    return torch.stack([x * linear, y * linear, -linear], dim=-1)


def reconstruct_matrix(uv: torch.Tensor, depth: torch.Tensor, camera: MatrixCamera) -> torch.Tensor:
    """View-space position through the inverse view-projection matrix.

    Args:
        uv: [..., 2] screen coordinates in [0, 1], v pointing down
        depth: [...] normalized depth
        camera: MatrixCamera

    Returns:
        position: [..., 3] after the perspective divide
    """
    xy = uv * 2 - 1
    clip = torch.stack([xy[..., 0], -xy[..., 1], depth * 2 - 1, torch.ones_like(depth)], dim=-1)
    m = camera.matrix(device=uv.device, dtype=uv.dtype)
    p = clip @ m.T
    return p[..., :3] / p[..., 3:4]


def reconstruct(uv: torch.Tensor, depth: torch.Tensor, camera: Camera) -> torch.Tensor:
    """Dispatch on the camera model."""
    if isinstance(camera, PerspectiveCamera):
        return reconstruct_perspective(uv, depth, camera)
    elif isinstance(camera, MatrixCamera):
        return reconstruct_matrix(uv, depth, camera)
    raise ValueError(f"Unsupported camera: {type(camera).__name__}")
