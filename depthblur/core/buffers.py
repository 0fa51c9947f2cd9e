"""Input buffers and clamp-to-edge samplers."""

from dataclasses import dataclass
from typing import Tuple, Optional
import numpy as np
import torch
import torch.nn.functional as F


def _as_bchw(x: torch.Tensor, channels: Optional[int] = None) -> torch.Tensor:
    """Promote [H, W], [C, H, W] to [B, C, H, W]."""
    if x.dim() == 2:
        x = x.unsqueeze(0)
    if x.dim() == 3:
        x = x.unsqueeze(0)
    if channels is not None and x.shape[1] != channels:
        raise ValueError(f"Expected {channels} channels, got shape {tuple(x.shape)}")
    return x.float()


def _sample(buffer: torch.Tensor, uv: torch.Tensor, mode: str) -> torch.Tensor:
    """Sample [B, C, H, W] at uv [B, h, w, 2] -> [B, h, w, C]; clamp-to-edge."""
    grid = uv * 2 - 1
    out = F.grid_sample(buffer, grid.to(buffer.dtype), mode=mode, padding_mode="border", align_corners=False)
    return out.permute(0, 2, 3, 1)


@dataclass
class FrameBuffers:
    """Color, motion-vector and depth buffers of one frame.

    color: [B, C, H, W] RGBA or RGB
    motion: [B, 2, H, W] UV displacement per frame
    depth: [B, 1, H, W] normalized depth in [0, 1]

    Buffers are read-only for the duration of a frame.
    """
    color: torch.Tensor
    motion: torch.Tensor
    depth: torch.Tensor

    def __post_init__(self):
        self.color = _as_bchw(self.color)
        self.motion = _as_bchw(self.motion, channels=2)
        self.depth = _as_bchw(self.depth, channels=1)

        size = self.color.shape[-2:]
        if self.motion.shape[-2:] != size or self.depth.shape[-2:] != size:
            raise ValueError(
                f"Buffer resolution mismatch: color {tuple(size)}, "
                f"motion {tuple(self.motion.shape[-2:])}, depth {tuple(self.depth.shape[-2:])}"
            )
        B = self.color.shape[0]
        if self.motion.shape[0] != B:
            self.motion = self.motion.expand(B, -1, -1, -1)
        if self.depth.shape[0] != B:
            self.depth = self.depth.expand(B, -1, -1, -1)

    @classmethod
    def from_numpy(
        cls,
        color: np.ndarray,
        motion: np.ndarray,
        depth: np.ndarray,
        device: str = "cpu",
    ) -> "FrameBuffers":
        """Build from host arrays: color [H, W, C], motion [H, W, 2], depth [H, W]."""
        color_t = torch.from_numpy(np.ascontiguousarray(color, dtype=np.float32)).permute(2, 0, 1)
        motion_t = torch.from_numpy(np.ascontiguousarray(motion, dtype=np.float32)).permute(2, 0, 1)
        depth_t = torch.from_numpy(np.ascontiguousarray(depth, dtype=np.float32))
        if depth_t.dim() == 3:
            depth_t = depth_t[..., 0]
        return cls(color_t.to(device), motion_t.to(device), depth_t.to(device))

    @property
    def batch(self) -> int:
        return self.color.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return int(self.color.shape[-2]), int(self.color.shape[-1])

    @property
    def texel_size(self) -> Tuple[float, float]:
        """(1 / W, 1 / H) in UV units."""
        H, W = self.size
        return 1.0 / W, 1.0 / H

    def pixel_uv(self, rows: Optional[slice] = None) -> torch.Tensor:
        """UV of pixel centers, [B, h, W, 2]; `rows` selects a band of rows."""
        H, W = self.size
        device = self.color.device
        y = torch.arange(H, device=device, dtype=torch.float32)
        if rows is not None:
            y = y[rows]
        x = torch.arange(W, device=device, dtype=torch.float32)
        yg, xg = torch.meshgrid(y, x, indexing="ij")
        uv = torch.stack([(xg + 0.5) / W, (yg + 0.5) / H], dim=-1)
        return uv.unsqueeze(0).expand(self.batch, -1, -1, -1)

    def sample_color(self, uv: torch.Tensor) -> torch.Tensor:
        """Bilinear color, [B, h, w, C]."""
        return _sample(self.color, uv, "bilinear")

    def sample_depth(self, uv: torch.Tensor) -> torch.Tensor:
        """Bilinear depth, [B, h, w]."""
        return _sample(self.depth, uv, "bilinear")[..., 0]

    def sample_motion(self, uv: torch.Tensor) -> torch.Tensor:
        """Point-sampled motion vector, [B, h, w, 2]."""
        return _sample(self.motion, uv, "nearest")
