"""MotionBlurEngine: frame-level driver around the per-pixel kernel."""

import logging
from dataclasses import replace
import torch
from typing import Optional, Dict, Tuple, Any

from .buffers import FrameBuffers
from .camera import Camera
from .config import BlurConfig, BlurParams, FrameContext
from .kernel import shade

logger = logging.getLogger(__name__)


class MotionBlurEngine:
    """Depth-aware motion blur engine."""

    def __init__(self, cfg: Optional[BlurConfig] = None):
        self.cfg = cfg or BlurConfig()

    @torch.no_grad()
    def apply(
        self,
        color: torch.Tensor,
        motion: torch.Tensor,
        depth: torch.Tensor,
        elapsed_time: float,
        camera: Camera,
        params: Optional[BlurParams] = None,
    ) -> Tuple[torch.Tensor, Dict[str, Any]]:
        """Blur one frame.

        Args:
            color: [C, H, W] or [B, C, H, W] color, C = 3 or 4
            motion: [2, H, W] or [B, 2, H, W] UV motion per frame
            depth: [H, W], [1, H, W] or [B, 1, H, W] normalized depth
            elapsed_time: seconds since the previous frame
            camera: PerspectiveCamera or MatrixCamera matching cfg.camera_model
            params: optional BlurParams (config defaults if None)

        Returns:
            blur: same shape as color
            meta: dict with params, frame context, weight sum and fallback mask
        """
        if params is None:
            params = self.cfg.defaults()
        # One accumulation policy per deployment
        params = replace(params, accumulation=self.cfg.accumulation).sanitized()

        model = getattr(camera, "model", None)
        if model != self.cfg.camera_model:
            raise ValueError(f"Camera model {model!r} does not match configured {self.cfg.camera_model!r}")

        device = color.device
        params.device = str(device)

        single_batch = color.dim() == 3
        if motion.dim() == 3:
            motion = motion.unsqueeze(0)
        if depth.dim() == 2:
            depth = depth.unsqueeze(0)

        buffers = FrameBuffers(color, motion.to(device), depth.to(device))
        frame = FrameContext.from_params(elapsed_time, params)
        H, W = buffers.size

        rows = self.cfg.tile_rows if self.cfg.tile_rows > 0 else H
        tiles, weights, fallbacks = [], [], []
        for start in range(0, H, rows):
            uv = buffers.pixel_uv(slice(start, start + rows))
            out, weight_sum, fallback = shade(buffers, uv, frame, camera, params, return_weights=True)
            tiles.append(out)
            weights.append(weight_sum)
            fallbacks.append(fallback)

        blur = torch.cat(tiles, dim=1).permute(0, 3, 1, 2).contiguous()  # [B, C, H, W]
        weight_sum = torch.cat(weights, dim=1)  # [B, H, W]
        fallback = torch.cat(fallbacks, dim=1)
        fallback_ratio = fallback.float().mean().item()

        logger.debug(
            "Blurred %dx%d frame: policy=%s samples=%d dt=%.4f fallback=%.2f%%",
            W, H, params.accumulation, frame.max_samples, frame.elapsed_time, 100 * fallback_ratio,
        )

        if single_batch:
            blur = blur.squeeze(0)

        meta = {
            "params": params,
            "frame": frame,
            "weight_sum": weight_sum,
            "fallback": fallback,
            "fallback_ratio": fallback_ratio,
        }
        return blur, meta
