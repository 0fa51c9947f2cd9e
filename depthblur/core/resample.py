"""Four-neighbor pre-blend of blur candidates."""

import torch

from .buffers import FrameBuffers


def cross_resample(buffers: FrameBuffers, uv: torch.Tensor, color: torch.Tensor) -> torch.Tensor:
    """Blend a candidate 50/50 with the box average of its axis neighbors.

    Args:
        buffers: FrameBuffers
        uv: [B, h, w, 2] candidate coordinates
        color: [B, h, w, C] candidate color already sampled at uv

    Returns:
        blended: [B, h, w, C]
    """
    tw, th = buffers.texel_size
    dx = uv.new_tensor([tw, 0.0])
    dy = uv.new_tensor([0.0, th])

    neighbors = (
        buffers.sample_color(uv + dx)
        + buffers.sample_color(uv - dx)
        + buffers.sample_color(uv + dy)
        + buffers.sample_color(uv - dy)
    ) * 0.25
    return (color + neighbors) / 2
