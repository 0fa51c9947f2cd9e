"""Per-pixel depth-aware motion blur kernel.

Every function here is a pure map over pixel coordinates: uv carries any
[B, h, w] batch of pixels, from a single pixel up to the whole frame, and no
value is shared between pixels except the read-only buffers and constants.
"""

from typing import Iterator, Tuple, Union
import torch

from .buffers import FrameBuffers
from .camera import Camera, reconstruct
from .config import BlurParams, FrameContext, BLUR_DISTANCE_SCALE
from .resample import cross_resample
from .weights import combined_weight


def candidate_offsets(max_samples: int, accumulation: str) -> Iterator[Tuple[float, float]]:
    """Yield (step multiplier, gaussian offset) for each candidate.

    symmetric: i in [-half, half], multiplier i, offset i.
    gated: s in [0, n), multiplier -(s - half), offset |s - half| / n.
    """
    n = max(1, int(max_samples))
    half = n // 2
    if accumulation == "symmetric":
        for i in range(-half, half + 1):
            yield float(i), float(i)
    elif accumulation == "gated":
        for s in range(n):
            yield float(half - s), abs(s - half) / n
    else:
        raise ValueError(f"Unknown accumulation policy: {accumulation}")


def blur_step(motion: torch.Tensor, frame: FrameContext) -> torch.Tensor:
    """UV step between consecutive candidates, [..., 2]."""
    blur_distance = motion * frame.elapsed_time * BLUR_DISTANCE_SCALE * frame.blur_length
    return blur_distance / max(1, frame.max_samples)


def shade(
    buffers: FrameBuffers,
    uv: torch.Tensor,
    frame: FrameContext,
    camera: Camera,
    params: BlurParams,
    return_weights: bool = False,
) -> Union[torch.Tensor, Tuple[torch.Tensor, torch.Tensor, torch.Tensor]]:
    """Blur the pixels at uv.

    Args:
        buffers: FrameBuffers
        uv: [B, h, w, 2] pixel coordinates in [0, 1]
        frame: FrameContext (elapsed time, blur length, sample count, quality)
        camera: PerspectiveCamera or MatrixCamera
        params: sanitized BlurParams (sigmas, threshold, accumulation policy)
        return_weights: also return accumulated weight and fallback mask

    Returns:
        color: [B, h, w, C]
        weight_sum: [B, h, w] (if return_weights)
        fallback: [B, h, w] bool, pixels that kept their own color (if return_weights)
    """
    center_color = buffers.sample_color(uv)
    center_depth = buffers.sample_depth(uv)
    center_pos = reconstruct(uv, center_depth, camera)
    step = blur_step(buffers.sample_motion(uv), frame)

    gated = params.accumulation == "gated"
    color_sum = torch.zeros_like(center_color)
    weight_sum = torch.zeros_like(center_depth)

    for multiplier, offset in candidate_offsets(frame.max_samples, params.accumulation):
        cand_uv = uv + step * multiplier
        cand_pos = reconstruct(cand_uv, buffers.sample_depth(cand_uv), camera)
        delta = torch.linalg.norm(cand_pos - center_pos, dim=-1)

        w = combined_weight(offset, delta, params.gaussian_sigma, params.bilateral_depth_sigma)
        if gated:
            w = torch.where(delta < params.depth_threshold, w, torch.zeros_like(w))

        color = buffers.sample_color(cand_uv)
        if frame.high_quality:
            color = cross_resample(buffers, cand_uv, color)

        color_sum = color_sum + color * w.unsqueeze(-1)
        weight_sum = weight_sum + w

    # Degenerate accumulation keeps the center color for both policies
    fallback = ~(weight_sum > params.weight_epsilon)
    denom = torch.where(fallback, torch.ones_like(weight_sum), weight_sum).unsqueeze(-1)
    blur = torch.where(fallback.unsqueeze(-1), center_color, color_sum / denom)

    if return_weights:
        return blur, weight_sum, fallback
    return blur


def shade_pixel(
    buffers: FrameBuffers,
    x: int,
    y: int,
    frame: FrameContext,
    camera: Camera,
    params: BlurParams,
) -> torch.Tensor:
    """Blur a single pixel (x, y) of every batch item, [B, C]."""
    H, W = buffers.size
    uv = buffers.color.new_tensor([(x + 0.5) / W, (y + 0.5) / H]).view(1, 1, 1, 2)
    uv = uv.expand(buffers.batch, -1, -1, -1)
    return shade(buffers, uv, frame, camera, params)[:, 0, 0]
