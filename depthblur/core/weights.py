"""Spatial and depth-similarity weights."""

import math
from typing import Union
import torch

Scalar = Union[float, torch.Tensor]

SQRT_2PI = math.sqrt(2 * math.pi)


def _check_sigma(sigma: float) -> float:
    sigma = float(sigma)
    if not sigma > 0:
        raise ValueError(f"sigma must be positive, got {sigma}")
    return sigma


def gaussian_weight(offset: Scalar, sigma: float) -> Scalar:
    """Gaussian falloff by sample offset: exp(-0.5 o^2 / s^2) / (s sqrt(2 pi)).

    `offset` is the raw sample index for symmetric accumulation and the
    normalized distance from the center for gated accumulation.
    """
    sigma = _check_sigma(sigma)
    if isinstance(offset, torch.Tensor):
        return torch.exp(-0.5 * offset ** 2 / sigma ** 2) / (sigma * SQRT_2PI)
    return math.exp(-0.5 * offset ** 2 / sigma ** 2) / (sigma * SQRT_2PI)


def bilateral_weight(depth_delta: Scalar, sigma: float) -> Scalar:
    """Depth-similarity falloff: exp(-0.5 d^2 / s^2), d = view-space distance."""
    sigma = _check_sigma(sigma)
    if isinstance(depth_delta, torch.Tensor):
        return torch.exp(-0.5 * depth_delta ** 2 / sigma ** 2)
    return math.exp(-0.5 * depth_delta ** 2 / sigma ** 2)


def combined_weight(offset: Scalar, depth_delta: Scalar, gaussian_sigma: float, bilateral_sigma: float) -> Scalar:
    """Accumulation weight of one candidate, used as is without normalizing."""
    return gaussian_weight(offset, gaussian_sigma) * bilateral_weight(depth_delta, bilateral_sigma)
