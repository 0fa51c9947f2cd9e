"""Tests for the per-pixel blur kernel and resampler."""

import math
import pytest
import torch

from depthblur.core import (
    BlurParams,
    FrameBuffers,
    FrameContext,
    PerspectiveCamera,
    candidate_offsets,
    cross_resample,
    shade,
    shade_pixel,
)

H, W = 4, 16
# motion * dt * 0.1 * blur_length / max_samples == one texel along u for 5 samples
ONE_TEXEL_MOTION = 50.0 / W

RED = torch.tensor([1.0, 0.0, 0.0, 1.0])
BLUE = torch.tensor([0.0, 0.0, 1.0, 1.0])


def _camera():
    return PerspectiveCamera(fov_degrees=90.0, aspect_ratio=1.0)


def _buffers(color, motion_u=0.0, depth=None):
    motion = torch.zeros(2, H, W)
    motion[0] = motion_u
    if depth is None:
        depth = torch.full((H, W), 0.5)
    return FrameBuffers(color, motion, depth)


def _frame(max_samples=5, high_quality=False):
    return FrameContext(elapsed_time=1.0, blur_length=1.0, max_samples=max_samples, high_quality=high_quality)


def _blur_all(buffers, frame, params):
    out, weight_sum, fallback = shade(buffers, buffers.pixel_uv(), frame, _camera(), params.sanitized(), return_weights=True)
    return out.permute(0, 3, 1, 2)[0], weight_sum[0], fallback[0]


def _step_scene():
    """Red foreground (near) on the left half, blue background (far) on the right."""
    color = torch.zeros(4, H, W)
    color[:, :, : W // 2] = RED.view(4, 1, 1)
    color[:, :, W // 2 :] = BLUE.view(4, 1, 1)
    depth = torch.full((H, W), 0.5)
    depth[:, W // 2 :] = 1.0
    return color, depth


@pytest.fixture
def color():
    torch.manual_seed(0)
    return torch.rand(4, H, W)


class TestCandidateOffsets:
    def test_symmetric_odd(self):
        assert list(candidate_offsets(5, "symmetric")) == [(float(i), float(i)) for i in range(-2, 3)]

    def test_symmetric_even_covers_extra_sample(self):
        assert len(list(candidate_offsets(4, "symmetric"))) == 5

    def test_gated(self):
        offsets = list(candidate_offsets(5, "gated"))
        assert [m for m, _ in offsets] == [2.0, 1.0, 0.0, -1.0, -2.0]
        assert [o for _, o in offsets] == pytest.approx([0.4, 0.2, 0.0, 0.2, 0.4])

    def test_zero_samples_floor(self):
        assert list(candidate_offsets(0, "gated")) == [(0.0, 0.0)]

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            list(candidate_offsets(5, "radial"))


class TestIdentityCases:
    @pytest.mark.parametrize("accumulation", ["symmetric", "gated"])
    @pytest.mark.parametrize("max_samples", [1, 4, 5, 32])
    def test_zero_motion(self, color, accumulation, max_samples):
        buffers = _buffers(color, motion_u=0.0)
        params = BlurParams(accumulation=accumulation, max_samples=max_samples, gaussian_sigma=0.3)

        out, _, _ = _blur_all(buffers, _frame(max_samples), params)

        assert torch.allclose(out, color, atol=1e-5)

    @pytest.mark.parametrize("accumulation", ["symmetric", "gated"])
    @pytest.mark.parametrize("max_samples", [1, 0])
    def test_single_sample(self, color, accumulation, max_samples):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION * 3)
        params = BlurParams(accumulation=accumulation, max_samples=max_samples).sanitized()

        out, weight_sum, _ = _blur_all(buffers, _frame(params.max_samples), params)

        assert torch.allclose(out, color, atol=1e-5)
        assert torch.isfinite(weight_sum).all()


class TestDegenerateWeights:
    def test_gated_zero_threshold_falls_back(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        params = BlurParams(accumulation="gated", depth_threshold=0.0)

        out, weight_sum, fallback = _blur_all(buffers, _frame(), params)

        assert fallback.all()
        assert (weight_sum == 0).all()
        assert torch.isfinite(out).all()
        assert torch.allclose(out, color, atol=1e-6)

    def test_symmetric_weight_sum_positive(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        params = BlurParams(accumulation="symmetric")

        out, weight_sum, fallback = _blur_all(buffers, _frame(), params)

        assert (weight_sum > 0).all()
        assert not fallback.any()
        assert torch.isfinite(out).all()

    def test_symmetric_underflow_is_guarded(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        # Gaussian peak ~1e-5, below the weight epsilon
        params = BlurParams(accumulation="symmetric", gaussian_sigma=4e4)

        out, _, fallback = _blur_all(buffers, _frame(), params)

        assert fallback.all()
        assert torch.allclose(out, color, atol=1e-6)

    def test_tiny_weights_without_epsilon_still_average(self):
        color = torch.full((4, H, W), 0.5)
        buffers = _buffers(color, motion_u=0.0)
        # Gaussian peak ~4e-15: positive, so nothing falls back with a zero epsilon
        params = BlurParams(accumulation="symmetric", gaussian_sigma=1e14, weight_epsilon=0.0)

        out, weight_sum, fallback = _blur_all(buffers, _frame(), params)

        assert (weight_sum > 0).all()
        assert not fallback.any()
        assert torch.allclose(out, color, atol=1e-5)


class TestFlatDepth:
    @pytest.mark.parametrize(
        "accumulation,gauss",
        [
            ("symmetric", lambda k: math.exp(-0.5 * k ** 2)),
            ("gated", lambda k: math.exp(-0.5 * (k / 5) ** 2)),
        ],
    )
    def test_pure_gaussian_average(self, color, accumulation, gauss):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        params = BlurParams(accumulation=accumulation, max_samples=5, gaussian_sigma=1.0, bilateral_depth_sigma=0.01)

        out, _, _ = _blur_all(buffers, _frame(5), params)

        x = W // 2
        weights = [gauss(k) for k in range(-2, 3)]
        expected = sum(w * color[:, :, x + k] for w, k in zip(weights, range(-2, 3))) / sum(weights)
        assert torch.allclose(out[:, :, x], expected, atol=1e-4)

    def test_blur_spreads_color(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        out, _, _ = _blur_all(buffers, _frame(), BlurParams(accumulation="symmetric"))
        assert not torch.allclose(out, color, atol=1e-3)

    def test_clamp_to_edge(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION * 20)
        out, _, _ = _blur_all(buffers, _frame(), BlurParams(accumulation="symmetric"))
        assert torch.isfinite(out).all()


class TestDepthStep:
    def test_gated_excludes_background(self):
        color, depth = _step_scene()
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION, depth=depth)
        params = BlurParams(accumulation="gated", depth_threshold=0.01)

        out, _, _ = _blur_all(buffers, _frame(5), params)

        # last foreground and first background column next to the step
        assert torch.allclose(out[:, :, W // 2 - 1], RED.view(4, 1).expand(4, H), atol=1e-5)
        assert torch.allclose(out[:, :, W // 2], BLUE.view(4, 1).expand(4, H), atol=1e-5)

    def test_symmetric_bilateral_suppresses_bleed(self):
        color, depth = _step_scene()
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION, depth=depth)

        out, _, _ = _blur_all(buffers, _frame(5), BlurParams(accumulation="symmetric"))

        assert out[2, :, W // 2 - 1].abs().max().item() < 1e-5

    def test_flat_depth_bleeds(self):
        color, _ = _step_scene()
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)

        out, _, _ = _blur_all(buffers, _frame(5), BlurParams(accumulation="gated"))

        assert out[2, 0, W // 2 - 1].item() > 0.1


class TestResampler:
    @pytest.fixture
    def impulse(self):
        color = torch.zeros(4, H, W)
        color[:, 2, 8] = 1.0
        return color

    def test_impulse(self, impulse):
        buffers = _buffers(impulse)
        uv = buffers.pixel_uv()
        blended = cross_resample(buffers, uv, buffers.sample_color(uv))[0]

        assert blended[2, 8, 0].item() == pytest.approx(0.5)
        assert blended[2, 9, 0].item() == pytest.approx(0.125)
        assert blended[1, 8, 0].item() == pytest.approx(0.125)
        assert blended[1, 9, 0].item() == pytest.approx(0.0)

    def test_uniform_unchanged(self):
        color = torch.full((4, H, W), 0.3)
        buffers = _buffers(color)
        uv = buffers.pixel_uv()

        blended = cross_resample(buffers, uv, buffers.sample_color(uv))
        assert torch.allclose(blended, torch.full_like(blended, 0.3))

    def test_high_quality_softens(self, impulse):
        buffers = _buffers(impulse)
        out, _, _ = _blur_all(buffers, _frame(5, high_quality=True), BlurParams(accumulation="symmetric"))

        assert out[0, 2, 8].item() == pytest.approx(0.5, abs=1e-5)


class TestShadePixel:
    def test_matches_full_frame(self, color):
        buffers = _buffers(color, motion_u=ONE_TEXEL_MOTION)
        params = BlurParams(accumulation="gated").sanitized()
        frame = _frame()

        full = shade(buffers, buffers.pixel_uv(), frame, _camera(), params)
        single = shade_pixel(buffers, 5, 2, frame, _camera(), params)

        assert single.shape == (1, 4)
        assert torch.allclose(single[0], full[0, 2, 5], atol=1e-6)
