"""Tests for BlurConfig, BlurParams and FrameContext."""

import pytest
import numpy as np
import yaml

from depthblur.core import BlurConfig, BlurParams, FrameContext
from depthblur.core.config import SIGMA_FLOOR


class TestBlurConfig:
    def test_default_config(self):
        cfg = BlurConfig()
        assert cfg.accumulation == "gated"
        assert cfg.camera_model == "perspective"
        assert cfg.max_samples == (3, 32)
        assert cfg.device == "cpu"

    def test_defaults(self):
        params = BlurConfig().defaults()

        assert params.blur_length == pytest.approx(0.25)
        assert params.max_samples == 5
        assert params.high_quality is False
        assert params.depth_threshold == pytest.approx(0.01)
        assert params.gaussian_sigma == pytest.approx(1.0)
        assert params.bilateral_depth_sigma == pytest.approx(0.01)

    def test_sample(self):
        cfg = BlurConfig(accumulation="symmetric")
        rng = np.random.default_rng(0)

        for _ in range(50):
            params = cfg.sample(rng)
            assert isinstance(params, BlurParams)
            assert cfg.blur_length[0] <= params.blur_length <= cfg.blur_length[1]
            assert cfg.max_samples[0] <= params.max_samples <= cfg.max_samples[1]
            assert isinstance(params.max_samples, int)
            assert cfg.gaussian_sigma[0] <= params.gaussian_sigma <= cfg.gaussian_sigma[1]
            assert params.accumulation == "symmetric"

    def test_sample_deterministic(self):
        cfg = BlurConfig()

        params1 = cfg.sample(np.random.default_rng(42))
        params2 = cfg.sample(np.random.default_rng(42))

        assert params1.blur_length == params2.blur_length
        assert params1.max_samples == params2.max_samples

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            BlurConfig(accumulation="temporal")

    def test_unknown_camera_model(self):
        with pytest.raises(ValueError):
            BlurConfig(camera_model="orthographic")

    def test_to_from_dict(self):
        cfg = BlurConfig(accumulation="symmetric", tile_rows=16)
        restored = BlurConfig.from_dict(cfg.to_dict())

        assert restored == cfg

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "blur.yaml"
        with open(path, "w") as f:
            yaml.dump({"blur": {"accumulation": "symmetric", "blur_length": [0.2, 1.0], "default_max_samples": 9}}, f)

        cfg = BlurConfig.from_yaml(path)

        assert cfg.accumulation == "symmetric"
        assert cfg.blur_length == (0.2, 1.0)
        assert cfg.defaults().max_samples == 9


class TestBlurParams:
    def test_sanitized_clamps(self):
        params = BlurParams(max_samples=0, gaussian_sigma=0.0, bilateral_depth_sigma=-1.0).sanitized()

        assert params.max_samples == 1
        assert params.gaussian_sigma == SIGMA_FLOOR
        assert params.bilateral_depth_sigma == SIGMA_FLOOR

    def test_sanitized_keeps_valid(self):
        params = BlurParams(max_samples=7, gaussian_sigma=2.0)
        clean = params.sanitized()

        assert clean.max_samples == 7
        assert clean.gaussian_sigma == 2.0

    def test_sanitized_rejects_policy(self):
        with pytest.raises(ValueError):
            BlurParams(accumulation="bogus").sanitized()

    def test_from_dict_ignores_unknown(self):
        params = BlurParams.from_dict({"blur_length": 1.5, "exposure": 2.0})
        assert params.blur_length == 1.5


class TestFrameContext:
    def test_from_params(self):
        frame = FrameContext.from_params(1 / 60, BlurParams(blur_length=0.5, max_samples=9, high_quality=True))

        assert frame.elapsed_time == pytest.approx(1 / 60)
        assert frame.blur_length == 0.5
        assert frame.max_samples == 9
        assert frame.high_quality is True

    def test_max_samples_floor(self):
        assert FrameContext(elapsed_time=0.016, max_samples=0).max_samples == 1
        assert FrameContext(elapsed_time=0.016, max_samples=-3).max_samples == 1

    def test_immutable(self):
        frame = FrameContext(elapsed_time=0.016)
        with pytest.raises(Exception):
            frame.elapsed_time = 1.0
