"""CLI for blurring a single frame."""

import argparse
import logging
from pathlib import Path

import numpy as np
import torch

from depthblur import BlurConfig, MotionBlurEngine, PerspectiveCamera, MatrixCamera
from depthblur.codecs import FrameCodec, load_color, save_color, load_depth, load_motion
from depthblur.util.logging_util import config_logging

logger = logging.getLogger("depthblur.cli.apply_blur")


def _load_frame(args):
    """Capture file, or loose color/motion/depth files plus camera arguments."""
    if args.capture is not None:
        frame = FrameCodec.load(args.capture)
        return frame["color"], frame["motion"], frame["depth"], frame["elapsed_time"], frame["camera"]

    if args.color is None or args.motion is None or args.depth is None:
        raise SystemExit("Either --capture or all of --color, --motion, --depth are required")

    color = load_color(args.color)
    motion = load_motion(args.motion)
    depth = load_depth(args.depth)
    H, W = depth.shape

    if args.inverse_view_projection is not None:
        camera = MatrixCamera(np.load(args.inverse_view_projection), transpose=not args.no_transpose)
    else:
        aspect = args.aspect if args.aspect is not None else W / H
        camera = PerspectiveCamera(args.fov, aspect, args.near, args.far)
    return color, motion, depth, args.elapsed, camera


def main():
    parser = argparse.ArgumentParser(description="Apply depth-aware motion blur to one frame")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output image")
    parser.add_argument("--capture", type=Path, default=None, help="Frame capture (.npy)")
    parser.add_argument("--color", type=Path, default=None, help="Color image")
    parser.add_argument("--motion", type=Path, default=None, help="Motion vectors (.npy or .exr)")
    parser.add_argument("--depth", type=Path, default=None, help="Normalized depth (.npy, .exr or 16-bit .png)")
    parser.add_argument("--elapsed", type=float, default=1.0 / 60.0, help="Seconds since previous frame")
    parser.add_argument("--fov", type=float, default=60.0, help="Vertical field of view in degrees")
    parser.add_argument("--aspect", type=float, default=None, help="Aspect ratio (defaults to W/H)")
    parser.add_argument("--near", type=float, default=0.1, help="Near plane")
    parser.add_argument("--far", type=float, default=1000.0, help="Far plane")
    parser.add_argument("--inverse-view-projection", type=Path, default=None, help="4x4 inverse view-projection (.npy)")
    parser.add_argument("--no-transpose", action="store_true", help="Use the inverse matrix as given")
    parser.add_argument("--save-capture", type=Path, default=None, help="Also write the inputs as a capture")

    parser.add_argument("--accumulation", type=str, default="gated", choices=["symmetric", "gated"])
    parser.add_argument("--blur-length", type=float, default=0.25)
    parser.add_argument("--max-samples", type=int, default=5)
    parser.add_argument("--high-quality", action="store_true")
    parser.add_argument("--depth-threshold", type=float, default=0.01)
    parser.add_argument("--gaussian-sigma", type=float, default=1.0)
    parser.add_argument("--bilateral-depth-sigma", type=float, default=0.01)
    parser.add_argument("--tile-rows", type=int, default=0, help="Rows per evaluation tile (0 = whole frame)")
    parser.add_argument("--device", type=str, default="cpu", choices=["cpu", "cuda"])
    parser.add_argument("--log-level", type=str, default="INFO", help="Console log level")

    args = parser.parse_args()
    config_logging(args.log_level)

    color, motion, depth, elapsed, camera = _load_frame(args)

    if args.save_capture is not None:
        FrameCodec.save(args.save_capture, color=color, motion=motion, depth=depth, elapsed_time=elapsed, camera=camera)
        logger.info("Wrote capture %s", args.save_capture)

    cfg = BlurConfig(
        accumulation=args.accumulation,
        camera_model=camera.model,
        high_quality=args.high_quality,
        default_blur_length=args.blur_length,
        default_max_samples=args.max_samples,
        default_depth_threshold=args.depth_threshold,
        default_gaussian_sigma=args.gaussian_sigma,
        default_bilateral_depth_sigma=args.bilateral_depth_sigma,
        tile_rows=args.tile_rows,
        device=args.device,
    )
    engine = MotionBlurEngine(cfg)

    blur, meta = engine.apply(
        color=torch.from_numpy(color).permute(2, 0, 1).to(args.device),
        motion=torch.from_numpy(motion).permute(2, 0, 1).to(args.device),
        depth=torch.from_numpy(depth).to(args.device),
        elapsed_time=elapsed,
        camera=camera,
    )

    save_color(args.output, blur.cpu().numpy().transpose(1, 2, 0))
    print(f"Wrote {args.output} (fallback pixels: {100 * meta['fallback_ratio']:.2f}%)")


if __name__ == "__main__":
    main()
