"""CLI for blurring captured frames listed in a CSV sweep."""

import argparse
from pathlib import Path

from depthblur import BlurConfig
from depthblur.generators import DatasetGenerator
from depthblur.util.logging_util import config_logging


def main():
    parser = argparse.ArgumentParser(description="Blur captured frames from a CSV parameter sweep")
    parser.add_argument("csv", type=Path, help="Path to CSV sweep file")
    parser.add_argument("-i", "--input", type=Path, required=True, help="Capture root directory")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output root directory")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Optional YAML BlurConfig")
    parser.add_argument("-w", "--workers", type=int, default=4, help="Number of parallel workers")
    parser.add_argument("--device", type=str, default="cpu", choices=["cpu", "cuda"], help="Device to use")
    parser.add_argument("--accumulation", type=str, default=None, choices=["symmetric", "gated"], help="Accumulation policy")
    parser.add_argument("--camera-model", type=str, default=None, choices=["perspective", "matrix"], help="Camera model")
    parser.add_argument("--no-skip", action="store_true", help="Don't skip existing outputs")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bar")
    parser.add_argument("--log-level", type=str, default="INFO", help="Console log level")
    parser.add_argument("--log-file", type=Path, default=None, help="Optional log file")

    args = parser.parse_args()
    config_logging(args.log_level, log_file=args.log_file)

    cfg = BlurConfig.from_yaml(args.config) if args.config else BlurConfig()
    cfg.device = args.device
    if args.accumulation:
        cfg.accumulation = args.accumulation
    if args.camera_model:
        cfg.camera_model = args.camera_model

    gen = DatasetGenerator(args.csv, args.input, args.output, cfg)

    results = gen.generate(
        num_workers=args.workers,
        device=args.device,
        skip_existing=not args.no_skip,
        progress=not args.no_progress,
    )

    print(f"\nGeneration complete:")
    print(f"  Total samples: {results['total']}")
    print(f"  Processed: {results['processed']}")
    print(f"  Skipped: {results['skipped']}")
    print(f"  Errors: {len(results['errors'])}")

    if results['errors']:
        print("\nErrors:")
        for err in results['errors'][:10]:
            print(f"  {err['sample_id']}: {err['error']}")
        if len(results['errors']) > 10:
            print(f"  ... and {len(results['errors']) - 10} more")


if __name__ == "__main__":
    main()
