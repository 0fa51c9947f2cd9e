"""CLI for generating CSV parameter sweeps."""

import argparse
from pathlib import Path

from depthblur.generators import CSVGenerator
from depthblur.util.logging_util import config_logging


def main():
    parser = argparse.ArgumentParser(description="Generate CSV parameter sweep over captured frames")
    parser.add_argument("config", type=Path, help="Path to YAML sweep configuration")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output directory for the CSV file")
    parser.add_argument("--log-level", type=str, default="INFO", help="Console log level")

    args = parser.parse_args()
    config_logging(args.log_level)

    gen = CSVGenerator(args.config)
    output_csv = args.output / f"{gen.dataset.name}.csv"
    n = gen.generate(output_csv)
    print(f"Generated {n} samples -> {output_csv}")


if __name__ == "__main__":
    main()
