"""CSV Sweep Generator: per-frame blur parameters from a YAML spec."""

import yaml
import csv
import numpy as np
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Union
import hashlib


@dataclass
class SamplingSpec:
    """Specification for parameter sampling."""
    distribution: str = "uniform"  # "uniform" | "normal" | "fixed"
    min_val: float = 0.0
    max_val: float = 1.0
    mean: float = 0.5
    std: float = 0.1
    value: Optional[Any] = None  # for "fixed"
    integer: bool = False

    def sample(self, rng: np.random.Generator) -> Any:
        if self.distribution == "fixed":
            return self.value if self.value is not None else self.mean
        elif self.distribution == "uniform":
            if self.integer:
                return int(rng.integers(int(self.min_val), int(self.max_val), endpoint=True))
            return float(rng.uniform(self.min_val, self.max_val))
        elif self.distribution == "normal":
            val = float(np.clip(rng.normal(self.mean, self.std), self.min_val, self.max_val))
            return int(round(val)) if self.integer else val
        else:
            raise ValueError(f"Unknown distribution: {self.distribution}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SamplingSpec":
        return cls(
            distribution=d.get("distribution", "uniform"),
            min_val=d.get("min", 0.0),
            max_val=d.get("max", 1.0),
            mean=d.get("mean", (d.get("min", 0.0) + d.get("max", 1.0)) / 2),
            std=d.get("std", 0.1),
            value=d.get("value"),
            integer=d.get("integer", False),
        )


@dataclass
class DatasetSpec:
    """Captured frames to blur: root/<sequence>/<capture_pattern>."""
    name: str
    root: str
    capture_pattern: str = "*.npy"


@dataclass
class OutputSpec:
    """Specification for output paths."""
    root: str
    blur_subdir: str = "blur"


class CSVGenerator:
    """Generate a CSV parameter sweep over captured frames.

    YAML config format:
    ```yaml
    dataset:
      name: flythrough
      root: /path/to/captures
      capture_pattern: "*.npy"

    output:
      root: /path/to/output
      blur_subdir: blur

    params:
      blur_length:
        distribution: uniform
        min: 0.1
        max: 2.0
      max_samples:
        distribution: uniform
        min: 3
        max: 32
        integer: true
      high_quality:
        distribution: fixed
        value: false

    generation:
      seed: 42
      samples: 1000
    ```
    """

    PARAM_COLUMNS = [
        "blur_length",
        "max_samples",
        "high_quality",
        "depth_threshold",
        "gaussian_sigma",
        "bilateral_depth_sigma",
    ]

    DEFAULT_SPECS = {
        "blur_length": {"distribution": "uniform", "min": 0.1, "max": 2.0},
        "max_samples": {"distribution": "uniform", "min": 3, "max": 32, "integer": True},
        "high_quality": {"distribution": "fixed", "value": False},
        "depth_threshold": {"distribution": "uniform", "min": 0.001, "max": 0.1},
        "gaussian_sigma": {"distribution": "uniform", "min": 0.1, "max": 3.0},
        "bilateral_depth_sigma": {"distribution": "uniform", "min": 0.001, "max": 0.1},
    }

    def __init__(self, config_path: Union[str, Path]):
        """Initialize generator from YAML config."""
        self.config_path = Path(config_path)
        with open(config_path) as f:
            self.config = yaml.safe_load(f)

        self.dataset = DatasetSpec(
            name=self.config["dataset"]["name"],
            root=self.config["dataset"]["root"],
            capture_pattern=self.config["dataset"].get("capture_pattern", "*.npy"),
        )

        self.output = OutputSpec(
            root=self.config["output"]["root"],
            blur_subdir=self.config["output"].get("blur_subdir", "blur"),
        )

        self.param_specs = {}
        for param in self.PARAM_COLUMNS:
            if "params" in self.config and param in self.config["params"]:
                self.param_specs[param] = SamplingSpec.from_dict(self.config["params"][param])
            else:
                self.param_specs[param] = SamplingSpec.from_dict(self.DEFAULT_SPECS.get(param, {}))

        gen_cfg = self.config.get("generation", {})
        self.seed = gen_cfg.get("seed", 42)
        self.max_rows = gen_cfg.get("samples", None)

    def _discover_samples(self) -> List[Dict[str, str]]:
        """Discover captures; sub-directories are sequences, loose files form sequence ''."""
        root = Path(self.dataset.root)
        samples = []

        seq_dirs = [root] + sorted(p for p in root.iterdir() if p.is_dir())
        for seq_dir in seq_dirs:
            sequence = "" if seq_dir == root else seq_dir.name
            for capture in sorted(seq_dir.glob(self.dataset.capture_pattern)):
                if not capture.is_file():
                    continue
                samples.append({
                    "sequence": sequence,
                    "frame": capture.stem,
                    "capture_path": capture.relative_to(root).as_posix(),
                })

        return samples

    def _output_path(self, sample: Dict[str, str]) -> str:
        parts = [self.output.blur_subdir, sample["sequence"], f"{sample['frame']}.png"]
        return "/".join(p for p in parts if p)

    def generate(self, output_csv: Union[str, Path]) -> int:
        """Generate CSV configuration file.

        Returns:
            number of rows written
        """
        rng = np.random.default_rng(self.seed)

        samples = self._discover_samples()
        if self.max_rows is not None and len(samples) > self.max_rows:
            indices = rng.choice(len(samples), self.max_rows, replace=False)
            samples = [samples[i] for i in sorted(indices)]

        output_csv = Path(output_csv)
        output_csv.parent.mkdir(parents=True, exist_ok=True)

        columns = ["sample_id", "sequence", "frame", "input_capture", "output_blur"] + self.PARAM_COLUMNS

        with open(output_csv, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()

            for sample in samples:
                sample_id = hashlib.md5(f"{sample['sequence']}_{sample['frame']}".encode()).hexdigest()[:12]
                row = {
                    "sample_id": sample_id,
                    "sequence": sample["sequence"],
                    "frame": sample["frame"],
                    "input_capture": sample["capture_path"],
                    "output_blur": self._output_path(sample),
                }

                for param in self.PARAM_COLUMNS:
                    row[param] = self.param_specs[param].sample(rng)

                writer.writerow(row)

        return len(samples)
