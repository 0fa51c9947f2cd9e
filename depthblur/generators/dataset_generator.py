"""Dataset Generator: parallel motion blur over captured frames from a CSV sweep."""

import csv
import logging
import torch
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
from tqdm import tqdm
import traceback

from ..core import BlurConfig, BlurParams, MotionBlurEngine
from ..codecs import FrameCodec, save_color

logger = logging.getLogger(__name__)

SPEC_COLUMNS = ["sample_id", "sequence", "frame", "input_capture", "output_blur"]


@dataclass
class SampleSpec:
    """Specification for a single sample."""
    sample_id: str
    sequence: str
    frame: str
    input_capture: str
    output_blur: str
    params: Dict[str, Any]


def _parse_value(raw: str) -> Any:
    if raw in ("True", "true"):
        return True
    if raw in ("False", "false"):
        return False
    try:
        return float(raw)
    except (ValueError, TypeError):
        return raw


def _build_params(spec: SampleSpec, cfg: BlurConfig) -> BlurParams:
    """Row values over config defaults."""
    d = cfg.defaults().to_dict()
    d.update({k: v for k, v in spec.params.items() if v != ""})
    d["max_samples"] = int(d["max_samples"])
    d["high_quality"] = bool(d["high_quality"])
    return BlurParams.from_dict(d)


def _process_sample(
    spec: SampleSpec,
    input_root: Path,
    output_root: Path,
    cfg_dict: Dict[str, Any],
    device: str = "cpu",
) -> Dict[str, Any]:
    """Process a single sample (worker function)."""
    try:
        cfg = BlurConfig.from_dict(cfg_dict)
        cfg.device = device
        params = _build_params(spec, cfg)

        capture = FrameCodec.load(input_root / spec.input_capture)

        color = torch.from_numpy(capture["color"]).permute(2, 0, 1).to(device)  # [C, H, W]
        motion = torch.from_numpy(capture["motion"]).permute(2, 0, 1).to(device)  # [2, H, W]
        depth = torch.from_numpy(capture["depth"]).to(device)  # [H, W]

        engine = MotionBlurEngine(cfg)
        blur, meta = engine.apply(
            color=color,
            motion=motion,
            depth=depth,
            elapsed_time=capture["elapsed_time"],
            camera=capture["camera"],
            params=params,
        )

        save_color(output_root / spec.output_blur, blur.cpu().numpy().transpose(1, 2, 0))

        return {
            "sample_id": spec.sample_id,
            "status": "success",
            "fallback_ratio": meta["fallback_ratio"],
        }

    except Exception as e:
        return {
            "sample_id": spec.sample_id,
            "status": "error",
            "error": str(e),
            "traceback": traceback.format_exc(),
        }


class DatasetGenerator:
    """Apply motion blur to captured frames listed in a CSV sweep.

    Reads CSV with sample specs and blurs captures in parallel.
    """

    def __init__(
        self,
        csv_path: Path,
        input_root: Path,
        output_root: Path,
        config: Optional[BlurConfig] = None,
    ):
        """Initialize generator.

        Args:
            csv_path: path to CSV sweep
            input_root: root directory of captures
            output_root: root directory for blurred frames
            config: BlurConfig (uses defaults if None)
        """
        self.csv_path = Path(csv_path)
        self.input_root = Path(input_root)
        self.output_root = Path(output_root)
        self.config = config or BlurConfig()

        self.samples = self._load_csv()

    def _load_csv(self) -> List[SampleSpec]:
        """Load samples from CSV."""
        samples = []
        with open(self.csv_path) as f:
            reader = csv.DictReader(f)
            for row in reader:
                params = {k: _parse_value(v) for k, v in row.items() if k not in SPEC_COLUMNS}
                samples.append(SampleSpec(
                    sample_id=row["sample_id"],
                    sequence=row.get("sequence", ""),
                    frame=row.get("frame", ""),
                    input_capture=row["input_capture"],
                    output_blur=row["output_blur"],
                    params=params,
                ))
        return samples

    def _record(self, results: Dict[str, Any], result: Dict[str, Any]) -> None:
        if result["status"] == "success":
            results["processed"] += 1
        else:
            logger.warning("Sample %s failed: %s", result["sample_id"], result["error"])
            results["errors"].append(result)

    def generate(
        self,
        num_workers: int = 4,
        device: str = "cpu",
        skip_existing: bool = True,
        progress: bool = True,
    ) -> Dict[str, Any]:
        """Generate dataset in parallel.

        Args:
            num_workers: number of parallel workers
            device: "cpu" or "cuda"
            skip_existing: skip samples with existing output
            progress: show progress bar

        Returns:
            dict with generation statistics
        """
        samples_to_process = []
        for spec in self.samples:
            output_blur = self.output_root / spec.output_blur
            if skip_existing and output_blur.exists():
                continue
            samples_to_process.append(spec)

        if not samples_to_process:
            return {"total": len(self.samples), "processed": 0, "skipped": len(self.samples), "errors": []}

        cfg_dict = self.config.to_dict()

        results = {"total": len(self.samples), "processed": 0, "skipped": len(self.samples) - len(samples_to_process), "errors": []}
        logger.info("Blurring %d of %d samples with %d worker(s)", len(samples_to_process), len(self.samples), num_workers)

        if num_workers <= 1:
            iterator = tqdm(samples_to_process, desc="Blurring") if progress else samples_to_process
            for spec in iterator:
                self._record(results, _process_sample(spec, self.input_root, self.output_root, cfg_dict, device))
        else:
            # Parallel processing (CPU only for multiprocessing)
            with ProcessPoolExecutor(max_workers=num_workers) as executor:
                futures = {
                    executor.submit(_process_sample, spec, self.input_root, self.output_root, cfg_dict, "cpu"): spec
                    for spec in samples_to_process
                }

                iterator = tqdm(as_completed(futures), total=len(futures), desc="Blurring") if progress else as_completed(futures)
                for future in iterator:
                    self._record(results, future.result())

        return results

    def generate_single(self, sample_id: str, device: str = "cpu") -> Dict[str, Any]:
        """Generate a single sample by ID."""
        spec = next((s for s in self.samples if s.sample_id == sample_id), None)
        if spec is None:
            return {"status": "error", "error": f"Sample {sample_id} not found"}

        return _process_sample(spec, self.input_root, self.output_root, self.config.to_dict(), device)
