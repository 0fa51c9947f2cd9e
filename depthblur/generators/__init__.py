"""depthblur generators: CSV parameter sweeps and batch blurring."""

from .csv_generator import CSVGenerator
from .dataset_generator import DatasetGenerator

__all__ = ["CSVGenerator", "DatasetGenerator"]
