import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def config_logging(
    console_level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    file_level: Union[int, str] = "DEBUG",
    fmt: str = DEFAULT_FORMAT,
) -> None:
    """Route the root logger to stdout and, optionally, a log file."""
    console_level = logging.getLevelName(console_level) if isinstance(console_level, str) else console_level
    file_level = logging.getLevelName(file_level) if isinstance(file_level, str) else file_level

    log_formatter = logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(min(file_level, console_level) if log_file is not None else console_level)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(file_level)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(console_level)
    root_logger.addHandler(console_handler)

    # Avoid pollution by packages
    logging.getLogger("PIL").setLevel(logging.INFO)
