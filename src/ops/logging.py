"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are noisy at DEBUG.
QUIET_LOGGERS = ("uvicorn.access", "asyncio")


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    if log_level == "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.INFO)
