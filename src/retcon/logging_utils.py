"""
Logging helpers for retcon.

The terminal belongs to the UI while retcon runs, so log records go to a file
rather than stderr.
"""

import logging
from pathlib import Path


def configure_logging(verbosity: int, log_file: Path) -> None:
    """
    Configure the root logger based on a verbosity count.

    verbosity == 0 -> WARNING
    verbosity == 1 -> INFO
    verbosity >= 2 -> DEBUG
    """

    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        filename=str(log_file),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
