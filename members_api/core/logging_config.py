"""
Logging Setup
Shared log format for the Lambda handler, the API server and batch scripts.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger.

    The Lambda runtime installs its own root handler before our code runs,
    so basicConfig is a no-op there and only the level is applied.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger().setLevel(level)
    # boto's wire logging is too noisy at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
