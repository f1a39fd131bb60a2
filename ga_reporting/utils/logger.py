import logging
import sys

PACKAGE_LOGGER = "ga_reporting"


def setup_logging(level: str = "INFO", quiet_client: bool = True) -> logging.Logger:
    """Send ga_reporting logs to stdout at the given level.

    googleapiclient logs every discovery and request at INFO; with
    quiet_client those records are held back to WARNING.
    """
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if quiet_client:
        logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    return logger
