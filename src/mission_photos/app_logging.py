"""Logging configuration helpers."""

import logging

_NOISY_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "httpx", "kombu")


def configure_logging(level: str | int = logging.INFO) -> None:
    """Attach one stream handler to the ``mission_photos`` logger.

    SDK loggers that chatter at INFO on every request are held at WARNING.
    Calling this again only updates the level.
    """
    logger = logging.getLogger("mission_photos")
    logger.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
