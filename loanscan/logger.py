import logging
from sys import stdout

PACKAGE_LOGGER = "loanscan"
LOG_FORMAT = "[%(asctime)s] %(levelname)s:%(name)s.%(module)s:%(message)s"
HANDLER_NAME = "loanscan-stdout"

# Third-party loggers that flood DEBUG output with connection and signing details.
NOISY_LOGGERS = ("aiohttp", "botocore", "boto3", "s3transfer", "urllib3")


def setup_logging(log_level: str) -> logging.Logger:
    """
    Route the `loanscan` package logs to stdout at `log_level`.

    Calling it again only updates the level, a single handler is ever attached.
    Third-party loggers never go below WARNING, even in DEBUG runs.

    Raises:
        ValueError: if `log_level` is not a logging level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    handler = next((h for h in logger.handlers if h.get_name() == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    handler.setLevel(level)
    logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return logger
