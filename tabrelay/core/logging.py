"""Process-wide logging setup for the tabrelay server."""
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that stay at WARNING unless debugging
NOISY_LOGGERS = ("asyncio", "uvicorn.access", "uvicorn.error")


def setup_logging(level: str = "INFO") -> None:
    """Send tabrelay logs to stdout at the given level.

    Args:
        level: Level name such as ``DEBUG`` or ``info``.

    Raises:
        ValueError: If the level name is not a known logging level.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    third_party = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)
