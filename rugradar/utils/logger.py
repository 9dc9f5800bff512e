import os
import sys
from collections.abc import Callable, Iterable

from loguru import logger

# Log lines are tagged "[TAG] ..." by the component that emits them
DETECTOR_TAGS = ("[DETECTOR]", "[BUNDLE]", "[SNIPER]", "[WASH]", "[HONEYPOT]")


def has_tag(*tags: str) -> Callable[[dict], bool]:
    """loguru filter: keep records whose message starts with one of ``tags``."""
    return lambda record: record["message"].startswith(tags)


def without_tag(*tags: str) -> Callable[[dict], bool]:
    """loguru filter: drop records whose message starts with one of ``tags``."""
    return lambda record: not record["message"].startswith(tags)


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    quiet_tags: Iterable[str] = (),
) -> None:
    """Configure loguru for the engine and the API.

    Console level controlled by LOG_LEVEL env (default: INFO); ``quiet_tags``
    keeps chatty components (e.g. "[CACHE]") off the console only.
    The main file always captures DEBUG so degraded reports can be traced
    afterwards; detector verdicts also go to their own file.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    console_filter = without_tag(*quiet_tags) if quiet_tags else None
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level, filter=console_filter)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
            filter=console_filter,
        )

    logger.add(
        "logs/rugradar_{time:YYYY-MM-DD}.log",
        rotation="50 MB",
        retention="3 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
    logger.add(
        "logs/detectors_{time:YYYY-MM-DD}.log",
        rotation="20 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        filter=has_tag(*DETECTOR_TAGS),
        serialize=json_logs,
    )


def short(address: str) -> str:
    """Shorten an address for log lines."""
    return address[:12]
