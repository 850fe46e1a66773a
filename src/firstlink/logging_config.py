import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_rich: bool = True,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``firstlink`` logger.

    Console records go to stderr so the path report on stdout stays clean.
    The log file, if any, gets plain timestamped lines.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for logging output
        use_rich: Render console records with Rich instead of plain text
        force: If True, replace handlers installed by an earlier call

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("firstlink")
    logger.setLevel(numeric_level)

    if force or not logger.handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        console_handler: logging.Handler
        if use_rich:
            console_handler = RichHandler(
                console=Console(file=sys.stderr),
                show_path=False,
                markup=False,
                rich_tracebacks=True,
                log_time_format="[%H:%M:%S]",
            )
            console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            logger.addHandler(file_handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)

    # Keep records out of the root logger
    logger.propagate = False

    # aiohttp reports retried connections on its own loggers
    logging.getLogger("aiohttp").setLevel(max(numeric_level, logging.WARNING))

    return logger
