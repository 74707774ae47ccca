import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = "INFO"
LEVEL_ENV_VAR = "DEFERRED_LOG_LEVEL"


def configure_logging(level=None):
    """Send log records to a rich console handler.

    Only the runnable examples call this. Library modules just ask for a
    logger and leave handler setup to whoever runs them.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, DEFAULT_LEVEL)

    console = Console(stderr=True)
    logging.basicConfig(
        level=level,
        format="%(message)s",  # Rich handles formatting
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                show_time=True,
                show_level=True,
                show_path=False,
                log_time_format="%H:%M:%S.%f",
            )
        ],
        force=True,
    )

    # Silence noisy libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
