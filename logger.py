"""Logging configuration for Budget Buddy.

Sets up logging to a dated file and, optionally, the console. Modules get
children of the application logger so records carry their origin.
"""

import logging
from datetime import date
from typing import Optional
from config import Config

APP_LOGGER_NAME = "budget_buddy"


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Set up application logging.

    Args:
        config: Application configuration containing log settings.
        console: Whether to also log to the console. The CLI turns this off
                 for --quiet runs.

    Returns:
        Configured application logger.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Calling this twice must not duplicate output
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log_file_path = config.log_dir / f"budget-buddy-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the application logger, or one of its children.

    Args:
        name: Optional child name, e.g. "budget.redistribution".

    Returns:
        The budget_buddy logger, or budget_buddy.<name>.
    """
    logger = logging.getLogger(APP_LOGGER_NAME)
    if name:
        return logger.getChild(name)
    return logger
