"""Logging setup for CLI"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

import settings

DEBUG_LOG_FILE = "transfer_debug.log"


def setup_logging(debug: bool, console: Console, log_file: str = DEBUG_LOG_FILE) -> None:
    """
    Configure the root logger for a CLI session

    Args:
        debug: Whether debug mode is enabled (adds the debug log file)
        console: Rich console that renders log records
        log_file: Path of the debug log, appended to
    """
    root_logger = logging.getLogger()
    level = logging.DEBUG if debug else getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    root_logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=debug))

    if debug:
        log_path = os.path.abspath(log_file)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')  # 'a' to append
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(file_handler)
        logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_path}")

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
