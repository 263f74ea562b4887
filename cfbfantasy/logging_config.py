"""Logging setup for the sync, calculation and reconciliation jobs."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = 'CFB_LOG_DIR'

# HTTP client loggers that flood DEBUG output during upstream syncs
NOISY_LOGGERS = ('urllib3', 'requests')


def log_file_name(job: Optional[str] = None, started: Optional[datetime] = None) -> str:
    """
    Name of a run's log file: cfbfantasy_<job>_<timestamp>.log.

    Example:
        >>> log_file_name('reconcile', datetime(2025, 9, 14, 3, 0, 5))
        'cfbfantasy_reconcile_20250914_030005.log'
    """
    stamp = (started or datetime.now()).strftime('%Y%m%d_%H%M%S')
    return f'cfbfantasy_{job}_{stamp}.log' if job else f'cfbfantasy_{stamp}.log'


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    job: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the 'cfbfantasy' logger for one job run.

    Each run gets its own file named after the job, so a nightly
    reconciliation and a gameday poll started in the same second don't
    share a log. Calling it again replaces earlier handlers.

    Args:
        log_dir: Directory for log files (default: $CFB_LOG_DIR or ./logs)
        level: Logging level (default: INFO)
        log_to_file: Whether to log to file (default: True)
        log_to_console: Whether to log to console (default: True)
        job: Job name used in the log file name, e.g. 'reconcile'

    Returns:
        Configured 'cfbfantasy' logger

    Example:
        from cfbfantasy.logging_config import setup_logging
        logger = setup_logging(job='reconcile')
        logger.info("Starting nightly reconciliation")
    """
    logger = logging.getLogger('cfbfantasy')
    logger.setLevel(level)

    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s: %(message)s')

    if log_to_file:
        if log_dir is None:
            log_dir = Path(os.environ.get(LOG_DIR_ENV, 'logs'))
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_dir / log_file_name(job))
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name: str = 'cfbfantasy') -> logging.Logger:
    """Get a logger; module loggers are children of 'cfbfantasy'."""
    return logging.getLogger(name)
