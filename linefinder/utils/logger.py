"""
Logging setup for applications using linefinder.

Library modules only call ``logging.getLogger(__name__)`` under the
``linefinder`` namespace and never add handlers. Scripts call
:func:`setup_logger` once to see stage summaries (DEBUG), skipped
preprocessing steps and callback failures (WARNING), and can send a batch
run to a timestamped file from :func:`create_session_log_file`.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str = 'linefinder', log_level: Union[int, str] = logging.INFO,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console and optional file output to a linefinder logger.

    Args:
        name: Logger name; the default covers every linefinder module
        log_level: Level as an int or a name such as ``"DEBUG"``
        log_file: Also write to this file (parent directories are created)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    if isinstance(log_level, str):
        log_level = log_level.upper()
    logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # repeated calls must not stack duplicate console handlers
    if not any(getattr(h, '_linefinder_console', False) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler._linefinder_console = True
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def create_session_log_file(log_dir: str = 'logs') -> str:
    """Timestamped log path for one detection session, e.g. a batch run."""
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return str(Path(log_dir) / f"linefinder_{timestamp}.log")
