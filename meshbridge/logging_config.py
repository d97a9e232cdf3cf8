"""
Logging Configuration
Sets up the 'meshbridge' logger used by every module of the package.

Console records go to stderr so that stdout carries only the converter's
report lines. Batch runs add the worker thread name to every record.
"""
import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "meshbridge"
DATE_FORMAT = '%H:%M:%S'
SINGLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
BATCH_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None,
                  batch: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configures the logger for the 'meshbridge' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file. The file always
                  records DEBUG so a failed batch can be inspected afterwards.
        batch: Include the worker thread name in each record
        stream: Console stream (default: sys.stderr)

    Returns:
        logging.Logger: The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)

    # Reconfiguring replaces the previous handlers
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(BATCH_FORMAT if batch else SINGLE_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized (console level {logging.getLevelName(level)}"
                 f"{', file ' + str(log_file) if log_file else ''})")
    return logger
