import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


# Global set to track configured loggers and prevent duplicate handlers
_configured_loggers = set()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[Union[int, str]] = None,
    console: bool = True,
    logs_dir: str = "logs"
):
    """
    Setup a logger with rotating file handler and optional console handler.

    Args:
        name: Logger name (will write to <logs_dir>/<name>.log by default)
        log_file: Optional custom log file path
        level: Logging level (defaults to config.settings.LOG_LEVEL)
        console: Whether to add console handler
        logs_dir: Directory for the default log file

    Returns:
        Configured logger instance
    """
    # Import here to avoid circular imports
    try:
        from config.settings import LOG_LEVEL
    except ImportError:
        LOG_LEVEL = "INFO"

    # Convert string level to int if needed
    if level is None:
        level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    elif isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent adding duplicate handlers if logger was already configured
    if name in _configured_loggers:
        return logger

    # Set propagate to False to prevent root logger duplication
    logger.propagate = False

    if log_file is None:
        logs_path = Path(logs_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"{name}.log"
    else:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

    # Rotation: 10MB, 5 backups
    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

    _configured_loggers.add(name)

    return logger
