"""
Logging helpers shared by the command line tools.
"""
import logging


def setup_logging(log_file: str = None, level=logging.INFO) -> logging.Logger:
    """
    Set up logging for the stride_pipeline package.

    Args:
        log_file: Path to log file (if None, logs to console only)
        level: Logging level

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("stride_pipeline")
    logger.setLevel(level)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Avoid stacking handlers when called more than once
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
