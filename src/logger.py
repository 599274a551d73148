# logger.py
import logging
import os
import time

from config import LOG_DIR, LOG_LEVEL


class LogicalClockFilter(logging.Filter):
    """A filter that adds logical clock information to log records"""

    def __init__(self, clock):
        super().__init__()
        self.clock = clock

    def filter(self, record):
        record.logical_clock = str(self.clock)
        return True


def setup_logger(
    node_id,
    logical_clock,
    log_level=LOG_LEVEL,
    file_mode="w",
    log_dir=LOG_DIR,
    console=False,
):
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(f"node_{node_id}")
    logger.setLevel(log_level)
    logger.propagate = False

    # Clear any existing handlers and filters to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for old_filter in logger.filters[:]:
        logger.removeFilter(old_filter)

    # Inject the logical clock into each record
    logger.addFilter(LogicalClockFilter(logical_clock))

    log_file_name = os.path.join(
        log_dir, f"node_log_{time.strftime('%Y-%m-%d_%H-%M')}_{node_id}.txt"
    )
    file_handler = logging.FileHandler(log_file_name, mode=file_mode)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter(
            " %(message)s | %(asctime)s | %(levelname)s | [LogicalClock: %(logical_clock)s]"
        )
    )
    logger.addHandler(file_handler)

    if console:
        # Console shows the bare event lines: "l 7", "s B 7", "r B 3 8"
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    return logger
