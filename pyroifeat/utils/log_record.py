""" Report-mode logging for extraction runs, with ROI context on per-label records. """

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config.settings import LOG_FORMAT, LOG_LEVEL_MAP

LOGGER_NAME = "Dev_logger"


def roi_log_extra(method: str, label: int) -> Dict[str, Any]:
    """``extra`` mapping that tags a record with the method and ROI label it concerns."""
    return {"method": method, "roi_label": label}


class RoiContextFilter(logging.Filter):
    """Renders ``roi_context`` for the format string; empty for records without a ROI."""

    def filter(self, record: logging.LogRecord) -> bool:
        label = getattr(record, "roi_label", None)
        if label is None:
            record.roi_context = ""
        else:
            record.roi_context = f"[{getattr(record, 'method', '?')} ROI {label}] "
        return True


class MemoryLogHandler(logging.Handler):
    """Keeps formatted records of one run so they can be returned to the caller."""

    def __init__(self, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.lines: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))

    def get_logs(self) -> List[str]:
        return list(self.lines)


def _only_info(record: logging.LogRecord) -> bool:
    return record.levelno == logging.INFO


def _wire(handler: logging.Handler, level: int, report: str) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(RoiContextFilter())
    if report == "info":
        handler.addFilter(_only_info)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def initialize_logging(report: str = "all") -> Tuple[logging.Logger, Optional[MemoryLogHandler]]:
    """
    Reset the shared logger for a run of the given report mode.

    Console and memory handlers get the same level; "info" keeps INFO records only
    and "none" disables the logger. Returns the logger and the memory handler, or
    ``None`` in place of the handler when nothing is recorded.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    unknown = report not in LOG_LEVEL_MAP
    level_name = LOG_LEVEL_MAP["all" if unknown else report]

    if level_name is None:
        logger.disabled = True
        return logger, None

    logger.disabled = False
    level = getattr(logging, level_name)
    memory_handler = MemoryLogHandler()

    logger.addHandler(_wire(logging.StreamHandler(), level, report))
    logger.addHandler(_wire(memory_handler, level, report))

    if unknown:
        logger.warning("Unknown report mode '%s'; using 'all'", report)
    return logger, memory_handler
