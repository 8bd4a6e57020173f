"""Utils package initialization."""

from .logger import get_logger, setup_logger, log_exception

__all__ = [
    "get_logger",
    "setup_logger",
    "log_exception",
]
