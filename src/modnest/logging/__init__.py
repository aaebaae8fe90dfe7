from .factory import DefaultLoggerFactory
from .helpers import get_logger, log_with_context, setup_base_logger, trace_io

__all__ = ["DefaultLoggerFactory", "get_logger", "log_with_context", "setup_base_logger", "trace_io"]
