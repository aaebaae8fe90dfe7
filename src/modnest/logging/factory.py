from __future__ import annotations

import logging
from typing import Optional, TextIO

from modnest.logging.helpers import get_logger, level_for, setup_base_logger


class DefaultLoggerFactory:
    """Configures the ``modnest`` handler on first use and hands out child loggers."""

    def __init__(self, *, json_logs: bool = False, level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
        self.json_logs = bool(json_logs)
        self.level = int(level)
        self._stream = stream
        self._base: Optional[logging.Logger] = None

    @classmethod
    def from_flags(cls, *, json_logs: bool, debug: bool, stream: Optional[TextIO] = None) -> 'DefaultLoggerFactory':
        return cls(json_logs=json_logs, level=level_for(debug), stream=stream)

    @property
    def mode(self) -> tuple:
        return self.json_logs, self.level

    def get_logger(self, name: str) -> logging.Logger:
        if self._base is None:
            self._base = setup_base_logger(json_logs=self.json_logs, level=self.level, stream=self._stream)
        return get_logger(name)
