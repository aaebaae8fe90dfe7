"""
core.errors – Fatal error taxonomy.

Only failures that must stop a run are exceptions. Per-entry problems
(missing prune target, failed copy or move, no repositories found) are
logged and counted in the run reports instead.
"""

from pathlib import Path
from typing import Optional


class ModNestError(Exception):
    """Base class for errors that abort a modnest run."""

    exit_code = 1


class InvalidRootError(ModNestError):
    """The hierarchy root does not exist or is not a directory."""

    def __init__(self, root: Path) -> None:
        super().__init__(f'directory does not exist: {root}')
        self.root = root


class MissingRecordError(ModNestError):
    """Prune was requested but no consolidation record is available."""

    def __init__(self, location: Path, detail: Optional[str] = None) -> None:
        msg = f'no consolidation record found in {location}'
        if detail:
            msg = f'{msg} ({detail})'
        super().__init__(msg)
        self.location = location


class RecordFormatError(ModNestError):
    """The consolidation record exists but cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f'cannot read record {path}: {reason}')
        self.path = path
