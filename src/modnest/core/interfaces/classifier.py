from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional, Protocol, runtime_checkable


@runtime_checkable
class PathClassifierProtocol(Protocol):
    """Answers the two structural questions every traversal asks."""

    def is_repository_root(self, path: Path) -> bool:
        """Return True when a repository marker exists at *path*."""
        ...

    def is_excluded(
        self,
        path: Path,
        names: Iterable[str],
        *,
        root: Optional[Path] = None,
        ignore_case: bool = False,
    ) -> bool:
        """Return True when any component of *path* is in *names*."""
        ...
