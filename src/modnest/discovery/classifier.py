from __future__ import annotations

"""Path classification shared by every traversal.

A single `is_excluded` predicate is applied by the repository walker, the
orchestrator and the transient-directory finder. It checks every path
component, never only the basename, because traversal reaches candidates
through ordinary intermediate folders.
"""

from pathlib import Path
from typing import Iterable, Optional

from modnest.constants import REPO_MARKER
from modnest.core.interfaces.classifier import PathClassifierProtocol


class PathClassifier(PathClassifierProtocol):
    def __init__(self, *, marker: str = REPO_MARKER) -> None:
        self._marker = marker

    @property
    def marker(self) -> str:
        return self._marker

    def is_repository_root(self, path: Path) -> bool:
        # Either a clone (.git/) or a worktree/submodule (.git file); contents are not parsed.
        m = Path(path) / self._marker
        return m.is_dir() or m.is_file()

    def is_excluded(
        self,
        path: Path,
        names: Iterable[str],
        *,
        root: Optional[Path] = None,
        ignore_case: bool = False,
    ) -> bool:
        """Return True if any component of *path* matches an entry of *names*.

        When *root* is given only the components below it are inspected, so
        a hierarchy that itself lives under e.g. ``~/.cache`` is still walked.
        """
        p = Path(path)
        if root is not None:
            try:
                p = p.relative_to(root)
            except ValueError:
                pass
        if ignore_case:
            wanted = {n.casefold() for n in names}
            return any(part.casefold() in wanted for part in p.parts)
        wanted = set(names)
        return any(part in wanted for part in p.parts)
