from __future__ import annotations

"""
Repository tree walker.

For one parent repository, finds the *first* repository root along every
branch beneath it. Ordinary folders are walked through transparently; a
discovered child repository is never entered because it owns its own
submodules.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set

from modnest.constants import DEFAULT_EXCLUDE_NAMES
from modnest.core.interfaces.classifier import PathClassifierProtocol
from modnest.core.interfaces.git import RemoteUrlResolverProtocol
from modnest.core.models import RepositoryNode, SubmoduleEdge
from modnest.logging.helpers import get_logger
from modnest.utils.paths import canonical, is_within_dir, list_subdirs, posix_relpath

_INVALID_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def derive_submodule_name(path: Path) -> str:
    """Basename of *path* with spaces as underscores and other odd characters dropped."""
    return _INVALID_NAME_CHARS.sub('', Path(path).name.replace(' ', '_'))


@dataclass
class RepositoryTreeWalker:
    classifier: PathClassifierProtocol
    resolver: RemoteUrlResolverProtocol
    exclude_names: Iterable[str] = DEFAULT_EXCLUDE_NAMES
    logger: Optional[logging.Logger] = None

    def __post_init__(self) -> None:
        self.exclude_names = tuple(self.exclude_names)
        self._log = self.logger or get_logger('walker')

    # -------- Public API --------

    def child_dirs(self, current: Path, root: Path) -> List[Path]:
        """Non-excluded immediate subdirectories of *current*, marker dir omitted."""
        try:
            subdirs = list_subdirs(current)
        except OSError as exc:
            self._log.warning('⚠  cannot list %s: %s – skipped', current, exc)
            return []
        marker = getattr(self.classifier, 'marker', '.git')
        out: List[Path] = []
        for d in subdirs:
            if d.name == marker:
                continue
            if self.classifier.is_excluded(d, self.exclude_names, root=root):
                self._log.debug('Skipping excluded dir: %s', d)
                continue
            out.append(d)
        return out

    def find_nested_repos(
        self,
        parent_repo: Path,
        current: Path,
        root: Path,
        *,
        visited: Optional[Set[Path]] = None,
    ) -> List[SubmoduleEdge]:
        """Return the nearest repository roots at or beneath *current*.

        If *current* is itself a repository root a single edge is returned and
        nothing below it is inspected. *visited* collects canonical paths so
        symlink loops terminate; pass the same set for every branch of one
        parent to guarantee non-overlapping edges.
        """
        seen = visited if visited is not None else set()
        # A link back to the parent must never become its own submodule.
        seen.add(canonical(Path(parent_repo)))
        edges: List[SubmoduleEdge] = []
        self._walk(Path(parent_repo), Path(current), Path(root), seen, edges)
        return edges

    def describe(self, path: Path) -> RepositoryNode:
        is_repo = self.classifier.is_repository_root(path)
        url = self.resolver.remote_url(path) if is_repo else ''
        return RepositoryNode(path=Path(path), is_repo=is_repo, remote_url=url or None)

    def make_edge(self, parent_repo: Path, child: Path, root: Path) -> SubmoduleEdge:
        node = self.describe(child)
        # Without a configured remote the child is addressed relative to the hierarchy root.
        url = node.remote_url or posix_relpath(child, root)
        return SubmoduleEdge(
            parent_repo_path=parent_repo,
            child_repo_path=child,
            relative_path=posix_relpath(child, parent_repo),
            derived_name=derive_submodule_name(child),
            resolved_url=url,
        )

    # -------- Internal helpers --------

    def _walk(self, parent_repo: Path, current: Path, root: Path, seen: Set[Path], edges: List[SubmoduleEdge]) -> None:
        key = canonical(current)
        if key in seen:
            self._log.debug('↪  %s already visited (symlink loop?) – skipped', current)
            return
        seen.add(key)
        if is_within_dir(parent_repo, key):
            self._log.debug('↪  %s leads back to an ancestor of %s – skipped', current, parent_repo)
            return

        if self.classifier.is_repository_root(current):
            edge = self.make_edge(parent_repo, current, root)
            self._log.debug('Added submodule: name=%s path=%s url=%s', edge.derived_name, edge.relative_path, edge.resolved_url)
            edges.append(edge)
            return

        for sub in self.child_dirs(current, root):
            self._walk(parent_repo, sub, root, seen, edges)
