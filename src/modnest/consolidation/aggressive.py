from __future__ import annotations

"""
Aggressive replace: copy, destructive prune, then ignore in one pass.

Every transient directory is merged into the merge directory, the original
is deleted and replaced by a relative symlink (empty ones included), and
each replaced path gets an ignore entry unless it is named ``.tmp``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from modnest.constants import GITIGNORE_NAME
from modnest.core.interfaces.classifier import PathClassifierProtocol
from modnest.core.interfaces.fs import FileOperationsProtocol
from modnest.core.models import PruneMode
from modnest.core.report import CopyReport, PruneReport
from modnest.consolidation.copier import ConsolidationCopier
from modnest.consolidation.pruner import ReversiblePruner
from modnest.discovery.transient_finder import TransientDirFinder
from modnest.io.record import ConsolidationRecord
from modnest.logging.helpers import get_logger
from modnest.utils.paths import posix_relpath


@dataclass
class GitignoreUpdater:
    classifier: PathClassifierProtocol
    file_ops: FileOperationsProtocol
    logger: Optional[logging.Logger] = None
    skip_names: Tuple[str, ...] = field(default=('.tmp',))

    def __post_init__(self) -> None:
        self._log = self.logger or get_logger('gitignore')

    def ignore_location(self, source: Path, root: Path) -> Tuple[Path, str]:
        """(ignore file, entry) for *source*: nearest enclosing repository, else its parent."""
        root = Path(root)
        cur = Path(source).parent
        while True:
            if self.classifier.is_repository_root(cur):
                return cur / GITIGNORE_NAME, posix_relpath(source, cur) + '/'
            if cur == root or cur.parent == cur:
                break
            cur = cur.parent
        return Path(source).parent / GITIGNORE_NAME, Path(source).name + '/'

    def ensure_ignored(self, source: Path, root: Path) -> bool:
        """Append the ignore entry for *source*; return True when a line was (or would be) added."""
        if Path(source).name.casefold() in {n.casefold() for n in self.skip_names}:
            return False
        path, entry = self.ignore_location(source, root)
        if path.is_file():
            existing = path.read_text(encoding='utf-8', errors='replace').splitlines()
            if entry in existing:
                self._log.debug("'%s' already in %s", entry, path)
                return False
        self.file_ops.append_line(path, entry)
        if not self.file_ops.dry_run:
            self._log.info("Appended '%s' to %s", entry, path)
        return True


class AggressiveReplacer:
    def __init__(
        self,
        *,
        finder: TransientDirFinder,
        copier: ConsolidationCopier,
        pruner: ReversiblePruner,
        ignorer: GitignoreUpdater,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._finder = finder
        self._copier = copier
        self._pruner = pruner
        self._ignorer = ignorer
        self._log = logger or get_logger('aggressive')

    def run(self, root: Path, merge_root: Path, record: ConsolidationRecord) -> Tuple[CopyReport, PruneReport, int]:
        self._log.warning(
            '⚠  AGGRESSIVE MODE: originals are deleted and replaced with symlinks into %s', merge_root,
        )
        found = self._finder.find(root, merge_root)
        copy_report = self._copier.copy(found.candidates, merge_root, record)

        prune_report = self._pruner.prune(record, merge_root, root, PruneMode.DELETE, allow_empty=True)

        # Only originals that now point into the merge directory get ignored.
        added = 0
        for linked in prune_report.linked:
            try:
                if self._ignorer.ensure_ignored(Path(linked), root):
                    added += 1
            except OSError as exc:
                self._log.warning('⚠  could not update ignore file for %s: %s', linked, exc)
        return copy_report, prune_report, added
