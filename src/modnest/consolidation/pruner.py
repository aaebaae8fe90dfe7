from __future__ import annotations

"""
Reversible pruner.

Consumes a consolidation record and, for each entry, removes the original
transient directory (delete mode) or moves it into a timestamped recycle area
(recycle mode), then leaves a relative symlink at the original location that
points at the consolidated copy. Failures are per entry: they are logged with
the path and the attempted action, counted as skipped, and the loop goes on.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from modnest.constants import LARGE_FILE_BYTES, RECYCLE_DIR_NAME, RECYCLE_STAMP_FORMAT
from modnest.core.interfaces.fs import FileOperationsProtocol
from modnest.core.models import PruneMode, RecordEntry, RecycleEntry
from modnest.core.report import PruneReport
from modnest.io.file_ops import FileOperations
from modnest.io.record import ConsolidationRecord
from modnest.logging.helpers import get_logger, log_with_context
from modnest.utils.paths import canonical, is_within_dir, relative_link_target


def _has_files(path: Path) -> bool:
    for _, _, filenames in os.walk(path):
        if filenames:
            return True
    return False


def _large_files(path: Path, limit: int = LARGE_FILE_BYTES) -> int:
    count = 0
    for dirpath, _, filenames in os.walk(path):
        for fn in filenames:
            fp = Path(dirpath, fn)
            try:
                if not fp.is_symlink() and fp.stat().st_size > limit:
                    count += 1
            except OSError:
                continue
    return count


class ReversiblePruner:
    def __init__(
        self,
        *,
        file_ops: Optional[FileOperationsProtocol] = None,
        recycle_dir_name: str = RECYCLE_DIR_NAME,
        clock=datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fs = file_ops or FileOperations()
        self._recycle_name = recycle_dir_name
        self._clock = clock
        self._log = logger or get_logger('prune')

    def recycle_root(self, merge_root: Path) -> Path:
        return Path(merge_root) / self._recycle_name

    def _stamp_dir(self, merge_root: Path) -> Path:
        base = self.recycle_root(merge_root)
        stamp = self._clock().strftime(RECYCLE_STAMP_FORMAT)
        cand = base / stamp
        n = 1
        while cand.exists():
            cand = base / f'{stamp}-{n}'
            n += 1
        return cand

    @staticmethod
    def _relative_to_root(source: Path, root: Path) -> Path:
        try:
            return Path(source).relative_to(root)
        except ValueError:
            return Path(*Path(source).parts[1:]) if Path(source).is_absolute() else Path(source)

    def prune(
        self,
        record: ConsolidationRecord,
        merge_root: Path,
        root: Path,
        mode: PruneMode = PruneMode.RECYCLE,
        *,
        allow_empty: bool = False,
    ) -> PruneReport:
        """Replace every recorded source with a link to its consolidated copy.

        A copy with no files is treated as missing unless *allow_empty* is set.
        """
        merge_root = Path(merge_root)
        root = Path(root)
        dry = self._fs.dry_run
        report = PruneReport()
        stamp_dir: Optional[Path] = None

        self._log.info('Prune: using record file %s (%s mode)', record.path, mode.value)

        for entry in record:
            report.processed += 1
            src, tgt = entry.source, entry.target

            if is_within_dir(src, merge_root):
                self._log.info('Skipping %s (inside merge directory %s)', src, merge_root)
                report.skipped += 1
                continue

            if not self._target_ready(entry, dry, allow_empty):
                report.skipped += 1
                continue

            if src.is_symlink():
                if canonical(src) == canonical(tgt):
                    self._log.info('Skipping %s (already linked to %s)', src, tgt)
                else:
                    self._log.warning('⚠  %s is a symlink not pointing at %s – left untouched', src, tgt)
                report.skipped += 1
                continue
            if not src.exists():
                self._log.warning('⚠  source %s no longer exists – nothing to prune', src)
                report.skipped += 1
                continue

            try:
                if mode is PruneMode.DELETE:
                    large = _large_files(src)
                    if large:
                        report.large_files += large
                        self._log.warning('⚠  %s contains %d file(s) >10MB (removed by --delete)', src, large)
                    self._fs.remove_tree(src)
                    if not dry:
                        self._log.info('Deleted %s', src)
                else:
                    if stamp_dir is None:
                        stamp_dir = self._stamp_dir(merge_root)
                    dest = stamp_dir / self._relative_to_root(src, root)
                    self._fs.move(src, dest)
                    report.recycle_entries.append(RecycleEntry(original_path=src, recycle_path=dest, created_at=self._clock()))
                    report.recycled += 1
                    if not dry:
                        self._log.info('Moved %s -> %s', src, dest)
            except OSError as exc:
                action = 'delete' if mode is PruneMode.DELETE else 'move to recycle'
                log_with_context(
                    self._log, logging.ERROR, 'could not %s %s: %s – skipped', action, src, exc,
                    path=str(src), action=action,
                )
                report.skipped += 1
                continue

            link_text = relative_link_target(src, tgt)
            try:
                self._fs.symlink(src, link_text)
            except OSError as exc:
                log_with_context(
                    self._log, logging.ERROR, 'could not link %s -> %s: %s – original is %s',
                    src, link_text, exc,
                    'deleted' if mode is PruneMode.DELETE else f'in {report.recycle_entries[-1].recycle_path}',
                    path=str(src), action='symlink',
                )
                report.skipped += 1
                continue
            if not dry:
                self._log.info('Linked %s -> %s', src, link_text)
            report.pruned += 1
            report.linked.append(str(src))

        self._log.info('✔ Prune complete: %s', report.summary())
        if report.large_files:
            self._log.warning('⚠  %d large file(s) (>10MB) were encountered during prune', report.large_files)
        return report

    def _target_ready(self, entry: RecordEntry, dry: bool, allow_empty: bool = False) -> bool:
        """Check the consolidated copy exists and holds files.

        Under dry-run the copy was never made, so its presence is simulated.
        """
        src, tgt = entry.source, entry.target
        if not tgt.is_dir():
            if dry:
                self._log.info('DRY-RUN: target %s for %s not found; simulating presence', tgt, src)
                return True
            log_with_context(
                self._log, logging.WARNING, '⚠  target backup not found for %s -> %s; skipping', src, tgt,
                path=str(src), action='prune',
            )
            return False
        if not allow_empty and not _has_files(tgt):
            if dry:
                self._log.info('DRY-RUN: target %s appears empty; simulating content', tgt)
                return True
            self._log.warning('⚠  target backup %s appears empty; skipping %s', tgt, src)
            return False
        return True
