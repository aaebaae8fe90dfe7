from __future__ import annotations

"""
Consolidation copier.

Each transient directory is merged into ``<merge_root>/<name of its parent>``
so that all the scratch folders of one project land together. A record entry
is appended only once the copy (or, under dry-run, the simulated copy) has
completed; a killed run therefore never leaves entries for work not done.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from modnest.core.interfaces.fs import FileOperationsProtocol
from modnest.core.models import RecordEntry, TransientMatch
from modnest.core.report import CopyReport
from modnest.io.file_ops import FileOperations
from modnest.io.record import ConsolidationRecord, is_recordable
from modnest.logging.helpers import get_logger, log_with_context
from modnest.utils.paths import is_within_dir


def consolidation_target(source: Path, merge_root: Path) -> Path:
    """Where *source* is merged: grouped by the containing folder's name."""
    return Path(merge_root) / Path(source).parent.name


class ConsolidationCopier:
    def __init__(
        self,
        *,
        file_ops: Optional[FileOperationsProtocol] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fs = file_ops or FileOperations()
        self._log = logger or get_logger('copy')

    def copy(
        self,
        matches: Iterable[TransientMatch],
        merge_root: Path,
        record: ConsolidationRecord,
    ) -> CopyReport:
        merge_root = Path(merge_root)
        report = CopyReport(record=str(record.path))

        for m in matches:
            src = m.source_path
            report.found += 1

            if is_within_dir(src, merge_root):
                self._log.info('Skipping %s (inside merge directory %s)', src, merge_root)
                report.skipped_merge_root += 1
                continue

            target = consolidation_target(src, merge_root)
            entry = RecordEntry(source=src, target=target)
            if not (is_recordable(src) and is_recordable(target)):
                self._log.warning('⚠  %s contains a TAB or newline and cannot be recorded – skipped', src)
                report.skipped_failed += 1
                continue

            try:
                self._fs.make_dirs(target)
                self._fs.merge_tree(src, target)
            except (OSError, ValueError) as exc:
                # shutil.Error is an OSError subclass.
                log_with_context(
                    self._log, logging.WARNING, '⚠  could not merge %s -> %s: %s – skipped', src, target, exc,
                    path=str(src), action='merge',
                )
                report.skipped_failed += 1
                continue

            record.append(entry)
            if self._fs.dry_run:
                report.previewed += 1
            else:
                self._log.info('Merged %s -> %s', src, target)
                report.copied += 1

        if report.recorded:
            verb = 'Would copy/merge' if self._fs.dry_run else '✔ Copied/merged'
            self._log.info('%s %d temp dir(s) into %s (non-destructive)', verb, report.recorded, merge_root)
        elif report.found:
            self._log.info(
                'Found %d candidate temp dir(s) but none were copied (merge_dir_skipped=%d failed=%d)',
                report.found, report.skipped_merge_root, report.skipped_failed,
            )
        else:
            self._log.info('No temp dirs found to copy')
        return report
