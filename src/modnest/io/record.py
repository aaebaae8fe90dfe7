from __future__ import annotations

"""
Consolidation record – the audit trail between copy and prune.

On-disk format: one ``source<TAB>target`` line per entry, appended as soon as
the corresponding copy (or simulated copy) has completed. The pruner reads
this file and nothing else to decide what it may touch.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from modnest.constants import RECORD_PREFIX
from modnest.core.errors import MissingRecordError, RecordFormatError
from modnest.core.models import RecordEntry
from modnest.logging.helpers import get_logger, trace_io

_FORBIDDEN = ('\t', '\n', '\r')


def is_recordable(path: Path) -> bool:
    """A path can be stored only if it contains no field or line separator."""
    s = str(path)
    return not any(ch in s for ch in _FORBIDDEN)


class ConsolidationRecord:
    def __init__(self, path: Path, entries: Sequence[RecordEntry] = (), *, logger: Optional[logging.Logger] = None) -> None:
        self.path = Path(path)
        self._entries: List[RecordEntry] = list(entries)
        self._log = logger or get_logger('io.record')

    # -------- Construction --------

    @classmethod
    def create(cls, directory: Path, *, logger: Optional[logging.Logger] = None) -> 'ConsolidationRecord':
        """Create an empty record file with a unique name inside *directory*."""
        directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=RECORD_PREFIX, dir=str(directory))
        os.close(fd)
        return cls(Path(name), logger=logger)

    @classmethod
    def load(cls, path: Path, *, logger: Optional[logging.Logger] = None) -> 'ConsolidationRecord':
        log = logger or get_logger('io.record')
        path = Path(path)
        if not path.is_file():
            raise MissingRecordError(path.parent, f'{path.name} not found')
        try:
            raw = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            raise RecordFormatError(path, str(exc)) from exc

        entries: List[RecordEntry] = []
        for lineno, line in enumerate(raw.splitlines(), 1):
            if not line.strip():
                continue
            src, sep, tgt = line.partition('\t')
            if not sep or not src or not tgt or '\t' in tgt:
                log.warning('⚠  %s:%d malformed record line skipped: %r', path, lineno, line)
                continue
            entries.append(RecordEntry(source=Path(src), target=Path(tgt)))
        return cls(path, entries, logger=log)

    @staticmethod
    def latest(directory: Path) -> Optional[Path]:
        """Most recently modified ``copied_dirs.*`` file in *directory*."""
        if not directory.is_dir():
            return None
        candidates = [p for p in directory.glob(RECORD_PREFIX + '*') if p.is_file()]
        if not candidates:
            return None
        return max(candidates, key=lambda p: (p.stat().st_mtime, p.name))

    # -------- Append-only access --------

    def append(self, entry: RecordEntry) -> None:
        if not (is_recordable(entry.source) and is_recordable(entry.target)):
            raise ValueError(f'path cannot be recorded (contains TAB or newline): {entry.source}')
        with self.path.open('a', encoding='utf-8') as fh:
            fh.write(f'{entry.source}\t{entry.target}\n')
        self._entries.append(entry)
        trace_io(self._log, 'record append', source=str(entry.source), target=str(entry.target))

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RecordEntry]:
        return iter(tuple(self._entries))
