from __future__ import annotations

"""
Dry-run scratch session.

Dry runs never write inside the hierarchy, yet copy and prune still need a
record to hand over to each other. `DryRunSession` owns a private scratch
directory for such ephemeral records and removes it when the block exits.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from modnest.io.record import ConsolidationRecord
from modnest.logging.helpers import get_logger


class DryRunSession:
    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or get_logger('dryrun')
        self._scratch: Optional[Path] = None

    @property
    def scratch_dir(self) -> Path:
        if self._scratch is None:
            self._scratch = Path(tempfile.mkdtemp(prefix='modnest-dryrun-'))
            self._log.debug('dry-run scratch directory %s', self._scratch)
        return self._scratch

    def new_record(self) -> ConsolidationRecord:
        return ConsolidationRecord.create(self.scratch_dir, logger=get_logger('io.record'))

    def close(self) -> None:
        if self._scratch is None:
            return
        try:
            shutil.rmtree(self._scratch)
            self._log.debug('🗑  removed dry-run scratch %s', self._scratch)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._log.warning('⚠  could not remove dry-run scratch %s: %s', self._scratch, exc)
        finally:
            self._scratch = None

    def __enter__(self) -> 'DryRunSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
