from __future__ import annotations

"""
Pattern-based transient directory finder.

A single os.walk over the hierarchy that:
  • prunes protected subtrees (build output, VCS metadata, editor caches);
  • never follows nor matches symlinked directories, which are what an
    earlier prune left behind;
  • does not descend into a match, so nested transient folders travel with
    the outer one;
  • does not descend into the merge directory and reports matches located
    there as discarded instead of returning them.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from modnest.constants import DEFAULT_PATTERNS, DEFAULT_PROTECTED_NAMES
from modnest.core.interfaces.classifier import PathClassifierProtocol
from modnest.core.models import FinderResult, TransientMatch
from modnest.discovery.classifier import PathClassifier
from modnest.logging.helpers import get_logger
from modnest.utils.paths import is_within_dir


@dataclass
class TransientDirFinder:
    patterns: Iterable[str] = DEFAULT_PATTERNS
    protected_names: Iterable[str] = DEFAULT_PROTECTED_NAMES
    classifier: Optional[PathClassifierProtocol] = None
    logger: Optional[logging.Logger] = None

    def __post_init__(self) -> None:
        self.patterns = tuple(p.casefold() for p in self.patterns)
        self.protected_names = tuple(self.protected_names)
        self.classifier = self.classifier or PathClassifier()
        self._log = self.logger or get_logger('finder')

    def match_pattern(self, name: str) -> Optional[str]:
        """Return the first pattern matching *name* case-insensitively."""
        folded = name.casefold()
        for pat in self.patterns:
            if fnmatch.fnmatchcase(folded, pat):
                return pat
        return None

    def find(self, root: Path, merge_root: Optional[Path] = None) -> FinderResult:
        root = Path(root)
        matches: List[TransientMatch] = []
        discarded: List[TransientMatch] = []

        for dirpath, dirnames, _ in os.walk(root):
            keep: List[str] = []
            for d in dirnames:
                cand = Path(dirpath, d)
                if cand.is_symlink():
                    self._log.debug('↪  %s is a symlink – not followed', cand)
                    continue
                if self.classifier.is_excluded(cand, self.protected_names, root=root, ignore_case=True):
                    self._log.debug('Skipping protected dir: %s', cand)
                    continue
                inside_merge = merge_root is not None and is_within_dir(cand, merge_root)
                pat = self.match_pattern(d)
                if pat is not None:
                    m = TransientMatch(source_path=cand, pattern=pat)
                    if inside_merge:
                        self._log.debug('Skipped %s (inside merge directory %s)', cand, merge_root)
                        discarded.append(m)
                    else:
                        matches.append(m)
                    continue
                if inside_merge:
                    continue
                keep.append(d)
            dirnames[:] = sorted(keep)

        matches.sort(key=lambda m: str(m.source_path))
        discarded.sort(key=lambda m: str(m.source_path))
        return FinderResult(matches=tuple(matches), discarded=tuple(discarded))
