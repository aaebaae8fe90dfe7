# src/modnest/utils/paths.py
"""
paths – Small, centralized path helpers for modnest.

Provides:
  • is_within_dir(path, parent)     – containment check on canonical paths
  • canonical(path)                 – realpath that tolerates missing paths
  • posix_relpath(path, start)      – relative path with '/' separators
  • relative_link_target(link, tgt) – symlink text pointing from *link* to *tgt*
  • list_subdirs(path)              – name-sorted immediate subdirectories
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import List


def canonical(p: Path) -> Path:
    """Return the canonical form of *p*; missing tails are kept as given."""
    return Path(os.path.realpath(p))


def is_within_dir(path: Path, parent: Path) -> bool:
    """Return True if *path* is *parent* itself or is contained inside it."""
    try:
        canonical(path).relative_to(canonical(parent))
        return True
    except ValueError:
        return False


def posix_relpath(path: Path, start: Path) -> str:
    """Relative path from *start* to *path* using forward slashes."""
    return PurePath(os.path.relpath(path, start)).as_posix()


def relative_link_target(link: Path, target: Path) -> str:
    """Text for a symlink placed at *link* that resolves to *target*."""
    return os.path.relpath(canonical(target), canonical(link.parent))


def list_subdirs(path: Path) -> List[Path]:
    """Immediate subdirectories of *path* (symlinks to dirs included), by name.

    Name order mirrors shell glob expansion and keeps re-runs stable.
    """
    out: List[Path] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                if entry.is_dir():
                    out.append(Path(entry.path))
            except OSError:
                continue
    return sorted(out, key=lambda p: p.name)
