from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple


class PruneMode(enum.Enum):
    """What happens to an original transient directory once it is consolidated."""
    RECYCLE = 'recycle'
    DELETE = 'delete'


class ManifestAction(enum.Enum):
    """Outcome of synchronizing one manifest with the filesystem."""
    WRITTEN = 'written'
    UNCHANGED = 'unchanged'
    DELETED = 'deleted'
    NONE = 'none'


@dataclass(frozen=True)
class RepositoryNode:
    path: Path
    is_repo: bool
    remote_url: Optional[str] = None


@dataclass(frozen=True)
class SubmoduleEdge:
    """One nested repository as seen from its owning (parent) repository."""
    parent_repo_path: Path
    child_repo_path: Path
    relative_path: str
    derived_name: str
    resolved_url: str


@dataclass(frozen=True)
class Manifest:
    """Submodule manifest of one repository; `edges` keep discovery order."""
    owner_path: Path
    edges: Tuple[SubmoduleEdge, ...] = ()
    text: str = ''

    @property
    def is_empty(self) -> bool:
        return not self.edges

    def duplicate_names(self) -> List[str]:
        seen: set[str] = set()
        dups: List[str] = []
        for e in self.edges:
            if e.derived_name in seen and e.derived_name not in dups:
                dups.append(e.derived_name)
            seen.add(e.derived_name)
        return dups


@dataclass(frozen=True)
class TransientMatch:
    source_path: Path
    pattern: str


@dataclass(frozen=True)
class RecordEntry:
    source: Path
    target: Path


@dataclass(frozen=True)
class RecycleEntry:
    original_path: Path
    recycle_path: Path
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class FinderResult:
    """Transient directories found under a root.

    `discarded` holds matches located inside the merge directory; they are
    reported but never consolidated.
    """
    matches: Tuple[TransientMatch, ...] = ()
    discarded: Tuple[TransientMatch, ...] = ()

    @property
    def candidates(self) -> Tuple[TransientMatch, ...]:
        """Every match, merge-directory ones included, in path order."""
        return tuple(sorted(self.matches + self.discarded, key=lambda m: str(m.source_path)))
