from __future__ import annotations

"""
Runtime reports for the nesting and consolidation flows.

Each component fills its own report and returns it; nothing here is global.
`RunReport` aggregates them for the CLI (`--report FILE`).
"""

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from modnest.core.models import RecycleEntry


@dataclass
class NestingReport:
    repositories: int = 0
    edges: int = 0
    written: int = 0
    unchanged: int = 0
    deleted: int = 0
    manifests: List[str] = field(default_factory=list)


@dataclass
class CopyReport:
    found: int = 0
    copied: int = 0
    previewed: int = 0
    skipped_merge_root: int = 0
    skipped_failed: int = 0
    record: Optional[str] = None

    @property
    def skipped(self) -> int:
        return self.skipped_merge_root + self.skipped_failed

    @property
    def recorded(self) -> int:
        return self.copied + self.previewed


@dataclass
class PruneReport:
    processed: int = 0
    pruned: int = 0
    skipped: int = 0
    recycled: int = 0
    large_files: int = 0
    recycle_entries: List[RecycleEntry] = field(default_factory=list)
    linked: List[str] = field(default_factory=list)

    def summary(self) -> str:
        return f'processed={self.processed} pruned={self.pruned} skipped={self.skipped}'


STAGES = ("nesting", "find", "copy", "prune")


@dataclass
class RunReport:
    root: Optional[str] = None
    dry_run: bool = False

    nesting: Optional[NestingReport] = None
    copy: Optional[CopyReport] = None
    prune: Optional[PruneReport] = None
    ignore_entries: int = 0

    stage_seconds: Dict[str, float] = field(default_factory=lambda: dict.fromkeys(STAGES, 0.0))
    warnings: List[str] = field(default_factory=list)
    _clock: Tuple[float, Optional[float]] = field(default_factory=lambda: (time.monotonic(), None), repr=False)

    @property
    def elapsed(self) -> Optional[float]:
        start, end = self._clock
        return None if end is None else end - start

    def add_time(self, stage: str, seconds: float) -> None:
        self.stage_seconds[stage] = self.stage_seconds.get(stage, 0.0) + seconds

    def add_error(self, message: str) -> None:
        """Record a non-fatal problem; the run still exits 0."""
        self.warnings.append(message)

    def finish(self) -> None:
        self._clock = (self._clock[0], time.monotonic())

    def to_dict(self) -> Dict[str, Any]:
        copy_part = asdict(self.copy) if self.copy is not None else None
        if copy_part is not None:
            copy_part["skipped"] = self.copy.skipped
        return {
            "root": self.root,
            "dry_run": self.dry_run,
            "elapsed_s": self.elapsed,
            "nesting": asdict(self.nesting) if self.nesting is not None else None,
            "copy": copy_part,
            "prune": asdict(self.prune) if self.prune is not None else None,
            "ignore_entries": self.ignore_entries,
            "stage_seconds": self.stage_seconds,
            "warnings": self.warnings,
        }

    def to_json(self, *, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json() + "\n", encoding="utf-8")


class StageTimer:
    """Adds the wall time of the ``with`` block to one stage of a RunReport."""

    def __init__(self, report: RunReport, stage: str):
        self.report, self.stage = report, stage
        self.began = 0.0

    def __enter__(self) -> "StageTimer":
        self.began = time.monotonic()
        return self

    def __exit__(self, *exc_info) -> bool:
        self.report.add_time(self.stage, time.monotonic() - self.began)
        return False
