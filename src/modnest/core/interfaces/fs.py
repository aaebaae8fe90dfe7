from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileOperationsProtocol(Protocol):
    """Every filesystem mutation performed by modnest goes through here.

    Implementations honoring `dry_run` must log instead of mutating.
    """

    dry_run: bool

    def write_text(self, path: Path, text: str) -> None:
        ...

    def append_line(self, path: Path, line: str) -> None:
        ...

    def remove_file(self, path: Path) -> None:
        ...

    def make_dirs(self, path: Path) -> None:
        ...

    def merge_tree(self, src: Path, dst: Path) -> None:
        ...

    def move(self, src: Path, dst: Path) -> None:
        ...

    def remove_tree(self, path: Path) -> None:
        ...

    def symlink(self, link: Path, target: str) -> None:
        ...
