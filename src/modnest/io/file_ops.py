from __future__ import annotations

"""Filesystem mutation primitives with a dry-run policy.

Every write, move, delete and link performed by modnest goes through
`FileOperations`. With ``dry_run=True`` the callers still run their whole
decision logic, but each primitive only logs what it would have done.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Set

from modnest.core.interfaces.fs import FileOperationsProtocol
from modnest.logging.helpers import get_logger, trace_io


class FileOperations(FileOperationsProtocol):
    def __init__(self, *, dry_run: bool = False, logger: Optional[logging.Logger] = None) -> None:
        self.dry_run = bool(dry_run)
        self._log = logger or get_logger('io.fs')

    def _preview(self, msg: str, *args) -> bool:
        if self.dry_run:
            self._log.info('DRY-RUN: would ' + msg, *args)
            return True
        return False

    def write_text(self, path: Path, text: str) -> None:
        if self._preview('write %s (%d lines)', path, text.count('\n')):
            return
        trace_io(self._log, 'write', path=str(path), size=len(text))
        path.write_text(text, encoding='utf-8')

    def append_line(self, path: Path, line: str) -> None:
        if self._preview("append '%s' to %s", line, path):
            return
        prefix = ''
        if path.exists() and path.stat().st_size > 0:
            with path.open('rb') as fh:
                fh.seek(-1, os.SEEK_END)
                if fh.read(1) != b'\n':
                    prefix = '\n'
        with path.open('a', encoding='utf-8') as fh:
            fh.write(f'{prefix}{line}\n')

    def remove_file(self, path: Path) -> None:
        if self._preview('remove %s', path):
            return
        path.unlink()

    def make_dirs(self, path: Path) -> None:
        if self._preview('create directory %s', path):
            return
        path.mkdir(parents=True, exist_ok=True)

    def merge_tree(self, src: Path, dst: Path) -> None:
        """Copy the contents of *src* into *dst* without overwriting anything.

        Existing files (and links) in *dst* win; symlinks are copied as links.
        """
        if self._preview('merge %s -> %s', src, dst):
            return
        src_s = str(src)

        def _ignore_existing(directory: str, names: list) -> Set[str]:
            rel = os.path.relpath(directory, src_s)
            target_dir = dst if rel == os.curdir else dst / rel
            skipped: Set[str] = set()
            for name in names:
                t = target_dir / name
                if t.is_symlink() or t.is_file():
                    skipped.add(name)
            return skipped

        dst.mkdir(parents=True, exist_ok=True)
        trace_io(self._log, 'merge', src=src_s, dst=str(dst))
        shutil.copytree(src_s, str(dst), symlinks=True, ignore=_ignore_existing, dirs_exist_ok=True)

    def move(self, src: Path, dst: Path) -> None:
        if self._preview('move %s -> %s', src, dst):
            return
        dst.parent.mkdir(parents=True, exist_ok=True)
        if dst.exists() or dst.is_symlink():
            raise FileExistsError(f'refusing to overwrite {dst}')
        shutil.move(str(src), str(dst))

    def remove_tree(self, path: Path) -> None:
        if self._preview('delete %s', path):
            return
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)

    def symlink(self, link: Path, target: str) -> None:
        if self._preview('link %s -> %s', link, target):
            return
        link.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(target, link, target_is_directory=True)
