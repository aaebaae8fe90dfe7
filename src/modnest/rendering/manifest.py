from __future__ import annotations

"""Submodule manifest synthesis.

Turns the edge list of one repository into `.gitmodules` text and keeps the
file on disk in sync: written when edges exist, left untouched when the text
is already identical, deleted when no edges remain.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from modnest.constants import MANIFEST_NAME
from modnest.core.interfaces.fs import FileOperationsProtocol
from modnest.core.models import Manifest, ManifestAction, SubmoduleEdge
from modnest.io.file_ops import FileOperations
from modnest.logging.helpers import get_logger


def render_stanza(edge: SubmoduleEdge) -> str:
    return (
        f'[submodule "{edge.derived_name}"]\n'
        f'\tpath = {edge.relative_path}\n'
        f'\turl = {edge.resolved_url}\n'
    )


class ManifestSynthesizer:
    def __init__(
        self,
        *,
        file_ops: Optional[FileOperationsProtocol] = None,
        manifest_name: str = MANIFEST_NAME,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._fs = file_ops or FileOperations()
        self._name = manifest_name
        self._log = logger or get_logger('manifest')

    def manifest_path(self, repo: Path) -> Path:
        return Path(repo) / self._name

    def build_manifest(self, parent_repo: Path, edges: Iterable[SubmoduleEdge]) -> Manifest:
        """Build the manifest for *parent_repo*; edge order is preserved as given."""
        edges = tuple(edges)
        return Manifest(owner_path=Path(parent_repo), edges=edges, text=self.render(edges))

    @staticmethod
    def render(edges: Iterable[SubmoduleEdge]) -> str:
        return '\n'.join(render_stanza(e) for e in edges)

    def write(self, manifest: Manifest) -> ManifestAction:
        """Synchronize the on-disk manifest; a file exists iff edges exist."""
        path = self.manifest_path(manifest.owner_path)

        if manifest.is_empty:
            if path.is_file():
                self._log.info('🗑  no submodules in %s – removing %s', manifest.owner_path.name, path)
                self._fs.remove_file(path)
                return ManifestAction.DELETED
            return ManifestAction.NONE

        dups = manifest.duplicate_names()
        if dups:
            self._log.warning(
                '⚠  %s lists several submodules named %s; names are not deduplicated',
                path, ', '.join(repr(d) for d in dups),
            )

        if path.is_file():
            try:
                if path.read_text(encoding='utf-8') == manifest.text:
                    self._log.debug('%s unchanged', path)
                    return ManifestAction.UNCHANGED
            except (OSError, UnicodeDecodeError) as exc:
                self._log.debug('cannot compare with existing %s: %s', path, exc)

        self._fs.write_text(path, manifest.text)
        if not self._fs.dry_run:
            self._log.info('✔ generated %s for %s (%d submodule(s))', self._name, manifest.owner_path.name, len(manifest.edges))
        return ManifestAction.WRITTEN
