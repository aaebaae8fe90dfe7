from __future__ import annotations

"""
Recursive orchestration of manifest generation.

Drives the tree walker over the whole hierarchy depth-first and invokes the
manifest synthesizer at every repository boundary, including boundaries that
are only reachable through ordinary intermediate folders.
"""

import logging
from pathlib import Path
from typing import List, Optional, Set

from modnest.core.errors import InvalidRootError
from modnest.core.interfaces.classifier import PathClassifierProtocol
from modnest.core.models import ManifestAction, SubmoduleEdge
from modnest.core.report import NestingReport
from modnest.discovery.tree_walker import RepositoryTreeWalker
from modnest.logging.helpers import get_logger
from modnest.rendering.manifest import ManifestSynthesizer
from modnest.utils.paths import canonical, posix_relpath


class NestingOrchestrator:
    def __init__(
        self,
        *,
        walker: RepositoryTreeWalker,
        synthesizer: ManifestSynthesizer,
        classifier: PathClassifierProtocol,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._walker = walker
        self._synth = synthesizer
        self._classifier = classifier
        self._log = logger or get_logger('nesting')

    # -------- Public API --------

    def top_level_repositories(self, root: Path) -> List[Path]:
        """Repositories whose manifests are generated first.

        The root itself when it is a repository, otherwise the first
        repository boundary along every branch beneath it.
        """
        if self._classifier.is_repository_root(root):
            return [root]
        visited: Set[Path] = set()
        found: List[Path] = []
        for child in self._walker.child_dirs(root, root):
            for edge in self._walker.find_nested_repos(root, child, root, visited=visited):
                found.append(edge.child_repo_path)
        return found

    def run(self, root: Path) -> NestingReport:
        root = Path(root).expanduser()
        if not root.is_dir():
            raise InvalidRootError(root)
        root = root.resolve()

        report = NestingReport()
        tops = self.top_level_repositories(root)
        if not tops:
            self._log.warning('⚠  no git repositories found in %s', root)
            return report

        if not self._classifier.is_repository_root(root):
            self._log.warning('⚠  root directory %s is not a git repository; processing %d nested one(s)', root, len(tops))

        processed: Set[Path] = set()
        for repo in tops:
            self.process_repository(repo, root, 0, report=report, processed=processed)
        return report

    def collect_edges(self, repo: Path, root: Path) -> List[SubmoduleEdge]:
        """All nested-repository edges of *repo*, in discovery order."""
        visited: Set[Path] = set()
        edges: List[SubmoduleEdge] = []
        for child in self._walker.child_dirs(repo, root):
            edges.extend(self._walker.find_nested_repos(repo, child, root, visited=visited))
        return edges

    def process_repository(
        self,
        repo: Path,
        root: Path,
        depth: int,
        *,
        report: NestingReport,
        processed: Set[Path],
    ) -> None:
        key = canonical(repo)
        if key in processed:
            self._log.debug('↪  %s already processed – skipped', repo)
            return
        processed.add(key)

        indent = '  ' * depth
        rel = posix_relpath(repo, root)
        self._log.info('%sProcessing: %s', indent, rel)

        edges = self.collect_edges(repo, root)
        manifest = self._synth.build_manifest(repo, edges)
        action = self._synth.write(manifest)

        report.repositories += 1
        report.edges += len(edges)
        if action is ManifestAction.WRITTEN:
            report.written += 1
            report.manifests.append(str(self._synth.manifest_path(repo)))
        elif action is ManifestAction.UNCHANGED:
            report.unchanged += 1
        elif action is ManifestAction.DELETED:
            report.deleted += 1
        if edges:
            self._log.info('%s  Found %d submodule(s)', indent, len(edges))

        for nested in self._nested_targets(repo, root, edges):
            self.process_repository(nested, root, depth + 1, report=report, processed=processed)

    # -------- Internal helpers --------

    def _nested_targets(self, repo: Path, root: Path, edges: List[SubmoduleEdge]) -> List[Path]:
        """Repositories to recurse into after *repo*.

        Immediate repository children, then repositories directly inside a
        non-repository child (two-level lookahead), then any deeper boundary
        the walker reported so no nested repository is left without its own
        manifest.
        """
        targets: List[Path] = []
        for child in self._walker.child_dirs(repo, root):
            if self._classifier.is_repository_root(child):
                targets.append(child)
                continue
            for nested in self._walker.child_dirs(child, root):
                if self._classifier.is_repository_root(nested):
                    targets.append(nested)
        known = {canonical(t) for t in targets}
        for edge in edges:
            if canonical(edge.child_repo_path) not in known:
                targets.append(edge.child_repo_path)
                known.add(canonical(edge.child_repo_path))
        return targets
