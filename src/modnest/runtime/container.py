from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from modnest.constants import (
    DEFAULT_EXCLUDE_NAMES,
    DEFAULT_MERGE_DIR,
    DEFAULT_PATTERNS,
    DEFAULT_PROTECTED_NAMES,
    RECYCLE_DIR_NAME,
)
from modnest.consolidation.aggressive import AggressiveReplacer, GitignoreUpdater
from modnest.consolidation.copier import ConsolidationCopier
from modnest.consolidation.pruner import ReversiblePruner
from modnest.core.interfaces.classifier import PathClassifierProtocol
from modnest.core.interfaces.git import RemoteUrlResolverProtocol
from modnest.core.models import PruneMode
from modnest.discovery.classifier import PathClassifier
from modnest.discovery.git_repository import GitRemoteResolver
from modnest.discovery.transient_finder import TransientDirFinder
from modnest.discovery.tree_walker import RepositoryTreeWalker
from modnest.io.file_ops import FileOperations
from modnest.logging.helpers import get_logger
from modnest.rendering.manifest import ManifestSynthesizer
from modnest.runtime.orchestrator import NestingOrchestrator


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration blob used to seed the EngineBuilder."""
    root: Path
    merge_dir: str = DEFAULT_MERGE_DIR
    exclude_names: Tuple[str, ...] = DEFAULT_EXCLUDE_NAMES
    protected_names: Tuple[str, ...] = DEFAULT_PROTECTED_NAMES
    patterns: Tuple[str, ...] = DEFAULT_PATTERNS

    # Flow selection
    nesting: bool = True
    copy_temp: bool = False
    prune: bool = False
    only_prune: bool = False
    aggressive: bool = False
    test: bool = False

    dry_run: bool = False
    prune_mode: PruneMode = PruneMode.RECYCLE
    record_path: Optional[Path] = None
    report_path: Optional[Path] = None

    json_logs: bool = False
    debug: bool = False

    @property
    def merge_root(self) -> Path:
        return self.root / self.merge_dir


@dataclass
class EngineBuilder:
    """Composable builder that wires the default components from an EngineConfig."""
    config: EngineConfig

    # Optional overrides / DI hooks
    classifier: Optional[PathClassifierProtocol] = None
    resolver: Optional[RemoteUrlResolverProtocol] = None

    @classmethod
    def from_config(cls, cfg: EngineConfig, **overrides) -> 'EngineBuilder':
        """Build a new EngineBuilder from a single EngineConfig."""
        return cls(config=cfg, **overrides)

    def file_operations(self, *, dry_run: Optional[bool] = None) -> FileOperations:
        dry = self.config.dry_run if dry_run is None else dry_run
        return FileOperations(dry_run=dry, logger=get_logger('io.fs'))

    def build_classifier(self) -> PathClassifierProtocol:
        if self.classifier is None:
            self.classifier = PathClassifier()
        return self.classifier

    def build_orchestrator(self, *, dry_run: Optional[bool] = None) -> NestingOrchestrator:
        classifier = self.build_classifier()
        resolver = self.resolver or GitRemoteResolver(logger=get_logger('git'))
        walker = RepositoryTreeWalker(
            classifier=classifier,
            resolver=resolver,
            exclude_names=self.config.exclude_names,
            logger=get_logger('walker'),
        )
        synthesizer = ManifestSynthesizer(
            file_ops=self.file_operations(dry_run=dry_run),
            logger=get_logger('manifest'),
        )
        return NestingOrchestrator(
            walker=walker,
            synthesizer=synthesizer,
            classifier=classifier,
            logger=get_logger('nesting'),
        )

    def build_finder(self) -> TransientDirFinder:
        return TransientDirFinder(
            patterns=self.config.patterns,
            protected_names=self.config.protected_names,
            classifier=self.build_classifier(),
            logger=get_logger('finder'),
        )

    def build_copier(self, *, dry_run: Optional[bool] = None) -> ConsolidationCopier:
        return ConsolidationCopier(file_ops=self.file_operations(dry_run=dry_run), logger=get_logger('copy'))

    def build_pruner(self, *, dry_run: Optional[bool] = None) -> ReversiblePruner:
        return ReversiblePruner(
            file_ops=self.file_operations(dry_run=dry_run),
            recycle_dir_name=RECYCLE_DIR_NAME,
            logger=get_logger('prune'),
        )

    def build_aggressive(self, *, dry_run: Optional[bool] = None) -> AggressiveReplacer:
        fs = self.file_operations(dry_run=dry_run)
        return AggressiveReplacer(
            finder=self.build_finder(),
            copier=ConsolidationCopier(file_ops=fs, logger=get_logger('copy')),
            pruner=ReversiblePruner(file_ops=fs, logger=get_logger('prune')),
            ignorer=GitignoreUpdater(
                classifier=self.build_classifier(),
                file_ops=fs,
                logger=get_logger('gitignore'),
            ),
            logger=get_logger('aggressive'),
        )
