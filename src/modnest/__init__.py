from __future__ import annotations

__version__ = '0.3.0'

from modnest.cli import ModNest  # noqa: E402
from modnest.consolidation import AggressiveReplacer, ConsolidationCopier, ReversiblePruner  # noqa: E402
from modnest.discovery import (  # noqa: E402
    GitRemoteResolver,
    PathClassifier,
    RepositoryTreeWalker,
    StaticRemoteResolver,
    TransientDirFinder,
)
from modnest.io import ConsolidationRecord, FileOperations  # noqa: E402
from modnest.rendering.manifest import ManifestSynthesizer  # noqa: E402
from modnest.runtime import (  # noqa: E402
    DryRunSession,
    EngineBuilder,
    EngineConfig,
    EngineRunner,
    NestingOrchestrator,
)

__all__ = [
    'ModNest',
    'AggressiveReplacer',
    'ConsolidationCopier',
    'ReversiblePruner',
    'GitRemoteResolver',
    'PathClassifier',
    'RepositoryTreeWalker',
    'StaticRemoteResolver',
    'TransientDirFinder',
    'ConsolidationRecord',
    'FileOperations',
    'ManifestSynthesizer',
    'DryRunSession',
    'EngineBuilder',
    'EngineConfig',
    'EngineRunner',
    'NestingOrchestrator',
    '__version__',
]
