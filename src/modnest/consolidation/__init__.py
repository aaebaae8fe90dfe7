"""Consolidation of transient directories: copy, prune, aggressive replace."""
from .aggressive import AggressiveReplacer, GitignoreUpdater
from .copier import ConsolidationCopier, consolidation_target
from .pruner import ReversiblePruner

__all__ = [
    "AggressiveReplacer",
    "GitignoreUpdater",
    "ConsolidationCopier",
    "consolidation_target",
    "ReversiblePruner",
]
