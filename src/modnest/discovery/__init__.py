"""Discovery: path classification, git remote lookup and tree traversal."""
from .classifier import PathClassifier
from .git_repository import GitRemoteResolver, StaticRemoteResolver
from .transient_finder import TransientDirFinder
from .tree_walker import RepositoryTreeWalker, derive_submodule_name

__all__ = [
    "PathClassifier",
    "GitRemoteResolver",
    "StaticRemoteResolver",
    "TransientDirFinder",
    "RepositoryTreeWalker",
    "derive_submodule_name",
]
