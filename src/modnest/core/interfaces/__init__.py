from .classifier import PathClassifierProtocol
from .fs import FileOperationsProtocol
from .git import RemoteUrlResolverProtocol

__all__ = [
    'PathClassifierProtocol',
    'FileOperationsProtocol',
    'RemoteUrlResolverProtocol',
]
