from __future__ import annotations

"""Public surface for modnest.core.

Stable import location for the protocol seams, the data model and the
fatal error taxonomy:

    from modnest.core import SubmoduleEdge, PruneMode, InvalidRootError, ...
"""

from modnest.core.errors import (
    InvalidRootError,
    MissingRecordError,
    ModNestError,
    RecordFormatError,
)
from modnest.core.interfaces import (
    FileOperationsProtocol,
    PathClassifierProtocol,
    RemoteUrlResolverProtocol,
)
from modnest.core.models import (
    FinderResult,
    Manifest,
    ManifestAction,
    PruneMode,
    RecordEntry,
    RecycleEntry,
    RepositoryNode,
    SubmoduleEdge,
    TransientMatch,
)

__all__ = [
    # Protocols
    "FileOperationsProtocol",
    "PathClassifierProtocol",
    "RemoteUrlResolverProtocol",
    # Model
    "FinderResult",
    "Manifest",
    "ManifestAction",
    "PruneMode",
    "RecordEntry",
    "RecycleEntry",
    "RepositoryNode",
    "SubmoduleEdge",
    "TransientMatch",
    # Errors
    "InvalidRootError",
    "MissingRecordError",
    "ModNestError",
    "RecordFormatError",
]
