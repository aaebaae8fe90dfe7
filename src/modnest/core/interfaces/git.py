from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class RemoteUrlResolverProtocol(Protocol):
    """Contract for looking up the origin URL of a local repository."""

    def remote_url(self, repo: Path) -> str:
        """Return the origin URL, or an empty string when none is configured."""
        ...
