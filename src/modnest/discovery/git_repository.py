from __future__ import annotations
"""Remote URL lookup for discovered repositories.

The resolver shells out to ``git config --get remote.origin.url``. The query
is confined to the repository itself: GIT_CEILING_DIRECTORIES stops git from
walking up into an enclosing repository when the marker is incomplete, so a
child never inherits its parent's origin.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Mapping, Optional

from modnest.core.interfaces.git import RemoteUrlResolverProtocol
from modnest.logging.helpers import get_logger, trace_io


class GitRemoteResolver(RemoteUrlResolverProtocol):
    def __init__(
        self,
        *,
        remote: str = 'origin',
        git_binary: str = 'git',
        logger: Optional[logging.Logger] = None,
        cache: Optional[Dict[Path, str]] = None,
    ) -> None:
        self._remote = remote
        self._git = git_binary
        self._log = logger or get_logger('git')
        self._cache = cache if cache is not None else {}
        self._git_missing = False

    def remote_url(self, repo: Path) -> str:
        """Return the configured remote URL of *repo* or ``''``."""
        key = Path(repo).resolve()
        if key in self._cache:
            return self._cache[key]
        url = self._query(key)
        self._cache[key] = url
        return url

    def _query(self, repo: Path) -> str:
        if self._git_missing:
            return ''
        env = dict(os.environ)
        env['GIT_CEILING_DIRECTORIES'] = str(repo.parent)
        cmd = [self._git, '-C', str(repo), 'config', '--get', f'remote.{self._remote}.url']
        trace_io(self._log, 'git remote query', repo=str(repo))
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=env,
                check=False,
                universal_newlines=True,
            )
        except FileNotFoundError:
            self._log.warning('⚠  git executable %r not found – remote URLs fall back to relative paths', self._git)
            self._git_missing = True
            return ''
        except OSError as exc:
            self._log.warning('⚠  git remote query failed for %s: %s', repo, exc)
            return ''
        if proc.returncode != 0:
            return ''
        return (proc.stdout or '').strip()


class StaticRemoteResolver(RemoteUrlResolverProtocol):
    """Resolver backed by a fixed path → URL mapping."""

    def __init__(self, urls: Optional[Mapping[Path, str]] = None) -> None:
        self._urls = {Path(k).resolve(): v for k, v in (urls or {}).items()}

    def remote_url(self, repo: Path) -> str:
        return self._urls.get(Path(repo).resolve(), '')
