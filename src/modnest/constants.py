from __future__ import annotations

"""Project-wide constants used across modules.

This module isolates defaults to reduce cross-module coupling. Every value
here can be overridden through `EngineConfig` (CLI flags or MODNEST_* env).
"""

from typing import Dict, Tuple

# Repository metadata marker (directory for normal clones, file for
# worktrees and absorbed submodules).
REPO_MARKER: str = '.git'

MANIFEST_NAME: str = '.gitmodules'
GITIGNORE_NAME: str = '.gitignore'

# Central merge directory, relative to the hierarchy root.
DEFAULT_MERGE_DIR: str = '.tmp'
RECYCLE_DIR_NAME: str = '.recycle'
RECORD_PREFIX: str = 'copied_dirs.'
RECYCLE_STAMP_FORMAT: str = '%Y%m%d_%H%M%S'

# Noisy folders never walked while discovering nested repositories.
DEFAULT_EXCLUDE_NAMES: Tuple[str, ...] = (
    '.tmp',
    '.devcontainer',
    '.vscode',
    'node_modules',
    '.cache',
    # hidden tool environments that routinely hold vendored clones
    '.venv',
    '.tox',
    '.terraform',
    '.idea',
)

# Build/output folders whose subtrees are never searched for transient dirs.
BUILD_OUTPUT_NAMES: Tuple[str, ...] = (
    'build',
    'CMakeFiles',
    'dist',
    'target',
    'bin',
    'obj',
    'out',
    'cmake-build-debug',
    '.git',
    '.wrangler',
)

DEFAULT_PROTECTED_NAMES: Tuple[str, ...] = BUILD_OUTPUT_NAMES + (
    '.devcontainer',
    '.vscode',
    'node_modules',
    '.cache',
    '.venv',
    '.tox',
    '.terraform',
    '.idea',
)

PATTERN_FAMILIES: Dict[str, Tuple[str, ...]] = {
    'temp': ('.tmp', '.temp', 'tmp', 'temp'),
    'backup': ('.backup', 'backup', 'backups', '.bak'),
}

DEFAULT_PATTERNS: Tuple[str, ...] = PATTERN_FAMILIES['temp'] + PATTERN_FAMILIES['backup']

# Files above this size trigger a warning before --delete removes them.
LARGE_FILE_BYTES: int = 10 * 1024 * 1024
