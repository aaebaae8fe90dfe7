from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from modnest.constants import (
    DEFAULT_EXCLUDE_NAMES,
    DEFAULT_MERGE_DIR,
    DEFAULT_PATTERNS,
    DEFAULT_PROTECTED_NAMES,
)
from modnest.core.models import PruneMode
from modnest.runtime.container import EngineBuilder, EngineConfig


def _env_list(environ: Mapping[str, str], key: str) -> Optional[Tuple[str, ...]]:
    raw = (environ.get(key) or '').strip()
    if not raw:
        return None
    items = tuple(x.strip() for x in raw.split(',') if x.strip())
    return items or None


def _pick(cli: Optional[Sequence[str]], env: Optional[Tuple[str, ...]], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if cli:
        return tuple(cli)
    if env:
        return env
    return default


def _flag(environ: Mapping[str, str], key: str) -> bool:
    return (environ.get(key) or '').strip() == '1'


def build_engine_config(
    ns: argparse.Namespace,
    *,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> EngineConfig:
    """Resolve CLI flags, MODNEST_* environment and defaults into an EngineConfig.

    Precedence is CLI > environment > built-in defaults. Mode flags are
    normalised here so the runner sees one consistent flow:

        --test          forces dry-run and overrides every other mode
        --only-prune    skips nesting and copying
        --aggressive    implies --only-copy-temp and ignores --prune/--delete
        --only-copy-temp skips nesting
    """
    env = os.environ if environ is None else environ

    root = Path(ns.root) if getattr(ns, 'root', None) else (cwd or Path.cwd())
    root = Path(os.path.abspath(str(root.expanduser())))

    merge_dir = getattr(ns, 'merge_dir', None) or (env.get('MODNEST_MERGE_DIR') or '').strip() or DEFAULT_MERGE_DIR

    test = bool(getattr(ns, 'test', False))
    only_prune = bool(getattr(ns, 'only_prune', False)) and not test
    aggressive = bool(getattr(ns, 'aggressive', False)) and not (test or only_prune)
    only_copy = (bool(getattr(ns, 'only_copy_temp', False)) or aggressive) and not (test or only_prune)

    nesting = not (test or only_prune or only_copy)
    copy_temp = not (test or only_prune or aggressive) and (only_copy or bool(getattr(ns, 'copy_temp', False)))
    prune = not (test or aggressive) and (only_prune or bool(getattr(ns, 'prune', False)))

    # The merge directory always stays out of repository discovery, even when
    # --exclude or MODNEST_EXCLUDE replace the default exclusions.
    exclude_names = _pick(getattr(ns, 'exclude', None), _env_list(env, 'MODNEST_EXCLUDE'), DEFAULT_EXCLUDE_NAMES)
    merge_name = Path(merge_dir).name
    if merge_name and merge_name not in exclude_names:
        exclude_names += (merge_name,)

    record = getattr(ns, 'record', None)
    report = getattr(ns, 'report', None)

    return EngineConfig(
        root=root,
        merge_dir=merge_dir,
        exclude_names=exclude_names,
        protected_names=_pick(getattr(ns, 'protect', None), _env_list(env, 'MODNEST_PROTECT'), DEFAULT_PROTECTED_NAMES),
        patterns=_pick(getattr(ns, 'pattern', None), _env_list(env, 'MODNEST_PATTERNS'), DEFAULT_PATTERNS),
        nesting=nesting,
        copy_temp=copy_temp,
        prune=prune,
        only_prune=only_prune,
        aggressive=aggressive,
        test=test,
        dry_run=bool(getattr(ns, 'dry_run', False)) or test,
        prune_mode=PruneMode.DELETE if getattr(ns, 'delete', False) else PruneMode.RECYCLE,
        record_path=Path(record).expanduser() if record else None,
        report_path=Path(report).expanduser() if report else None,
        json_logs=bool(getattr(ns, 'json_logs', False)) or _flag(env, 'MODNEST_JSON_LOGS'),
        debug=bool(getattr(ns, 'debug', False)) or _flag(env, 'DEBUG'),
    )


def build_engine(cfg: EngineConfig, **overrides) -> EngineBuilder:
    """Construct the component builder from an EngineConfig."""
    return EngineBuilder.from_config(cfg, **overrides)
