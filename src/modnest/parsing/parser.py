# modnest/parsing/parser.py
from __future__ import annotations

import argparse

from modnest import __version__


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the CLI argument parser.

    Notes:
        - Without any mode flag the run only (re)generates ``.gitmodules``
          manifests for every nested repository under ROOT.
        - Repeatable list flags replace the corresponding defaults (or the
          MODNEST_* environment values) instead of extending them.
    """
    p = argparse.ArgumentParser(
        prog="modnest",
        formatter_class=argparse.RawTextHelpFormatter,
        usage="%(prog)s [ROOT] [OPTIONS]",
        add_help=False,
        description=(
            "modnest – nested git repository manifests & transient directory consolidation\n"
            "Generates .gitmodules for every repository boundary under ROOT and can "
            "gather scattered tmp/backup folders into one merge directory."
        ),
    )

    p.add_argument(
        "root",
        metavar="ROOT",
        nargs="?",
        default=None,
        help="Hierarchy root. Defaults to the current working directory.",
    )

    g_mode = p.add_argument_group("Modes")
    g_safe = p.add_argument_group("Safety")
    g_sel = p.add_argument_group("Selection")
    g_misc = p.add_argument_group("Miscellaneous")

    # -----------------------
    # Modes
    # -----------------------
    g_mode.add_argument(
        "--copy-temp",
        action="store_true",
        dest="copy_temp",
        help="After manifest generation, copy transient directories into the merge directory.",
    )
    g_mode.add_argument(
        "--only-copy-temp",
        action="store_true",
        dest="only_copy_temp",
        help="Skip manifest generation; only copy transient directories.",
    )
    g_mode.add_argument(
        "--prune",
        action="store_true",
        help=(
            "After copying, replace each original with a relative symlink into the merge "
            "directory. Originals are moved to <merge-dir>/.recycle/<timestamp>/ unless "
            "--delete is given."
        ),
    )
    g_mode.add_argument(
        "--only-prune",
        action="store_true",
        dest="only_prune",
        help=(
            "Skip manifest generation and copying; prune from an existing record "
            "(--record FILE, or the newest copied_dirs.* in the merge directory)."
        ),
    )
    g_mode.add_argument(
        "--aggressive",
        "--agressive",
        action="store_true",
        dest="aggressive",
        help=(
            "Copy, add .gitignore entries and delete originals, leaving symlinks. "
            "Destructive; combine with --dry-run first."
        ),
    )
    g_mode.add_argument(
        "--test",
        action="store_true",
        help="Preview copy → prune → aggressive in dry-run mode. Nothing is modified.",
    )

    # -----------------------
    # Safety
    # -----------------------
    g_safe.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Log every mutation as 'DRY-RUN: would …' without touching the filesystem.",
    )
    g_safe.add_argument(
        "--delete",
        action="store_true",
        help=(
            "Prune by deleting originals instead of moving them to the recycle area.\n"
            "There is no confirmation prompt: files over 10MB are only counted and\n"
            "logged as warnings. Use --dry-run first to review them."
        ),
    )
    g_safe.add_argument(
        "--record",
        metavar="FILE",
        dest="record",
        help="Record file to prune from (used with --only-prune).",
    )

    # -----------------------
    # Selection
    # -----------------------
    g_sel.add_argument(
        "--merge-dir",
        metavar="NAME",
        dest="merge_dir",
        help="Merge directory, relative to ROOT (default: .tmp, env MODNEST_MERGE_DIR).",
    )
    g_sel.add_argument(
        "--exclude",
        metavar="NAME",
        action="append",
        dest="exclude",
        help="Folder name never walked while discovering repositories. Repeatable.",
    )
    g_sel.add_argument(
        "--protect",
        metavar="NAME",
        action="append",
        dest="protect",
        help="Folder name whose subtree is never searched for transient directories. Repeatable.",
    )
    g_sel.add_argument(
        "--pattern",
        metavar="GLOB",
        action="append",
        dest="pattern",
        help="Case-insensitive glob naming a transient directory. Repeatable.",
    )

    # -----------------------
    # Miscellaneous
    # -----------------------
    g_misc.add_argument(
        "--report",
        metavar="FILE",
        dest="report",
        help="Write a JSON run report to FILE.",
    )
    g_misc.add_argument(
        "--json-logs",
        action="store_true",
        dest="json_logs",
        help="One JSON object per log line (also MODNEST_JSON_LOGS=1).",
    )
    g_misc.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (same as DEBUG=1).",
    )
    g_misc.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show the version and exit.",
    )
    g_misc.add_argument(
        "-h",
        "--help",
        action="help",
        help="Show this help message and exit.",
    )

    return p
