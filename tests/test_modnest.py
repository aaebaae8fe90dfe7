#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Functional test-suite for *modnest*.

• Manifest generation over nested repositories: idempotence, boundary
  respect, lookahead through plain folders, empty-manifest deletion.
• Transient-directory consolidation: finder pruning, copy, reversible prune,
  aggressive replace with .gitignore upkeep.
• Dry-run purity, partial-failure tolerance, CLI exit codes and the JSON
  run report.
"""
from __future__ import annotations

import json
import os
import sys as _sys
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

# Dynamically ensure the src/ layout is importable without installation
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in _sys.path:
    _sys.path.insert(0, str(SRC_ROOT))
TOOLS_DIR = Path(__file__).resolve().parent / "tools"
if str(TOOLS_DIR) not in _sys.path:
    _sys.path.insert(0, str(TOOLS_DIR))

import build_fixtures as fx  # noqa: E402
from modnest import ModNest  # noqa: E402
from modnest.consolidation.copier import ConsolidationCopier, consolidation_target  # noqa: E402
from modnest.consolidation.pruner import ReversiblePruner  # noqa: E402
from modnest.core.errors import MissingRecordError, RecordFormatError  # noqa: E402
from modnest.core.models import PruneMode, RecordEntry  # noqa: E402
from modnest.discovery.classifier import PathClassifier  # noqa: E402
from modnest.discovery.git_repository import GitRemoteResolver, StaticRemoteResolver  # noqa: E402
from modnest.discovery.transient_finder import TransientDirFinder  # noqa: E402
from modnest.discovery.tree_walker import RepositoryTreeWalker, derive_submodule_name  # noqa: E402
from modnest.io.file_ops import FileOperations  # noqa: E402
from modnest.io.record import ConsolidationRecord  # noqa: E402
from modnest.rendering.manifest import ManifestSynthesizer  # noqa: E402
from modnest.runtime.orchestrator import NestingOrchestrator  # noqa: E402
from modnest.runtime.simulator import DryRunSession  # noqa: E402

FIXED_CLOCK = datetime(2024, 1, 2, 3, 4, 5)
STAMP = "20240102_030405"


# --------------------------------------------------------------------------- #
#  Helpers                                                                    #
# --------------------------------------------------------------------------- #
def _orchestrator(urls=None, *, dry_run: bool = False) -> NestingOrchestrator:
    classifier = PathClassifier()
    walker = RepositoryTreeWalker(classifier=classifier, resolver=StaticRemoteResolver(urls))
    synth = ManifestSynthesizer(file_ops=FileOperations(dry_run=dry_run))
    return NestingOrchestrator(walker=walker, synthesizer=synth, classifier=classifier)


def _run_cli(*args: str, env=None) -> int:
    return ModNest.run(list(args), environ=env or {}, resolver=StaticRemoteResolver())


class _TempCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name).resolve()

    def tearDown(self) -> None:
        self._tmp.cleanup()


# --------------------------------------------------------------------------- #
#  Manifest generation                                                        #
# --------------------------------------------------------------------------- #
class NestingTests(_TempCase):
    def setUp(self) -> None:
        super().setUp()
        self.root = fx.build_hierarchy(self.base)

    def test_root_manifest_text(self):
        urls = {self.root / "A": "git@example.com:org/A.git"}
        _orchestrator(urls).run(self.root)
        expected = (
            '[submodule "A"]\n\tpath = A\n\turl = git@example.com:org/A.git\n'
            '\n'
            '[submodule "D"]\n\tpath = lib/deep/D\n\turl = lib/deep/D\n'
            '\n'
            '[submodule "C"]\n\tpath = tools/C\n\turl = tools/C\n'
        )
        self.assertEqual((self.root / ".gitmodules").read_text(encoding="utf-8"), expected)

    def test_boundary_respect(self):
        _orchestrator().run(self.root)
        root_manifest = (self.root / ".gitmodules").read_text(encoding="utf-8")
        self.assertNotIn("A/B", root_manifest)
        self.assertNotIn("node_modules", root_manifest)
        self.assertNotIn(".tmp", root_manifest)
        self.assertIn("path = B", (self.root / "A" / ".gitmodules").read_text(encoding="utf-8"))
        self.assertFalse((self.root / "node_modules" / ".gitmodules").exists())

    def test_hidden_tool_environments_are_skipped(self):
        fx.make_repo(self.root / ".venv" / "src" / "vendored")
        fx.make_repo(self.root / ".github" / "actions")
        _orchestrator().run(self.root)
        manifest = (self.root / ".gitmodules").read_text(encoding="utf-8")
        self.assertNotIn(".venv", manifest)
        self.assertIn("path = .github/actions", manifest)

    def test_lookahead_through_plain_folder(self):
        report = _orchestrator().run(self.root)
        c_manifest = self.root / "tools" / "C" / ".gitmodules"
        self.assertTrue(c_manifest.is_file())
        self.assertIn("path = sub/E", c_manifest.read_text(encoding="utf-8"))
        # Deeper boundaries still get their own manifest.
        self.assertIn("path = F", (self.root / "lib" / "deep" / "D" / ".gitmodules").read_text(encoding="utf-8"))
        self.assertEqual(report.repositories, 7)
        self.assertEqual(report.written, 4)

    def test_idempotent_rerun(self):
        orch = _orchestrator()
        orch.run(self.root)
        manifests = sorted(self.root.rglob(".gitmodules"))
        before = {p: p.read_bytes() for p in manifests}
        report = orch.run(self.root)
        after = {p: p.read_bytes() for p in sorted(self.root.rglob(".gitmodules"))}
        self.assertEqual(before, after)
        self.assertEqual(report.written, 0)
        self.assertEqual(report.unchanged, 4)

    def test_stale_manifest_is_deleted(self):
        stale = self.root / "A" / "B" / ".gitmodules"
        stale.write_text('[submodule "gone"]\n\tpath = gone\n\turl = gone\n', encoding="utf-8")
        report = _orchestrator().run(self.root)
        self.assertFalse(stale.exists())
        self.assertEqual(report.deleted, 1)

    def test_symlink_back_to_ancestor_is_ignored(self):
        os.symlink(self.root, self.root / "A" / "loop", target_is_directory=True)
        report = _orchestrator().run(self.root)
        a_manifest = (self.root / "A" / ".gitmodules").read_text(encoding="utf-8")
        self.assertNotIn("loop", a_manifest)
        self.assertEqual(report.repositories, 7)

    def test_non_repository_root_processes_children(self):
        plain = self.base / "plain"
        fx.make_repo(plain / "one")
        fx.make_repo(plain / "one" / "inner")
        fx.make_repo(plain / "group" / "two")
        with self.assertLogs("modnest", level="WARNING") as cm:
            report = _orchestrator().run(plain)
        self.assertTrue(any("not a git repository" in m for m in cm.output))
        self.assertFalse((plain / ".gitmodules").exists())
        self.assertTrue((plain / "one" / ".gitmodules").is_file())
        self.assertEqual(report.repositories, 3)

    def test_dry_run_writes_nothing(self):
        before = fx.snapshot(self.root)
        report = _orchestrator(dry_run=True).run(self.root)
        self.assertEqual(before, fx.snapshot(self.root))
        self.assertEqual(report.written, 4)

    def test_derived_names(self):
        self.assertEqual(derive_submodule_name(Path("x/My Repo!")), "My_Repo")
        self.assertEqual(derive_submodule_name(Path("lib/core-utils.v2")), "core-utils.v2")

    def test_duplicate_names_warn_but_are_kept(self):
        fx.make_repo(self.root / "vendor" / "one" / "util")
        fx.make_repo(self.root / "vendor" / "two" / "util")
        with self.assertLogs("modnest", level="WARNING") as cm:
            _orchestrator().run(self.root)
        text = (self.root / ".gitmodules").read_text(encoding="utf-8")
        self.assertEqual(text.count('[submodule "util"]'), 2)
        self.assertTrue(any("not deduplicated" in m for m in cm.output))


class GitRemoteResolverTests(_TempCase):
    def test_missing_git_binary_falls_back_to_empty(self):
        repo = fx.make_repo(self.base / "r")
        resolver = GitRemoteResolver(git_binary="modnest-no-such-git-binary")
        with self.assertLogs("modnest", level="WARNING"):
            self.assertEqual(resolver.remote_url(repo), "")
        self.assertEqual(resolver.remote_url(repo), "")


# --------------------------------------------------------------------------- #
#  Transient directories                                                      #
# --------------------------------------------------------------------------- #
class FinderTests(_TempCase):
    def setUp(self) -> None:
        super().setUp()
        self.root = fx.build_transient_tree(self.base)
        self.merge_root = self.root / ".tmp"

    def test_matches_and_protected_subtrees(self):
        result = TransientDirFinder().find(self.root, self.merge_root)
        found = [m.source_path.relative_to(self.root).as_posix() for m in result.matches]
        self.assertEqual(found, ["proj1/tmp", "proj2/.TEMP", "proj3/backup"])
        self.assertEqual([m.source_path for m in result.discarded], [self.merge_root])

    def test_symlinked_dirs_are_not_matched(self):
        os.symlink(self.root / "proj3" / "backup", self.root / "proj3" / "temp", target_is_directory=True)
        result = TransientDirFinder().find(self.root, self.merge_root)
        self.assertNotIn(self.root / "proj3" / "temp", [m.source_path for m in result.matches])

    def test_custom_patterns(self):
        result = TransientDirFinder(patterns=("back*",)).find(self.root, self.merge_root)
        self.assertEqual([m.source_path for m in result.matches], [self.root / "proj3" / "backup"])


class RecordTests(_TempCase):
    def test_load_skips_malformed_lines(self):
        path = self.base / "copied_dirs.abc"
        path.write_text("/a/tmp\t/m/a\n\nno-tab-here\n/b/tmp\t/m/b\n", encoding="utf-8")
        with self.assertLogs("modnest", level="WARNING"):
            record = ConsolidationRecord.load(path)
        self.assertEqual(
            list(record),
            [RecordEntry(Path("/a/tmp"), Path("/m/a")), RecordEntry(Path("/b/tmp"), Path("/m/b"))],
        )

    def test_missing_record_raises(self):
        with self.assertRaises(MissingRecordError):
            ConsolidationRecord.load(self.base / "nope")

    def test_undecodable_record_raises(self):
        path = self.base / "copied_dirs.bin"
        path.write_bytes(b"\xff\xfe\tbroken\n")
        with self.assertRaises(RecordFormatError):
            ConsolidationRecord.load(path)

    def test_latest_picks_newest(self):
        old = ConsolidationRecord.create(self.base)
        new = ConsolidationRecord.create(self.base)
        os.utime(old.path, (1_000_000, 1_000_000))
        os.utime(new.path, (2_000_000, 2_000_000))
        self.assertEqual(ConsolidationRecord.latest(self.base), new.path)
        self.assertIsNone(ConsolidationRecord.latest(self.base / "missing"))

    def test_append_rejects_unrecordable_paths(self):
        record = ConsolidationRecord.create(self.base)
        with self.assertRaises(ValueError):
            record.append(RecordEntry(Path("/x/t\tmp"), Path("/m/x")))
        self.assertEqual(record.path.read_text(encoding="utf-8"), "")


class ConsolidationTests(_TempCase):
    def setUp(self) -> None:
        super().setUp()
        self.root = fx.build_transient_tree(self.base)
        self.merge_root = self.root / ".tmp"

    def _copy(self, *, dry_run: bool = False, record_dir: Path = None):
        result = TransientDirFinder().find(self.root, self.merge_root)
        record = ConsolidationRecord.create(record_dir or self.merge_root)
        report = ConsolidationCopier(file_ops=FileOperations(dry_run=dry_run)).copy(
            result.candidates, self.merge_root, record,
        )
        return record, report

    def test_self_reference_guard(self):
        record, report = self._copy()
        self.assertEqual(report.skipped_merge_root, 1)
        self.assertEqual(report.copied, 3)
        for entry in record:
            self.assertFalse(str(entry.source).startswith(str(self.merge_root)))
        self.assertEqual(len(ConsolidationRecord.load(record.path)), 3)

    def test_round_trip_recycle(self):
        source = self.root / "proj1" / "tmp"
        before = {p.relative_to(source).as_posix(): p.read_bytes() for p in source.rglob("*") if p.is_file()}

        record, _ = self._copy()
        report = ReversiblePruner(file_ops=FileOperations(), clock=lambda: FIXED_CLOCK).prune(
            record, self.merge_root, self.root, PruneMode.RECYCLE,
        )
        self.assertEqual((report.processed, report.pruned, report.skipped), (3, 3, 0))

        self.assertTrue(source.is_symlink())
        self.assertEqual(os.readlink(source), os.path.join("..", ".tmp", "proj1"))
        self.assertEqual(source.resolve(), consolidation_target(source, self.merge_root).resolve())
        after = {p.relative_to(source).as_posix(): p.read_bytes() for p in source.rglob("*") if p.is_file()}
        self.assertEqual(before, after)

        recycled = self.merge_root / ".recycle" / STAMP / "proj1" / "tmp"
        self.assertEqual((recycled / "a.txt").read_text(encoding="utf-8"), "alpha\n")
        self.assertEqual(report.recycle_entries[0].recycle_path.parent.parent.name, STAMP)

    def test_second_prune_is_a_no_op(self):
        record, _ = self._copy()
        pruner = ReversiblePruner(file_ops=FileOperations(), clock=lambda: FIXED_CLOCK)
        pruner.prune(record, self.merge_root, self.root)
        report = pruner.prune(record, self.merge_root, self.root)
        self.assertEqual((report.pruned, report.skipped), (0, 3))

    def test_delete_mode_leaves_no_recycle_area(self):
        record, _ = self._copy()
        report = ReversiblePruner(file_ops=FileOperations()).prune(record, self.merge_root, self.root, PruneMode.DELETE)
        self.assertEqual(report.pruned, 3)
        self.assertFalse((self.merge_root / ".recycle").exists())
        self.assertTrue((self.root / "proj3" / "backup").is_symlink())
        self.assertEqual((self.root / "proj3" / "backup" / "d.txt").read_text(encoding="utf-8"), "delta\n")

    def test_merge_never_overwrites_existing_files(self):
        target = self.merge_root / "proj1"
        target.mkdir(parents=True)
        (target / "a.txt").write_text("kept\n", encoding="utf-8")
        self._copy()
        self.assertEqual((target / "a.txt").read_text(encoding="utf-8"), "kept\n")
        self.assertEqual((target / "inner" / "b.txt").read_text(encoding="utf-8"), "beta\n")

    def test_partial_failure_tolerance(self):
        merge_root = self.base / "merge"
        record = ConsolidationRecord.create(self.base / "records")
        for i in range(1, 6):
            src = self.base / f"p{i}" / "tmp"
            (src).mkdir(parents=True)
            (src / "f.txt").write_text(str(i), encoding="utf-8")
            tgt = merge_root / f"p{i}"
            if i != 3:
                tgt.mkdir(parents=True)
                (tgt / "f.txt").write_text(str(i), encoding="utf-8")
            record.append(RecordEntry(src, tgt))

        report = ReversiblePruner(file_ops=FileOperations(), clock=lambda: FIXED_CLOCK).prune(
            record, merge_root, self.base,
        )
        self.assertEqual((report.processed, report.pruned, report.skipped), (5, 4, 1))
        self.assertTrue((self.base / "p3" / "tmp").is_dir())
        self.assertFalse((self.base / "p3" / "tmp").is_symlink())
        for i in (1, 2, 4, 5):
            self.assertTrue((self.base / f"p{i}" / "tmp").is_symlink())

    def test_dry_run_pipeline_is_pure(self):
        before = fx.snapshot(self.root)
        with DryRunSession() as session:
            record, report = self._copy(dry_run=True, record_dir=session.scratch_dir)
            prune = ReversiblePruner(file_ops=FileOperations(dry_run=True)).prune(record, self.merge_root, self.root)
            scratch = session.scratch_dir
        self.assertEqual(before, fx.snapshot(self.root))
        self.assertEqual(report.previewed, 3)
        self.assertEqual(prune.pruned, 3)
        self.assertFalse(scratch.exists())


class DryRunSessionTests(unittest.TestCase):
    def test_scratch_removed_on_error(self):
        holder = {}
        with self.assertRaises(RuntimeError):
            with DryRunSession() as session:
                holder["rec"] = session.new_record()
                self.assertTrue(holder["rec"].path.is_file())
                raise RuntimeError("boom")
        self.assertFalse(holder["rec"].path.parent.exists())

    def test_no_scratch_without_use(self):
        session = DryRunSession()
        session.close()
        self.assertIsNone(session._scratch)


# --------------------------------------------------------------------------- #
#  Aggressive replace                                                         #
# --------------------------------------------------------------------------- #
class AggressiveTests(_TempCase):
    def setUp(self) -> None:
        super().setUp()
        self.root = fx.build_transient_tree(self.base)

    def test_aggressive_replaces_and_ignores(self):
        (self.root / "proj1" / ".gitignore").write_text("*.pyc", encoding="utf-8")
        self.assertEqual(_run_cli(str(self.root), "--aggressive"), 0)

        for rel in ("proj1/tmp", "proj2/.TEMP", "proj3/backup"):
            self.assertTrue((self.root / rel).is_symlink(), rel)
        self.assertFalse((self.root / ".tmp" / ".recycle").exists())
        self.assertEqual(
            (self.root / "proj1" / ".gitignore").read_text(encoding="utf-8"),
            "*.pyc\ntmp/\n",
        )
        root_ignore = (self.root / ".gitignore").read_text(encoding="utf-8").splitlines()
        self.assertEqual(root_ignore, ["proj2/.TEMP/", "proj3/backup/"])
        # Aggressive mode skips manifest generation.
        self.assertFalse((self.root / ".gitmodules").exists())

    def test_aggressive_twice_does_not_duplicate_entries(self):
        self.assertEqual(_run_cli(str(self.root), "--agressive"), 0)
        first = (self.root / ".gitignore").read_text(encoding="utf-8")
        self.assertEqual(_run_cli(str(self.root), "--aggressive"), 0)
        self.assertEqual((self.root / ".gitignore").read_text(encoding="utf-8"), first)

    def test_dot_tmp_folders_are_not_ignored(self):
        (self.root / "proj3" / ".tmp").mkdir()
        (self.root / "proj3" / ".tmp" / "z.txt").write_text("z", encoding="utf-8")
        self.assertEqual(_run_cli(str(self.root), "--aggressive"), 0)
        self.assertNotIn(".tmp/", (self.root / ".gitignore").read_text(encoding="utf-8"))
        self.assertTrue((self.root / "proj3" / ".tmp").is_symlink())

    def test_empty_transient_dir_is_replaced_and_ignored(self):
        empty = self.root / "proj4" / "temp"
        empty.mkdir(parents=True)
        self.assertEqual(_run_cli(str(self.root), "--aggressive"), 0)
        self.assertTrue(empty.is_symlink())
        self.assertEqual(empty.resolve(), (self.root / ".tmp" / "proj4").resolve())
        self.assertIn("proj4/temp/", (self.root / ".gitignore").read_text(encoding="utf-8").splitlines())

    def test_aggressive_dry_run_is_pure(self):
        before = fx.snapshot(self.root)
        self.assertEqual(_run_cli(str(self.root), "--aggressive", "--dry-run"), 0)
        self.assertEqual(before, fx.snapshot(self.root))


# --------------------------------------------------------------------------- #
#  CLI                                                                        #
# --------------------------------------------------------------------------- #
class CliTests(_TempCase):
    def test_invalid_root_exits_1(self):
        self.assertEqual(_run_cli(str(self.base / "does-not-exist")), 1)

    def test_no_repositories_is_benign(self):
        empty = self.base / "empty"
        empty.mkdir()
        with self.assertLogs("modnest.nesting", level="WARNING") as cm:
            self.assertEqual(_run_cli(str(empty)), 0)
        self.assertTrue(any("no git repositories" in m for m in cm.output))

    def test_usage_error_exits_2(self):
        with self.assertRaises(SystemExit) as cm:
            _run_cli("--no-such-flag")
        self.assertEqual(cm.exception.code, 2)

    def test_only_prune_without_record_fails_live(self):
        root = fx.build_transient_tree(self.base)
        self.assertEqual(_run_cli(str(root), "--only-prune"), 1)

    def test_only_prune_dry_run_synthesizes_record(self):
        root = fx.build_transient_tree(self.base)
        before = fx.snapshot(root)
        report_path = self.base / "report.json"
        self.assertEqual(_run_cli(str(root), "--only-prune", "--dry-run", "--report", str(report_path)), 0)
        self.assertEqual(before, fx.snapshot(root))
        data = json.loads(report_path.read_text(encoding="utf-8"))
        self.assertEqual(data["prune"]["pruned"], 3)

    def test_copy_then_prune_then_only_prune(self):
        root = fx.build_transient_tree(self.base)
        self.assertEqual(_run_cli(str(root), "--only-copy-temp"), 0)
        records = list((root / ".tmp").glob("copied_dirs.*"))
        self.assertEqual(len(records), 1)
        self.assertFalse((root / "proj1" / "tmp").is_symlink())

        self.assertEqual(_run_cli(str(root), "--only-prune"), 0)
        self.assertTrue((root / "proj1" / "tmp").is_symlink())
        self.assertTrue(any((root / ".tmp" / ".recycle").iterdir()))

    def test_full_run_writes_manifest_and_report(self):
        root = fx.build_transient_tree(self.base)
        report_path = self.base / "out" / "report.json"
        code = _run_cli(str(root), "--copy-temp", "--prune", "--delete", "--report", str(report_path))
        self.assertEqual(code, 0)
        self.assertIn("path = proj1", (root / ".gitmodules").read_text(encoding="utf-8"))
        data = json.loads(report_path.read_text(encoding="utf-8"))
        self.assertEqual(data["nesting"]["written"], 1)
        self.assertEqual(data["copy"]["copied"], 3)
        self.assertEqual(data["copy"]["skipped"], 1)
        self.assertEqual(data["prune"]["pruned"], 3)
        self.assertEqual(data["warnings"], [])
        self.assertEqual(set(data["stage_seconds"]), {"nesting", "find", "copy", "prune"})
        self.assertFalse(data["dry_run"])

    def test_test_sequence_is_dry(self):
        root = fx.build_transient_tree(self.base)
        before = fx.snapshot(root)
        report_path = self.base / "report.json"
        self.assertEqual(_run_cli(str(root), "--test", "--report", str(report_path)), 0)
        self.assertEqual(before, fx.snapshot(root))
        data = json.loads(report_path.read_text(encoding="utf-8"))
        self.assertTrue(data["dry_run"])
        self.assertEqual(data["copy"]["previewed"], 3)
        self.assertEqual(data["ignore_entries"], 3)

    def test_custom_merge_dir_stays_out_of_manifests(self):
        root = fx.build_transient_tree(self.base)
        fx.make_repo(root / "proj3" / "backup" / "clone")
        self.assertEqual(_run_cli(str(root), "--only-copy-temp", "--merge-dir", ".scratch"), 0)
        self.assertTrue((root / ".scratch" / "proj3" / "clone" / ".git").is_dir())

        self.assertEqual(_run_cli(str(root), "--merge-dir", ".scratch"), 0)
        manifest = (root / ".gitmodules").read_text(encoding="utf-8")
        self.assertIn("path = proj3/backup/clone", manifest)
        self.assertNotIn(".scratch", manifest)

    def test_exclude_flag_keeps_default_merge_dir_excluded(self):
        root = fx.build_hierarchy(self.base)
        self.assertEqual(_run_cli(str(root), "--exclude", "node_modules"), 0)
        manifest = (root / ".gitmodules").read_text(encoding="utf-8")
        self.assertNotIn(".tmp", manifest)
        self.assertIn("path = A", manifest)

    def test_env_merge_dir(self):
        root = fx.build_transient_tree(self.base)
        self.assertEqual(_run_cli(str(root), "--only-copy-temp", env={"MODNEST_MERGE_DIR": ".scratch"}), 0)
        self.assertEqual((root / ".scratch" / "proj1" / "a.txt").read_text(encoding="utf-8"), "alpha\n")


if __name__ == "__main__":
    unittest.main()
