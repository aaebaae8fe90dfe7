from __future__ import annotations

"""
Flow runner.

Executes the flows selected by an `EngineConfig`:

    nesting        manifests for every repository boundary (default)
    copy / prune   consolidation of transient directories, optionally chained
    only-prune     prune from an existing record
    aggressive     copy + .gitignore + destructive prune in one pass
    test           dry-run preview of copy → prune → aggressive

Dry-run records live in a `DryRunSession` scratch directory so nothing is
written inside the hierarchy; live records are created in the merge root.
"""

import logging
from typing import Optional

from modnest.core.errors import InvalidRootError, MissingRecordError
from modnest.core.report import RunReport, StageTimer
from modnest.io.record import ConsolidationRecord
from modnest.logging.helpers import get_logger
from modnest.runtime.container import EngineBuilder, EngineConfig
from modnest.runtime.simulator import DryRunSession


class EngineRunner:
    def __init__(self, builder: EngineBuilder, *, logger: Optional[logging.Logger] = None) -> None:
        self._builder = builder
        self._cfg: EngineConfig = builder.config
        self._log = logger or get_logger('runner')

    def run(self) -> RunReport:
        cfg = self._cfg
        if not cfg.root.is_dir():
            raise InvalidRootError(cfg.root)

        report = RunReport(root=str(cfg.root), dry_run=cfg.dry_run)
        self._log.info('Root directory: %s', cfg.root)
        if cfg.dry_run:
            self._log.info('DRY-RUN: no files will be modified')

        with DryRunSession(logger=get_logger('dryrun')) as session:
            if cfg.test:
                self._run_test(report, session)
            elif cfg.only_prune:
                self._run_prune(report, session, record=None)
            else:
                if cfg.nesting:
                    with StageTimer(report, 'nesting'):
                        report.nesting = self._builder.build_orchestrator().run(cfg.root)
                if cfg.aggressive:
                    self._run_aggressive(report, session)
                elif cfg.copy_temp:
                    record = self._run_copy(report, session)
                    if cfg.prune:
                        self._run_prune(report, session, record=record)
                elif cfg.prune:
                    self._run_prune(report, session, record=None)

        if report.copy is not None and report.copy.skipped_failed:
            report.add_error(f'copy: {report.copy.skipped_failed} directory(ies) could not be merged')
        if report.prune is not None and report.prune.skipped:
            report.add_error(f'prune: {report.prune.skipped} entry(ies) skipped')
        report.finish()
        return report

    # -------- Flows --------

    def _new_record(self, session: DryRunSession, dry_run: bool) -> ConsolidationRecord:
        if dry_run:
            return session.new_record()
        return ConsolidationRecord.create(self._cfg.merge_root, logger=get_logger('io.record'))

    def _run_copy(self, report: RunReport, session: DryRunSession, *, dry_run: Optional[bool] = None) -> ConsolidationRecord:
        cfg = self._cfg
        dry = cfg.dry_run if dry_run is None else dry_run
        finder = self._builder.build_finder()
        with StageTimer(report, 'find'):
            found = finder.find(cfg.root, cfg.merge_root)
        record = self._new_record(session, dry)
        with StageTimer(report, 'copy'):
            report.copy = self._builder.build_copier(dry_run=dry).copy(found.candidates, cfg.merge_root, record)
        if not dry:
            self._log.info('Record saved: %s', record.path)
        return record

    def _resolve_record(self, report: RunReport, session: DryRunSession) -> ConsolidationRecord:
        """Explicit --record, else the newest record in the merge root.

        With nothing found a dry run previews a copy to obtain an ephemeral
        record; a live run fails.
        """
        cfg = self._cfg
        log = get_logger('io.record')
        if cfg.record_path is not None:
            return ConsolidationRecord.load(cfg.record_path, logger=log)
        latest = ConsolidationRecord.latest(cfg.merge_root)
        if latest is not None:
            return ConsolidationRecord.load(latest, logger=log)
        if not cfg.dry_run:
            raise MissingRecordError(cfg.merge_root, 'run with --copy-temp first or pass --record FILE')
        self._log.info(
            'DRY-RUN: no record found in %s – previewing a copy to build an ephemeral one', cfg.merge_root,
        )
        return self._run_copy(report, session, dry_run=True)

    def _run_prune(self, report: RunReport, session: DryRunSession, *, record: Optional[ConsolidationRecord]) -> None:
        cfg = self._cfg
        if record is None:
            record = self._resolve_record(report, session)
        with StageTimer(report, 'prune'):
            report.prune = self._builder.build_pruner().prune(record, cfg.merge_root, cfg.root, cfg.prune_mode)

    def _run_aggressive(self, report: RunReport, session: DryRunSession, *, dry_run: Optional[bool] = None) -> None:
        cfg = self._cfg
        dry = cfg.dry_run if dry_run is None else dry_run
        record = self._new_record(session, dry)
        with StageTimer(report, 'copy'):
            copy_report, prune_report, added = self._builder.build_aggressive(dry_run=dry).run(
                cfg.root, cfg.merge_root, record,
            )
        report.copy = copy_report
        report.prune = prune_report
        report.ignore_entries += added

    def _run_test(self, report: RunReport, session: DryRunSession) -> None:
        self._log.info('Running --test sequence against %s (DRY-RUN)', self._cfg.root)
        self._log.info('[TEST] Step 1: copy')
        record = self._run_copy(report, session, dry_run=True)
        self._log.info('[TEST] Step 2: prune')
        with StageTimer(report, 'prune'):
            report.prune = self._builder.build_pruner(dry_run=True).prune(
                record, self._cfg.merge_root, self._cfg.root, self._cfg.prune_mode,
            )
        copy_report, prune_report = report.copy, report.prune
        self._log.info('[TEST] Step 3: aggressive')
        self._run_aggressive(report, session, dry_run=True)
        # The copy and prune previews are what the report describes.
        report.copy, report.prune = copy_report, prune_report
