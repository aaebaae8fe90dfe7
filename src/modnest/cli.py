from __future__ import annotations

import os
import sys
from typing import Mapping, NoReturn, Optional, Sequence

from modnest.core.errors import ModNestError
from modnest.logging.factory import DefaultLoggerFactory
from modnest.logging.helpers import get_logger
from modnest.parsing.parser import _build_parser
from modnest.runtime.runner import EngineRunner
from modnest.runtime.wiring import build_engine, build_engine_config


logger = get_logger('modnest')


def _configure_logging(enable_json: bool, *, debug: bool = False) -> None:
    """Configure process-wide logging once per mode, either JSON or plain text."""
    factory = DefaultLoggerFactory.from_flags(json_logs=enable_json, debug=debug)
    if getattr(_configure_logging, '_configured_mode', None) == factory.mode:
        return
    global logger
    logger = factory.get_logger('modnest')
    setattr(_configure_logging, '_configured_mode', factory.mode)


class ModNest:
    """Top-level façade for command-style execution."""

    @staticmethod
    def run(argv: Sequence[str], *, environ: Optional[Mapping[str, str]] = None, **overrides) -> int:
        """Run the tool with an argv-like sequence and return the exit code.

        *overrides* are forwarded to the EngineBuilder (e.g. ``resolver=``).
        Usage errors leave through argparse's SystemExit(2).
        """
        ns = _build_parser().parse_args(list(argv))
        cfg = build_engine_config(ns, environ=environ)
        _configure_logging(cfg.json_logs, debug=cfg.debug)

        builder = build_engine(cfg, **overrides)
        try:
            report = EngineRunner(builder, logger=get_logger('runner')).run()
        except ModNestError as exc:
            logger.error('%s', exc)
            return exc.exit_code

        if cfg.report_path is not None:
            report.write(cfg.report_path)
            logger.info('✔ Report written to %s', cfg.report_path)
        if cfg.dry_run:
            logger.info('✔ DRY-RUN complete – no files were modified')
        else:
            logger.info('✔ Done')
        return 0


def main() -> NoReturn:
    """Entry point for `python -m modnest` and the `modnest` console script."""
    try:
        raise SystemExit(ModNest.run(sys.argv[1:]))
    except KeyboardInterrupt:
        logger.error('Interrupted by user.')
        raise SystemExit(130)
    except BrokenPipeError:
        raise SystemExit(0)
    except Exception as exc:
        if os.getenv('DEBUG') == '1':
            raise
        logger.error('Unexpected error: %s', exc)
        raise SystemExit(1)


if __name__ == '__main__':
    main()
