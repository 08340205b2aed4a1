from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import IO, Mapping, NoReturn, Optional, Sequence

import httpx

from aicli.constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK
from aicli.core.interfaces.emit import OutputSinkProtocol
from aicli.errors import AiCliError
from aicli.logging.factory import DefaultLoggerFactory
from aicli.logging.helpers import get_logger, verbosity_to_level
from aicli.parsing.parser import _build_parser
from aicli.runtime.config import resolve_config
from aicli.runtime.pipeline import Pipeline


logger = get_logger('cli')


def _configure_logging(enable_json: bool, verbose: int) -> None:
    """Configure process-wide logging once, either JSON or plain text."""
    factory = DefaultLoggerFactory(json_logs=enable_json, level=verbosity_to_level(verbose))
    factory.get_logger('cli')


class AiCli:
    """Top-level façade for command-style execution."""

    @staticmethod
    def run(
        argv: Sequence[str],
        *,
        stdin: Optional[IO] = None,
        stdout: Optional[OutputSinkProtocol] = None,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> int:
        """Run the tool with an argv-like sequence and return the exit code.

        Errors derived from `AiCliError` propagate to the caller.
        """
        env = os.environ if env is None else env
        ns = _build_parser().parse_args(list(argv))
        _configure_logging(ns.json_logs or env.get('AI_CLI_JSON_LOGS') == '1', ns.verbose)

        out = stdout if stdout is not None else sys.stdout
        if ns.version:
            from aicli import __version__
            from aicli.utils.build_info import collect_build_info
            out.write(collect_build_info(__version__).render())
            out.flush()
            return EXIT_OK

        cfg = resolve_config(ns, env=env)
        if ns.no_stdin:
            source = None
        else:
            source = stdin if stdin is not None else sys.stdin

        pipeline = Pipeline(cfg, cwd=cwd, sink=out, transport=transport)
        result = pipeline.run(cfg.default_prompt, ns.files, source)
        logger.info(
            'done: %d fragment(s), %d chars, %d security event(s)',
            result.fragments,
            result.chars_written,
            result.security_events,
        )
        return EXIT_OK


def _silence_stdout() -> None:
    """Point stdout at /dev/null so the interpreter's final flush cannot fail."""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):
        pass


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Entry point for `ai-cli` and `python -m aicli`."""
    try:
        code = AiCli.run(sys.argv[1:] if argv is None else argv)
    except AiCliError as exc:
        logger.error('%s', exc)
        raise SystemExit(exc.exit_code)
    except KeyboardInterrupt:
        logger.error('Interrupted by user.')
        raise SystemExit(EXIT_INTERRUPTED)
    except BrokenPipeError:
        _silence_stdout()
        raise SystemExit(EXIT_OK)
    except Exception as exc:
        if os.getenv('DEBUG') == '1':
            raise
        logger.error('Unexpected error: %s', exc)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('traceback', exc_info=True)
        raise SystemExit(EXIT_FAILURE)
    raise SystemExit(code)


if __name__ == '__main__':
    main()
