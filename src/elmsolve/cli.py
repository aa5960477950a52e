"""Command line entry point for elmsolve."""

from __future__ import annotations

import logging
import sys

from .args import parse_args
from .cli_config import apply_overrides
from .common.http_client import HttpError
from .common.logging_utils import (
    TRACE,
    configure_logging,
    extra_context,
    is_debug_enabled,
    report_error,
    verbosity_level,
)
from .constants import Constants, ExitCodes, SolveMode, _load_yaml_config
from .errors import (
    ConstraintParseError,
    ElmSolveError,
    FetchError,
    ImpossibleDependencyError,
    ManifestDecodeError,
    NoSolutionError,
    SelfDependencyError,
    VersionListError,
)
from .service import format_solution, solve_offline, solve_online, solve_with_fallback
from .versioning.parser import tokenize_rightmost_colon

logger = logging.getLogger(__name__)

_INVALID_INPUT = (ManifestDecodeError, ConstraintParseError, ImpossibleDependencyError, SelfDependencyError)


def exit_code_for(error: ElmSolveError) -> ExitCodes:
    """Map a solver error to the process exit code."""
    if isinstance(error, NoSolutionError):
        return ExitCodes.NO_SOLUTION
    if isinstance(error, _INVALID_INPUT):
        return ExitCodes.INVALID_INPUT
    if isinstance(error, (FetchError, VersionListError)):
        if isinstance(error.__cause__, HttpError):
            return ExitCodes.CONNECTION_ERROR
        return ExitCodes.FILE_ERROR
    return ExitCodes.INTERNAL_ERROR


def _setup_logging(args) -> None:
    if args.VERBOSITY:
        level = verbosity_level(args.VERBOSITY)
    elif args.LOG_LEVEL == "TRACE":
        level = TRACE
    elif args.LOG_LEVEL:
        level = getattr(logging, args.LOG_LEVEL)
    else:
        configure_logging(logging.WARNING)
        level = None
    if level is not None:
        configure_logging(level)
        # An explicit flag wins over ELMSOLVE_LOG_LEVEL.
        logging.getLogger().setLevel(level)
    if args.LOG_FILE:
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def _parse_extra(pairs):
    """Turn PACKAGE:CONSTRAINT flags into a mapping."""
    extra = {}
    for pair in pairs:
        package, constraint = tokenize_rightmost_colon(pair)
        if not package or constraint is None:
            raise ConstraintParseError(pair, "expected PACKAGE:CONSTRAINT")
        extra[package] = constraint
    return extra


def _show_failure(error: ElmSolveError) -> None:
    """Put the failure explanation on stderr when logging would not show it."""
    if not logger.isEnabledFor(logging.ERROR):
        print(str(error), file=sys.stderr)


def _solve(args, project_text, extra):
    # None lets the providers resolve ELM_HOME from config, env or default.
    home = None
    if args.MODE == SolveMode.OFFLINE.value:
        return solve_offline(project_text, args.TEST, extra, home)
    if args.MODE == SolveMode.ONLINE.value:
        return solve_online(project_text, args.TEST, extra, home, Constants.REGISTRY_URL)
    return solve_with_fallback(project_text, args.TEST, extra, home, Constants.REGISTRY_URL)


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    _load_yaml_config(args.CONFIG)
    apply_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", mode=args.MODE),
        )

    try:
        with open(args.ELM_JSON, "r", encoding="utf-8") as fh:
            project_text = fh.read()
    except OSError as exc:
        logger.error("Could not read %s: %s", args.ELM_JSON, exc)
        return ExitCodes.FILE_ERROR.value

    try:
        extra = _parse_extra(args.EXTRA)
    except ConstraintParseError as exc:
        report_error(logger, exc)
        _show_failure(exc)
        return ExitCodes.INVALID_INPUT.value

    try:
        solution = _solve(args, project_text, extra)
    except ElmSolveError as exc:
        _show_failure(exc)
        return exit_code_for(exc).value

    output = format_solution(solution)
    if args.OUTPUT:
        try:
            with open(args.OUTPUT, "w", encoding="utf-8") as fh:
                fh.write(output + "\n")
        except OSError as exc:
            logger.error("Solution couldn't be written to disk: %s", exc)
            return ExitCodes.FILE_ERROR.value
        logger.info("Solution has been written to: %s", args.OUTPUT)
    else:
        print(output)
    return ExitCodes.SUCCESS.value


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())
