"""Argument parsing functionality for elmsolve."""

import argparse

from .constants import Constants, SolveMode


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="elmsolve",
        description="elmsolve - Dependency solver for Elm projects",
        add_help=True,
    )

    parser.add_argument("ELM_JSON",
                        help="Path to the project elm.json (default: ./elm.json)",
                        nargs="?",
                        default=Constants.ELM_JSON_FILE)
    parser.add_argument("--test",
                        dest="TEST",
                        help="Also solve the test dependencies.",
                        action="store_true")
    parser.add_argument("-e", "--extra",
                        dest="EXTRA",
                        help="Additional constraint as PACKAGE:CONSTRAINT, e.g. "
                             "'elm/json:1.1.0 <= v < 2.0.0' (can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument("--offline",
                            dest="MODE",
                            help="Only use packages installed in ELM_HOME.",
                            action="store_const",
                            const=SolveMode.OFFLINE.value)
    mode_group.add_argument("--online",
                            dest="MODE",
                            help="Complement ELM_HOME with the package registry.",
                            action="store_const",
                            const=SolveMode.ONLINE.value)
    parser.set_defaults(MODE=SolveMode.FALLBACK.value)

    parser.add_argument("--elm-home",
                        dest="ELM_HOME",
                        help="ELM_HOME directory (default: $ELM_HOME or ~/.elm)",
                        action="store",
                        type=str)
    parser.add_argument("--registry",
                        dest="REGISTRY",
                        help="Base URL of the package registry",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (JSON)",
                        action="store",
                        type=str)

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $ELMSOLVE_LOG_LEVEL or WARNING)",
                        action="store",
                        type=str.upper,
                        choices=['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSITY",
                        help="Increase verbosity (-v warning, -vv info, -vvv debug, -vvvv trace); overrides --loglevel",
                        action="count",
                        default=0)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
