"""Argument parsing for modgate."""

import argparse
import sys

from constants import Constants

_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Flags whose optional value must be attached with "=".
_INLINE_VALUE_FLAGS = {"--reload": "--reload=", "-r": "--reload=", "--lock": "--lock="}
# Options that consume the following token as their value.
_VALUE_OPTIONS = {"--loglevel", "--logfile", "--cache-dir", "--timeout", "-c", "--config"}



def _add_common(parser):
    """Options shared by every subcommand."""
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=_LOG_LEVELS,
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help=f"Global module cache directory (default: {Constants.CACHE_DIR})",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Per-request timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store",
                        type=float)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to the project configuration file (deno.json or deno.jsonc)",
                        action="store",
                        type=str)


def _add_resolution(parser, allow_reload=True):
    """Lock file and fetch mode flags."""
    lock_group = parser.add_mutually_exclusive_group()
    lock_group.add_argument("--lock",
                            dest="LOCK",
                            help="Check the lock file (optionally at PATH; use --lock=PATH)",
                            nargs="?",
                            const="",
                            default=None,
                            metavar="PATH")
    lock_group.add_argument("--no-lock",
                            dest="NO_LOCK",
                            help="Disable auto discovery of the lock file",
                            action="store_true")

    write_group = parser.add_mutually_exclusive_group()
    write_group.add_argument("--lock-write",
                             dest="LOCK_WRITE",
                             help="Rewrite the lock file from this run's content",
                             action="store_true")
    write_group.add_argument("--frozen",
                             dest="FROZEN",
                             help="Error out if the lock file is out of date",
                             action="store_true")

    mode_group = parser.add_mutually_exclusive_group()
    if allow_reload:
        mode_group.add_argument("-r", "--reload",
                                dest="RELOAD",
                                help="Reload the cache; optionally only comma separated "
                                     "specifier prefixes (use --reload=jsr:@std/path,https://x/)",
                                nargs="?",
                                const="",
                                default=None,
                                metavar="TARGETS")
    mode_group.add_argument("--cached-only",
                            dest="CACHED_ONLY",
                            help="Require that remote dependencies are already cached",
                            action="store_true")


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="modgate",
        description="modgate - module resolution, caching and lock file integrity",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", metavar="COMMAND")
    subparsers.required = True

    cache = subparsers.add_parser("cache",
                                  aliases=["resolve"],
                                  help="Resolve and cache the module graph of the entry points")
    _add_common(cache)
    _add_resolution(cache)
    cache.add_argument("ENTRIES", nargs="+", metavar="entry",
                       help="Entry module: path, URL, jsr:/npm: or mapped specifier")

    vendor = subparsers.add_parser("vendor",
                                   help="Resolve the graph and copy remote modules into ./vendor")
    _add_common(vendor)
    _add_resolution(vendor)
    vendor.add_argument("ENTRIES", nargs="+", metavar="entry",
                        help="Entry module: path, URL, jsr:/npm: or mapped specifier")

    run = subparsers.add_parser("run",
                                help="Resolve and verify the graph of a program before it runs")
    _add_common(run)
    _add_resolution(run)
    run.add_argument("ENTRY", metavar="entry", help="Program entry module")
    run.add_argument("SCRIPT_ARGS", nargs=argparse.REMAINDER, metavar="args",
                     help="Arguments passed through to the program")
    return parser


def _bind_inline_values(argv):
    """Rewrite bare --reload/--lock so they never swallow the next entry.

    Rewriting stops at "--" and, for "run", at the entry module, since
    everything after it belongs to the program.
    """
    out = []
    command = None
    expect_value = False
    for index, token in enumerate(argv):
        if token == "--":
            return out + argv[index:]
        if expect_value:
            expect_value = False
        elif command is None and not token.startswith("-"):
            command = token
        elif command == "run" and not token.startswith("-"):
            return out + argv[index:]
        elif token in _VALUE_OPTIONS:
            expect_value = True
        out.append(_INLINE_VALUE_FLAGS.get(token, token))
    return out


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(_bind_inline_values(argv))
    # Normalize aliases so dispatch only sees canonical command names.
    if args.action == "resolve":
        args.action = "cache"
    if args.action == "run":
        args.ENTRIES = [args.ENTRY]
    return args
