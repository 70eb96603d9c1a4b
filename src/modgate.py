"""modgate - module resolution, caching and lock file integrity.

    Returns:
        int: Exit code
"""
import logging
import sys

from constants import ExitCodes
from errors import (
    ConfigError,
    FetchError,
    IntegrityMismatch,
    ModgateError,
    UntrackedDependency,
)
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
import cli_config

logger = logging.getLogger(__name__)


def exit_code_for(exc: ModgateError) -> ExitCodes:
    """Map an error to the process exit code."""
    if isinstance(exc, (IntegrityMismatch, UntrackedDependency)):
        return ExitCodes.INTEGRITY_ERROR
    if isinstance(exc, FetchError):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, ConfigError):
        return ExitCodes.FILE_ERROR
    return ExitCodes.RESOLUTION_ERROR


def _dispatch(args) -> None:
    # Imported lazily so --help stays fast.
    if args.action == "cache":
        from cli_cache import run_cache  # pylint: disable=import-outside-toplevel
        run_cache(args)
    elif args.action == "vendor":
        from cli_cache import run_vendor  # pylint: disable=import-outside-toplevel
        run_vendor(args)
    elif args.action == "run":
        from cli_run import run_program  # pylint: disable=import-outside-toplevel
        run_program(args)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    cli_config.apply_all(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action),
        )

    try:
        _dispatch(args)
    except ModgateError as exc:
        code = exit_code_for(exc)
        logger.error("%s", exc)
        if is_debug_enabled(logger):
            logger.debug(
                "CLI finished",
                extra=extra_context(
                    event="function_exit", component="cli", action=args.action,
                    outcome="error", error=type(exc).__name__, exit_code=code.value,
                ),
            )
        sys.exit(code.value)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
