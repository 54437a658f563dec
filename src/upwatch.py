"""upwatch - check tracked packages for newer upstream releases.

    Returns:
        int: Exit code
"""
import logging
import os
import signal
import sys

from constants import Constants, ExitCodes, _load_yaml_config, apply_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from strategy import StrategyRegistrationError, build_default_registry
from versioning.models import ConfigurationError
from livecheck.cache import JsonFileStore, ResultCache
from livecheck.orchestrator import CheckOptions
from livecheck.packages import load_packages, read_watchlist, select_packages
from livecheck.report import emit, has_failures
from livecheck.runner import BatchRunner, deadline_from_minutes, dispatch_order

logger = logging.getLogger(__name__)


def apply_cli_overrides(args):
    """Apply CLI flags over config-file values (CLI has highest precedence)."""
    if args.TIMEOUT is not None and args.TIMEOUT > 0:
        Constants.REQUEST_TIMEOUT = args.TIMEOUT
    if args.WORKERS is not None and args.WORKERS > 0:
        Constants.MAX_WORKERS = args.WORKERS
    if args.LIMIT_MINUTES is not None and args.LIMIT_MINUTES > 0:
        Constants.BATCH_LIMIT_MINUTES = args.LIMIT_MINUTES
    if args.CACHE_PATH:
        Constants.CACHE_PATH = os.path.expanduser(args.CACHE_PATH)


def build_pkglist(args):
    """Load the package file and narrow it to the requested packages.

    Explicit names win; otherwise the watchlist is used when it exists, else
    every package in the file is checked.
    """
    packages = load_packages(args.PACKAGE_FILE)
    names = list(args.names) or read_watchlist()
    if names:
        return select_packages(packages, names)
    return packages


def _install_interrupt_handler(runner):
    """First SIGINT stops dispatch and lets running checks drain; a second one aborts."""
    def _handler(signum, frame):  # pylint: disable=unused-argument
        runner.request_stop()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    try:
        return signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # Not in the main thread
        return None


def run(argv=None):
    """Run a batch check and return the process exit code."""
    # pylint: disable=too-many-return-statements
    args = parse_args(argv)
    configure_logging(default_level="WARNING")
    if args.LOG_LEVEL:
        logging.getLogger().setLevel(getattr(logging, args.LOG_LEVEL))

    apply_config(_load_yaml_config(args.CONFIG))
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    try:
        registry = build_default_registry(Constants.STRATEGY_EXTENSIONS)
    except StrategyRegistrationError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    try:
        packages = build_pkglist(args)
    except OSError as exc:
        logger.error("Could not read package file: %s", exc)
        return ExitCodes.FILE_ERROR.value
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    cache = None
    if not args.NO_CACHE:
        cache = ResultCache(JsonFileStore(Constants.CACHE_PATH), ttl=Constants.CACHE_TTL_SEC)

    options = CheckOptions(timeout=Constants.REQUEST_TIMEOUT, registry=registry, full_name=args.FULL_NAME)
    runner = BatchRunner(
        options,
        cache,
        workers=Constants.MAX_WORKERS,
        limit_seconds=deadline_from_minutes(Constants.BATCH_LIMIT_MINUTES),
        refresh=args.REFRESH,
    )

    previous = _install_interrupt_handler(runner)
    try:
        items = runner.run(packages, order=dispatch_order(packages, cache))
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    emit(items, fmt=args.OUTPUT_FORMAT, newer_only=args.NEWER_ONLY, verbose=args.VERBOSE)

    if args.ERROR_ON_FAILURES and has_failures(items):
        return ExitCodes.CHECK_FAILURES.value
    return ExitCodes.SUCCESS.value


def main():
    """Main function of the program."""
    sys.exit(run())


if __name__ == "__main__":
    main()
