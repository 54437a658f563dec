"""Argument parsing functionality for upwatch."""

import argparse

from livecheck.report import FORMAT_HUMAN, FORMAT_JSON, FORMAT_JSONL


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="upwatch",
        description="upwatch - check tracked packages for newer upstream releases",
        add_help=True,
    )

    parser.add_argument("names",
                        metavar="NAME",
                        help="Packages to check (default: the watchlist, else every package in the file)",
                        nargs="*")
    parser.add_argument("-f", "--file",
                        dest="PACKAGE_FILE",
                        help="YAML or JSON file with package metadata",
                        action="store", type=str,
                        required=True)

    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument("--json",
                              dest="OUTPUT_FORMAT",
                              help="Print a single JSON document",
                              action="store_const", const=FORMAT_JSON)
    output_group.add_argument("--jsonl",
                              dest="OUTPUT_FORMAT",
                              help="Print one JSON record per line",
                              action="store_const", const=FORMAT_JSONL)
    parser.set_defaults(OUTPUT_FORMAT=FORMAT_HUMAN)

    parser.add_argument("-n", "--newer-only",
                        dest="NEWER_ONLY",
                        help="Only report packages with a newer upstream version",
                        action="store_true")
    parser.add_argument("--full-name",
                        dest="FULL_NAME",
                        help="Print fully-qualified package names",
                        action="store_true")
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Include diagnostic metadata and cache markers",
                        action="store_true")
    parser.add_argument("-w", "--workers",
                        dest="WORKERS",
                        help="Number of concurrent checks (default from config, else 4)",
                        action="store", type=int)
    parser.add_argument("--limit",
                        dest="LIMIT_MINUTES",
                        help="Stop starting new checks after this many minutes",
                        action="store", type=float)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Timeout in seconds for each upstream request",
                        action="store", type=float)

    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument("--cache",
                             dest="CACHE_PATH",
                             help="Path of the result cache file",
                             action="store", type=str)
    cache_group.add_argument("--no-cache",
                             dest="NO_CACHE",
                             help="Do not read or write the result cache",
                             action="store_true")
    parser.add_argument("--refresh",
                        dest="REFRESH",
                        help="Ignore cached results but still write fresh ones",
                        action="store_true")

    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: UPWATCH_LOG_LEVEL, else WARNING)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--error-on-failures",
                        dest="ERROR_ON_FAILURES",
                        help="Exit with a non-zero status code if any check failed.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
