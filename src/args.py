"""Argument parsing functionality for depfetch."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depfetch",
        description=(
            "depfetch - Resolve Maven POMs and version metadata from remote repositories"
        ),
        add_help=True,
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-p", "--package",
                             dest="SINGLE",
                             help="Coordinate to resolve as group:artifact:version "
                                  "(group:artifact with --metadata).",
                             action="append", type=str)
    input_group.add_argument("-l", "--load_list",
                             dest="LIST_FROM_FILE",
                             help="Load coordinates from a file, one per line",
                             action="append", type=str)

    parser.add_argument("-r", "--repository",
                        dest="REPOSITORIES",
                        help="Repository base URL, queried in the order given. "
                             "Maven Central is always consulted last.",
                        action="append", type=str,
                        default=[])
    parser.add_argument("--snapshots",
                        dest="SNAPSHOTS",
                        help="Allow snapshot versions from repositories given with -r.",
                        action="store_true")
    parser.add_argument("-d", "--directory",
                        dest="FROM_SRC",
                        help="Index pom.xml files of a local project; they win over remote copies.",
                        action="store", type=str)
    parser.add_argument("--recursive",
                        dest="RECURSIVE",
                        help="Recursively scan --directory for pom.xml files.",
                        action="store_true")
    parser.add_argument("-m", "--metadata",
                        dest="METADATA",
                        help="List versions from maven-metadata.xml instead of fetching POMs.",
                        action="store_true")
    parser.add_argument("-j", "--jobs",
                        dest="JOBS",
                        help="Number of coordinates resolved concurrently.",
                        action="store", type=int)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Per-request timeout in seconds.",
                        action="store", type=float)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to JSON output file (default: stdout)",
                        action="store", type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
