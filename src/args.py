"""Argument parsing functionality for pspackage."""

import argparse

from constants import Constants

PACKAGE_TYPES = ["deb", "rpm", "osxpkg", "msi", "appx", "zip", "AppImage"]
WINDOWS_DOWNLEVEL_RUNTIMES = ["win7-x64", "win7-x86", "win81-x64"]


def _package_name(value):
    if not value.startswith(Constants.PRODUCT_NAME):
        raise argparse.ArgumentTypeError(f"name must start with '{Constants.PRODUCT_NAME}'")
    return value


def _package_type(value):
    for choice in PACKAGE_TYPES:
        if choice.lower() == value.lower():
            return choice
    raise argparse.ArgumentTypeError(f"invalid type '{value}' (choose from {', '.join(PACKAGE_TYPES)})")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="pspackage",
        description="Build installer packages from a compiled PowerShell output directory",
        add_help=True,
    )

    parser.add_argument("-t", "--type",
                        dest="TYPES",
                        help="Package type(s) to build: " + ", ".join(PACKAGE_TYPES)
                             + ". Inferred from the platform when omitted.",
                        action="append",
                        type=_package_type,
                        default=[])
    parser.add_argument("-n", "--name",
                        dest="NAME",
                        help="Package name; must start with 'powershell' (side-by-side packages add a suffix)",
                        action="store",
                        type=_package_name,
                        default=Constants.PRODUCT_NAME)
    parser.add_argument("-v", "--version",
                        dest="VERSION",
                        help="Package version (defaults to 'git describe')",
                        action="store",
                        type=str)
    parser.add_argument("-i", "--iteration",
                        dest="ITERATION",
                        help="Package iteration / revision (default: 1)",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_ITERATION)
    parser.add_argument("--windows-downlevel",
                        dest="WINDOWS_DOWNLEVEL",
                        help="Build a package for a legacy Windows runtime",
                        action="store",
                        choices=WINDOWS_DOWNLEVEL_RUNTIMES)
    parser.add_argument("--name-suffix",
                        dest="NAME_SUFFIX",
                        help="Explicit suffix for zip/msi/appx file names",
                        action="store",
                        type=str)
    parser.add_argument("--options",
                        dest="OPTIONS_FILE",
                        help="Path to the build options JSON written by the build step",
                        action="store",
                        type=str)
    parser.add_argument("--repo-root",
                        dest="REPO_ROOT",
                        help="Repository root holding assets/ and tools/ (default: current directory)",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output-dir",
                        dest="OUTPUT_DIR",
                        help="Directory receiving the created packages",
                        action="store",
                        type=str)
    parser.add_argument("--keep-staging",
                        dest="KEEP_STAGING",
                        help="Keep the staging directory after the build for inspection",
                        action="store_true")
    parser.add_argument("-f", "--force",
                        dest="FORCE",
                        help="Overwrite existing zip/msi/appx packages",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
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
