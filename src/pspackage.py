"""pspackage - build installer packages from a compiled PowerShell output tree.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from build_options import version_from_git
from cli_config import load_settings
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from common.tool_runner import ToolRunner
from constants import ExitCodes
from errors import BuildPrerequisiteMissing, PackagingError, UnsupportedPlatform
from orchestrator import PackageOrchestrator
from planning.facts import detect_platform_facts
from planning.models import PackageType

logger = logging.getLogger(__name__)


def run(args) -> int:
    """Run packaging for parsed CLI arguments and return an exit code."""
    try:
        settings = load_settings(args)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load configuration: %s", exc)
        return ExitCodes.PREREQUISITE_ERROR.value

    try:
        facts = detect_platform_facts()
    except ValueError as exc:
        logger.error("%s", exc)
        return ExitCodes.UNSUPPORTED_PLATFORM.value

    runner = ToolRunner(timeout=settings.tool_timeout)
    orchestrator = PackageOrchestrator(facts, settings, runner)
    types = [PackageType.parse(t) for t in (args.TYPES or [])]

    try:
        version = args.VERSION or version_from_git(runner, settings.repo_root)
        report = orchestrator.run(
            version,
            types,
            name=args.NAME,
            iteration=args.ITERATION,
            windows_downlevel=args.WINDOWS_DOWNLEVEL,
            name_suffix=args.NAME_SUFFIX,
            force=args.FORCE,
        )
    except BuildPrerequisiteMissing as exc:
        logger.error("%s", exc)
        return ExitCodes.PREREQUISITE_ERROR.value
    except UnsupportedPlatform as exc:
        logger.error("%s", exc)
        return ExitCodes.UNSUPPORTED_PLATFORM.value
    except PackagingError as exc:
        logger.error("%s", exc)
        return ExitCodes.BUILD_FAILED.value

    for result in report.results:
        print(result.artifact_path)
    if not report.ok:
        logger.error("Failed package types: %s", ", ".join(t.value for t in report.failures))
        return ExitCodes.BUILD_FAILED.value
    return ExitCodes.SUCCESS.value


def main():
    """Main function of the program."""
    args = parse_args()
    configure_logging(args.LOG_LEVEL)
    if args.LOG_FILE:
        add_file_handler(args.LOG_FILE)
        logger.info("Logging to file: %s", args.LOG_FILE)

    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(event="function_entry", component="cli", action="main"))

    sys.exit(run(args))


if __name__ == "__main__":
    main()
