# SPDX-License-Identifier: MIT
"""Command-line interface for ninja2soong."""

from __future__ import annotations

import argparse
import logging
import sys

from ninja2soong.configure.config import TranslateConfig, load_config
from ninja2soong.core.errors import Ninja2SoongError
from ninja2soong.core.translator import translate
from ninja2soong.projects import PROJECTS, get_project

# Set up logging
logger = logging.getLogger("ninja2soong")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def load_run_config(args: argparse.Namespace) -> TranslateConfig:
    """Combine the configuration file (if any) with command-line overrides."""
    config_path = getattr(args, "config", None)
    config = load_config(config_path) if config_path else TranslateConfig()
    return config.with_overrides(
        project=getattr(args, "project", None),
        source_dir=getattr(args, "source_dir", None),
        build_dir=getattr(args, "build_dir", None),
        package_dir=getattr(args, "package_dir", None),
        schema=getattr(args, "schema", None),
        generated_dir=getattr(args, "generated_dir", None),
        stage_mode=getattr(args, "stage_mode", None),
    )


def cmd_generate(args: argparse.Namespace) -> int:
    """Translate a build directory into Android.bp.

    The build directory must already hold a generated build.ninja;
    nothing is configured or built here.
    """
    setup_logging(args.verbose, args.debug)

    try:
        config = load_run_config(args)
        if config.project is None:
            logger.error("No project given (use --project or set it in the config)")
            return 1
        project = get_project(config.project, config)
        result = translate(project, config)
    except Ninja2SoongError as e:
        logger.error("%s", e)
        return 1

    print(f"Generated {result.output} ({len(result.package)} modules)")
    if result.staged_files:
        print(f"Staged {len(result.staged_files)} generated files")
    return 0


def cmd_list_projects(args: argparse.Namespace) -> int:
    """List the bundled projects."""
    setup_logging(args.verbose, args.debug)
    for name in sorted(PROJECTS):
        print(name)
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")


def add_generate_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for the generate command."""
    parser.add_argument(
        "-c", "--config", metavar="FILE", help="TOML configuration file"
    )
    parser.add_argument("-p", "--project", metavar="NAME", help="Project to translate")
    parser.add_argument(
        "-S", "--source-dir", metavar="DIR", help="Upstream source directory"
    )
    parser.add_argument(
        "-B", "--build-dir", metavar="DIR", help="Build directory with build.ninja"
    )
    parser.add_argument(
        "-o",
        "--package-dir",
        metavar="DIR",
        help="Where to write Android.bp (default: the source directory)",
    )
    parser.add_argument("--schema", metavar="NAME", help="Rule schema override")
    parser.add_argument(
        "--generated-dir",
        metavar="DIR",
        help="Package directory receiving generated files "
        "(default: the project's, else generated)",
    )
    parser.add_argument(
        "--stage-mode",
        choices=["copy", "symlink"],
        help="How generated files are staged (default: copy)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ninja2soong",
        description="Translate Ninja build graphs into Android Soong packages.",
        epilog="Run 'ninja2soong <command> --help' for command-specific help.",
    )

    from ninja2soong import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    add_common_args(parser)

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ninja2soong generate
    gen_parser = subparsers.add_parser(
        "generate", help="Generate Android.bp from a build directory"
    )
    add_common_args(gen_parser)
    add_generate_args(gen_parser)
    gen_parser.set_defaults(func=cmd_generate)

    # ninja2soong list-projects
    list_parser = subparsers.add_parser(
        "list-projects", help="List the bundled projects"
    )
    add_common_args(list_parser)
    list_parser.set_defaults(func=cmd_list_projects)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ninja2soong CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
