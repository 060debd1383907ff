"""Main entry point for VexTab Preview.

This module provides the CLI interface for preprocessing VexTab files.
"""

import argparse
import json
import sys
import logging
from pathlib import Path
from typing import Optional, List

import yaml

from vextab_preview import (
    __version__,
    PreprocessError,
    PreprocessOptions,
    cursor_from_position,
    preprocess_text,
    read_source,
)
from output import JSONWriter, create_line_map_report

SUBCOMMANDS = ["preprocess", "line-map", "map-cursor"]


def setup_logging(level: str = "INFO", quiet: bool = False) -> None:
    """Configure logging.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR)
        quiet: If True, suppress all output except errors
    """
    if quiet:
        level = "ERROR"
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    default_config = {
        "short_form_extensions": [".tab"],
        "document_extensions": [".vt", ".vextab", ".tab"],
        "encoding": "utf-8-sig",
        "output": {
            "pretty_print": True,
            "indent_size": 2,
            "include_kinds": True,
        },
        "logging": {"level": "INFO"},
    }

    if config_path and config_path.exists():
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f)
            if user_config:
                # Merge user config with defaults
                for key, value in user_config.items():
                    if isinstance(value, dict) and key in default_config:
                        default_config[key].update(value)
                    else:
                        default_config[key] = value

    return default_config


def build_options(config: dict, force_short_form: bool = False) -> PreprocessOptions:
    """Build preprocessing options from a configuration dictionary."""
    return PreprocessOptions(
        short_form_extensions=tuple(config.get("short_form_extensions", [".tab"])),
        document_extensions=tuple(config.get("document_extensions", [".vt", ".vextab", ".tab"])),
        force_short_form=force_short_form,
        encoding=config.get("encoding", "utf-8-sig"),
    )


def _load_source(args, config: dict):
    """Read and preprocess the source named on the command line.

    Returns:
        Tuple of (source text, outcome), or None if the source is unusable
    """
    logger = logging.getLogger(__name__)

    options = build_options(config, force_short_form=args.short_form)

    try:
        logger.info(f"Reading source file: {args.source}")
        source = read_source(args.source, options)
    except (FileNotFoundError, PreprocessError) as e:
        logger.error(str(e))
        return None

    outcome = preprocess_text(source, args.source.name, options)
    if outcome.short_form:
        logger.info(
            f"Rewrote short-form source: {outcome.source_line_count} lines -> "
            f"{outcome.output_line_count} lines"
        )
    else:
        logger.debug("Source is not short-form, passing through unchanged")

    return source, outcome


def _prepare_output_dir(output_dir: Optional[Path]) -> bool:
    logger = logging.getLogger(__name__)
    if not output_dir:
        return True
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Output directory: {output_dir}")
    except OSError as e:
        logger.error(f"Failed to create output directory: {e}")
        return False
    return True


def handle_preprocess(args) -> int:
    """Handle the preprocess subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    if not _prepare_output_dir(args.output_dir):
        return 1

    config = load_config(args.config)

    try:
        loaded = _load_source(args, config)
        if loaded is None:
            return 1
        _, outcome = loaded

        if args.output_dir:
            output_filename = args.output_filename.format(stem=args.source.stem)
            output_path = args.output_dir / output_filename
            output_path.write_text(outcome.text, encoding="utf-8")
            logger.info(f"Output written to: {output_path}")
            if not args.quiet:
                print(f"Preprocessed source written to: {output_path}")
        else:
            sys.stdout.write(outcome.text)
            if outcome.text and not outcome.text.endswith("\n"):
                sys.stdout.write("\n")

        return 0

    except Exception as e:
        logger.exception(f"Preprocessing failed: {e}")
        return 1


def handle_line_map(args) -> int:
    """Handle the line-map subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    if not _prepare_output_dir(args.output_dir):
        return 1

    config = load_config(args.config)

    try:
        loaded = _load_source(args, config)
        if loaded is None:
            return 1
        _, outcome = loaded

        output_config = config.get("output", {})
        writer = JSONWriter(
            pretty_print=output_config.get("pretty_print", True),
            indent=output_config.get("indent_size", 2),
            include_kinds=output_config.get("include_kinds", True),
            include_unshifted_lines=not args.changed_only,
        )
        report = create_line_map_report(outcome)

        if args.output_dir:
            output_filename = args.output_filename.format(stem=args.source.stem)
            output_path = args.output_dir / output_filename
            writer.write(report, output_path)
            if not args.quiet:
                print(f"Line map written to: {output_path}")
                print(f"Execution time: {outcome.execution_time_seconds:.4f} seconds")
        else:
            print(writer.write(report))

        return 0

    except Exception as e:
        logger.exception(f"Line map generation failed: {e}")
        return 1


def handle_map_cursor(args) -> int:
    """Handle the map-cursor subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    config = load_config(args.config)

    try:
        loaded = _load_source(args, config)
        if loaded is None:
            return 1
        source, outcome = loaded

        cursor = cursor_from_position(source, args.line, args.column, args.editor_position)
        mapped = outcome.map_cursor(cursor)
        logger.debug(f"Mapped cursor {cursor} -> {mapped}")

        print(json.dumps({"line": mapped.line, "column": mapped.column}))
        return 0

    except Exception as e:
        logger.exception(f"Cursor mapping failed: {e}")
        return 1


def _add_common_arguments(parser, output_filename_default: Optional[str] = None):
    """Add the arguments shared by all subcommands."""
    parser.add_argument(
        "source",
        type=Path,
        help="Path to the VexTab source file (.vt, .vextab or .tab)",
    )
    parser.add_argument(
        "--short-form",
        action="store_true",
        help="Apply the short-form rewrite regardless of file extension",
    )

    if output_filename_default is not None:
        output_group = parser.add_argument_group("Output Options")
        output_group.add_argument(
            "-o", "--output-dir",
            type=Path,
            dest="output_dir",
            help="Output directory (created if it doesn't exist, default: stdout)",
        )
        output_group.add_argument(
            "--output-filename",
            type=str,
            default=output_filename_default,
            help=f"Output filename pattern. Use {{stem}} as placeholder (default: {output_filename_default})",
        )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Path to YAML configuration file",
    )

    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (debug level logging)",
    )
    logging_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )


def create_preprocess_parser(subparsers):
    """Create the preprocess subcommand parser.

    Args:
        subparsers: Subparsers object from main parser

    Returns:
        The preprocess subparser
    """
    preprocess_parser = subparsers.add_parser(
        "preprocess",
        help="Rewrite a VexTab file into explicit VexTab",
        description="Rewrite a short-form VexTab file into the explicit VexTab grammar. Other VexTab files pass through unchanged.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s song.tab
  %(prog)s song.tab -o ./build
  %(prog)s riff.txt --short-form
        """,
    )
    _add_common_arguments(preprocess_parser, output_filename_default="{stem}.vt")
    preprocess_parser.set_defaults(func=handle_preprocess)
    return preprocess_parser


def create_line_map_parser(subparsers):
    """Create the line-map subcommand parser.

    Args:
        subparsers: Subparsers object from main parser

    Returns:
        The line-map subparser
    """
    line_map_parser = subparsers.add_parser(
        "line-map",
        help="Show where each source line ends up after preprocessing",
        description="Emit a JSON report mapping every source line to its line and column offset in the rewritten text.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s song.tab
  %(prog)s song.tab --changed-only
  %(prog)s song.tab -o ./build
        """,
    )
    _add_common_arguments(line_map_parser, output_filename_default="{stem}-line-map.json")
    line_map_parser.add_argument(
        "--changed-only",
        action="store_true",
        help="Only list lines whose position changed",
    )
    line_map_parser.set_defaults(func=handle_line_map)
    return line_map_parser


def create_map_cursor_parser(subparsers):
    """Create the map-cursor subcommand parser.

    Args:
        subparsers: Subparsers object from main parser

    Returns:
        The map-cursor subparser
    """
    map_cursor_parser = subparsers.add_parser(
        "map-cursor",
        help="Translate a cursor position onto the preprocessed text",
        description="Translate a cursor in a VexTab source onto the rewritten text the renderer sees.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s song.tab --line 1 --column 0
  %(prog)s song.tab --line 0 --column 4 --editor-position
        """,
    )
    _add_common_arguments(map_cursor_parser)

    cursor_group = map_cursor_parser.add_argument_group("Cursor")
    cursor_group.add_argument(
        "--line",
        type=int,
        required=True,
        help="Cursor line (1-indexed)",
    )
    cursor_group.add_argument(
        "--column",
        type=int,
        required=True,
        help="Cursor column (0-indexed, from the first non-whitespace character)",
    )
    cursor_group.add_argument(
        "--editor-position",
        action="store_true",
        help="Interpret --line as 0-indexed and --column as a raw character offset",
    )
    map_cursor_parser.set_defaults(func=handle_map_cursor)
    return map_cursor_parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # If first arg is not a subcommand, assume 'preprocess'
    if argv and argv[0] not in SUBCOMMANDS + ['-h', '--help', '--version']:
        argv.insert(0, 'preprocess')

    parser = argparse.ArgumentParser(
        prog="vextab-preview",
        description="VexTab Preview - Rewrites short-form VexTab files and maps editor cursors onto the rewritten source.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  preprocess  Rewrite a VexTab file into explicit VexTab (default)
  line-map    Show where each source line ends up
  map-cursor  Translate a cursor position onto the rewritten text

Examples:
  %(prog)s preprocess song.tab
  %(prog)s song.tab  # same as above
  %(prog)s line-map song.tab --changed-only
  %(prog)s map-cursor song.tab --line 3 --column 2

For more information on a command, use: %(prog)s <command> --help
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    create_preprocess_parser(subparsers)
    create_line_map_parser(subparsers)
    create_map_cursor_parser(subparsers)

    args = parser.parse_args(argv)

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose and args.quiet:
        parser.error("--verbose and --quiet cannot be used together")

    # Setup logging
    config = load_config(args.config)
    log_level = "DEBUG" if args.verbose else config.get("logging", {}).get("level", "INFO")
    setup_logging(log_level, quiet=args.quiet)

    # Execute the appropriate handler
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
