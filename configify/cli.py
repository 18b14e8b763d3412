"""
Command line interface for configify.

    configify [flags] -type T [directory]
    configify [flags] -type T files...
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .codegen import GenerationResult, generate_from_package
from .codegen.core.config import ConfigError, get_config_manager
from .codegen.core.generator import GeneratorError
from .codegen.core.templates import TemplateError
from .logging_config import get_logger, setup_logging
from .utils import OutputError, default_output_path, is_directory, write_output

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


# Status output goes to stderr so --stdout stays clean; paths are never wrapped
console = Console(stderr=True, soft_wrap=True)


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="configify",
        description="Generate functional options for a Go struct type.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  configify -type config
  configify -type config ./example
  configify -type config -tags integration,linux ./example
  configify -type config -output opts.go example/example.go
        """.strip(),
    )

    parser.add_argument(
        "patterns",
        nargs="*",
        metavar="directory|files",
        help="package directory, or the .go files of one package (default: .)",
    )

    parser.add_argument(
        "-type",
        "--type",
        "-t",
        dest="type_name",
        required=True,
        metavar="T",
        help="name of the struct type to generate options for (required)",
    )
    parser.add_argument(
        "-tags",
        "--tags",
        metavar="TAGS",
        help="comma-separated list of build tags to apply",
    )
    parser.add_argument(
        "-output",
        "--output",
        "-o",
        metavar="FILE",
        help="output file name (default: srcdir/<type>_option.go)",
    )
    parser.add_argument(
        "--config", metavar="FILE", help="JSON configuration file"
    )

    output_group = parser.add_argument_group("output options")
    output_group.add_argument(
        "--stdout",
        action="store_true",
        help="write the generated code to standard output instead of a file",
    )
    output_group.add_argument(
        "--show",
        action="store_true",
        help="display the generated code with syntax highlighting",
    )
    output_group.add_argument(
        "--no-comments",
        action="store_true",
        help="don't add comments to the generated code",
    )
    output_group.add_argument(
        "--no-gofmt",
        action="store_true",
        help="don't run gofmt over the generated code",
    )

    load_group = parser.add_argument_group("package loading")
    load_group.add_argument(
        "--include-tests",
        action="store_true",
        help="also read _test.go files of the package",
    )
    load_group.add_argument("--goos", metavar="GOOS", help="target operating system")
    load_group.add_argument(
        "--goarch", metavar="GOARCH", help="target architecture"
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="show debug logging and metadata"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line tool.

    Returns:
        Exit code (0 for success, 1 for errors; argparse exits with 2
        on usage errors)
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, console=console)

    try:
        return _run(args)
    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return 1
    except (ConfigError, GeneratorError, OutputError, TemplateError) as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        return 1


def _run(args: argparse.Namespace) -> int:
    patterns = args.patterns or ["."]

    if args.tags and not (len(patterns) == 1 and is_directory(patterns[0])):
        raise CLIError(
            "-tags option applies only to directories, not when files are specified"
        )

    config = _build_config(args)
    for warning in get_config_manager().validate_config(config):
        console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]")

    logger.debug("Generating options for %s from %s", args.type_name, patterns)
    result = generate_from_package(patterns, args.type_name, config)

    if not result.success:
        console.print(
            f"[red]✗ Code generation failed:[/red] {escape(result.error_message)}"
        )
        if result.exception is not None:
            console.print(f"[dim]Details: {escape(str(result.exception))}[/dim]")
        return 1

    if args.stdout:
        sys.stdout.write(result.code)
    else:
        output_path = Path(
            args.output
            or config.output_file
            or default_output_path(patterns, args.type_name, config.output_suffix)
        )
        write_output(output_path, result.code)
        console.print(
            f"[green]✓[/green] Generated options for [bold]{args.type_name}[/bold] "
            f"saved to [cyan]{escape(str(output_path))}[/cyan]"
        )

    if args.show:
        console.print(Syntax(result.code, "go", theme="monokai"))

    if args.verbose:
        _print_metadata(result)

    if result.warnings:
        # Each warning was already reported through logging
        console.print(f"[yellow]⚠️  {len(result.warnings)} warning(s)[/yellow]")
    return 0


def _build_config(args: argparse.Namespace):
    """Merge the config file with command line overrides."""
    overrides = {
        "output_file": args.output,
        "goos": args.goos,
        "goarch": args.goarch,
    }
    if args.tags:
        overrides["build_tags"] = args.tags
    if args.include_tests:
        overrides["include_tests"] = True
    if args.no_comments:
        overrides["add_comments"] = False
    if args.no_gofmt:
        overrides["use_gofmt"] = False

    return get_config_manager().get_config(
        custom_config=overrides, config_file=args.config
    )


def _print_metadata(result: GenerationResult):
    table = Table(
        title="📊 Generation Metadata",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Property", style="bold")
    table.add_column("Value", style="green")

    for key, value in result.metadata.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value) or "-"
        table.add_row(key.replace("_", " ").title(), escape(str(value)))

    console.print()
    console.print(table)

