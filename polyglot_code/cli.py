"""
Command-line interface for Polyglot Code.

    polyglot-code run python hello.py
    echo 'puts 1' | polyglot-code run ruby -
    polyglot-code languages
    polyglot-code doctor
    polyglot-code serve
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .core.config import ConfigManager
from .core.debug_logger import DebugLogger, DebugLoggerConfig
from .core.exceptions import ConfigurationError, format_error_message
from .core.logging import setup_logging
from .execution import ExecutionEngine, ExecutionStatus
from .languages.toolchains import detect_toolchains

EXIT_OK = 0
EXIT_PROGRAM_FAILED = 1
EXIT_CONFIGURATION = 2

COLORS = {
    "success": "#9ECE6A",
    "error": "#F7768E",
    "muted": "#565F89",
    "accent": "#7DCFFF",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polyglot-code",
        description="Compile and run single-file programs in many languages.",
    )
    parser.add_argument("--config", type=Path, help="Path to polyglot_config.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute a source file")
    run_parser.add_argument("language", help="Language id or alias (e.g. python, java, c++)")
    run_parser.add_argument(
        "file", nargs="?", default="-", help="Source file, or '-' to read stdin"
    )

    subparsers.add_parser("languages", help="List supported languages")
    subparsers.add_parser("doctor", help="Check which toolchains are installed")
    subparsers.add_parser("serve", help="Start the MCP server on stdio")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    err_console = Console(stderr=True)

    try:
        config_manager = ConfigManager(config_path=args.config)
        config = config_manager.config
    except ConfigurationError as exc:
        err_console.print(format_error_message(exc), style=COLORS["error"], markup=False)
        return EXIT_CONFIGURATION

    setup_logging(config.logging.level, verbose=args.verbose)
    if config.logging.debug_timings or args.verbose:
        DebugLogger.configure(DebugLoggerConfig(enabled=True))

    if args.command == "serve":
        from .mcp.server import create_server

        server = create_server(config.server, config_manager=config_manager)
        asyncio.run(server.run())
        return EXIT_OK

    try:
        engine = ExecutionEngine(config_manager=config_manager)
    except ConfigurationError as exc:
        err_console.print(format_error_message(exc), style=COLORS["error"], markup=False)
        return EXIT_CONFIGURATION

    if args.command == "languages":
        console.print(_languages_table(engine))
        return EXIT_OK

    if args.command == "doctor":
        return _doctor(engine, console)

    return _run(engine, args.language, args.file, console, err_console)


def _run(
    engine: ExecutionEngine,
    language: str,
    file: str,
    console: Console,
    err_console: Console,
) -> int:
    try:
        if file == "-":
            source = sys.stdin.read()
        else:
            source = Path(file).read_text(encoding="utf-8")
    except OSError as exc:
        err_console.print(f"Cannot read {file}: {exc}", style=COLORS["error"], markup=False)
        return EXIT_CONFIGURATION

    result = engine.execute(language, source)
    if engine.debug.enabled:
        err_console.print(engine.debug.render())
    if result.success:
        console.print(result.text, markup=False, highlight=False)
        return EXIT_OK

    err_console.print(result.text, style=COLORS["error"], markup=False, highlight=False)
    if result.status is ExecutionStatus.CONFIGURATION_ERROR:
        return EXIT_CONFIGURATION
    return EXIT_PROGRAM_FAILED


def _languages_table(engine: ExecutionEngine) -> Table:
    table = Table(title="Supported languages", header_style=f"bold {COLORS['accent']}")
    table.add_column("Language")
    table.add_column("Aliases", style=COLORS["muted"])
    table.add_column("Compile")
    table.add_column("Run")
    table.add_column("Timeouts (s)", justify="right")

    for spec in engine.registry:
        compile_text = " ".join(spec.compile_command) if spec.compile_command else "-"
        timeouts = (
            f"{spec.compile_timeout:g}/{spec.run_timeout:g}"
            if spec.compiled
            else f"-/{spec.run_timeout:g}"
        )
        table.add_row(
            spec.id,
            ", ".join(spec.aliases) or "-",
            compile_text,
            " ".join(spec.run_command),
            timeouts,
        )
    return table


def _doctor(engine: ExecutionEngine, console: Console) -> int:
    health = detect_toolchains(engine.registry, engine.sandbox_config.resolve_python())
    table = Table(title="Toolchains", header_style=f"bold {COLORS['accent']}")
    table.add_column("Language")
    table.add_column("Status")
    table.add_column("Detail", style=COLORS["muted"])

    for language, item in health.items():
        status = (
            f"[{COLORS['success']}]available[/]"
            if item.available
            else f"[{COLORS['error']}]missing[/]"
        )
        table.add_row(language, status, item.detail)

    console.print(table)
    available = sum(1 for item in health.values() if item.available)
    console.print(f"{available}/{len(health)} toolchains available")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
