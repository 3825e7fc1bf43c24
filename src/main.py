"""Entry point for the anycheck evaluator."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.checks.registry import CheckRegistry, RegistryError
from src.config import settings
from src.evaluator.engine import Evaluator, EvaluatorConfig
from src.evaluator.models import ConfigError, EvaluationResult

console = Console()


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting anycheck API Server", style="bold green"))
    uvicorn.run(
        "src.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def _print_result(target: str, result: EvaluationResult) -> None:
    if result.satisfied:
        console.print(Panel(
            f"{target}: [bold]{result.matched_check.name}[/bold] passed",
            title="Satisfied", style="bold green",
        ))
    else:
        reason = "timed out" if result.timed_out else "no check passed"
        console.print(Panel(f"{target}: {reason}", title="Not satisfied", style="bold red"))

    if result.failures:
        table = Table(title="Failures")
        table.add_column("Check")
        table.add_column("Kind")
        table.add_column("Error")
        for f in result.failures:
            entry = f.to_dict()
            table.add_row(entry["check"] or "-", entry["kind"], entry["error"])
        console.print(table)

    console.print(
        f"[dim]{result.strategy.value} | {result.invoked} check(s) invoked | "
        f"{result.elapsed_ms:.1f}ms[/dim]"
    )


def run_check(args: argparse.Namespace) -> int:
    """Evaluate the registry's checks against one target. Returns an exit code."""
    try:
        config = EvaluatorConfig.from_settings(settings).override(
            strategy=args.strategy,
            max_workers=args.max_workers,
            timeout=args.timeout,
        )
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        return 2

    registry = CheckRegistry(args.file or settings.checks_file)
    try:
        checks = registry.build(args.only)
    except RegistryError as e:
        console.print(f"[bold red]Registry error:[/bold red] {e}")
        return 2

    if not checks:
        console.print(f"[yellow]No checks configured in {registry.path}[/yellow]")

    with console.status(f"[bold green]Checking {args.target}..."):
        result = Evaluator(config).evaluate(checks, args.target)

    _print_result(args.target, result)
    return 0 if result.satisfied else 1


def list_checks(args: argparse.Namespace) -> int:
    """Print the checks defined in the registry."""
    registry = CheckRegistry(args.file or settings.checks_file)
    table = Table(title=str(registry.path))
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Detail")
    for d in registry.to_dict():
        detail = d.get("url") or (f"port {d['port']}" if "port" in d else "")
        table.add_row(d["id"], d["type"], detail)
    console.print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Does any check pass for a target?")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server")

    # Evaluate
    check_parser = sub.add_parser("check", help="Evaluate checks against a target")
    check_parser.add_argument("target", help="Host name passed to every check")
    check_parser.add_argument("--strategy", choices=["sequential", "concurrent"])
    check_parser.add_argument("--max-workers", type=int)
    check_parser.add_argument("--timeout", type=float, help="Deadline in seconds (concurrent only)")
    check_parser.add_argument("--file", help="Path to checks.yaml")
    check_parser.add_argument("--only", nargs="+", metavar="ID", help="Run only these check ids")

    # List
    list_parser = sub.add_parser("list", help="List registered checks")
    list_parser.add_argument("--file", help="Path to checks.yaml")

    args = parser.parse_args(argv)
    _configure_logging()

    if args.command == "serve":
        run_server()
        return 0
    if args.command == "check":
        return run_check(args)
    if args.command == "list":
        return list_checks(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
