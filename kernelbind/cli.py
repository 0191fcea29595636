# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Kernelbind Command Line Interface

Inspect registered backends, their operator catalogs, and how a list of
operators would be resolved for a given session configuration.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for Kernelbind CLI."""
    parser = argparse.ArgumentParser(
        prog="kernelbind",
        description="Kernelbind - operator resolution and backend dispatch",
    )

    parser.add_argument(
        "--version",
        "-v",
        action="store_true",
        help="Show version information",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        help="Show system information",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Backends command
    subparsers.add_parser(
        "backends",
        help="List registered backends",
    )

    # Ops command
    ops_parser = subparsers.add_parser(
        "ops",
        help="List the operator catalog of a backend",
    )
    ops_parser.add_argument(
        "--backend",
        "-b",
        default="cpu",
        help="Backend name (default: cpu)",
    )
    ops_parser.add_argument(
        "--domain",
        "-d",
        default=None,
        help="Only show this domain",
    )

    # Resolve command
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Show which backend and kernel serve each operator",
    )
    resolve_parser.add_argument(
        "ops",
        nargs="+",
        metavar="OP",
        help="Operator types, optionally as domain::OpType",
    )
    resolve_parser.add_argument(
        "--opset",
        required=True,
        help='Opset imports, e.g. "ai.onnx:13,com.microsoft:1"',
    )
    resolve_parser.add_argument(
        "--backend",
        "-b",
        default=None,
        help="Primary backend (default: KERNELBIND_BACKEND or vector)",
    )
    resolve_parser.add_argument(
        "--fallback",
        "-f",
        default=None,
        help='Fallback backend, "none" disables (default: cpu)',
    )
    resolve_parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Disable fallback resolution",
    )

    args = parser.parse_args(argv)
    console = Console()

    if args.version:
        from kernelbind import __version__

        console.print(f"Kernelbind v{__version__}")
        return 0

    if args.info:
        _show_info(console)
        return 0

    if args.command == "backends":
        return _list_backends(console)

    if args.command == "ops":
        return _list_ops(console, args)

    if args.command == "resolve":
        return _resolve_ops(console, args)

    # Default: show help
    parser.print_help()
    return 0


def _list_backends(console: Console) -> int:
    """Print a table of registered backends."""
    from kernelbind.backends import BackendRegistry

    registry = BackendRegistry()
    table = Table(title="Backends")
    table.add_column("Name", style="cyan")
    table.add_column("Available")
    table.add_column("Domains")
    table.add_column("Operators", justify="right")

    for name in registry.list_backends():
        backend = registry.get(name)
        available = backend.is_available()
        table.add_row(
            name,
            "[green]yes[/green]" if available else "[red]no[/red]",
            ", ".join(backend.domains()),
            str(backend.op_count()),
        )

    console.print(table)
    return 0


def _list_ops(console: Console, args) -> int:
    """Print the catalog entries of one backend."""
    from kernelbind.backends import BackendRegistry
    from kernelbind.errors import ConfigurationError

    try:
        backend = BackendRegistry().require(args.backend)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 2

    domains = [args.domain] if args.domain else backend.domains()
    table = Table(title=f"Operators ({backend.name})")
    table.add_column("Domain", style="magenta")
    table.add_column("Operator", style="cyan")
    table.add_column("Versions")
    table.add_column("Kernel")

    for domain in domains:
        catalog = backend.catalog_for(domain)
        for entry in sorted(catalog.entries(), key=lambda e: (e.op_type, e.versions.start)):
            table.add_row(catalog.domain, entry.op_type, str(entry.versions), entry.kernel_name)

    console.print(table)
    return 0


def _resolve_ops(console: Console, args) -> int:
    """Resolve operator types against a session configuration."""
    from kernelbind.config import SessionOptions, parse_opset_imports
    from kernelbind.core.node import GraphNode
    from kernelbind.errors import (
        ConfigurationError,
        InvalidOperatorConfigurationError,
        UnsupportedOperatorError,
    )
    from kernelbind.session import SessionHandler

    try:
        options = SessionOptions.from_env()
        options.opset_imports = parse_opset_imports(args.opset)
        if args.backend:
            options.backend = args.backend.strip().lower()
            if args.fallback is None and options.fallback == options.backend:
                options.fallback = None
        if args.fallback is not None:
            fallback = args.fallback.strip().lower()
            options.fallback = None if fallback in ("", "none") else fallback
        if args.no_fallback:
            options.fallback_enabled = False
        context = options.to_context()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 2

    table = Table(title="Resolution")
    table.add_column("Operator", style="cyan")
    table.add_column("Identity")
    table.add_column("Backend")
    table.add_column("Kernel")

    unsupported = 0
    with SessionHandler(context, name="cli") as session:
        for op in args.ops:
            domain, _, op_type = op.rpartition("::")
            node = GraphNode(op_type, domain=domain or None)
            try:
                session.resolve(node)
            except UnsupportedOperatorError as e:
                unsupported += 1
                identity = _identity_text(session, node)
                table.add_row(op_type, identity, "[red]unsupported[/red]", escape(e.reason or "-"))
                continue
            except InvalidOperatorConfigurationError as e:
                table.add_row(
                    op_type,
                    _identity_text(session, node),
                    "-",
                    f"[yellow]{escape(e.reason)}[/yellow]",
                )
                continue
            record = session.bindings()[-1]
            backend = record.backend
            if record.used_fallback:
                backend += " [yellow](fallback)[/yellow]"
            table.add_row(op_type, str(record.identity), backend, record.kernel_type)

    console.print(table)
    return 1 if unsupported else 0


def _identity_text(session, node) -> str:
    """Identity text for a node, or '-' when its domain has no opset."""
    from kernelbind.errors import UnsupportedOperatorError

    try:
        return str(session.identity_for(node))
    except UnsupportedOperatorError:
        return "-"


def _show_info(console: Console) -> int:
    """Show system and Kernelbind information."""
    import platform

    import numpy as np

    from kernelbind import __version__
    from kernelbind.backends import BackendRegistry

    registry = BackendRegistry()

    table = Table(title="Kernelbind System Information", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Kernelbind Version", __version__)
    table.add_row("Python Version", platform.python_version())
    table.add_row("Platform", platform.platform())
    table.add_row("NumPy Version", np.__version__)
    table.add_row("Backends", ", ".join(registry.list_backends()))
    table.add_row("Available", ", ".join(registry.list_available()))

    console.print(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())
