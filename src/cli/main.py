"""Conduit CLI entry points.
This module exposes the run-spec and convert commands.
It maps argparse commands onto pipeline runs.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from cli.convert_command import add_convert_command, run_convert_command
from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from core.config import ConduitConfig
from core.errors import ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="conduit", description="Conduit streaming ETL CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_run_spec_command(subparsers)
    add_convert_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Conduit CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = ConduitConfig.from_env()
    except ConfigurationError as error:
        print(f"error={error}")
        return 1
    if args.command == "run-spec":
        return run_run_spec_command(config, args)
    if args.command == "convert":
        return run_convert_command(config, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2
