"""Run-spec CLI command wiring.

This module registers the run-spec subcommand and delegates execution to the
shared run-spec engine.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.config import ConduitConfig
from core.errors import ConduitError
from core.run_spec_execution import execute_run_spec_file


def add_run_spec_command(subparsers: Any) -> None:
    """Register run-spec subcommand."""
    parser = subparsers.add_parser(
        "run-spec",
        help="Run a declarative YAML pipeline spec",
    )
    parser.add_argument("spec_file", help="Path to YAML run-spec file")


def run_run_spec_command(config: ConduitConfig, args: argparse.Namespace) -> int:
    """Handle run-spec command invocation."""
    try:
        output_lines = execute_run_spec_file(args.spec_file, config)
    except ConduitError as error:
        print(f"error={error}")
        return 1
    for line in output_lines:
        print(line)
    return 0
