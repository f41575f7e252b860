"""Convert command wiring for Conduit CLI.

The convert command streams one file into another, optionally skipping,
limiting, projecting and deduplicating records on the way.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from typing import Any

from core.config import ConduitConfig
from core.constants import SUPPORTED_FILE_FORMATS
from core.errors import ConduitError
from core.file_formats import default_delimiter_for, resolve_file_format
from core.types import PipelineOptions, PipelineStats
from pipeline.pipeline import Pipeline
from sinks.sink_factory import open_file_sink
from sources.composite_sources import LimitSource, SkipSource
from sources.source_factory import open_file_source
from transforms.deduplication import DeduplicateTransformer
from transforms.field_transforms import SelectFieldsTransformer


def add_convert_command(subparsers: Any) -> None:
    """Register convert subcommand."""
    parser = subparsers.add_parser(
        "convert",
        help="Convert records between JSON, JSON Lines, CSV and Parquet files",
    )
    parser.add_argument("input", help="Input file path")
    parser.add_argument("output", help="Output file path")
    parser.add_argument(
        "--input-format",
        choices=SUPPORTED_FILE_FORMATS,
        help="Input format; inferred from the file suffix when omitted",
    )
    parser.add_argument(
        "--output-format",
        choices=SUPPORTED_FILE_FORMATS,
        help="Output format; inferred from the file suffix when omitted",
    )
    parser.add_argument("--skip", type=int, default=0, help="Records to skip first")
    parser.add_argument("--limit", type=int, help="Maximum records to read after skipping")
    parser.add_argument("--select", help="Comma-separated fields to keep")
    parser.add_argument("--batch-size", type=int, help="Records per sink write")
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Drop records identical to an earlier record",
    )


def run_convert_command(config: ConduitConfig, args: argparse.Namespace) -> int:
    """Execute the convert command and print run statistics."""
    try:
        stats = asyncio.run(_convert(config, args))
    except ConduitError as error:
        print(f"error={error}")
        return 1
    print(f"records_processed={stats.records_processed}")
    print(f"records_skipped={stats.records_skipped}")
    print(f"records_errored={stats.records_errored}")
    print(f"output={args.output}")
    return 0


async def _convert(config: ConduitConfig, args: argparse.Namespace) -> PipelineStats:
    if args.batch_size is not None:
        config = replace(config, batch_size=args.batch_size)
    source_options = _csv_options(args.input, args.input_format, config)
    sink_options = _csv_options(args.output, args.output_format, config)
    source: Any = open_file_source(args.input, args.input_format, **source_options)
    if args.skip:
        source = SkipSource(source, args.skip)
    if args.limit is not None:
        source = LimitSource(source, args.limit)
    pipeline = Pipeline(PipelineOptions.from_config(config)).read_from(source)
    if args.select:
        fields = [field.strip() for field in args.select.split(",") if field.strip()]
        pipeline.transform(SelectFieldsTransformer(fields))
    if args.dedupe:
        pipeline.transform(DeduplicateTransformer())
    pipeline.write_to(open_file_sink(args.output, args.output_format, **sink_options))
    return await pipeline.execute()


def _csv_options(path: str, file_format: str | None, config: ConduitConfig) -> dict[str, str]:
    if resolve_file_format(path, file_format) != "csv":
        return {}
    return {"delimiter": default_delimiter_for(path, config.csv_delimiter)}
