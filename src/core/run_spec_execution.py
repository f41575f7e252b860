"""Shared run-spec execution engine for CLI workflows.

This module maps a validated run-spec to a configured pipeline, loads the
declared plugins, executes the run, and writes aggregate results. Output
is returned as printable ``key=value`` lines.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Mapping

from aggregations.aggregators import build_aggregator
from aggregations.group_by import GroupBy
from core.concurrency import maybe_await
from core.config import ConduitConfig
from core.errors import ConfigurationError, RunSpecError
from core.file_formats import default_delimiter_for, resolve_file_format
from core.logging_config import get_logger
from core.run_spec import (
    RunSpec,
    RunSpecAggregate,
    RunSpecSink,
    RunSpecSource,
    RunSpecStage,
    load_run_spec,
)
from core.run_spec_fields import (
    int_with_default,
    optional_bool,
    optional_int,
    required_string,
    string_list,
    string_mapping,
)
from core.types import PipelineOptions, PipelineStats
from pipeline.pipeline import Pipeline
from plugins.plugin_loader import load_plugin_file
from plugins.plugin_manager import PluginManager
from sinks.memory_sinks import ConsoleSink
from sinks.sink_factory import open_file_sink
from sources.composite_sources import LimitSource, SkipSource
from sources.source_factory import open_file_source
from transforms.deduplication import DeduplicateTransformer, fields_key
from transforms.field_transforms import (
    AddFieldTransformer,
    ExcludeFieldsTransformer,
    RenameFieldsTransformer,
    SelectFieldsTransformer,
    TypeCastTransformer,
)
from transforms.stateful_transforms import SortTransformer
from validation.validators import RequiredFieldsValidator

_LOGGER = get_logger(__name__)

STAGE_ALLOWED_ARGS: dict[str, set[str]] = {
    "select": {"fields"},
    "exclude": {"fields"},
    "rename": {"fields"},
    "add_field": {"field", "value"},
    "cast": {"schema"},
    "dedupe": {"fields"},
    "sort": {"field", "reverse", "buffer_size"},
    "require": {"fields", "strict"},
    "plugin": {"name"},
}


def execute_run_spec_file(spec_file: str | Path, config: ConduitConfig) -> tuple[str, ...]:
    """Load and execute a run-spec file, returning printable output lines."""
    spec = load_run_spec(spec_file)
    return execute_run_spec(spec, config)


def execute_run_spec(spec: RunSpec, config: ConduitConfig) -> tuple[str, ...]:
    """Execute a parsed run-spec object and return output lines."""
    return asyncio.run(run_spec_async(spec, config))


async def run_spec_async(spec: RunSpec, config: ConduitConfig) -> tuple[str, ...]:
    """Execute a parsed run-spec inside a running event loop.

    Args:
        spec: Validated run-spec.
        config: Runtime configuration supplying defaults.

    Returns:
        Output lines with run statistics and written aggregate paths.

    Raises:
        RunSpecError: If a stage cannot be built from its arguments.
        PluginError: If a plugin fails to load, initialize, or shut down.
        ConduitError: Pipeline failures propagate unchanged.
    """
    manager = PluginManager()
    try:
        for plugin_path in spec.plugins:
            await manager.register(load_plugin_file(plugin_path))
        group_by = _build_group_by(spec.aggregate) if spec.aggregate else None
        pipeline = build_pipeline(spec, config, manager, group_by)
        stats = await pipeline.execute()
        output_lines = list(_format_stats(stats))
        if spec.aggregate is not None and group_by is not None:
            output_lines.extend(await _write_aggregate(spec.aggregate, group_by, config))
    finally:
        await manager.shutdown_all()
    _LOGGER.info("run_spec_completed", output_line_count=len(output_lines))
    return tuple(output_lines)


def build_pipeline(
    spec: RunSpec,
    config: ConduitConfig,
    manager: PluginManager,
    group_by: GroupBy | None = None,
) -> Pipeline:
    """Build a configured, not yet executed, pipeline from a run-spec."""
    options = PipelineOptions(
        batch_size=_option_or_default(spec.options.batch_size, config.batch_size),
        concurrency=_option_or_default(spec.options.concurrency, config.concurrency),
    )
    pipeline = Pipeline(options).read_from(_build_source(spec.source, config))
    for stage in spec.stages:
        _add_stage(pipeline, stage, config, manager)
    if spec.sink is not None:
        pipeline.write_to(_build_sink(spec.sink, config))
    if group_by is not None:
        pipeline.aggregate(group_by)
    return pipeline


def _option_or_default(value: int | None, default_value: int) -> int:
    return default_value if value is None else value


def _build_source(source: RunSpecSource, config: ConduitConfig) -> Any:
    file_format = resolve_file_format(source.path, source.file_format)
    options: dict[str, Any] = {}
    if file_format == "csv":
        options["delimiter"] = source.delimiter or default_delimiter_for(
            source.path, config.csv_delimiter
        )
    built = open_file_source(source.path, file_format, **options)
    if source.skip:
        built = SkipSource(built, source.skip)
    if source.limit is not None:
        built = LimitSource(built, source.limit)
    return built


def _build_sink(sink: RunSpecSink, config: ConduitConfig) -> Any:
    options = dict(sink.options or {})
    if sink.file_format == "console":
        return ConsoleSink(
            pretty=optional_bool(options, "pretty", False),
            limit=optional_int(options, "limit"),
        )
    if sink.path is None:
        raise RunSpecError("Run-spec file sink is missing required field 'path'.")
    file_format = resolve_file_format(sink.path, sink.file_format)
    sink_options: dict[str, Any] = {}
    if file_format == "json":
        sink_options["pretty"] = optional_bool(options, "pretty", False)
    elif file_format == "jsonl":
        sink_options["append"] = optional_bool(options, "append", False)
    elif file_format == "csv":
        raw_delimiter = options.get("delimiter")
        if raw_delimiter is not None and (
            not isinstance(raw_delimiter, str) or len(raw_delimiter) != 1
        ):
            raise RunSpecError("Run-spec sink field 'delimiter' must be a single character.")
        sink_options["delimiter"] = raw_delimiter or default_delimiter_for(
            sink.path, config.csv_delimiter
        )
        sink_options["include_header"] = optional_bool(options, "include_header", True)
    elif "compression" in options:
        sink_options["compression"] = required_string(options, "compression")
    return open_file_sink(sink.path, file_format, **sink_options)


def _add_stage(
    pipeline: Pipeline,
    stage: RunSpecStage,
    config: ConduitConfig,
    manager: PluginManager,
) -> None:
    args = stage.args
    unknown_keys = sorted(set(args) - STAGE_ALLOWED_ARGS[stage.kind])
    if unknown_keys:
        raise RunSpecError(
            f"Invalid '{stage.kind}' stage: unknown fields {', '.join(unknown_keys)}."
        )
    if stage.kind == "require":
        validator = RequiredFieldsValidator(string_list(args, "fields"))
        pipeline.validate(validator, strict=optional_bool(args, "strict", False))
        return
    if stage.kind == "plugin":
        pipeline.transform(_plugin_transformer(manager, required_string(args, "name")))
        return
    try:
        pipeline.transform(_build_transformer(stage.kind, args, config))
    except ConfigurationError as error:
        raise RunSpecError(f"Invalid '{stage.kind}' stage: {error}") from error


def _build_transformer(kind: str, args: Mapping[str, object], config: ConduitConfig) -> Any:
    if kind == "select":
        return SelectFieldsTransformer(string_list(args, "fields"))
    if kind == "exclude":
        return ExcludeFieldsTransformer(string_list(args, "fields"))
    if kind == "rename":
        return RenameFieldsTransformer(string_mapping(args, "fields"))
    if kind == "add_field":
        return AddFieldTransformer(required_string(args, "field"), args.get("value"))
    if kind == "cast":
        return TypeCastTransformer(string_mapping(args, "schema"))
    if kind == "dedupe":
        if args.get("fields") is None:
            return DeduplicateTransformer()
        return DeduplicateTransformer(fields_key(string_list(args, "fields")))
    if kind == "sort":
        return SortTransformer(
            key=_field_sort_key(required_string(args, "field")),
            buffer_size=int_with_default(args, "buffer_size", config.sort_buffer_size),
            reverse=optional_bool(args, "reverse", False),
        )
    raise RunSpecError(f"Unsupported run-spec stage '{kind}'.")


def _field_sort_key(field_name: str) -> Any:
    def _key(record: Mapping[str, Any]) -> tuple[bool, Any]:
        value = record.get(field_name)
        return (value is None, value)

    return _key


def _plugin_transformer(manager: PluginManager, name: str) -> Any:
    plugin = manager.get(name)
    if plugin is None:
        raise RunSpecError(
            f"Plugin stage references unknown plugin '{name}'. Add its file under 'plugins'."
        )
    if not callable(getattr(plugin, "transform", None)):
        raise RunSpecError(f"Plugin '{name}' cannot be used as a stage: it has no transform().")
    return plugin


def _build_group_by(aggregate: RunSpecAggregate) -> GroupBy:
    aggregators = {}
    for aggregation in aggregate.aggregations:
        try:
            aggregators[aggregation.name] = build_aggregator(aggregation.kind, aggregation.field)
        except KeyError as error:
            raise RunSpecError(
                f"Unsupported aggregation '{aggregation.kind}' for '{aggregation.name}'."
            ) from error
        except ValueError as error:
            raise RunSpecError(f"Invalid aggregation '{aggregation.name}': {error}") from error
    return GroupBy(aggregate.group_by, aggregators)


async def _write_aggregate(
    aggregate: RunSpecAggregate,
    group_by: GroupBy,
    config: ConduitConfig,
) -> tuple[str, ...]:
    results = group_by.results()
    sink = _build_sink(aggregate.output, config)
    try:
        if results:
            await maybe_await(sink.write_batch(results))
    finally:
        await maybe_await(sink.close())
    if aggregate.output.path is None:
        return (f"groups={len(results)}",)
    return (f"groups={len(results)}", f"aggregate_output={aggregate.output.path}")


def _format_stats(stats: PipelineStats) -> tuple[str, ...]:
    return (
        f"records_processed={stats.records_processed}",
        f"records_skipped={stats.records_skipped}",
        f"records_errored={stats.records_errored}",
        f"duration_ms={stats.duration_ms}",
    )

