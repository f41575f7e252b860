"""Public API surface for Conduit.

This module provides a stable import path for library users.
It re-exports the pipeline, the built-in components, and typed models.
"""

from __future__ import annotations

from aggregations.aggregators import (
    AverageAggregator,
    CollectAggregator,
    CountAggregator,
    MaxAggregator,
    MinAggregator,
    SumAggregator,
    UniqueAggregator,
    build_aggregator,
)
from aggregations.group_by import GroupBy
from core.concurrency import TaskQueue, map_concurrent, maybe_await, with_timeout
from core.config import ConduitConfig
from core.errors import (
    ConduitError,
    ConduitTimeoutError,
    ConfigurationError,
    ParseError,
    PluginError,
    RunSpecError,
    SinkError,
    SourceError,
    TransformError,
    ValidationError,
)
from core.run_spec import load_run_spec
from core.run_spec_execution import execute_run_spec, execute_run_spec_file
from core.types import BUFFERED, PipelineOptions, PipelineState, PipelineStats, Record
from pipeline.pipeline import Pipeline, create_pipeline
from plugins.plugin_loader import load_plugin_file
from plugins.plugin_manager import PluginManager
from sinks.fanout_sink import FanOutSink
from sinks.file_sinks import CsvFileSink, JsonFileSink, JsonLinesSink, ParquetFileSink
from sinks.memory_sinks import ArraySink, CallbackSink, ConsoleSink
from sinks.sink_factory import open_file_sink
from sources.composite_sources import ConcatSource, LimitSource, SkipSource, TransformSource
from sources.file_sources import CsvFileSource, JsonFileSource, JsonLinesSource, ParquetFileSource
from sources.memory_sources import ArraySource, GeneratorSource
from sources.source_factory import open_file_source
from transforms.deduplication import DeduplicateTransformer, fields_key
from transforms.field_transforms import (
    AddFieldTransformer,
    ExcludeFieldsTransformer,
    RenameFieldsTransformer,
    SelectFieldsTransformer,
    TypeCastTransformer,
)
from transforms.function_transforms import FilterTransformer, FlatMapTransformer, MapTransformer
from transforms.stateful_transforms import GroupTransformer, JoinTransformer, SortTransformer
from validation.schema_validator import SchemaValidator
from validation.validators import (
    CustomValidator,
    PatternValidator,
    RangeValidator,
    RequiredFieldsValidator,
    TypeValidator,
    ValidatorChain,
)

__all__ = [
    "AddFieldTransformer",
    "ArraySink",
    "ArraySource",
    "AverageAggregator",
    "BUFFERED",
    "CallbackSink",
    "CollectAggregator",
    "ConcatSource",
    "ConduitConfig",
    "ConduitError",
    "ConduitTimeoutError",
    "ConfigurationError",
    "ConsoleSink",
    "CountAggregator",
    "CsvFileSink",
    "CsvFileSource",
    "CustomValidator",
    "DeduplicateTransformer",
    "ExcludeFieldsTransformer",
    "FanOutSink",
    "FilterTransformer",
    "FlatMapTransformer",
    "GeneratorSource",
    "GroupBy",
    "GroupTransformer",
    "JoinTransformer",
    "JsonFileSink",
    "JsonFileSource",
    "JsonLinesSink",
    "JsonLinesSource",
    "LimitSource",
    "MapTransformer",
    "MaxAggregator",
    "MinAggregator",
    "ParquetFileSink",
    "ParquetFileSource",
    "ParseError",
    "PatternValidator",
    "Pipeline",
    "PipelineOptions",
    "PipelineState",
    "PipelineStats",
    "PluginError",
    "PluginManager",
    "RangeValidator",
    "Record",
    "RenameFieldsTransformer",
    "RequiredFieldsValidator",
    "RunSpecError",
    "SchemaValidator",
    "SelectFieldsTransformer",
    "SinkError",
    "SkipSource",
    "SortTransformer",
    "SourceError",
    "SumAggregator",
    "TaskQueue",
    "TransformError",
    "TransformSource",
    "TypeCastTransformer",
    "TypeValidator",
    "UniqueAggregator",
    "ValidationError",
    "ValidatorChain",
    "build_aggregator",
    "create_pipeline",
    "execute_run_spec",
    "execute_run_spec_file",
    "fields_key",
    "load_plugin_file",
    "load_run_spec",
    "map_concurrent",
    "maybe_await",
    "open_file_sink",
    "open_file_source",
    "with_timeout",
]
