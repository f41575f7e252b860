"""File format resolution shared by source and sink factories."""

from __future__ import annotations

from pathlib import Path

from core.constants import FILE_SUFFIX_FORMATS, SUPPORTED_FILE_FORMATS
from core.errors import ConfigurationError


def resolve_file_format(path: str | Path, file_format: str | None = None) -> str:
    """Resolve a file format from an explicit name or the path suffix.

    Args:
        path: File path.
        file_format: Optional explicit format name.

    Returns:
        One of the supported format names.

    Raises:
        ConfigurationError: If the format is unknown or cannot be inferred.
    """
    if file_format is not None:
        normalized = file_format.strip().lower()
        if normalized not in SUPPORTED_FILE_FORMATS:
            raise ConfigurationError(
                f"Unsupported file format '{file_format}'. "
                f"Use one of: {', '.join(SUPPORTED_FILE_FORMATS)}."
            )
        return normalized
    suffix = Path(path).suffix.lower()
    inferred = FILE_SUFFIX_FORMATS.get(suffix)
    if inferred is None:
        raise ConfigurationError(
            f"Cannot infer file format for {path} from suffix '{suffix}'. "
            f"Pass an explicit format ({', '.join(SUPPORTED_FILE_FORMATS)})."
        )
    return inferred


def default_delimiter_for(path: str | Path, delimiter: str) -> str:
    """Return a tab delimiter for .tsv paths, else the given delimiter."""
    return "\t" if Path(path).suffix.lower() == ".tsv" else delimiter
