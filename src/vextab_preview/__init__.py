"""VexTab preview tooling: short-form preprocessing and cursor mapping."""

__version__ = "0.3.0"

from preprocessor import CursorLocation, LineKind, LineMapping
from .api import (
    PreprocessError,
    PreprocessOptions,
    PreprocessOutcome,
    cursor_from_position,
    editor_position_to_cursor,
    map_cursor_location,
    preprocess_file,
    preprocess_text,
    read_source,
)

__all__ = [
    "__version__",
    "CursorLocation",
    "LineKind",
    "LineMapping",
    # Public API
    "PreprocessError",
    "PreprocessOptions",
    "PreprocessOutcome",
    "cursor_from_position",
    "editor_position_to_cursor",
    "map_cursor_location",
    "preprocess_file",
    "preprocess_text",
    "read_source",
]
