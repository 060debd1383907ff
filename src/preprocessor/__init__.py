"""Preprocessor module for short-form VexTab sources."""

from .line_classifier import LineKind, classify_line, is_short_form_file, is_vextab_document
from .rewriter import CursorLocation, LineMapping, PreprocessResult, preprocess_source

__all__ = [
    "CursorLocation",
    "LineKind",
    "LineMapping",
    "PreprocessResult",
    "classify_line",
    "is_short_form_file",
    "is_vextab_document",
    "preprocess_source",
]
