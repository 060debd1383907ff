"""Public API for VexTab source preprocessing.

This module provides the programmatic interface for rewriting short-form
VexTab files and translating editor cursors onto the rewritten text.
Use these functions instead of calling CLI internals directly.

Example:
    from vextab_preview import preprocess_file, CursorLocation

    outcome = preprocess_file(Path("song.tab"))

    print(outcome.text)                        # Explicit VexTab source
    print(outcome.map_cursor(CursorLocation(line=1, column=0)))
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from preprocessor import CursorLocation, LineMapping, PreprocessResult, preprocess_source
from preprocessor.line_classifier import (
    SHORT_FORM_EXTENSIONS,
    VEXTAB_EXTENSIONS,
    is_vextab_document,
    leading_whitespace,
)
from preprocessor.rewriter import split_source_lines


class PreprocessError(Exception):
    """Raised when a VexTab source cannot be read or preprocessed."""
    pass


@dataclass
class PreprocessOptions:
    """Options for preprocessing.

    Attributes:
        short_form_extensions: Extensions that enable the short-form rewrite
        document_extensions: Extensions recognized as VexTab documents
        force_short_form: Apply the rewrite regardless of file extension
        encoding: Encoding used to read source files (utf-8-sig drops a
            leading byte order mark)
    """
    short_form_extensions: Tuple[str, ...] = SHORT_FORM_EXTENSIONS
    document_extensions: Tuple[str, ...] = VEXTAB_EXTENSIONS
    force_short_form: bool = False
    encoding: str = "utf-8-sig"


@dataclass
class PreprocessOutcome:
    """Result of preprocessing a VexTab source.

    Attributes:
        file_name: Name of the source file (None for in-memory text)
        short_form: Whether the short-form rewrite was applied
        text: Rewritten source
        line_mapping: Source line to rewritten line table
        source_line_count: Number of lines in the source
        output_line_count: Number of lines in the rewritten text
        execution_time_seconds: Time spent preprocessing
    """
    file_name: Optional[str]
    short_form: bool
    text: str
    line_mapping: List[LineMapping] = field(default_factory=list)
    source_line_count: int = 0
    output_line_count: int = 0
    execution_time_seconds: float = 0.0
    result: Optional[PreprocessResult] = field(default=None, repr=False)

    def map_cursor(self, cursor: CursorLocation) -> CursorLocation:
        """Translate a source cursor onto the rewritten text."""
        if self.result is None:
            return cursor
        return self.result.map_cursor(cursor)


def editor_position_to_cursor(line_text: str, line_index: int, character: int) -> CursorLocation:
    """Convert an editor caret position into a preprocessor cursor.

    Editors report 0-indexed lines and raw character offsets. The
    preprocessor expects 1-indexed lines and columns measured from the
    first non-whitespace character of the line.

    Args:
        line_text: Text of the line the caret is on
        line_index: 0-indexed line number
        character: 0-indexed character offset within the line

    Returns:
        CursorLocation for the preprocessor
    """
    column = max(0, character - len(leading_whitespace(line_text)))
    return CursorLocation(line=line_index + 1, column=column)


def cursor_from_position(
    source: str, line: int, column: int, editor_position: bool = False
) -> CursorLocation:
    """Build a source cursor from a line/column pair.

    Args:
        source: Full source text the position refers to
        line: 1-indexed line, or 0-indexed if editor_position
        column: Column from the first non-whitespace character, or a raw
            character offset if editor_position
        editor_position: Treat line/column as an editor caret position

    Returns:
        CursorLocation in the source
    """
    if not editor_position:
        return CursorLocation(line=line, column=column)

    lines = split_source_lines(source)
    line_text = lines[line] if 0 <= line < len(lines) else ""
    return editor_position_to_cursor(line_text, line, column)


def preprocess_text(
    source: str,
    file_name: Optional[str] = None,
    options: Optional[PreprocessOptions] = None,
) -> PreprocessOutcome:
    """Preprocess an in-memory buffer.

    Args:
        source: Full buffer text
        file_name: Name of the buffer's file, used for the short-form check
        options: Preprocessing options (uses defaults if not provided)

    Returns:
        PreprocessOutcome with the rewritten text and line mapping
    """
    if options is None:
        options = PreprocessOptions()

    start_time = time.perf_counter()

    result = preprocess_source(
        source,
        file_name,
        short_form_extensions=options.short_form_extensions,
        short_form=True if options.force_short_form else None,
    )

    end_time = time.perf_counter()

    return PreprocessOutcome(
        file_name=file_name,
        short_form=result.short_form,
        text=result.text,
        line_mapping=result.line_mapping,
        source_line_count=len(result.line_mapping),
        output_line_count=result.output_line_count,
        execution_time_seconds=round(end_time - start_time, 4),
        result=result,
    )


def read_source(source_path: Path, options: Optional[PreprocessOptions] = None) -> str:
    """Read a VexTab source file.

    Args:
        source_path: Path to the .vt, .vextab or .tab file
        options: Preprocessing options (uses defaults if not provided)

    Returns:
        File contents

    Raises:
        FileNotFoundError: If the source file doesn't exist
        PreprocessError: If the path is not a readable VexTab file
    """
    if options is None:
        options = PreprocessOptions()

    source_path = Path(source_path)

    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    if not source_path.is_file():
        raise PreprocessError(f"Source path is not a file: {source_path}")

    if not options.force_short_form and not is_vextab_document(
        source_path.name, options.document_extensions
    ):
        extensions = ", ".join(options.document_extensions)
        raise PreprocessError(
            f"Not a VexTab document: {source_path.name} (expected one of {extensions})"
        )

    try:
        # newline="" keeps \r\n intact so line splitting matches the editor
        with open(source_path, "r", encoding=options.encoding, newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PreprocessError(f"Failed to read {source_path}: {e}") from e


def preprocess_file(
    source_path: Path,
    options: Optional[PreprocessOptions] = None,
) -> PreprocessOutcome:
    """Read a VexTab file and preprocess it.

    Args:
        source_path: Path to the .vt, .vextab or .tab file
        options: Preprocessing options (uses defaults if not provided)

    Returns:
        PreprocessOutcome for the file

    Raises:
        FileNotFoundError: If the source file doesn't exist
        PreprocessError: If the path is not a readable VexTab file
    """
    source = read_source(source_path, options)
    return preprocess_text(source, Path(source_path).name, options)


def map_cursor_location(
    source_path: Path,
    line: int,
    column: int,
    options: Optional[PreprocessOptions] = None,
    editor_position: bool = False,
) -> CursorLocation:
    """Translate a cursor in a VexTab file onto its rewritten text.

    Args:
        source_path: Path to the VexTab file
        line: Cursor line (1-indexed, or 0-indexed if editor_position)
        column: Cursor column (raw character offset if editor_position)
        options: Preprocessing options
        editor_position: Treat line/column as an editor caret position

    Returns:
        CursorLocation in the rewritten text

    Raises:
        FileNotFoundError: If the source file doesn't exist
        PreprocessError: If the file cannot be read
    """
    source = read_source(source_path, options)
    outcome = preprocess_text(source, Path(source_path).name, options)

    cursor = cursor_from_position(source, line, column, editor_position)
    return outcome.map_cursor(cursor)
