"""Short-form rewriter for VexTab sources.

This module rewrites short-form (``.tab``) sources into the explicit
VexTab grammar by:
- Turning bare stave option lines into ``tabstave`` lines
- Inserting an implicit ``tabstave`` before the first stave content
- Turning blank separator lines into ``tabstave`` openers
- Recording where each source line ended up, so editor cursors can be
  translated onto the rewritten text
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .line_classifier import (
    STAVE_KEYWORD,
    SHORT_FORM_EXTENSIONS,
    LineKind,
    classify_line,
    is_blank_line,
    is_comment_line,
    is_preamble_line,
    is_short_form_file,
    split_leading_whitespace,
)

STAVE_PREFIX = STAVE_KEYWORD + " "

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class CursorLocation:
    """A caret position: 1-indexed line, 0-indexed column."""

    line: int
    column: int


@dataclass
class LineMapping:
    """Maps a source line to the rewritten line that carries its content."""

    original_line: int
    processed_line: int
    column_offset: int = 0
    kind: LineKind = LineKind.CONTENT


@dataclass
class PreprocessResult:
    """Result of preprocessing one source buffer.

    Attributes:
        text: Rewritten source, ready for the VexTab parser
        line_mapping: One entry per source line, in source order
        short_form: Whether the short-form rewrite was applied
    """

    text: str
    line_mapping: List[LineMapping] = field(default_factory=list)
    short_form: bool = False

    def map_cursor(self, cursor: CursorLocation) -> CursorLocation:
        """Translate a cursor in the source onto the rewritten text.

        Lines outside the source are returned unchanged.
        """
        if not self.short_form:
            return cursor

        index = cursor.line - 1
        if index < 0 or index >= len(self.line_mapping):
            return cursor

        mapping = self.line_mapping[index]
        return CursorLocation(
            line=mapping.processed_line,
            column=cursor.column + mapping.column_offset,
        )

    @property
    def output_line_count(self) -> int:
        return len(self.text.split("\n"))


def split_source_lines(source: str) -> List[str]:
    """Split source text on ``\\n`` or ``\\r\\n``.

    Unlike ``str.splitlines``, a trailing line ending produces a final
    empty line and a lone ``\\r`` is kept as content.
    """
    return _LINE_BREAK.split(source)


def should_open_stave_for_blank_line(lines: List[str], index: int) -> bool:
    """Decide whether the blank line at ``index`` should open a stave.

    Looks past further blank and comment lines. A stave is opened unless
    the next meaningful line is preamble, which has to come first.

    Args:
        lines: All source lines
        index: Index of the blank line

    Returns:
        True if the blank line should become a ``tabstave`` line
    """
    for line in lines[index + 1:]:
        if is_blank_line(line):
            continue
        _, trimmed_start = split_leading_whitespace(line)
        if is_comment_line(trimmed_start):
            continue
        return not is_preamble_line(trimmed_start)

    return True


def _rewrite_line(
    lines: List[str], index: int, kind: LineKind, stave_open: bool
) -> Tuple[List[str], int, bool]:
    """Rewrite a single source line.

    Args:
        lines: All source lines
        index: Index of the line to rewrite
        kind: Classification of the line
        stave_open: Whether a stave has been opened so far

    Returns:
        Tuple of (emitted lines, column offset, stave open afterwards).
        The source line's content always lives on the last emitted line.
    """
    line = lines[index]

    if kind == LineKind.BLANK:
        if stave_open or should_open_stave_for_blank_line(lines, index):
            return [STAVE_KEYWORD], 0, True
        return [""], 0, stave_open

    if kind in (LineKind.COMMENT, LineKind.DOCUMENT_HEADER, LineKind.GLOBAL_OPTIONS):
        return [line], 0, stave_open

    if kind == LineKind.STAVE_OPEN:
        return [line], 0, True

    if kind == LineKind.STAVE_OPTIONS:
        indent, trimmed_start = split_leading_whitespace(line)
        return [f"{indent}{STAVE_PREFIX}{trimmed_start}"], len(STAVE_PREFIX), True

    if not stave_open:
        return [STAVE_KEYWORD, line], 0, True

    return [line], 0, True


def preprocess_source(
    source: str,
    file_name: Optional[str],
    short_form_extensions: Iterable[str] = SHORT_FORM_EXTENSIONS,
    short_form: Optional[bool] = None,
) -> PreprocessResult:
    """Rewrite a short-form source into explicit VexTab.

    Sources whose file name is not short-form are returned unchanged
    with an identity cursor mapping.

    Args:
        source: Full buffer text
        file_name: Name of the file the buffer belongs to (may be None)
        short_form_extensions: Extensions that enable the rewrite
        short_form: Force the rewrite on (True) or off (False) regardless
            of the file name; None decides from the extension

    Returns:
        PreprocessResult with the rewritten text and line mapping
    """
    lines = split_source_lines(source)

    if short_form is None:
        short_form = is_short_form_file(file_name, short_form_extensions)

    if not short_form:
        identity = [
            LineMapping(original_line=i + 1, processed_line=i + 1, kind=classify_line(line))
            for i, line in enumerate(lines)
        ]
        return PreprocessResult(text=source, line_mapping=identity, short_form=False)

    processed_lines: List[str] = []
    line_mapping: List[LineMapping] = []
    stave_open = False

    for index, line in enumerate(lines):
        kind = classify_line(line)
        emitted, offset, stave_open = _rewrite_line(lines, index, kind, stave_open)
        processed_lines.extend(emitted)
        line_mapping.append(
            LineMapping(
                original_line=index + 1,
                processed_line=len(processed_lines),
                column_offset=offset,
                kind=kind,
            )
        )

    return PreprocessResult(
        text="\n".join(processed_lines),
        line_mapping=line_mapping,
        short_form=True,
    )
