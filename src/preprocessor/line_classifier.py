"""Line classification for short-form VexTab sources.

Short-form files omit most ``tabstave`` directives. Before they can be
rewritten, every line is sorted into one of a fixed set of kinds:

- Blank lines
- Comments (``//`` or ``#``)
- Document header directives (``title``, ``subtitle``, ``sidenote``)
- Global options (``options``)
- Stave openers (``tabstave``)
- Stave option sequences (``notation=true time=4/4``)
- Everything else (notes, text, tuning, ...)

This module also decides which file names are VexTab documents at all and
which of those use the short-form dialect.
"""

import re
from enum import Enum
from typing import Iterable, Optional

STAVE_KEYWORD = "tabstave"

SHORT_FORM_EXTENSIONS = (".tab",)
VEXTAB_EXTENSIONS = (".vt", ".vextab", ".tab")

# A byte order mark counts as whitespace
_LEADING_WHITESPACE = re.compile(r"^[\s\ufeff]*")
_DOCUMENT_HEADER = re.compile(r"^(?:title|subtitle|sidenote)\b", re.ASCII)
_GLOBAL_OPTIONS = re.compile(r"^options\b", re.ASCII)
_STAVE_OPEN = re.compile(r"^tabstave\b", re.ASCII)
# e.g. notation=true tablature=true time=12/8
_KEY_VALUE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*\s*=")

# Keys that look like stave options but are standalone directives.
RESERVED_KEYS = ("tuning=",)


class LineKind(Enum):
    """Kinds of short-form source lines, in classification priority order."""

    BLANK = "blank"
    COMMENT = "comment"
    DOCUMENT_HEADER = "document_header"
    GLOBAL_OPTIONS = "global_options"
    STAVE_OPEN = "stave_open"
    STAVE_OPTIONS = "stave_options"
    CONTENT = "content"


def _has_extension(file_name: Optional[str], extensions: Iterable[str]) -> bool:
    if not file_name:
        return False
    lowered = file_name.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def is_short_form_file(
    file_name: Optional[str], extensions: Iterable[str] = SHORT_FORM_EXTENSIONS
) -> bool:
    """Check if a file uses the short-form dialect.

    Args:
        file_name: File name or path (None for unsaved buffers)
        extensions: Extensions that mark short-form files

    Returns:
        True if the name ends with a short-form extension (case-insensitive)
    """
    return _has_extension(file_name, extensions)


def is_vextab_document(
    file_name: Optional[str], extensions: Iterable[str] = VEXTAB_EXTENSIONS
) -> bool:
    """Check if a file is any kind of VexTab document.

    Args:
        file_name: File name or path
        extensions: Extensions recognized as VexTab

    Returns:
        True if the name ends with one of the extensions (case-insensitive)
    """
    return _has_extension(file_name, extensions)


def leading_whitespace(line: str) -> str:
    """Return the run of whitespace at the start of a line."""
    return _LEADING_WHITESPACE.match(line).group(0)


def split_leading_whitespace(line: str):
    """Split a line into its leading whitespace and the rest of the line."""
    indent = leading_whitespace(line)
    return indent, line[len(indent):]


def is_blank_line(line: str) -> bool:
    return leading_whitespace(line) == line


def is_comment_line(trimmed_start: str) -> bool:
    """Check if a line (leading whitespace removed) is a comment."""
    return trimmed_start.startswith("//") or trimmed_start.startswith("#")


def is_document_header_line(trimmed_start: str) -> bool:
    return bool(_DOCUMENT_HEADER.match(trimmed_start))


def is_global_options_line(trimmed_start: str) -> bool:
    return bool(_GLOBAL_OPTIONS.match(trimmed_start))


def is_preamble_line(trimmed_start: str) -> bool:
    """Check if a line belongs to the document preamble.

    Preamble lines (document headers and global options) must stay
    outside of, and before, any stave.
    """
    return is_document_header_line(trimmed_start) or is_global_options_line(trimmed_start)


def is_stave_open_line(trimmed_start: str) -> bool:
    return bool(_STAVE_OPEN.match(trimmed_start))


def is_stave_options_line(trimmed_start: str) -> bool:
    """Check if a line is a bare stave option sequence.

    Such lines get the stave keyword prepended. ``tuning=`` is a
    directive of its own and is never rewritten.

    Args:
        trimmed_start: Line with leading whitespace removed

    Returns:
        True if the line should be rewritten into a stave opener
    """
    if not _KEY_VALUE.match(trimmed_start):
        return False

    for key in RESERVED_KEYS:
        if trimmed_start.startswith(key):
            return False

    return True


def classify_line(line: str) -> LineKind:
    """Classify a source line.

    Checks are applied in priority order; the first match wins and
    anything unmatched is ordinary content.

    Args:
        line: Raw source line (without line ending)

    Returns:
        The LineKind of the line
    """
    if is_blank_line(line):
        return LineKind.BLANK

    _, trimmed_start = split_leading_whitespace(line)

    if is_comment_line(trimmed_start):
        return LineKind.COMMENT
    if is_document_header_line(trimmed_start):
        return LineKind.DOCUMENT_HEADER
    if is_global_options_line(trimmed_start):
        return LineKind.GLOBAL_OPTIONS
    if is_stave_open_line(trimmed_start):
        return LineKind.STAVE_OPEN
    if is_stave_options_line(trimmed_start):
        return LineKind.STAVE_OPTIONS

    return LineKind.CONTENT
