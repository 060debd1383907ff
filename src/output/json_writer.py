"""JSON output writer for preprocessing results.

This module provides functionality to write the source-to-output line
map of a preprocessed VexTab file to JSON, with options for formatting
and filtering.
"""

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class JSONWriter:
    """Writes line map reports to JSON format.

    Supports various output options including:
    - Pretty printing with configurable indentation
    - Output to file or string
    - Dropping line kinds or unshifted lines from the report
    """

    def __init__(
        self,
        pretty_print: bool = True,
        indent: int = 2,
        sort_keys: bool = True,
        include_kinds: bool = True,
        include_unshifted_lines: bool = True,
    ):
        """Initialize the JSON writer.

        Args:
            pretty_print: Whether to format JSON with indentation
            indent: Number of spaces for indentation
            sort_keys: Whether to sort dictionary keys
            include_kinds: Whether to include the line kind of each entry
            include_unshifted_lines: Whether to list lines that did not move
        """
        self.pretty_print = pretty_print
        self.indent = indent if pretty_print else None
        self.sort_keys = sort_keys
        self.include_kinds = include_kinds
        self.include_unshifted_lines = include_unshifted_lines

    def write(self, data: Dict[str, Any], output_path: Optional[Path] = None) -> str:
        """Write a report to JSON.

        Args:
            data: Report dictionary
            output_path: Optional path to write file (if None, returns string)

        Returns:
            JSON string
        """
        filtered_data = self._filter_data(data)

        json_str = json.dumps(
            filtered_data,
            indent=self.indent,
            sort_keys=self.sort_keys,
            ensure_ascii=False,
            default=self._json_serializer,
        )

        if output_path:
            output_path.write_text(json_str, encoding="utf-8")

        return json_str

    def _filter_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Filter data based on writer options.

        Args:
            data: Original data dictionary

        Returns:
            Filtered data dictionary
        """
        if self.include_kinds and self.include_unshifted_lines:
            return data

        filtered = dict(data)
        entries = filtered.get("lines")
        if isinstance(entries, list):
            kept = []
            for entry in entries:
                if not self.include_unshifted_lines and not _is_shifted(entry):
                    continue
                if not self.include_kinds:
                    entry = {k: v for k, v in entry.items() if k != "kind"}
                kept.append(entry)
            filtered["lines"] = kept

        return filtered

    def _json_serializer(self, obj: Any) -> Any:
        """Custom JSON serializer for special types.

        Args:
            obj: Object to serialize

        Returns:
            JSON-serializable representation
        """
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, set):
            return sorted(list(obj))
        if isinstance(obj, Path):
            return str(obj)
        if is_dataclass(obj):
            return asdict(obj)

        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _is_shifted(entry: Dict[str, Any]) -> bool:
    return (
        entry.get("original_line") != entry.get("processed_line")
        or entry.get("column_offset", 0) != 0
    )


def create_line_map_report(outcome: Any) -> Dict[str, Any]:
    """Create a line map report from a preprocessing outcome.

    Args:
        outcome: PreprocessOutcome from the public API

    Returns:
        Report dictionary
    """
    return {
        "file_name": outcome.file_name,
        "short_form": outcome.short_form,
        "source_line_count": outcome.source_line_count,
        "output_line_count": outcome.output_line_count,
        "execution_time_seconds": outcome.execution_time_seconds,
        "lines": [
            {
                "original_line": mapping.original_line,
                "processed_line": mapping.processed_line,
                "column_offset": mapping.column_offset,
                "kind": mapping.kind,
            }
            for mapping in outcome.line_mapping
        ],
    }


def write_line_map_report(
    outcome: Any,
    output_path: Path,
    pretty_print: bool = True,
) -> None:
    """Convenience function to write a line map report to file.

    Args:
        outcome: PreprocessOutcome from the public API
        output_path: Path to write the report
        pretty_print: Whether to format with indentation
    """
    writer = JSONWriter(pretty_print=pretty_print)
    writer.write(create_line_map_report(outcome), output_path)
