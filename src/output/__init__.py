"""Output module for line map reports."""

from .json_writer import JSONWriter, create_line_map_report, write_line_map_report

__all__ = ["JSONWriter", "create_line_map_report", "write_line_map_report"]
