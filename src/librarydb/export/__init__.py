"""Export catalog data to CSV."""

from .csv_export import CSVExporter, ExportResult, format_rows

__all__ = [
    "CSVExporter",
    "ExportResult",
    "format_rows",
]
