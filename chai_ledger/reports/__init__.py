"""
Report assembly.

Named templates produce lists of ``ReportSection`` (title, headers, rows,
banner) for external spreadsheet, CSV or PDF renderers.
"""

from .formatting import as_report_number, format_readable_date, sanitize_sheet_name
from .sections import SectionFactory
from .templates import TEMPLATES, assemble_batch_report, assemble_report, template_label

__all__ = [
    "TEMPLATES",
    "SectionFactory",
    "as_report_number",
    "assemble_batch_report",
    "assemble_report",
    "format_readable_date",
    "sanitize_sheet_name",
    "template_label",
]
