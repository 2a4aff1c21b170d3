"""
Section factory.

Every section carries the same banner (title, scope, template, generated
date) so renderers can lay sheets and PDF pages out uniformly.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..models import Cell, ReportSection
from .formatting import format_readable_date, sanitize_sheet_name

DEFAULT_COLUMN_WIDTH = 20
DEFAULT_EMPTY_MESSAGE = "No records available"


@dataclass
class SectionFactory:
    scope_label: str
    template_label: str
    generated_at: Optional[datetime] = None

    def banner(self, title: str) -> list[str]:
        lines = [
            title,
            f"Scope: {self.scope_label}",
            f"Template: {self.template_label}",
        ]
        if self.generated_at is not None:
            lines.append(f"Generated: {format_readable_date(self.generated_at)}")
        return lines

    def create(
        self,
        title: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[Cell]],
        *,
        sheet_name: Optional[str] = None,
        column_widths: Optional[Sequence[int]] = None,
        empty_message: str = DEFAULT_EMPTY_MESSAGE,
    ) -> ReportSection:
        """
        Build a section; an empty one gets a single message row padded to
        the header width.
        """
        column_count = len(headers)
        safe_rows = [list(row) for row in rows]
        if not safe_rows:
            safe_rows = [[empty_message] + [""] * max(column_count - 1, 0)]

        return ReportSection(
            title=title,
            sheet_name=sanitize_sheet_name(sheet_name or title),
            headers=list(headers),
            rows=safe_rows,
            column_widths=list(column_widths) if column_widths else [DEFAULT_COLUMN_WIDTH] * column_count,
            banner=self.banner(title),
        )
