"""
ExcelWriter — builds the styled briefing workbook block by block.

Every write_* method takes the row to start at and returns the next free row,
so report code can stack blocks without tracking cell positions.
"""
from __future__ import annotations

import math
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from boardpulse.excel.formatters import (
    add_kpi_card,
    auto_column_width,
    format_data_cell,
    format_header_row,
)
from boardpulse.excel.styles import (
    CELL_BORDER,
    DATA_FONT,
    HIGHLIGHT_FILLS,
    LEGEND_FILL,
    LEGEND_TERM_FONT,
    NARRATIVE_FONT,
    REC_BODY_FONT,
    REC_TITLE_FONT,
    SECTION_FONT,
    SUBTITLE_FONT,
    TITLE_FONT,
    WRAP,
)

ColSpec = tuple[str, str, str]  # (row key, column type, header label)

SEVERITY_MARKERS = {"red": "[!]", "yellow": "[~]", "green": "[ok]"}
SEVERITY_HIGHLIGHTS = {"red": "risk", "yellow": "watch", "green": "healthy"}
TOTALLED_TYPES = ("amount", "number")
SHEET_TITLE_LIMIT = 31


def _cell_value(value):
    """Excel-safe cell value: None and NaN become blanks, collections a joined string."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(str(v) for v in value)
    return value


class ExcelWriter:
    """Briefing workbook builder; amount cells are labelled with one currency code."""

    def __init__(self, currency: str = "") -> None:
        self.wb = Workbook()
        self.currency = currency
        self._fresh = True

    def add_sheet(self, title: str) -> Worksheet:
        title = title[:SHEET_TITLE_LIMIT]
        if self._fresh:
            # Workbook() starts with one empty sheet; use it for the first title
            self._fresh = False
            ws = self.wb.active
            ws.title = title
            return ws
        return self.wb.create_sheet(title=title)

    def _merged_line(self, ws: Worksheet, row: int, text: str, font, width: int, wrap: bool = False) -> None:
        cell = ws.cell(row=row, column=1, value=text)
        cell.font = font
        if wrap:
            cell.alignment = WRAP
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)

    # ------------------------------------------------------------------
    # Headings and KPI cards
    # ------------------------------------------------------------------

    def write_title(self, ws: Worksheet, title: str, subtitle: str, merge_cols: int = 8) -> int:
        self._merged_line(ws, 1, title, TITLE_FONT, merge_cols)
        self._merged_line(ws, 2, subtitle, SUBTITLE_FONT, merge_cols)
        for col in range(1, merge_cols + 1):
            ws.column_dimensions[get_column_letter(col)].width = 18
        return 4

    def write_section(self, ws: Worksheet, row: int, title: str) -> int:
        ws.cell(row=row, column=1, value=title).font = SECTION_FONT
        return row + 2

    def write_kpi_row(self, ws: Worksheet, row: int, kpis: list[tuple], start_col: int = 1, col_spacing: int = 2) -> int:
        """kpis: [(value, caption, format type), ...], one card every `col_spacing` columns."""
        for i, (value, caption, fmt) in enumerate(kpis):
            add_kpi_card(ws, row, start_col + i * col_spacing, value, caption, fmt, currency=self.currency)
        return row + 3

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def write_table(
        self,
        ws: Worksheet,
        start_row: int,
        columns: list[ColSpec],
        rows: list[dict],
        highlight_fn=None,
        freeze: bool = True,
        show_total: bool = False,
        total_label: str = "TOTAL",
    ) -> int:
        """Header row, one row per dict, optional total row.

        highlight_fn(index, row) may return a HIGHLIGHT_FILLS key for that row.
        Totals sum the amount and number columns.
        """
        for col_num, (_, _, label) in enumerate(columns, 1):
            ws.cell(row=start_row, column=col_num, value=label)
        format_header_row(ws, start_row, len(columns))

        row = start_row
        for idx, record in enumerate(rows):
            row += 1
            highlight = highlight_fn(idx, record) if highlight_fn else None
            for col_num, (key, col_type, _) in enumerate(columns, 1):
                format_data_cell(
                    ws, row, col_num, _cell_value(record.get(key)), col_type,
                    highlight=highlight, currency=self.currency,
                )
        row += 1

        if show_total and rows:
            format_data_cell(ws, row, 1, total_label, "text", is_total=True)
            for col_num, (key, col_type, _) in enumerate(columns[1:], 2):
                if col_type in TOTALLED_TYPES:
                    value = sum(r[key] for r in rows if isinstance(r.get(key), (int, float)))
                    format_data_cell(ws, row, col_num, value, col_type, is_total=True, currency=self.currency)
                else:
                    format_data_cell(ws, row, col_num, "", "text", is_total=True)
            row += 1

        auto_column_width(ws)
        if freeze:
            ws.freeze_panes = f"A{start_row + 1}"
        return row

    # ------------------------------------------------------------------
    # Narrative blocks
    # ------------------------------------------------------------------

    def write_lines(self, ws: Worksheet, row: int, lines: list[str], merge_cols: int = 8) -> int:
        for line in lines:
            self._merged_line(ws, row, line, NARRATIVE_FONT, merge_cols, wrap=True)
            row += 1
        return row + 1

    def write_recommendations(self, ws: Worksheet, start_row: int, recs: list[dict], merge_cols: int = 6) -> int:
        """Title line tinted by severity, wrapped detail, then the action if any."""
        row = start_row
        for rec in recs:
            severity = rec.get("severity", "")
            title = ws.cell(row=row, column=1, value=f"{SEVERITY_MARKERS.get(severity, '[-]')} {rec['title']}")
            title.font = REC_TITLE_FONT
            fill = HIGHLIGHT_FILLS.get(SEVERITY_HIGHLIGHTS.get(severity, ""))
            if fill is not None:
                title.fill = fill
            self._merged_line(ws, row + 1, rec.get("detail", ""), REC_BODY_FONT, merge_cols, wrap=True)
            row += 2
            if rec.get("action"):
                self._merged_line(ws, row, f"  -> {rec['action']}", DATA_FONT, merge_cols)
                row += 1
            row += 1
        return row

    def write_legend(self, ws: Worksheet, start_row: int, items: list[tuple[str, str]]) -> int:
        """Two-column metric/definition table."""
        ws.cell(row=start_row, column=1, value="Metric")
        ws.cell(row=start_row, column=2, value="How It Is Computed")
        format_header_row(ws, start_row, 2)

        for offset, (term, definition) in enumerate(items, 1):
            term_cell = ws.cell(row=start_row + offset, column=1, value=term)
            term_cell.font = LEGEND_TERM_FONT
            text_cell = ws.cell(row=start_row + offset, column=2, value=definition)
            text_cell.font = DATA_FONT
            text_cell.alignment = WRAP
            for cell in (term_cell, text_cell):
                cell.fill = LEGEND_FILL
                cell.border = CELL_BORDER

        ws.column_dimensions["A"].width = 24
        ws.column_dimensions["B"].width = 80
        return start_row + len(items) + 2

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(path)
        return path
