"""
Cell-level formatting for the briefing workbook.
"""
from __future__ import annotations

from openpyxl.cell.cell import Cell
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from boardpulse.excel.styles import (
    BAND_FILL,
    CELL_BORDER,
    CENTER,
    DATA_FONT,
    HEADER_BORDER,
    HEADER_FILL,
    HEADER_FONT,
    HIGHLIGHT_FILLS,
    KPI_LABEL_FONT,
    KPI_VALUE_FONT,
    LEFT,
    RIGHT,
    TOTAL_BORDER,
    TOTAL_FILL,
    TOTAL_FONT,
)

# Column type -> Excel number format ("amount" is handled separately)
NUMBER_FORMATS = {
    "number": "#,##0",
    "percent": "0.0%",
    "decimal": "0.00",
}


def number_format_for(col_type: str, currency: str = "") -> str | None:
    """Number format for a column type; amounts carry the currency code, never a conversion."""
    if col_type == "amount":
        return f'"{currency} "#,##0' if currency else "#,##0"
    return NUMBER_FORMATS.get(col_type)


def _apply_number_format(cell: Cell, col_type: str, currency: str) -> None:
    fmt = number_format_for(col_type, currency)
    if fmt:
        cell.number_format = fmt


def format_header_row(ws: Worksheet, row_num: int, num_cols: int) -> None:
    for col in range(1, num_cols + 1):
        cell = ws.cell(row=row_num, column=col)
        cell.font, cell.fill, cell.border, cell.alignment = HEADER_FONT, HEADER_FILL, HEADER_BORDER, CENTER


def format_data_cell(
    ws: Worksheet,
    row_num: int,
    col_num: int,
    value,
    col_type: str = "text",
    is_total: bool = False,
    highlight: str | None = None,
    currency: str = "",
) -> None:
    """Write one table cell.

    Fill precedence: highlight, then the total row, then banding on even rows.
    """
    cell = ws.cell(row=row_num, column=col_num, value=value)
    cell.font = TOTAL_FONT if is_total else DATA_FONT
    cell.border = TOTAL_BORDER if is_total else CELL_BORDER
    cell.alignment = LEFT if col_type == "text" else RIGHT
    _apply_number_format(cell, col_type, currency)

    fill = HIGHLIGHT_FILLS.get(highlight) if highlight else None
    if fill is None and is_total:
        fill = TOTAL_FILL
    if fill is None and row_num % 2 == 0:
        fill = BAND_FILL
    if fill is not None:
        cell.fill = fill


def auto_column_width(ws: Worksheet, min_width: int = 10, max_width: int = 55) -> None:
    for column in ws.columns:
        longest = max((len(str(c.value)) for c in column if c.value is not None), default=0)
        ws.column_dimensions[get_column_letter(column[0].column)].width = min(max(longest + 2, min_width), max_width)


def add_kpi_card(
    ws: Worksheet,
    row: int,
    col: int,
    value,
    label: str,
    format_type: str = "number",
    currency: str = "",
) -> None:
    """Big value on `row`, caption underneath."""
    value_cell = ws.cell(row=row, column=col, value=value)
    value_cell.font = KPI_VALUE_FONT
    value_cell.alignment = CENTER
    _apply_number_format(value_cell, format_type, currency)

    caption = ws.cell(row=row + 1, column=col, value=label)
    caption.font = KPI_LABEL_FONT
    caption.alignment = CENTER
