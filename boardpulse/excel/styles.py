"""
Briefing workbook palette: fonts, fills, borders and alignments in one place.
"""
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
NAVY = "0D47A1"
PULSE_BLUE = "1565C0"
MUTED = "666666"
INK = "000000"
PAPER = "FFFFFF"

BAND_BG = "F5F5F5"
TOTAL_BG = "ECEFF1"
LEGEND_BG = "E3F2FD"
RISK_BG = "FFEBEE"
WATCH_BG = "FFF8E1"
HEALTHY_BG = "E8F5E9"


def _font(size: int, bold: bool = False, italic: bool = False, color: str = INK) -> Font:
    return Font(name="Calibri", size=size, bold=bold, italic=italic, color=color)


def _solid(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def _box(color: str, top: str = "thin", bottom: str = "thin") -> Border:
    side = Side(style="thin", color=color)
    return Border(left=side, right=side, top=Side(style=top, color=color), bottom=Side(style=bottom, color=color))


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
TITLE_FONT = _font(22, bold=True, color=NAVY)
SUBTITLE_FONT = _font(12, italic=True, color=MUTED)
SECTION_FONT = _font(14, bold=True, color=NAVY)
HEADER_FONT = _font(11, bold=True, color=PAPER)
DATA_FONT = _font(10)
TOTAL_FONT = _font(10, bold=True)
KPI_VALUE_FONT = _font(24, bold=True, color=PULSE_BLUE)
KPI_LABEL_FONT = _font(10, color=MUTED)
NARRATIVE_FONT = _font(10, italic=True)
REC_TITLE_FONT = _font(12, bold=True)
REC_BODY_FONT = _font(10)
LEGEND_TERM_FONT = _font(10, bold=True)

# ---------------------------------------------------------------------------
# Fills and borders
# ---------------------------------------------------------------------------
HEADER_FILL = _solid(NAVY)
BAND_FILL = _solid(BAND_BG)
TOTAL_FILL = _solid(TOTAL_BG)
LEGEND_FILL = _solid(LEGEND_BG)

CELL_BORDER = _box("CCCCCC")
HEADER_BORDER = _box(NAVY, bottom="medium")
TOTAL_BORDER = _box("999999", top="medium", bottom="medium")

# Row highlight name (returned by a table's highlight_fn) -> fill
HIGHLIGHT_FILLS = {
    "risk": _solid(RISK_BG),
    "watch": _solid(WATCH_BG),
    "healthy": _solid(HEALTHY_BG),
}

# ---------------------------------------------------------------------------
# Alignments
# ---------------------------------------------------------------------------
CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")
RIGHT = Alignment(horizontal="right", vertical="center")
WRAP = Alignment(horizontal="left", vertical="center", wrap_text=True)
