"""
Field normalizers (date, currency, sector, text) and board normalization.
"""
from __future__ import annotations

import datetime as dt
import json
import re
from typing import Any, NamedTuple

from boardpulse.config import (
    CURRENCY_CODES,
    CURRENCY_SYMBOLS,
    DATE_COLUMN_TYPES,
    DATE_TITLE_RE,
    DEFAULT_CURRENCY,
    LABEL_COLUMN_TYPES,
    MONEY_TITLE_KEYWORDS,
    NOT_DATE_TITLE_RE,
    NUMERIC_COLUMN_TYPES,
    SECTOR_NORMALIZATION,
    UNKNOWN_CURRENCY,
)
from boardpulse.data.schemas import DataQualityReport, NormalizedBoard, RawBoard


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_MDY_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
_SERIAL_RE = re.compile(r"^\d+(\.\d+)?$")
_SERIAL_EPOCH = dt.date(1899, 12, 30)


def _blank(raw: Any) -> bool:
    return raw is None or str(raw).strip() == ""


def _build_date(year: int, month: int, day: int) -> str | None:
    try:
        return dt.date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(raw: Any) -> str | None:
    """Normalize ISO, M/D/YYYY, M-D-YYYY or spreadsheet-serial dates to YYYY-MM-DD."""
    if _blank(raw):
        return None
    s = str(raw).strip()

    m = _ISO_RE.match(s)
    if m:
        return _build_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    if _SERIAL_RE.match(s):
        serial = float(s)
        if 30000 < serial < 60000:
            return (_SERIAL_EPOCH + dt.timedelta(days=int(serial))).isoformat()
        return None

    m = _MDY_RE.match(s)
    if m:
        return _build_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
    return None


def parse_date(raw: Any) -> dt.date | None:
    """normalize_date, returned as a date object."""
    iso = normalize_date(raw)
    return dt.date.fromisoformat(iso) if iso else None


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

class Money(NamedTuple):
    value: float | None
    currency: str | None


_SYMBOLS = "".join(re.escape(s) for s in CURRENCY_SYMBOLS)
_CODES = "|".join(CURRENCY_CODES)
_MONEY_RE = re.compile(
    rf"^(?:(?P<symbol>[{_SYMBOLS}])|(?P<lead>{_CODES}))?\s*"
    rf"(?P<amount>\d+\.?\d*)\s*(?P<code>{_CODES})?$",
    re.IGNORECASE,
)
_LEADING_NUMBER_RE = re.compile(r"-?(\d+\.?\d*|\.\d+)")


def normalize_currency(raw: Any, default_currency: str = DEFAULT_CURRENCY) -> Money:
    """Split a money string into (amount, currency tag). No FX conversion."""
    if _blank(raw):
        return Money(None, None)
    s = str(raw).strip().replace(",", "")

    m = _MONEY_RE.match(s)
    if m:
        code = m.group("code") or m.group("lead")
        if code:
            currency = code.upper()
        elif m.group("symbol"):
            currency = CURRENCY_SYMBOLS[m.group("symbol")]
        else:
            currency = default_currency
        return Money(float(m.group("amount")), currency)

    # Unstructured: keep whatever number survives
    stripped = re.sub(r"[^0-9.\-]", "", s)
    n = _LEADING_NUMBER_RE.match(stripped)
    if n:
        return Money(float(n.group(0)), UNKNOWN_CURRENCY)
    return Money(None, None)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def canonicalize_sector(raw: Any) -> str | None:
    """Map sector synonyms to one canonical name; unknown sectors pass through trimmed."""
    if _blank(raw):
        return None
    s = str(raw).strip()
    key = " ".join(s.lower().split())
    return SECTOR_NORMALIZATION.get(key, s)


def normalize_text(raw: Any) -> str | None:
    if _blank(raw):
        return None
    return " ".join(str(raw).split())


# ---------------------------------------------------------------------------
# Structured cell payloads
# ---------------------------------------------------------------------------

def extract_from_value(raw_value: str | None, column_type: str | None) -> str | None:
    """Pull a display string out of a cell's JSON value payload.

    Status and dropdown columns often come back with empty text and only the
    structured value populated.
    """
    if not raw_value:
        return None
    try:
        parsed = json.loads(raw_value)
    except (TypeError, ValueError):
        return None

    if column_type in LABEL_COLUMN_TYPES:
        if isinstance(parsed, dict):
            label = parsed.get("label") or parsed.get("text")
            return str(label) if label not in (None, "") else None
        return None
    if column_type == "dropdown":
        if not isinstance(parsed, dict) or parsed.get("ids"):
            return None     # ids need the board's settings to resolve
        labels = parsed.get("labels") or []
        if not isinstance(labels, list):
            labels = [labels]
        return ", ".join(str(lbl) for lbl in labels) or None
    if column_type in DATE_COLUMN_TYPES:
        if isinstance(parsed, dict):
            return str(parsed["date"]) if parsed.get("date") else None
        return None
    if column_type in NUMERIC_COLUMN_TYPES:
        return str(parsed) if parsed not in (None, "") else None

    if isinstance(parsed, str):
        return parsed
    if isinstance(parsed, dict):
        for key in ("text", "value", "label"):
            if parsed.get(key):
                return str(parsed[key])
    return None


# ---------------------------------------------------------------------------
# Column classification
# ---------------------------------------------------------------------------

def is_date_column(title: str, column_type: str | None) -> bool:
    looks_like_date = column_type in DATE_COLUMN_TYPES or bool(DATE_TITLE_RE.search(title))
    return looks_like_date and not NOT_DATE_TITLE_RE.search(title)


def is_money_column(title: str, column_type: str | None) -> bool:
    if column_type in NUMERIC_COLUMN_TYPES:
        return True
    lower = title.lower()
    return any(kw in lower for kw in MONEY_TITLE_KEYWORDS)


# ---------------------------------------------------------------------------
# Board normalization
# ---------------------------------------------------------------------------

def _row_keys(board: RawBoard) -> dict[str, str]:
    """Column id -> row key. A repeated title gets a numbered suffix: "Status (2)"."""
    keys: dict[str, str] = {}
    taken: set[str] = set()
    for column in board.columns:
        key, n = column.title, 2
        while key in taken:
            key = f"{column.title} ({n})"
            n += 1
        taken.add(key)
        keys[column.id] = key
    return keys


def normalize_board(board: RawBoard, default_currency: str = DEFAULT_CURRENCY) -> NormalizedBoard:
    """Normalize every cell of a board and tally data quality.

    Every declared column is present in every row, keyed by its title (made
    unique when titles repeat); blank or unparseable cells are None. A column
    counts as missing at most once per row.
    """
    columns = {c.id: c for c in board.columns}
    keys = _row_keys(board)
    titles = list(dict.fromkeys(keys.values()))

    missing: dict[str, int] = {}
    currencies: set[str] = set()
    warnings: list[str] = []
    rows: list[dict] = []

    for item in board.items:
        row: dict[str, Any] = {"_id": item.id, "_name": item.name}
        row.update({t: None for t in titles})
        filled: set[str] = set()
        blank: set[str] = set()

        for cell in item.cells:
            column = columns.get(cell.column_id)
            if column is not None:
                title = keys[cell.column_id]
            else:
                title = cell.title or cell.column_id
            col_type = cell.type or (column.type if column else None)
            row.setdefault(title, None)

            raw = "" if cell.text is None else str(cell.text)
            if not raw.strip() and cell.raw_value:
                extracted = extract_from_value(cell.raw_value, col_type)
                raw = "" if extracted is None else str(extracted)
            if not raw.strip():
                blank.add(title)
                continue
            filled.add(title)

            if is_date_column(title, col_type):
                row[title] = normalize_date(raw)
                if row[title] is None:
                    warnings.append(f'Unparseable date "{raw}" in column "{title}"')
            elif is_money_column(title, col_type):
                money = normalize_currency(raw, default_currency)
                row[title] = money.value
                row[f"{title}_currency"] = money.currency
                if money.currency:
                    currencies.add(money.currency)
                if money.value is None:
                    warnings.append(f'Unparseable amount "{raw}" in column "{title}"')
            else:
                row[title] = normalize_text(raw)

        absent = blank.union(t for t in titles if t not in filled) - filled
        for title in absent:
            missing[title] = missing.get(title, 0) + 1
        rows.append(row)

    if len(currencies) > 1:
        warnings.append(f"Mixed currencies detected: {', '.join(sorted(currencies))}")

    report = DataQualityReport(
        total_rows=len(rows),
        missing_counts=missing,
        currency_types=frozenset(currencies),
        warnings=tuple(warnings),
    )
    return NormalizedBoard(board_name=board.name, rows=tuple(rows), data_quality=report)
