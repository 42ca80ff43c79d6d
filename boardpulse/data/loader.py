"""
Local CSV board exports — load a board file into a RawBoard for offline analysis.
"""
from __future__ import annotations

import re
from pathlib import Path

import pandas as pd

from boardpulse.data.schemas import BoardCell, BoardColumn, BoardItem, FetchResult, RawBoard

NAME_HEADERS = ("name", "item", "item name", "deal name")


def _column_id(title: str, index: int) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")
    return slug or f"col_{index}"


def load_board_csv(filepath: Path, board_name: str | None = None) -> RawBoard:
    """Read a board export CSV.

    The "Name" column (or the first column when there is none) becomes the
    item name; every other column becomes a text column so the normalizer's
    title heuristics decide how each is parsed.
    """
    filepath = Path(filepath)
    df = pd.read_csv(filepath, dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(c).strip() for c in df.columns]
    if df.empty and not len(df.columns):
        return RawBoard(name=board_name or filepath.stem)

    name_col = next((c for c in df.columns if c.lower() in NAME_HEADERS), df.columns[0])
    data_cols = [c for c in df.columns if c != name_col]
    columns = tuple(BoardColumn(id=_column_id(title, i), title=title) for i, title in enumerate(data_cols))

    items = []
    for idx, record in enumerate(df.to_dict("records"), start=1):
        cells = tuple(
            BoardCell(column_id=col.id, text=str(record.get(col.title, "")), title=col.title)
            for col in columns
        )
        items.append(BoardItem(id=str(idx), name=str(record.get(name_col, "")).strip(), cells=cells))

    return RawBoard(name=board_name or filepath.stem, columns=columns, items=tuple(items))


class CsvBoardFetcher:
    """BoardFetcher over local files: the board id is the CSV path."""

    def fetch_board(self, board_id: str) -> FetchResult:
        path = Path(board_id)
        if not path.is_file():
            return FetchResult(error=f"Board file {board_id} not found.")
        try:
            board = load_board_csv(path)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
            return FetchResult(error=f"Could not read board file {path.name}: {exc}")
        if not board.items:
            return FetchResult(error=f"Board {board_id} not found or empty.")
        return FetchResult(board=board)
