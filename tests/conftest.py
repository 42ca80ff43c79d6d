"""
Shared fixtures — small deals / work-orders boards shaped like monday.com exports.
"""
import datetime as dt

import pytest

from boardpulse.data.normalize import normalize_board
from boardpulse.data.schemas import BoardCell, BoardColumn, BoardItem, FetchResult, RawBoard

TODAY = dt.date(2024, 6, 30)


def make_board(name, columns, items):
    """Build a RawBoard.

    columns: [(title, type), ...]
    items:   [(item name, {title: text}), ...]; titles absent from the dict get no cell
    """
    cols = tuple(BoardColumn(id=f"c{i}", title=t, type=ty) for i, (t, ty) in enumerate(columns))
    by_title = {c.title: c for c in cols}
    board_items = []
    for idx, (item_name, values) in enumerate(items, 1):
        cells = tuple(
            BoardCell(column_id=by_title[t].id, text=text, type=by_title[t].type, title=t)
            for t, text in values.items()
        )
        board_items.append(BoardItem(id=str(idx), name=item_name, cells=cells))
    return RawBoard(name=name, columns=cols, items=tuple(board_items))


DEAL_COLUMNS = [
    ("Deal Stage", "status"),
    ("Deal Status", "status"),
    ("Sector/Service", "text"),
    ("Masked Deal Value", "numbers"),
    ("Tentative Close Date", "date"),
    ("Closure Probability", "text"),
]

WORK_ORDER_COLUMNS = [
    ("Execution Status", "status"),
    ("WO Status", "status"),
    ("Probable Start Date", "date"),
    ("Probable End Date", "date"),
    ("Amount in Rupees", "numbers"),
    ("Billed Value", "numbers"),
    ("Collected Amount", "numbers"),
    ("Sector", "text"),
    ("Nature of Work", "text"),
]


@pytest.fixture
def deals_board():
    return make_board("Deals", DEAL_COLUMNS, [
        ("Acme Solar Rollout", {
            "Deal Stage": "Won", "Deal Status": "Won", "Sector/Service": "Solar",
            "Masked Deal Value": "1000", "Tentative Close Date": "2024-05-10",
            "Closure Probability": "High",
        }),
        ("Beta Mining Survey", {
            "Deal Stage": "Proposal", "Deal Status": "Open", "Sector/Service": "Mining",
            "Masked Deal Value": "500", "Tentative Close Date": "2024-08-01",
            "Closure Probability": "Medium",
        }),
        ("Gamma Rail", {
            "Deal Stage": "Lost", "Deal Status": "Lost", "Sector/Service": "Railways",
            "Masked Deal Value": "", "Tentative Close Date": "", "Closure Probability": "",
        }),
    ])


@pytest.fixture
def work_orders_board():
    return make_board("Work Orders", WORK_ORDER_COLUMNS, [
        ("Acme Solar — Phase 1", {
            "Execution Status": "Completed", "WO Status": "Fully Billed",
            "Probable Start Date": "2024-01-01", "Probable End Date": "2024-01-31",
            "Amount in Rupees": "1000", "Billed Value": "1000", "Collected Amount": "800",
            "Sector": "Solar", "Nature of Work": "Survey",
        }),
        ("Beta Mining Survey - Site A", {
            "Execution Status": "Ongoing", "WO Status": "Partially Billed",
            "Probable Start Date": "2024-03-01", "Probable End Date": "2024-04-30",
            "Amount in Rupees": "2000", "Billed Value": "500", "Collected Amount": "0",
            "Sector": "Mining", "Nature of Work": "Mapping",
        }),
        ("Delta Ports", {
            "Execution Status": "Not Started", "WO Status": "",
            "Probable Start Date": "2024-07-01", "Probable End Date": "2024-09-30",
            "Amount in Rupees": "", "Billed Value": "", "Collected Amount": "",
            "Sector": "Ports", "Nature of Work": "",
        }),
    ])


@pytest.fixture
def deal_rows(deals_board):
    return normalize_board(deals_board).rows


@pytest.fixture
def work_order_rows(work_orders_board):
    return normalize_board(work_orders_board).rows


class StubFetcher:
    """BoardFetcher serving in-memory boards keyed by board id."""

    def __init__(self, boards=None, errors=None):
        self.boards = boards or {}
        self.errors = errors or {}
        self.calls = []

    def fetch_board(self, board_id):
        self.calls.append(board_id)
        if board_id in self.errors:
            return FetchResult(error=self.errors[board_id])
        board = self.boards.get(board_id)
        if board is None:
            return FetchResult(error=f"Board {board_id} not found or empty.")
        return FetchResult(board=board)


@pytest.fixture
def stub_fetcher(deals_board, work_orders_board):
    return StubFetcher({"D1": deals_board, "W1": work_orders_board})


@pytest.fixture
def board_env(monkeypatch):
    """Configure board ids for the stub fetcher and clear the API token."""
    monkeypatch.setenv("DEALS_BOARD_ID", "D1")
    monkeypatch.setenv("WORK_ORDERS_BOARD_ID", "W1")
    monkeypatch.delenv("MONDAY_API_TOKEN", raising=False)
