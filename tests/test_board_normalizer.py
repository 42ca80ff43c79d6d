"""Tests for board normalization, data-quality reports and column resolution."""
import json

import pytest

from boardpulse.data.columns import data_columns, find_column, number_at, row_text, text_at
from boardpulse.data.normalize import normalize_board
from boardpulse.data.schemas import BoardCell, BoardColumn, BoardItem, RawBoard
from conftest import make_board

THREE_COLUMNS = [("Status", "status"), ("Close Date", "date"), ("Deal Value", "text")]


@pytest.fixture
def two_item_board():
    return make_board("Deals", THREE_COLUMNS, [
        ("Deal one", {"Status": "Won", "Close Date": "2024-06-15", "Deal Value": "₹1,00,000"}),
        ("Deal two", {"Status": "", "Close Date": "", "Deal Value": "$50,000"}),
    ])


# =============================================================================
# normalize_board
# =============================================================================


def test_two_item_board_end_to_end(two_item_board):
    result = normalize_board(two_item_board)
    dq = result.data_quality

    assert len(result.rows) == 2
    assert dq.total_rows == 2
    assert dq.missing_counts["Status"] == 1
    assert dq.missing_counts["Close Date"] == 1
    assert "Deal Value" not in dq.missing_counts
    assert result.rows[0]["Close Date"] == "2024-06-15"
    assert result.rows[0]["Deal Value"] == 100000.0
    assert result.rows[0]["Deal Value_currency"] == "INR"
    assert result.rows[1]["Deal Value"] == 50000.0
    assert dq.currency_types == {"INR", "USD"}
    assert "Mixed currencies detected: INR, USD" in dq.warnings


def test_every_declared_title_in_every_row(two_item_board):
    rows = normalize_board(two_item_board).rows
    for row in rows:
        assert row["_id"] and row["_name"]
        for title, _ in THREE_COLUMNS:
            assert title in row


def test_missing_counts_bounded(deals_board, work_orders_board):
    for board in (deals_board, work_orders_board):
        dq = normalize_board(board).data_quality
        assert dq.total_missing <= dq.total_rows * len(board.columns)
        assert all(n <= dq.total_rows for n in dq.missing_counts.values())
        assert all(n > 0 for n in dq.missing_counts.values())


def test_absent_cell_counts_as_missing():
    board = make_board("B", [("Owner", "text"), ("Deal Value", "numbers")], [
        ("only value", {"Deal Value": "10"}),
    ])
    result = normalize_board(board)
    assert result.rows[0]["Owner"] is None
    assert result.data_quality.missing_counts == {"Owner": 1}


def test_parse_warnings_keep_row():
    board = make_board("B", [("Close Date", "date"), ("Deal Value", "text")], [
        ("bad", {"Close Date": "next month", "Deal Value": "call us"}),
    ])
    result = normalize_board(board)
    row = result.rows[0]
    assert row["Close Date"] is None
    assert row["Deal Value"] is None
    assert 'Unparseable date "next month" in column "Close Date"' in result.data_quality.warnings
    assert 'Unparseable amount "call us" in column "Deal Value"' in result.data_quality.warnings


def test_structured_value_used_when_text_blank():
    board = RawBoard(
        name="B",
        columns=(BoardColumn(id="status", title="Status", type="status"),),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="status", text="", raw_value=json.dumps({"label": "Working on it"})),
        )),),
    )
    row = normalize_board(board).rows[0]
    assert row["Status"] == "Working on it"


def test_status_column_keeps_text(work_order_rows):
    assert work_order_rows[0]["WO Status"] == "Fully Billed"
    assert "WO Status_currency" not in work_order_rows[0]


def test_status_column_with_money_title_is_parsed_as_money():
    board = make_board("B", [("Amount", "status")], [("a", {"Amount": "$500"})])
    result = normalize_board(board)
    assert result.rows[0]["Amount"] == 500.0
    assert result.rows[0]["Amount_currency"] == "USD"
    assert result.data_quality.currency_types == {"USD"}


def test_data_quality_report_is_read_only(two_item_board):
    dq = normalize_board(two_item_board).data_quality
    with pytest.raises(TypeError):
        dq.missing_counts["Status"] = 0
    assert dq.to_dict()["currency_types"] == ["INR", "USD"]


def test_default_currency_override():
    board = make_board("B", [("Amount", "numbers")], [("a", {"Amount": "5"})])
    dq = normalize_board(board, default_currency="USD").data_quality
    assert dq.currency_types == {"USD"}


def test_from_api_payload():
    payload = {
        "id": "1", "name": "Deals",
        "columns": [{"id": "status", "title": "Status", "type": "status"}],
        "items_page": {"items": [{
            "id": "11", "name": "Acme",
            "column_values": [{"id": "status", "text": "Won", "value": None, "type": "status",
                               "column": {"title": "Status"}}],
        }]},
    }
    board = RawBoard.from_api(payload)
    assert board.name == "Deals"
    assert board.items[0].cells[0].title == "Status"
    assert normalize_board(board).rows[0] == {"_id": "11", "_name": "Acme", "Status": "Won"}


# =============================================================================
# Irregular board shapes
# =============================================================================


def _duplicate_status_board(first="", second=""):
    return RawBoard(
        name="Ops",
        columns=(
            BoardColumn(id="s1", title="Status", type="status"),
            BoardColumn(id="s2", title="Status", type="status"),
        ),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="s1", text=first, title="Status"),
            BoardCell(column_id="s2", text=second, title="Status"),
        )),),
    )


def test_duplicate_titles_keep_both_columns():
    row = normalize_board(_duplicate_status_board("Done", "Stuck")).rows[0]
    assert row["Status"] == "Done"
    assert row["Status (2)"] == "Stuck"


def test_duplicate_blank_titles_count_once_per_column():
    result = normalize_board(_duplicate_status_board())
    assert result.data_quality.missing_counts == {"Status": 1, "Status (2)": 1}


def test_undeclared_column_cell_lands_in_row():
    board = RawBoard(
        name="B",
        columns=(BoardColumn(id="owner", title="Owner"),),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="owner", text="Priya"),
            BoardCell(column_id="mystery", text="kept", title="Region"),
            BoardCell(column_id="untitled", text=""),
        )),),
    )
    result = normalize_board(board)
    row = result.rows[0]
    assert row["Owner"] == "Priya"
    assert row["Region"] == "kept"
    assert row["untitled"] is None
    assert result.data_quality.missing_counts == {"untitled": 1}


def test_repeated_cell_for_one_column_counts_once():
    board = RawBoard(
        name="B",
        columns=(BoardColumn(id="owner", title="Owner"),),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="owner", text=""),
            BoardCell(column_id="owner", text=""),
        )),),
    )
    assert normalize_board(board).data_quality.missing_counts == {"Owner": 1}


@pytest.mark.parametrize("col_type, payload, expected", [
    ("status", {"label": 3}, "3"),
    ("color", {"label": 0, "text": 7}, "7"),
    ("dropdown", {"labels": 5}, "5"),
    ("long_text", {"value": 12}, "12"),
])
def test_non_string_payload_becomes_text(col_type, payload, expected):
    board = RawBoard(
        name="B",
        columns=(BoardColumn(id="c", title="Label", type=col_type),),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="c", text="", raw_value=json.dumps(payload)),
        )),),
    )
    assert normalize_board(board).rows[0]["Label"] == expected


def test_non_string_date_payload_does_not_raise():
    board = RawBoard(
        name="B",
        columns=(BoardColumn(id="d", title="Due", type="date"),),
        items=(BoardItem(id="1", name="x", cells=(
            BoardCell(column_id="d", text="", raw_value=json.dumps({"date": 20240101})),
        )),),
    )
    result = normalize_board(board)
    assert result.rows[0]["Due"] is None
    assert 'Unparseable date "20240101" in column "Due"' in result.data_quality.warnings


def test_irregular_boards_keep_quality_bounds():
    boards = [
        _duplicate_status_board(),
        _duplicate_status_board("Done", ""),
        RawBoard(
            name="B",
            columns=(BoardColumn(id="a", title="A"), BoardColumn(id="b", title="B")),
            items=(
                BoardItem(id="1", name="x", cells=(
                    BoardCell(column_id="a", text=""),
                    BoardCell(column_id="a", text=""),
                    BoardCell(column_id="zz", text="", title="A"),
                )),
                BoardItem(id="2", name="y"),
            ),
        ),
    ]
    for board in boards:
        result = normalize_board(board)
        dq = result.data_quality
        assert all(n <= dq.total_rows for n in dq.missing_counts.values())
        for row in result.rows:
            for key in ("Status", "Status (2)") if board.name == "Ops" else ("A", "B"):
                assert key in row


# =============================================================================
# Column resolution and accessors
# =============================================================================


def test_find_column_exact_before_substring(deal_rows):
    assert find_column(deal_rows, ["deal value", "masked deal value"]) == "Masked Deal Value"
    assert find_column(deal_rows, ["status"]) == "Deal Status"
    assert find_column(deal_rows, ["deal status", "status"]) == "Deal Status"
    assert find_column(deal_rows, ["nonexistent"]) is None
    assert find_column([], ["status"]) is None


def test_find_column_skips_reserved_and_currency_keys(deal_rows):
    assert "_name" not in data_columns(deal_rows[0])
    assert "Masked Deal Value_currency" not in data_columns(deal_rows[0])
    assert find_column(deal_rows, ["currency"]) is None


def test_typed_accessors(deal_rows):
    row = deal_rows[0]
    assert number_at(row, "Masked Deal Value") == 1000.0
    assert number_at(row, "Deal Stage") is None
    assert number_at(row, None) is None
    assert text_at(row, "Deal Stage") == "Won"
    assert text_at(deal_rows[2], "Closure Probability") is None
    assert "acme solar rollout" in row_text(row)
    assert "solar" in row_text(row)
