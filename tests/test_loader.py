"""Tests for loading board CSV exports."""
from boardpulse.data.loader import CsvBoardFetcher, load_board_csv
from boardpulse.data.normalize import normalize_board


DEALS_CSV = (
    "Name,Deal Stage,Sector/Service,Masked Deal Value,Tentative Close Date\n"
    "Acme Solar Rollout,Won,Solar,\"₹1,00,000\",2024-05-10\n"
    "Beta Mining,Proposal,mines,$2500,6/15/2024\n"
)


def test_load_board_csv(tmp_path):
    path = tmp_path / "deals.csv"
    path.write_text(DEALS_CSV, encoding="utf-8")
    board = load_board_csv(path)

    assert board.name == "deals"
    assert [c.title for c in board.columns] == [
        "Deal Stage", "Sector/Service", "Masked Deal Value", "Tentative Close Date",
    ]
    assert board.columns[1].id == "sector_service"
    assert [i.name for i in board.items] == ["Acme Solar Rollout", "Beta Mining"]
    assert board.items[0].id == "1"


def test_csv_board_normalizes_like_api_board(tmp_path):
    path = tmp_path / "deals.csv"
    path.write_text(DEALS_CSV, encoding="utf-8")
    result = normalize_board(load_board_csv(path, board_name="Deals"))
    first, second = result.rows
    assert first["Masked Deal Value"] == 100000.0
    assert first["Masked Deal Value_currency"] == "INR"
    assert second["Tentative Close Date"] == "2024-06-15"
    assert result.data_quality.currency_types == {"INR", "USD"}


def test_first_column_is_name_without_name_header(tmp_path):
    path = tmp_path / "wo.csv"
    path.write_text("Work Order,Execution Status\nWO-1,Completed\n", encoding="utf-8")
    board = load_board_csv(path)
    assert board.items[0].name == "WO-1"
    assert [c.title for c in board.columns] == ["Execution Status"]


def test_fetcher_missing_file(tmp_path):
    result = CsvBoardFetcher().fetch_board(str(tmp_path / "nope.csv"))
    assert result.board is None
    assert result.error.startswith("Board file ")
    assert result.error.endswith("not found.")


def test_fetcher_header_only_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("Name,Deal Stage\n", encoding="utf-8")
    result = CsvBoardFetcher().fetch_board(str(path))
    assert result.error == f"Board {path} not found or empty."


def test_fetcher_blank_file(tmp_path):
    path = tmp_path / "blank.csv"
    path.write_text("", encoding="utf-8")
    result = CsvBoardFetcher().fetch_board(str(path))
    assert result.error.startswith("Could not read board file blank.csv")


def test_fetcher_returns_board(tmp_path):
    path = tmp_path / "deals.csv"
    path.write_text(DEALS_CSV, encoding="utf-8")
    result = CsvBoardFetcher().fetch_board(str(path))
    assert result.error is None
    assert len(result.board.items) == 2
