"""Board fetching, normalization, and column resolution."""
from .columns import find_column, number_at, row_text, text_at
from .loader import CsvBoardFetcher, load_board_csv
from .monday_client import MondayClient
from .normalize import canonicalize_sector, normalize_board, normalize_currency, normalize_date
from .schemas import DataQualityReport, NormalizedBoard, QueryPlan, RawBoard
