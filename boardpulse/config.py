"""
Board Pulse — Configuration: environment, constants, column candidates.
"""
import os
import re
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Paths — override with BOARDPULSE_DATA_DIR env var for cloud deployment
# ---------------------------------------------------------------------------
BASE_FOLDER = Path(os.environ.get("BOARDPULSE_DATA_DIR", str(Path.home() / "Board Pulse")))
REPORTS_FOLDER = BASE_FOLDER / "reports"

# ---------------------------------------------------------------------------
# monday.com API
# Token and board ids are read per call so a missing value fails the request,
# not the import.
# ---------------------------------------------------------------------------
MONDAY_API_URL = os.environ.get("MONDAY_API_URL", "https://api.monday.com/v2")
MONDAY_API_VERSION = os.environ.get("MONDAY_API_VERSION", "2024-10")
PAGE_LIMIT = int(os.environ.get("BOARDPULSE_PAGE_LIMIT", "500"))
MAX_RETRIES = int(os.environ.get("BOARDPULSE_MAX_RETRIES", "3"))
RETRY_BASE_SECONDS = float(os.environ.get("BOARDPULSE_RETRY_BASE_SECONDS", "1.0"))
REQUEST_TIMEOUT = float(os.environ.get("BOARDPULSE_REQUEST_TIMEOUT", "30"))

BOARD_ID_ENV = {
    "deals": "DEALS_BOARD_ID",
    "work_orders": "WORK_ORDERS_BOARD_ID",
}


def monday_token() -> str | None:
    return os.environ.get("MONDAY_API_TOKEN") or None


def board_id_for(source: str) -> str | None:
    """Board id configured for a data source ("deals" or "work_orders")."""
    return os.environ.get(BOARD_ID_ENV[source]) or None


# ---------------------------------------------------------------------------
# Currency tagging (no FX conversion is ever applied)
# Amounts with neither symbol nor code are tagged with DEFAULT_CURRENCY.
# ---------------------------------------------------------------------------
DEFAULT_CURRENCY = os.environ.get("BOARDPULSE_DEFAULT_CURRENCY", "INR").upper()
UNKNOWN_CURRENCY = "UNKNOWN"

CURRENCY_SYMBOLS = {"$": "USD", "₹": "INR", "€": "EUR", "£": "GBP"}
CURRENCY_CODES = ("USD", "INR", "EUR", "GBP", "JPY", "AUD", "CAD", "SGD", "AED", "CHF")

# ---------------------------------------------------------------------------
# Column classification by title (board normalization)
# ---------------------------------------------------------------------------
DATE_TITLE_RE = re.compile(r"\bdate\b", re.IGNORECASE)
NOT_DATE_TITLE_RE = re.compile(r"quantity|billed|invoice|balance", re.IGNORECASE)
MONEY_TITLE_KEYWORDS = [
    "value", "amount", "price", "revenue", "billed", "collected", "receivable", "quantity",
]
DATE_COLUMN_TYPES = {"date"}
NUMERIC_COLUMN_TYPES = {"numeric", "numbers"}
LABEL_COLUMN_TYPES = {"status", "color"}

# ---------------------------------------------------------------------------
# Sector normalization map (keys are lower-case, single-spaced)
# ---------------------------------------------------------------------------
SECTOR_NORMALIZATION = {
    "oil & gas": "Oil & Gas",
    "oil and gas": "Oil & Gas",
    "o&g": "Oil & Gas",
    "mining": "Mining",
    "mines": "Mining",
    "infra": "Infrastructure",
    "infrastructure": "Infrastructure",
    "real estate": "Real Estate",
    "realestate": "Real Estate",
    "construction": "Construction",
    "agriculture": "Agriculture",
    "agri": "Agriculture",
    "solar": "Solar Energy",
    "solar energy": "Solar Energy",
    "renewables": "Renewable Energy",
    "renewable energy": "Renewable Energy",
    "telecom": "Telecom",
    "telecommunications": "Telecom",
    "govt": "Government",
    "government": "Government",
    "public sector": "Government",
    "defence": "Defence",
    "defense": "Defence",
    "urban dev": "Urban Development",
    "urban development": "Urban Development",
    "survey": "Survey",
    "surveying": "Survey",
}

# ---------------------------------------------------------------------------
# Column candidates per metric field (first match wins; most specific first)
# ---------------------------------------------------------------------------
DEAL_COLUMNS = {
    "value": ["masked deal value", "deal value", "value", "amount", "deal_value", "price", "revenue"],
    "stage": ["deal stage", "stage", "deal_stage"],
    "status": ["deal status", "status"],
    "sector": ["sector/service", "sector", "industry", "vertical"],
    "close_date": [
        "tentative close date", "close date (a)", "close date", "closing date",
        "expected close", "close_date",
    ],
    "probability": ["closure probability", "probability", "win probability"],
}

WORK_ORDER_COLUMNS = {
    "execution_status": ["execution status", "status", "state", "work order status"],
    "billing_status": ["wo status", "wo status (billed)", "billing status"],
    "start_date": ["probable start date", "start date", "start", "start_date"],
    "end_date": ["probable end date", "end date", "completion date", "due date", "end_date"],
    "amount": ["amount in rupees", "amount", "value"],
    "billed": ["billed value", "billed"],
    "collected": ["collected amount", "collected"],
    "sector": ["sector", "industry"],
    "nature": ["nature of work", "type of work", "work type"],
}

# ---------------------------------------------------------------------------
# Status classification patterns
# ---------------------------------------------------------------------------
STAGE_WON_RE = r"won|closed.*won|completed|delivered"
STATUS_WON_RE = r"won|closed.*won"
STATUS_LOST_RE = r"lost"

WO_COMPLETED_RE = r"completed|complete|closed"
WO_NOT_STARTED_RE = r"not.started"
WO_ONGOING_RE = r"ongoing|in.progress|executed"

# ---------------------------------------------------------------------------
# Cross-board and confidence thresholds
# ---------------------------------------------------------------------------
MIN_LINK_NAME_LENGTH = 3
LOW_CLOSE_RATE = 0.30
LOW_COMPLETION_PCT = 0.50
FRAGMENTED_MIN_DEALS = 20
FRAGMENTED_AVG_SHARE = 0.03

CONFIDENCE_BASELINE = 0.85
CONFIDENCE_MISSING_WEIGHT = 0.3
CONFIDENCE_WARNING_PENALTY = 0.05
CONFIDENCE_WARNING_LIMIT = 3
CONFIDENCE_FLOOR = 0.10
CONFIDENCE_CEILING = 1.00

# ---------------------------------------------------------------------------
# Output and session defaults
# ---------------------------------------------------------------------------
PREVIEW_ROWS = 20
SESSION_TTL_SECONDS = 30 * 60
SESSION_SWEEP_SECONDS = 60
MAX_HISTORY = 10
