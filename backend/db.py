import sqlite3
import uuid
from datetime import datetime, timezone

from config import DB_PATH, DEFAULT_CURRENCY, SAMPLE_PORTFOLIO
from history import day_key
from models import HistoryObservation, Position


def get_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL;")
    return conn


def create_tables() -> None:
    conn = get_connection()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS positions (
            id              TEXT PRIMARY KEY,
            ticker          TEXT NOT NULL,
            name            TEXT NOT NULL,
            quantity        REAL NOT NULL CHECK (quantity >= 0),
            average_cost    REAL NOT NULL CHECK (average_cost >= 0),
            current_price   REAL NOT NULL CHECK (current_price >= 0),
            currency        TEXT NOT NULL DEFAULT 'EUR',
            added_at        TEXT,
            seq             INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS portfolio_history (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            recorded_at     TEXT NOT NULL,
            day_key         TEXT NOT NULL UNIQUE,
            value           REAL NOT NULL
        );

        CREATE TABLE IF NOT EXISTS settings (
            key             TEXT PRIMARY KEY,
            value           TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_positions_seq
            ON positions(seq);
    """)
    conn.close()


def _row_to_position(row: sqlite3.Row) -> Position:
    return Position(
        id=row["id"],
        ticker=row["ticker"],
        name=row["name"],
        quantity=row["quantity"],
        average_cost=row["average_cost"],
        current_price=row["current_price"],
        currency=row["currency"],
        added_at=row["added_at"],
    )


def new_position_id() -> str:
    return uuid.uuid4().hex[:9]


def insert_position(
    ticker: str,
    quantity: float,
    average_cost: float,
    current_price: float | None = None,
    name: str | None = None,
    currency: str | None = None,
) -> Position:
    """
    Add one line. Name defaults to the ticker, current price to the
    cost basis, currency to EUR.
    """
    position = Position(
        id=new_position_id(),
        ticker=ticker,
        name=name or ticker,
        quantity=quantity,
        average_cost=average_cost,
        current_price=current_price if current_price is not None else average_cost,
        currency=currency or DEFAULT_CURRENCY,
        added_at=datetime.now(timezone.utc).isoformat(),
    )
    conn = get_connection()
    try:
        with conn:
            # Write lock before reading MAX(seq) so concurrent inserts cannot share a seq
            conn.execute("BEGIN IMMEDIATE")
            seq = conn.execute("SELECT COALESCE(MAX(seq), 0) + 1 FROM positions").fetchone()[0]
            conn.execute(
                "INSERT INTO positions "
                "(id, ticker, name, quantity, average_cost, current_price, currency, added_at, seq) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (position.id, position.ticker, position.name, position.quantity,
                 position.average_cost, position.current_price, position.currency,
                 position.added_at, seq),
            )
        return position
    finally:
        conn.close()


def get_positions() -> list[Position]:
    """All positions in insertion order (the order feeds the history seed)."""
    conn = get_connection()
    try:
        rows = conn.execute("SELECT * FROM positions ORDER BY seq").fetchall()
        return [_row_to_position(row) for row in rows]
    finally:
        conn.close()


def delete_position(position_id: str) -> bool:
    conn = get_connection()
    try:
        with conn:
            cur = conn.execute("DELETE FROM positions WHERE id = ?", (position_id,))
        return cur.rowcount > 0
    finally:
        conn.close()


def update_current_prices(prices: dict[str, float]) -> int:
    """Set current_price for every position whose ticker is in `prices`. Returns rows touched."""
    conn = get_connection()
    try:
        touched = 0
        with conn:
            for ticker, price in prices.items():
                cur = conn.execute(
                    "UPDATE positions SET current_price = ? WHERE ticker = ?", (price, ticker)
                )
                touched += cur.rowcount
        return touched
    finally:
        conn.close()


def seed_sample_portfolio() -> int:
    """Insert SAMPLE_PORTFOLIO when no positions exist. Returns the number inserted."""
    if get_positions():
        return 0
    for p in SAMPLE_PORTFOLIO:
        insert_position(
            ticker=p["ticker"],
            name=p["name"],
            quantity=p["quantity"],
            average_cost=p["average_cost"],
            current_price=p["current_price"],
        )
    return len(SAMPLE_PORTFOLIO)


def get_history_observations() -> list[HistoryObservation]:
    """The observation log in append order."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT recorded_at, value FROM portfolio_history ORDER BY id"
        ).fetchall()
        return [
            HistoryObservation(timestamp=datetime.fromisoformat(row["recorded_at"]), value=row["value"])
            for row in rows
        ]
    finally:
        conn.close()


def insert_history_observation(timestamp: datetime, value: float) -> bool:
    """
    Append an observation unless its calendar day already has one.
    Existing days are never overwritten. Returns True when a row was written.
    """
    conn = get_connection()
    try:
        with conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO portfolio_history (recorded_at, day_key, value) "
                "VALUES (?, ?, ?)",
                (timestamp.isoformat(), day_key(timestamp).isoformat(), value),
            )
        return cur.rowcount > 0
    finally:
        conn.close()


def get_cash_balance() -> float:
    conn = get_connection()
    try:
        row = conn.execute("SELECT value FROM settings WHERE key = 'cash_balance'").fetchone()
        return float(row["value"]) if row is not None else 0.0
    finally:
        conn.close()


def set_cash_balance(amount: float) -> None:
    conn = get_connection()
    try:
        with conn:
            conn.execute(
                "INSERT INTO settings (key, value) VALUES ('cash_balance', ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (str(amount),),
            )
    finally:
        conn.close()
