import pytest
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import db as db_module
from models import Position

# ── Minimal test portfolio (3 positions, clean round numbers for easy mental math) ──
TEST_POSITIONS = [
    Position(id="p1", ticker="AI.PA",  name="Air Liquide", quantity=10, average_cost=100.00, current_price=110.00),
    Position(id="p2", ticker="MC.PA",  name="LVMH",        quantity=2,  average_cost=500.00, current_price=550.00),
    Position(id="p3", ticker="RMS.PA", name="Hermès",      quantity=1,  average_cost=1000.00, current_price=1100.00),
]
# Total cost:  (10*100) + (2*500) + (1*1000) = 3000.00
# Total value: (10*110) + (2*550) + (1*1100) = 3300.00
# Total P&L:   300.00 (10%)

# ── Scenario position: 10 @ 100 cost, now 120 ──
SINGLE_POSITION = [
    Position(id="s1", ticker="AAPL", name="Apple", quantity=10, average_cost=100.00, current_price=120.00),
]
# Total cost: 1000.00, total value: 1200.00


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    """Empty schema in a per-test SQLite file; db.DB_PATH points at it."""
    db_path = str(tmp_path / "test_pea.db")
    monkeypatch.setattr(db_module, "DB_PATH", db_path)
    db_module.create_tables()
    yield db_path


@pytest.fixture
def db_conn(tmp_db):
    """Raw connection for assertions that bypass the db helpers."""
    conn = db_module.get_connection()
    yield conn
    conn.close()


@pytest.fixture
def populated_db(tmp_db):
    """
    Inserts TEST_POSITIONS and two daily observations:
      - 3 positions rows (seq 1..3)
      - 2 portfolio_history rows (2024-01-14 and 2024-01-15)
      - cash_balance = 200

    All writes use direct SQL via get_connection(), so this fixture does
    not depend on the insert helpers under test.
    """
    conn = db_module.get_connection()
    conn.execute("BEGIN")

    for seq, p in enumerate(TEST_POSITIONS, start=1):
        conn.execute(
            "INSERT INTO positions "
            "(id, ticker, name, quantity, average_cost, current_price, currency, added_at, seq) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (p.id, p.ticker, p.name, p.quantity, p.average_cost, p.current_price,
             p.currency, "2024-01-01T09:00:00+00:00", seq)
        )

    for recorded_at, day, value in (
        ("2024-01-14T10:00:00", "2024-01-14", 3250.00),
        ("2024-01-15T10:00:00", "2024-01-15", 3300.00),
    ):
        conn.execute(
            "INSERT INTO portfolio_history (recorded_at, day_key, value) VALUES (?, ?, ?)",
            (recorded_at, day, value)
        )

    conn.execute("INSERT INTO settings (key, value) VALUES ('cash_balance', '200.0')")

    conn.execute("COMMIT")
    conn.close()
    return tmp_db
