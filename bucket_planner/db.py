from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pandas as pd

from .config import ensure_data_directories, get_db_path
from .models import Account, AccountBalance, AppSettings, MonthConfig, Movement
from .normalize import normalize_month, normalize_settings

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS settings (
    id TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS months (
    id TEXT PRIMARY KEY,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL,
    payload TEXT NOT NULL,
    updated_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_months_year_month ON months (year, month);

CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    name TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS balances (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL,
    opening_balance REAL NOT NULL DEFAULT 0,
    manual_current_balance REAL NOT NULL DEFAULT 0
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_balances_account_month ON balances (account_id, year, month);
CREATE INDEX IF NOT EXISTS ix_balances_month ON balances (year, month);

CREATE TABLE IF NOT EXISTS movements (
    id TEXT PRIMARY KEY,
    date TEXT NOT NULL,
    type TEXT NOT NULL,
    amount REAL NOT NULL,
    category TEXT,
    account_from_id TEXT,
    account_to_id TEXT,
    note TEXT,
    is_subsidy_tagged INTEGER NOT NULL DEFAULT 0,
    year INTEGER NOT NULL,
    month INTEGER NOT NULL,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_movements_month ON movements (year, month);
CREATE INDEX IF NOT EXISTS ix_movements_date ON movements (date);
"""

_MOVEMENT_COLUMNS = (
    'id', 'date', 'type', 'amount', 'category', 'account_from_id',
    'account_to_id', 'note', 'is_subsidy_tagged', 'year', 'month',
)


def _now() -> str:
    return datetime.utcnow().isoformat()


class Repository:
    """SQLite-backed store for settings, months, accounts, balances and movements.

    Each call opens its own short-lived connection, so a repository can be
    shared freely by the entry point that created it.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else Path(get_db_path())

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        ensure_data_directories(self.path)
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    # Settings

    def get_settings(self) -> Optional[AppSettings]:
        with self.connect() as conn:
            row = conn.execute("SELECT payload FROM settings WHERE id = ?", ('default',)).fetchone()
        if row is None:
            return None
        return normalize_settings(json.loads(row['payload']))

    def put_settings(self, settings: AppSettings) -> None:
        payload = json.dumps(settings.to_dict())
        with self.connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (id, payload, updated_at) VALUES (?, ?, ?)",
                (settings.id, payload, _now()),
            )
            conn.commit()

    # Accounts

    def list_accounts(self) -> List[Account]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT id, type, name, is_active FROM accounts ORDER BY created_at ASC, rowid ASC"
            ).fetchall()
        return [Account.from_dict(dict(row)) for row in rows]

    def put_account(self, account: Account) -> None:
        data = account.to_dict()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO accounts (id, type, name, is_active, created_at) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET type = excluded.type, name = excluded.name, "
                "is_active = excluded.is_active",
                (data['id'], data['type'], data['name'], int(data['is_active']), _now()),
            )
            conn.commit()

    # Months

    def get_month(self, year: int, month: int) -> Optional[MonthConfig]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT payload FROM months WHERE year = ? AND month = ?", (year, month)
            ).fetchone()
        return normalize_month(json.loads(row['payload'])) if row else None

    def get_month_by_id(self, month_id: str) -> Optional[MonthConfig]:
        with self.connect() as conn:
            row = conn.execute("SELECT payload FROM months WHERE id = ?", (month_id,)).fetchone()
        return normalize_month(json.loads(row['payload'])) if row else None

    def list_months(self) -> List[MonthConfig]:
        """All months, newest first."""
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT payload FROM months ORDER BY year DESC, month DESC"
            ).fetchall()
        return [normalize_month(json.loads(row['payload'])) for row in rows]

    def put_month(self, month: MonthConfig) -> None:
        payload = json.dumps(month.to_dict())
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO months (id, year, month, payload, updated_at) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET year = excluded.year, month = excluded.month, "
                "payload = excluded.payload, updated_at = excluded.updated_at",
                (month.id, month.year, month.month, payload, _now()),
            )
            conn.commit()

    def delete_month(self, month: MonthConfig) -> int:
        """Delete a month with its balances and movements.

        Returns the number of movements removed.
        """
        with self.connect() as conn:
            with conn:
                conn.execute("DELETE FROM months WHERE id = ?", (month.id,))
                conn.execute(
                    "DELETE FROM balances WHERE year = ? AND month = ?", (month.year, month.month)
                )
                cursor = conn.execute(
                    "DELETE FROM movements WHERE year = ? AND month = ?", (month.year, month.month)
                )
                removed = cursor.rowcount
        logger.info("Deleted month %s with %d movements", month.label, removed)
        return removed

    # Movements

    def list_movements(self, year: int, month: int) -> List[Movement]:
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_MOVEMENT_COLUMNS)} FROM movements "
                "WHERE year = ? AND month = ? ORDER BY date ASC, rowid ASC",
                (year, month),
            ).fetchall()
        return [Movement.from_dict(dict(row)) for row in rows]

    def get_movement(self, movement_id: str) -> Optional[Movement]:
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_MOVEMENT_COLUMNS)} FROM movements WHERE id = ?",
                (movement_id,),
            ).fetchone()
        return Movement.from_dict(dict(row)) if row else None

    def put_movement(self, movement: Movement) -> None:
        data = movement.to_dict()
        values = [data[col] for col in _MOVEMENT_COLUMNS]
        values[_MOVEMENT_COLUMNS.index('is_subsidy_tagged')] = int(data['is_subsidy_tagged'])
        placeholders = ', '.join('?' for _ in _MOVEMENT_COLUMNS)
        updates = ', '.join(f"{col} = excluded.{col}" for col in _MOVEMENT_COLUMNS[1:])
        with self.connect() as conn:
            conn.execute(
                f"INSERT INTO movements ({', '.join(_MOVEMENT_COLUMNS)}, updated_at) "
                f"VALUES ({placeholders}, ?) "
                f"ON CONFLICT(id) DO UPDATE SET {updates}, updated_at = excluded.updated_at",
                (*values, _now()),
            )
            conn.commit()

    def delete_movement(self, movement_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM movements WHERE id = ?", (movement_id,))
            conn.commit()
            return cursor.rowcount > 0

    def movements_frame(self, year: int, month: int) -> pd.DataFrame:
        """Movements of a month as a DataFrame for display."""
        sql = (
            "SELECT m.date AS 'Date', m.type AS 'Type', m.category AS 'Category', "
            "m.amount AS 'Amount', src.name AS 'From', dst.name AS 'To', m.note AS 'Note', m.id "
            "FROM movements m "
            "LEFT JOIN accounts src ON src.id = m.account_from_id "
            "LEFT JOIN accounts dst ON dst.id = m.account_to_id "
            "WHERE m.year = ? AND m.month = ? ORDER BY m.date ASC, m.rowid ASC"
        )
        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=[year, month])
        if not df.empty:
            df['Date'] = pd.to_datetime(df['Date'])
        return df

    # Balances

    def list_balances(self, year: int, month: int) -> List[AccountBalance]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT id, account_id, year, month, opening_balance, manual_current_balance "
                "FROM balances WHERE year = ? AND month = ?",
                (year, month),
            ).fetchall()
        return [AccountBalance.from_dict(dict(row)) for row in rows]

    def get_balance(self, account_id: str, year: int, month: int) -> Optional[AccountBalance]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT id, account_id, year, month, opening_balance, manual_current_balance "
                "FROM balances WHERE account_id = ? AND year = ? AND month = ?",
                (account_id, year, month),
            ).fetchone()
        return AccountBalance.from_dict(dict(row)) if row else None

    def put_balance(self, balance: AccountBalance) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO balances (id, account_id, year, month, opening_balance, manual_current_balance) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET opening_balance = excluded.opening_balance, "
                "manual_current_balance = excluded.manual_current_balance",
                (
                    balance.id,
                    balance.account_id,
                    balance.year,
                    balance.month,
                    balance.opening_balance,
                    balance.manual_current_balance,
                ),
            )
            conn.commit()

    def count(self, table: str) -> int:
        if table not in {'settings', 'months', 'accounts', 'balances', 'movements'}:
            raise ValueError(f"Unknown table: {table}")
        with self.connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        return int(row[0])


def open_repository(path: Union[str, Path, None] = None) -> Repository:
    """Construct a repository and make sure its schema exists."""
    repo = Repository(path)
    repo.init_db()
    return repo
