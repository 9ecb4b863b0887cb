"""
Store module with connection management and schema initialization.

Owns the single SQLite connection shared by every repository in the
Spendora finance tracker.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from spendora.config import DB_TIMEOUT, get_db_path
from spendora.models.enums import (
    AssetType,
    ExpenseType,
    GoalPriority,
    GoalStatus,
    GoalType,
    LoanType,
    PaymentMethod,
    RecurringFrequency,
    sql_values,
)

from .errors import (
    ConstraintViolationError,
    NotInitializedError,
    StoreError,
    TransactionFailureError,
)

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


class Store:
    """
    SQLite store with an explicit open/close lifecycle.

    One connection is opened by open() and reused until close(). Writes are
    grouped with transaction(); the outermost scope commits, nested scopes
    join it. Using the store outside its lifecycle raises NotInitializedError.
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """
        Initialize the store (without connecting).

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
                Defaults to the configured database path
        """
        if db_path is None:
            db_path = get_db_path()
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "Store":
        """Connect and create the schema. Calling it again is a no-op."""
        with self._lock:
            if self._conn is not None:
                return self

            if isinstance(self.db_path, Path):
                self._ensure_db_directory()

            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=DB_TIMEOUT,
                    isolation_level=None,
                )
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA foreign_keys = ON")
                if isinstance(self.db_path, Path):
                    conn.execute("PRAGMA journal_mode = WAL")
            except sqlite3.Error as e:
                logger.error(f"Failed to open database {self.db_path}: {e}", exc_info=True)
                raise StoreError(f"Failed to open database: {e}") from e

            self._conn = conn
            self._depth = 0
            self.init_schema()
            logger.info(f"Store opened: {self.db_path}")
            return self

    def close(self):
        """Release the connection. Later use raises NotInitializedError."""
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            finally:
                self._conn = None
                self._depth = 0
            logger.info(f"Store closed: {self.db_path}")

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotInitializedError()
        return self._conn

    # =========================================================================
    # Transactions
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Context manager for a write transaction.

        The outermost scope issues BEGIN and COMMIT (or ROLLBACK on error).
        IntegrityError becomes ConstraintViolationError and any other
        sqlite3.Error becomes StoreError.
        """
        with self._lock:
            conn = self._connection()
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN")
            self._depth += 1
            try:
                yield conn
            except BaseException as e:
                self._depth -= 1
                if outermost and self._conn is not None:
                    conn.execute("ROLLBACK")
                    logger.debug(f"Transaction rolled back: {e}")
                if isinstance(e, sqlite3.IntegrityError):
                    raise ConstraintViolationError(str(e)) from e
                if isinstance(e, sqlite3.Error):
                    logger.error(f"Database error: {e}", exc_info=True)
                    raise StoreError(str(e)) from e
                raise
            else:
                self._depth -= 1
                if outermost:
                    conn.execute("COMMIT")

    @contextmanager
    def atomic(self, operation: str) -> Iterator[sqlite3.Connection]:
        """
        Run a multi-statement operation all-or-nothing.

        Any failure rolls the whole operation back and is re-raised as
        TransactionFailureError naming the operation.
        """
        try:
            with self.transaction() as conn:
                yield conn
        except (NotInitializedError, TransactionFailureError):
            raise
        except Exception as e:
            logger.error(f"{operation} rolled back: {e}", exc_info=True)
            raise TransactionFailureError(operation, e) from e

    # =========================================================================
    # Query primitives
    # =========================================================================

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a write statement inside a (possibly joined) transaction."""
        with self.transaction() as conn:
            return conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a read query and return all rows."""
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Query failed: {e}", exc_info=True)
                raise StoreError(str(e)) from e

    def query_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Run a read query and return the first row, or None."""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def scalar(self, sql: str, params: tuple = ()) -> Any:
        """Run a read query and return the first column of the first row."""
        row = self.query_one(sql, params)
        return row[0] if row else None

    # =========================================================================
    # Schema
    # =========================================================================

    def init_schema(self):
        """Create all tables and indexes if they do not exist."""
        with self.transaction() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS expenses (
                    id TEXT PRIMARY KEY,
                    amount REAL NOT NULL CHECK(amount > 0),
                    category TEXT NOT NULL,
                    description TEXT NOT NULL,
                    date TEXT NOT NULL,
                    payment_method TEXT NOT NULL CHECK(
                        payment_method IN ({sql_values(PaymentMethod)})
                    ),
                    type TEXT NOT NULL CHECK(type IN ({sql_values(ExpenseType)})),
                    recurring_frequency TEXT CHECK(
                        recurring_frequency IN ({sql_values(RecurringFrequency)})
                    ),
                    recurring_next_date TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS budgets (
                    id TEXT PRIMARY KEY,
                    category TEXT NOT NULL,
                    monthly_limit REAL NOT NULL CHECK(monthly_limit > 0),
                    current_spend REAL NOT NULL DEFAULT 0,
                    month TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(category, month)
                )
            """)

            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS loans (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL CHECK(type IN ({sql_values(LoanType)})),
                    principal_amount REAL NOT NULL CHECK(principal_amount > 0),
                    interest_rate REAL NOT NULL,
                    tenure_months REAL NOT NULL,
                    start_date TEXT NOT NULL,
                    emi_amount REAL NOT NULL,
                    remaining_principal REAL NOT NULL,
                    next_emi_date TEXT,
                    is_paid_off INTEGER NOT NULL DEFAULT 0 CHECK(is_paid_off IN (0, 1)),
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Payments are removed together with their loan
            conn.execute("""
                CREATE TABLE IF NOT EXISTS loan_payments (
                    id TEXT PRIMARY KEY,
                    loan_id TEXT NOT NULL REFERENCES loans(id) ON DELETE CASCADE,
                    amount REAL NOT NULL,
                    principal_component REAL NOT NULL,
                    interest_component REAL NOT NULL,
                    date TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # linked_goal_id is a non-owning link, cleared when the goal goes
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS assets (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL CHECK(type IN ({sql_values(AssetType)})),
                    invested_amount REAL NOT NULL,
                    current_value REAL NOT NULL,
                    units REAL,
                    purchase_date TEXT NOT NULL,
                    last_updated TEXT NOT NULL,
                    notes TEXT,
                    linked_goal_id TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS asset_value_history (
                    id TEXT PRIMARY KEY,
                    asset_id TEXT NOT NULL REFERENCES assets(id) ON DELETE CASCADE,
                    value REAL NOT NULL,
                    date TEXT NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS goals (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL CHECK(type IN ({sql_values(GoalType)})),
                    target_amount REAL NOT NULL,
                    current_amount REAL NOT NULL DEFAULT 0,
                    target_date TEXT NOT NULL,
                    priority TEXT NOT NULL DEFAULT 'medium' CHECK(
                        priority IN ({sql_values(GoalPriority)})
                    ),
                    status TEXT NOT NULL DEFAULT 'active' CHECK(
                        status IN ({sql_values(GoalStatus)})
                    ),
                    notes TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS net_worth_history (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    total_assets REAL NOT NULL,
                    total_liabilities REAL NOT NULL,
                    net_worth REAL NOT NULL,
                    assets_breakdown TEXT,
                    liabilities_breakdown TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)

            self._create_indexes(conn)

            logger.debug("Finance schema initialized successfully")

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        indexes = [
            ("idx_expenses_date", "expenses", "date"),
            ("idx_expenses_category", "expenses", "category"),
            ("idx_expenses_type", "expenses", "type"),
            ("idx_budgets_month", "budgets", "month"),
            ("idx_budgets_category", "budgets", "category"),
            ("idx_loans_type", "loans", "type"),
            ("idx_loan_payments_loan_id", "loan_payments", "loan_id"),
            ("idx_loan_payments_date", "loan_payments", "date"),
            ("idx_assets_type", "assets", "type"),
            ("idx_assets_linked_goal_id", "assets", "linked_goal_id"),
            ("idx_asset_value_history_asset_id", "asset_value_history", "asset_id"),
            ("idx_goals_status", "goals", "status"),
            ("idx_goals_type", "goals", "type"),
            ("idx_net_worth_history_date", "net_worth_history", "date"),
        ]

        for index_name, table, columns in indexes:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)
