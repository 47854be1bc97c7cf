import logging
import sqlite3
import traceback
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Self


class Database:
    # INFO: Example usage:
    # with Database(Path("bond_tracker.db")) as db:
    #   db.create_tables_if_not_exists()
    #   db.execute("DELETE FROM transactions WHERE id = ?", ("demo-1",))
    #   Changes are committed on exit, or rolled back if the block raises
    def __init__(self, db_path: Path | str) -> None:
        self.conn: sqlite3.Connection = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row  # Allows dict-style access
        self.cursor: sqlite3.Cursor = self.conn.cursor()
        self.logger: logging.Logger = logging.getLogger(__name__)

    @staticmethod
    def _check_placeholders(query: str, params: Any) -> None:
        # Confirm positional and named-placeholders are not being inter-mixed
        if "?" in query and isinstance(params, Mapping):
            raise ValueError("Positional placeholders (?) used with named parameters.")
        if ":" in query and params and isinstance(params, (list, tuple)):
            raise ValueError("Named placeholders (:) used with positional parameters.")

    def execute(
        self,
        query: str,
        params: Sequence[Any] | Mapping[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        """
        Executes a single SQL query.
        Supports both positional (?) and named (:param) placeholders.
        Includes error handling, transaction support, and logging.
        """
        if params is None:
            params = ()

        self.logger.debug(f"Preparing SQL execution:\n{query}")
        self.logger.debug(f"Parameters: {params}")
        self._check_placeholders(query, params)

        try:
            _ = self.conn.execute("BEGIN")
            result: sqlite3.Cursor = self.cursor.execute(query, params)
            self.commit()
            self.logger.debug(f"Query executed successfully. Rows affected: {self.cursor.rowcount}")
            return result
        except sqlite3.Error:
            self.conn.rollback()
            self.logger.error("Database error during execute:")
            self.logger.error(traceback.format_exc())
            raise

    def executemany(
        self,
        query: str,
        param_list: Sequence[Sequence[Any]] | Sequence[Mapping[str, Any]],
    ) -> sqlite3.Cursor:
        """
        Executes a SQL query for multiple sets of parameters.
        Supports both positional (?) and named (:param) styles.
        """
        self.logger.debug(f"Preparing bulk execution of SQL:\n{query}")
        self.logger.debug(f"Number of entries: {len(param_list)}")

        if not param_list:
            self.logger.debug("executemany called with an empty parameter list.")
            return self.cursor

        for params in param_list:
            self._check_placeholders(query, params)

        try:
            _ = self.conn.execute("BEGIN")
            result = self.cursor.executemany(query, param_list)
            self.conn.commit()
            self.logger.info(f"Successfully wrote {self.cursor.rowcount} records.")
            return result
        except sqlite3.Error:
            self.conn.rollback()
            self.logger.error("Database error during executemany:")
            self.logger.error(traceback.format_exc())
            raise

    def commit(self) -> None:
        """Commits active transaction to DB, saving changes."""
        try:
            self.conn.commit()
            self.logger.debug("Database changes committed.")
        except sqlite3.DatabaseError as e:
            self.logger.error(f"Error committing changes: {e}")
            raise

    def rollback(self) -> None:
        """Rolls back active transaction to DB, not saving changes (used if error)."""
        try:
            self.conn.rollback()
            self.logger.warning("Database changes rolled back.")
        except sqlite3.DatabaseError as e:
            self.logger.error(f"Error rolling back changes: {e}")
            raise

    def query_one(
        self, query: str, params: Sequence[Any] | Mapping[str, Any] | None = None
    ) -> sqlite3.Row | None:
        """Executes a SELECT query and returns a single result."""
        return self.execute(query, params).fetchone()

    def query_all(
        self, query: str, params: Sequence[Any] | Mapping[str, Any] | None = None
    ) -> list[sqlite3.Row]:
        """Executes a SELECT query and returns all results."""
        return self.execute(query, params).fetchall()

    def close(self) -> None:
        """Closes active DB connection."""
        self.conn.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        """Commit on a clean exit, roll back if the block raised, then close."""
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()

    def create_tables_if_not_exists(self) -> None:
        # One row per transaction; security and cash columns are NULL when absent
        _ = self.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            type TEXT NOT NULL,
            date TEXT NOT NULL,           -- ISO-8601 as entered
            broker TEXT NOT NULL,
            fee REAL DEFAULT 0.0,
            note TEXT,
            description TEXT,
            security_symbol TEXT,
            security_name TEXT,
            security_company_name TEXT,
            security_type TEXT,
            security_quantity REAL,
            security_price REAL,          -- native currency per unit
            security_currency TEXT,
            security_nominal_value REAL,
            security_coupon_rate REAL,    -- percent, e.g. 7.7
            security_maturity_date TEXT,
            cash_amount REAL,             -- always a non-negative magnitude
            cash_currency TEXT
        );
        """)
        _ = self.execute(
            "CREATE INDEX IF NOT EXISTS idx_transactions_symbol ON transactions(security_symbol);"
        )
        _ = self.execute("CREATE INDEX IF NOT EXISTS idx_transactions_type ON transactions(type);")
