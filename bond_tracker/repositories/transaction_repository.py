import logging
import uuid
from collections.abc import Iterable
from datetime import datetime
from sqlite3 import Row
from typing import Any

from bond_tracker.db import Database
from bond_tracker.models import CashAmount, Security, Transaction, TransactionFilters
from bond_tracker.utils.date_utils import parse_transaction_date

logger: logging.Logger = logging.getLogger(__name__)

COLUMNS: tuple[str, ...] = (
    "id",
    "type",
    "date",
    "broker",
    "fee",
    "note",
    "description",
    "security_symbol",
    "security_name",
    "security_company_name",
    "security_type",
    "security_quantity",
    "security_price",
    "security_currency",
    "security_nominal_value",
    "security_coupon_rate",
    "security_maturity_date",
    "cash_amount",
    "cash_currency",
)

INSERT_SQL: str = (
    f"INSERT INTO transactions ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in COLUMNS)})"
)


def transaction_to_params(transaction: Transaction) -> dict[str, Any]:
    """Flatten a transaction into named parameters for the transactions table."""
    security = transaction.security
    cash = transaction.cash
    return {
        "id": transaction.id,
        "type": transaction.type,
        "date": transaction.date,
        "broker": transaction.broker,
        "fee": transaction.fee,
        "note": transaction.note,
        "description": transaction.description,
        "security_symbol": security.symbol if security else None,
        "security_name": security.name if security else None,
        "security_company_name": security.company_name if security else None,
        "security_type": security.type if security else None,
        "security_quantity": security.quantity if security else None,
        "security_price": security.price if security else None,
        "security_currency": security.currency if security else None,
        "security_nominal_value": security.nominal_value if security else None,
        "security_coupon_rate": security.coupon_rate if security else None,
        "security_maturity_date": security.maturity_date if security else None,
        "cash_amount": cash.amount if cash else None,
        "cash_currency": cash.currency if cash else None,
    }


def row_to_transaction(row: Row) -> Transaction:
    data: dict[str, Any] = dict(row)

    security: Security | None = None
    if data["security_symbol"] is not None:
        security = Security(
            symbol=data["security_symbol"],
            name=data["security_name"] or data["security_symbol"],
            quantity=data["security_quantity"] or 0.0,
            price=data["security_price"] or 0.0,
            currency=data["security_currency"],
            type=data["security_type"] or "bond",
            company_name=data["security_company_name"],
            nominal_value=data["security_nominal_value"],
            coupon_rate=data["security_coupon_rate"],
            maturity_date=data["security_maturity_date"],
        )

    cash: CashAmount | None = None
    if data["cash_amount"] is not None:
        cash = CashAmount(amount=data["cash_amount"], currency=data["cash_currency"])

    return Transaction(
        id=data["id"],
        type=data["type"],
        date=data["date"],
        broker=data["broker"],
        security=security,
        cash=cash,
        fee=data["fee"] or 0.0,
        note=data["note"],
        description=data["description"],
    )


def newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort by date descending, then id descending. Unparseable dates sort last."""

    def sort_key(transaction: Transaction) -> tuple[datetime, str]:
        try:
            when = parse_transaction_date(transaction.date)
        except ValueError:
            when = datetime.min
        return when, transaction.id or ""

    return sorted(transactions, key=sort_key, reverse=True)


class TransactionRepository:
    """Durable, append-only transaction history backed by sqlite."""

    def __init__(self, db: Database) -> None:
        self.db: Database = db

    def load(self) -> list[Transaction]:
        rows: list[Row] = self.db.query_all("SELECT * FROM transactions")
        return newest_first(row_to_transaction(row) for row in rows)

    def save(self, transactions: Iterable[Transaction]) -> None:
        """Replace the stored history with the given transactions."""
        params = [transaction_to_params(t) for t in transactions]
        missing = [p for p in params if not p["id"]]
        if missing:
            raise ValueError(f"Cannot save {len(missing)} transactions without an id")

        _ = self.db.execute("DELETE FROM transactions")
        _ = self.db.executemany(INSERT_SQL, params)
        logger.info(f"Saved {len(params)} transactions")

    def add(self, transaction: Transaction) -> Transaction:
        """Store a new transaction under a freshly generated id."""
        stored = transaction.with_id(str(uuid.uuid4()))
        _ = self.db.execute(INSERT_SQL, transaction_to_params(stored))
        logger.debug(f"Added {stored.type} transaction {stored.id}")
        return stored

    def get_by_id(self, transaction_id: str) -> Transaction | None:
        row: Row | None = self.db.query_one(
            "SELECT * FROM transactions WHERE id = ?", (transaction_id,)
        )
        if not row:
            return None
        return row_to_transaction(row)

    def update(self, transaction_id: str, transaction: Transaction) -> Transaction:
        """Overwrite the stored transaction with this id, keeping the id."""
        if self.get_by_id(transaction_id) is None:
            raise KeyError(f"Transaction {transaction_id} not found")

        updated = transaction.with_id(transaction_id)
        params = transaction_to_params(updated)
        assignments = ", ".join(f"{c} = :{c}" for c in COLUMNS if c != "id")
        _ = self.db.execute(f"UPDATE transactions SET {assignments} WHERE id = :id", params)
        return updated

    def delete(self, transaction_id: str) -> None:
        cursor = self.db.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
        if cursor.rowcount == 0:
            raise KeyError(f"Transaction {transaction_id} not found")

    def delete_all(self) -> None:
        _ = self.db.execute("DELETE FROM transactions")
        logger.info("Deleted all transactions")

    def get_by_type(self, transaction_type: str) -> list[Transaction]:
        rows: list[Row] = self.db.query_all(
            "SELECT * FROM transactions WHERE type = ?", (transaction_type,)
        )
        return newest_first(row_to_transaction(row) for row in rows)

    def get_by_security(self, symbol: str) -> list[Transaction]:
        rows: list[Row] = self.db.query_all(
            "SELECT * FROM transactions WHERE security_symbol = ?", (symbol,)
        )
        return newest_first(row_to_transaction(row) for row in rows)

    def find(self, filters: TransactionFilters) -> list[Transaction]:
        return [t for t in self.load() if filters.matches(t)]
