import logging
from pathlib import Path
from typing import Any

import pandas as pd

from bond_tracker.models import (
    BROKERS,
    CURRENCIES,
    SECURITY_TYPES,
    TRANSACTION_TYPES,
    CashAmount,
    Security,
    Transaction,
)
from bond_tracker.repositories.transaction_repository import TransactionRepository
from bond_tracker.utils.date_utils import parse_transaction_date

logger: logging.Logger = logging.getLogger(__name__)

POSITION_TYPES: tuple[str, ...] = ("buy", "sell", "maturity")
CASH_TYPES: tuple[str, ...] = ("deposit", "credit", "debit", "coupon", "dividend")


# --- CSV Parsing Functions  ---
def parse_csv_date(value: Any) -> str:
    """Validates an ISO-8601 date from CSV, returning it as written."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Missing value for 'date'")
    parse_transaction_date(value)
    return value.strip()


def parse_csv_float(value: Any, field_name: str) -> float:
    """Parses a value from CSV into a float."""
    # Handle empty strings which might come from pandas fillna('')
    if isinstance(value, str) and value.strip() == "":
        raise ValueError(f"Empty string value for '{field_name}'")
    if value is None:
        raise ValueError(f"Missing value for '{field_name}'")

    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float value for '{field_name}': '{value}' (type: {type(value)})")


def parse_csv_optional_float(value: Any, field_name: str) -> float | None:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    return parse_csv_float(value, field_name)


def parse_csv_quantity(value: Any) -> float:
    qty = parse_csv_float(value, "quantity")
    if qty <= 0:
        raise ValueError(f"Quantity must be positive, got {qty}")
    return qty


def parse_csv_price(value: Any) -> float:
    price = parse_csv_float(value, "price")
    if price < 0:
        raise ValueError(f"Price cannot be negative, got {price}")
    return price


def parse_csv_amount(value: Any) -> float:
    amount = parse_csv_float(value, "amount")
    if amount < 0:
        raise ValueError(f"Amount must be a non-negative magnitude, got {amount}")
    return amount


def parse_csv_fee(value: Any) -> float:
    # Fee can be zero or blank, but not negative.
    fee = parse_csv_optional_float(value, "fee") or 0.0
    if fee < 0:
        raise ValueError(f"Fee cannot be negative, got {fee}")
    return fee


def parse_csv_currency(value: Any, field_name: str = "currency") -> str:
    currency = str(value or "").strip().upper()
    if currency not in CURRENCIES:
        raise ValueError(f"Unsupported {field_name} '{value}'. Expected one of {CURRENCIES}")
    return currency


def parse_csv_choice(value: Any, field_name: str, choices: tuple[str, ...], default: str) -> str:
    choice = str(value or "").strip().lower() or default
    if choice not in choices:
        raise ValueError(f"Invalid {field_name} '{value}'. Expected one of {choices}")
    return choice


def _text(row_data: dict[str, str], key: str) -> str | None:
    value = row_data.get(key, "").strip()
    return value or None


def parse_security(row_data: dict[str, str], required: bool) -> Security | None:
    symbol = row_data.get("symbol", "").strip().upper()
    if not symbol:
        if required:
            raise ValueError("Missing 'symbol'")
        return None

    # Coupons may reference a holding without carrying a quantity or price
    quantity = (
        parse_csv_quantity(row_data.get("quantity", ""))
        if required
        else parse_csv_optional_float(row_data.get("quantity"), "quantity") or 0.0
    )
    price = (
        parse_csv_price(row_data.get("price", ""))
        if required
        else parse_csv_optional_float(row_data.get("price"), "price") or 0.0
    )

    return Security(
        symbol=symbol,
        name=_text(row_data, "name") or symbol,
        quantity=quantity,
        price=price,
        currency=parse_csv_currency(row_data.get("currency") or row_data.get("cash_currency")),
        type=parse_csv_choice(row_data.get("security_type"), "security_type", SECURITY_TYPES, "bond"),
        company_name=_text(row_data, "company_name"),
        nominal_value=parse_csv_optional_float(row_data.get("nominal_value"), "nominal_value"),
        coupon_rate=parse_csv_optional_float(row_data.get("coupon_rate"), "coupon_rate"),
        maturity_date=_text(row_data, "maturity_date"),
    )


def parse_cash(row_data: dict[str, str]) -> CashAmount:
    currency_value = row_data.get("cash_currency", "").strip() or row_data.get("currency", "")
    return CashAmount(
        amount=parse_csv_amount(row_data.get("amount", "")),
        currency=parse_csv_currency(currency_value, "cash_currency"),
    )


def parse_transaction_row(row_data: dict[str, str]) -> Transaction:
    """
    Build a Transaction from one CSV row.

    Raises:
        ValueError: If a required field is missing or invalid for the row's type
    """
    kind = parse_csv_choice(row_data.get("type"), "type", TRANSACTION_TYPES, "")
    security = parse_security(row_data, required=kind in POSITION_TYPES)
    cash = parse_cash(row_data) if kind in CASH_TYPES else None

    return Transaction(
        id=None,
        type=kind,
        date=parse_csv_date(row_data.get("date")),
        broker=parse_csv_choice(row_data.get("broker"), "broker", BROKERS, "finstore"),
        security=security,
        cash=cash,
        fee=parse_csv_fee(row_data.get("fee")),
        note=_text(row_data, "note"),
        description=_text(row_data, "description"),
    )


def transaction_to_row(transaction: Transaction) -> dict[str, str]:
    """Flatten a transaction into the text fields parse_transaction_row accepts."""

    def text(value: Any) -> str:
        return "" if value is None else str(value)

    row_data: dict[str, str] = {
        "date": transaction.date,
        "type": transaction.type,
        "broker": transaction.broker,
        "fee": text(transaction.fee),
        "note": text(transaction.note),
        "description": text(transaction.description),
    }
    security = transaction.security
    if security is not None:
        row_data.update(
            symbol=security.symbol,
            name=security.name,
            security_type=security.type,
            quantity=text(security.quantity),
            price=text(security.price),
            currency=security.currency,
            company_name=text(security.company_name),
            nominal_value=text(security.nominal_value),
            coupon_rate=text(security.coupon_rate),
            maturity_date=text(security.maturity_date),
        )
    if transaction.cash is not None:
        row_data.update(amount=text(transaction.cash.amount), cash_currency=transaction.cash.currency)
    return row_data


def read_csv_file(csv_path: Path) -> pd.DataFrame | None:
    """
    Read a CSV file with every column as text.

    Returns:
        DataFrame containing the CSV data or None if there was an error
    """
    try:
        df: pd.DataFrame = pd.read_csv(csv_path, dtype=str).fillna("")
        if df.empty:
            logger.warning(f"CSV file is empty: {csv_path}")
            return None
        return df
    except FileNotFoundError:
        logger.error(f"CSV file not found: {csv_path}")
        return None
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        logger.error(f"Error reading CSV file {csv_path}: {e}")
        return None


def transactions_from_dataframe(df: pd.DataFrame) -> list[Transaction]:
    """Parse each row of the DataFrame, logging and skipping invalid rows."""
    transactions: list[Transaction] = []

    for i in range(len(df)):
        # Calculate human-readable row number (1-based, plus 1 for header)
        row_number: int = i + 2
        row_data: dict[str, str] = {str(k): str(v) for k, v in df.iloc[i].to_dict().items()}

        try:
            transactions.append(parse_transaction_row(row_data))
        except ValueError as e:
            logger.error(f"Row {row_number}: Transaction validation error: {e}. Skipping row: {row_data}")
            continue

    return transactions


def import_transactions(csv_path: Path, transaction_repo: TransactionRepository) -> int:
    """
    Import transactions from a CSV file into the repository.

    Args:
        csv_path: Path to the CSV file
        transaction_repo: Repository the valid transactions are added to

    Returns:
        Number of transactions imported
    """
    df = read_csv_file(csv_path)
    if df is None or df.empty:
        return 0

    imported = 0
    for transaction in transactions_from_dataframe(df):
        stored = transaction_repo.add(transaction)
        imported += 1
        logger.debug(f"Imported {stored.type} transaction {stored.id} dated {stored.date}")

    logger.info(f"Finished importing transactions. Successfully imported {imported} of {len(df)} rows")
    return imported
