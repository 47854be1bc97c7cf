from pathlib import Path

import pytest

from bond_tracker.importer import (
    import_transactions,
    parse_csv_currency,
    parse_csv_date,
    parse_csv_fee,
    parse_csv_quantity,
    parse_transaction_row,
    read_csv_file,
    transaction_to_row,
)

FIXTURE_CSV: Path = Path(__file__).parent / "fixtures" / "transactions.csv"


class TestParsers:
    def test_parse_csv_date(self):
        assert parse_csv_date(" 2024-01-15T10:00:00 ") == "2024-01-15T10:00:00"

    @pytest.mark.parametrize("value", ["", "   ", None, "15/01/2024"])
    def test_parse_csv_date_invalid(self, value):
        with pytest.raises(ValueError):
            parse_csv_date(value)

    def test_parse_csv_quantity_must_be_positive(self):
        assert parse_csv_quantity("6") == 6.0
        with pytest.raises(ValueError, match="Quantity must be positive"):
            parse_csv_quantity("0")

    def test_parse_csv_fee(self):
        assert parse_csv_fee("") == 0.0
        assert parse_csv_fee("2.5") == 2.5
        with pytest.raises(ValueError, match="Fee cannot be negative"):
            parse_csv_fee("-1")

    def test_parse_csv_currency(self):
        assert parse_csv_currency(" byn ") == "BYN"
        with pytest.raises(ValueError, match="Unsupported currency"):
            parse_csv_currency("GBP")


class TestParseTransactionRow:
    def test_buy_row(self):
        transaction = parse_transaction_row(
            {
                "date": "2024-01-16T14:30:00",
                "type": "buy",
                "symbol": "by_polesye_01",
                "name": "Polesie 7.70%",
                "quantity": "6",
                "price": "100",
                "currency": "USD",
                "fee": "5",
                "coupon_rate": "7.7",
            }
        )

        assert transaction.id is None
        assert transaction.broker == "finstore"
        assert transaction.cash is None
        assert transaction.fee == 5.0
        assert transaction.security.symbol == "BY_POLESYE_01"
        assert transaction.security.quantity == 6.0
        assert transaction.security.coupon_rate == 7.7
        assert transaction.security.type == "bond"

    def test_deposit_row(self):
        transaction = parse_transaction_row(
            {"date": "2024-01-15", "type": "deposit", "amount": "2000", "cash_currency": "eur"}
        )
        assert transaction.security is None
        assert transaction.cash.amount == 2000.0
        assert transaction.cash.currency == "EUR"

    def test_buy_row_requires_symbol(self):
        with pytest.raises(ValueError, match="Missing 'symbol'"):
            parse_transaction_row(
                {"date": "2024-01-15", "type": "buy", "quantity": "1", "price": "1", "currency": "USD"}
            )

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Invalid type"):
            parse_transaction_row({"date": "2024-01-15", "type": "transfer"})

    def test_negative_amount(self):
        with pytest.raises(ValueError, match="non-negative"):
            parse_transaction_row(
                {"date": "2024-01-15", "type": "deposit", "amount": "-5", "cash_currency": "USD"}
            )

    def test_stored_record_converts_back_to_a_row(self):
        row_data = {
            "date": "2024-01-16T14:30:00",
            "type": "buy",
            "broker": "freedom",
            "symbol": "BY_POLESYE_01",
            "name": "Polesie 7.70%",
            "quantity": "6",
            "price": "100",
            "currency": "USD",
            "fee": "5",
            "maturity_date": "2027-01-01",
            "note": "first tranche",
        }
        transaction = parse_transaction_row(row_data)

        assert parse_transaction_row(transaction_to_row(transaction)) == transaction


class TestImportTransactions:
    def test_imports_valid_rows_and_skips_invalid(self, transaction_repo, caplog):
        imported = import_transactions(FIXTURE_CSV, transaction_repo)

        assert imported == 3
        stored = transaction_repo.load()
        assert [t.type for t in stored] == ["coupon", "buy", "deposit"]
        assert "Row 5: Transaction validation error" in caplog.text
        assert "Row 6: Transaction validation error" in caplog.text
        assert "Row 7: Transaction validation error" in caplog.text

    def test_imported_history_matches_demo_totals(self, transaction_repo, currency_service):
        from bond_tracker.services.portfolio_service import PortfolioService

        import_transactions(FIXTURE_CSV, transaction_repo)
        portfolio = PortfolioService(transaction_repo, currency_service).calculate_portfolio()

        assert portfolio.balances["USD"] == pytest.approx(1418.10)
        assert portfolio.securities[0].coupon_rate == pytest.approx(7.70)

    def test_missing_file(self, transaction_repo, tmp_path, caplog):
        assert import_transactions(tmp_path / "missing.csv", transaction_repo) == 0
        assert "CSV file not found" in caplog.text

    def test_empty_file(self, transaction_repo, tmp_path):
        csv_path = tmp_path / "empty.csv"
        csv_path.write_text("")
        assert read_csv_file(csv_path) is None
        assert import_transactions(csv_path, transaction_repo) == 0

    def test_header_only_file(self, transaction_repo, tmp_path, caplog):
        csv_path = tmp_path / "header.csv"
        csv_path.write_text("date,type,amount,cash_currency\n")
        assert import_transactions(csv_path, transaction_repo) == 0
        assert "CSV file is empty" in caplog.text
