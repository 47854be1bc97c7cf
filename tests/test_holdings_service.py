import pytest

from bond_tracker.exceptions import UnknownCurrencyError
from bond_tracker.models import CashAmount, Security, Transaction
from bond_tracker.services.holdings_service import aggregate_holdings, sort_chronologically


class TestAggregateHoldings:
    """Tests for folding transactions into ledgers and positions."""

    def test_demo_scenario(self, demo_scenario):
        holdings = aggregate_holdings(demo_scenario)

        position = holdings.positions["BY_POLESYE_01"]
        assert position.quantity == 6
        assert position.total_cost == pytest.approx(605.0)
        assert position.average_price == pytest.approx(100.8333, abs=1e-4)
        assert position.coupons_received == pytest.approx(23.10)

        assert holdings.net_cash()["USD"] == pytest.approx(1418.10)
        assert holdings.total_value()["USD"] == pytest.approx(2023.10)
        assert holdings.purchases["USD"] == pytest.approx(605.0)

    def test_ledgers_by_type(self, make_transaction):
        transactions = [
            make_transaction("deposit", amount=1000.0, currency="BYN"),
            make_transaction("debit", amount=200.0, currency="BYN"),
            make_transaction("dividend", amount=15.0, currency="EUR"),
            make_transaction("coupon", amount=5.0, currency="BYN"),
        ]
        holdings = aggregate_holdings(transactions)

        assert holdings.deposits == {"BYN": 1000.0, "USD": 0.0, "EUR": 0.0, "RUB": 0.0}
        assert holdings.withdrawals["BYN"] == 200.0
        assert holdings.income == {"BYN": 5.0, "USD": 0.0, "EUR": 15.0, "RUB": 0.0}
        assert holdings.net_cash()["BYN"] == pytest.approx(805.0)
        assert holdings.total_value()["EUR"] == pytest.approx(15.0)
        assert holdings.positions == {}

    def test_credit_is_ignored(self, make_transaction):
        holdings = aggregate_holdings([make_transaction("credit", amount=50.0)])
        assert holdings.net_cash()["USD"] == 0.0
        assert holdings.total_value()["USD"] == 0.0

    def test_sell_reduces_at_average_cost(self, make_transaction):
        transactions = [
            make_transaction("buy", date="2024-01-01", symbol="B1", quantity=10, price=100.0),
            make_transaction("sell", date="2024-02-01", symbol="B1", quantity=4, price=120.0),
        ]
        position = aggregate_holdings(transactions).positions["B1"]

        assert position.quantity == 6
        assert position.total_cost == pytest.approx(600.0)
        assert position.average_price == pytest.approx(100.0)

    def test_maturity_closes_position(self, make_transaction):
        transactions = [
            make_transaction("buy", date="2024-01-01", symbol="B1", quantity=5, price=98.0),
            make_transaction("maturity", date="2025-01-01", symbol="B1", quantity=5, price=100.0),
        ]
        holdings = aggregate_holdings(transactions)

        assert holdings.positions["B1"].quantity == 0
        assert holdings.positions["B1"].total_cost == 0
        assert list(holdings.open_positions()) == []

    def test_oversell_clamps_to_zero(self, make_transaction):
        transactions = [
            make_transaction("buy", date="2024-01-01", symbol="B1", quantity=3, price=100.0),
            make_transaction("sell", date="2024-02-01", symbol="B1", quantity=5, price=100.0),
        ]
        position = aggregate_holdings(transactions).positions["B1"]

        assert position.quantity == 0
        assert position.total_cost == 0

    def test_sell_without_holding_never_goes_negative(self, make_transaction):
        holdings = aggregate_holdings(
            [make_transaction("sell", symbol="B1", quantity=2, price=100.0)]
        )
        position = holdings.positions["B1"]
        assert position.quantity == 0
        assert position.total_cost == 0

    @pytest.mark.parametrize(
        "steps",
        [
            [("buy", 10, 100.0), ("sell", 3, 0), ("sell", 8, 0), ("buy", 2, 50.0)],
            [("sell", 1, 0), ("buy", 1, 10.0), ("maturity", 1, 0), ("maturity", 1, 0)],
            [("buy", 0.5, 99.9), ("sell", 0.25, 0), ("sell", 0.25, 0), ("sell", 0.25, 0)],
        ],
    )
    def test_positions_never_negative(self, make_transaction, steps):
        transactions = [
            make_transaction(kind, date=f"2024-01-{i + 1:02d}", symbol="B1", quantity=qty, price=price)
            for i, (kind, qty, price) in enumerate(steps)
        ]
        position = aggregate_holdings(transactions).positions["B1"]
        assert position.quantity >= 0
        assert position.total_cost >= 0

    def test_average_cost_of_buys_is_weighted_mean(self, make_transaction):
        buys = [(10, 100.0, 5.0), (5, 110.0, 2.5), (20, 95.5, 10.0)]
        transactions = [
            make_transaction(
                "buy", date=f"2024-0{i + 1}-01", symbol="B1", quantity=qty, price=price, fee=fee
            )
            for i, (qty, price, fee) in enumerate(buys)
        ]
        position = aggregate_holdings(transactions).positions["B1"]

        total_qty = sum(qty for qty, _, _ in buys)
        weighted_mean = sum(qty * (price + fee / qty) for qty, price, fee in buys) / total_qty
        assert position.quantity == total_qty
        assert position.average_price == pytest.approx(weighted_mean)

    def test_processing_is_chronological(self, make_transaction):
        # Sell listed first but dated after the buy
        transactions = [
            make_transaction("sell", date="2024-03-01", symbol="B1", quantity=4, price=0),
            make_transaction("buy", date="2024-01-01", symbol="B1", quantity=10, price=100.0),
        ]
        position = aggregate_holdings(transactions).positions["B1"]
        assert position.quantity == 6
        assert position.total_cost == pytest.approx(600.0)

    def test_malformed_date_is_skipped(self, make_transaction, caplog):
        transactions = [
            make_transaction("deposit", date="2024-01-01", amount=100.0),
            make_transaction("deposit", date="yesterday", amount=999.0),
        ]
        holdings = aggregate_holdings(transactions)

        assert holdings.deposits["USD"] == 100.0
        assert "Skipping transaction" in caplog.text

    def test_unknown_cash_currency_raises(self):
        bad = Transaction(
            id="x", type="deposit", date="2024-01-01", cash=CashAmount(amount=1.0, currency="GBP")
        )
        with pytest.raises(UnknownCurrencyError):
            aggregate_holdings([bad])

    def test_unknown_security_currency_raises(self):
        bad = Transaction(
            id="x",
            type="buy",
            date="2024-01-01",
            security=Security(symbol="B1", name="B1", quantity=1, price=1.0, currency="CHF"),
        )
        with pytest.raises(UnknownCurrencyError):
            aggregate_holdings([bad])

    def test_first_buy_is_recorded(self, make_transaction):
        first = make_transaction("buy", date="2024-01-01", symbol="B1", quantity=1, price=1.0)
        second = make_transaction("buy", date="2024-02-01", symbol="B1", quantity=1, price=2.0)
        holdings = aggregate_holdings([second, first])
        assert holdings.positions["B1"].first_buy is first

    def test_position_opened_from_security_details(self, make_transaction):
        coupon = make_transaction(
            "coupon",
            symbol="B1",
            name="Issuer 9%",
            currency="BYN",
            amount=5.0,
            coupon_rate=9.0,
            company_name="Issuer LLC",
        )
        position = aggregate_holdings([coupon]).positions["B1"]

        assert position.name == "Issuer 9%"
        assert position.currency == "BYN"
        assert position.coupon_rate == 9.0
        assert position.company_name == "Issuer LLC"
        assert position.quantity == 0.0
        assert position.coupons_received == 5.0
        assert position.first_buy is None

    def test_input_list_is_not_mutated(self, demo_scenario):
        snapshot = list(demo_scenario)
        aggregate_holdings(demo_scenario)
        assert demo_scenario == snapshot

    def test_empty_input(self):
        holdings = aggregate_holdings([])
        assert holdings.positions == {}
        assert holdings.net_cash() == {"BYN": 0.0, "USD": 0.0, "EUR": 0.0, "RUB": 0.0}


def test_sort_chronologically_is_stable(make_transaction):
    a = make_transaction("deposit", date="2024-01-01T10:00:00", amount=1.0)
    b = make_transaction("deposit", date="2024-01-01T10:00:00", amount=2.0)
    c = make_transaction("deposit", date="2023-12-31T10:00:00", amount=3.0)
    assert sort_chronologically([a, b, c]) == [c, a, b]


def test_sort_chronologically_mixes_offsets(make_transaction):
    aware = make_transaction("deposit", date="2024-01-01T12:00:00+03:00", amount=1.0)
    naive = make_transaction("deposit", date="2024-01-01T10:00:00", amount=2.0)
    # 12:00+03:00 is 09:00 UTC
    assert sort_chronologically([naive, aware]) == [aware, naive]
