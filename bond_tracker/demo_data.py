"""Sample history used to seed an empty transaction store."""

from bond_tracker.models import CashAmount, Security, Transaction

DEMO_TRANSACTIONS: tuple[Transaction, ...] = (
    Transaction(
        id="demo-1",
        type="deposit",
        date="2024-01-15T10:00:00",
        cash=CashAmount(amount=2000.0, currency="USD"),
        description="Account funding for investments",
    ),
    Transaction(
        id="demo-2",
        type="buy",
        date="2024-01-16T14:30:00",
        security=Security(
            symbol="BY_POLESYE_01",
            name='СОАО "ПП Полесье" 7.70%',
            quantity=6,
            price=100.0,
            currency="USD",
        ),
        fee=5.0,
        description="Polesie bonds purchase",
    ),
    Transaction(
        id="demo-3",
        type="buy",
        date="2024-01-20T11:15:00",
        security=Security(
            symbol="BY_ZUBR_AUTO_01",
            name='ООО "ЗУБР АВТОГРУПП" 10.00%',
            quantity=5,
            price=100.0,
            currency="USD",
        ),
        fee=4.0,
        description="Zubr Auto bonds purchase",
    ),
    Transaction(
        id="demo-4",
        type="coupon",
        date="2024-02-15T09:00:00",
        cash=CashAmount(amount=23.10, currency="USD"),
        description="Polesie bonds coupon income (semi-annual)",
    ),
    Transaction(
        id="demo-5",
        type="coupon",
        date="2024-02-20T09:00:00",
        cash=CashAmount(amount=25.00, currency="USD"),
        description="Zubr Auto bonds coupon income (semi-annual)",
    ),
)
