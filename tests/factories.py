"""Record builders shared by the test modules."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from budge.models.ledger import Subscription, Transaction, TransactionType


TODAY = date(2024, 3, 15)


def make_transaction(
    tx_type: TransactionType = TransactionType.EXPENSE,
    amount: str = "10",
    category: Optional[str] = None,
    day: date = TODAY,
    description: str = "Test",
    **kwargs,
) -> Transaction:
    return Transaction(
        type=tx_type,
        amount=Decimal(amount),
        description=description,
        category=category,
        date=day,
        **kwargs,
    )


def make_subscription(name: str, due_in: int, amount: str = "9.99", **kwargs) -> Subscription:
    return Subscription(
        name=name,
        amount=Decimal(amount),
        next_payment_date=TODAY + timedelta(days=due_in),
        **kwargs,
    )
