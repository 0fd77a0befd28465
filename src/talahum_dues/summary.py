"""Aggregate figures over the rows of a period."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from talahum_dues.models import PaymentStatus, PeriodRow


@dataclass(frozen=True)
class PeriodSummary:
    """Counters shown above the subscriptions table and in the export."""

    total: int = 0
    paid: int = 0
    pending: int = 0
    amount: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "paid": self.paid,
            "pending": self.pending,
            "amount": self.amount,
        }


def summarize(rows: Iterable[PeriodRow]) -> PeriodSummary:
    """Count rows by status and sum their amounts.

    Rows without a subscription count toward ``total`` only.
    """
    total = paid = pending = 0
    amount = Decimal("0")
    for row in rows:
        total += 1
        subscription = row.subscription
        if subscription is None:
            continue
        if subscription.status == PaymentStatus.PAID.value:
            paid += 1
        elif subscription.status == PaymentStatus.PENDING.value:
            pending += 1
        amount += subscription.amount
    return PeriodSummary(total=total, paid=paid, pending=pending, amount=amount)
