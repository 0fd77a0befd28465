"""Domain records for the monthly subscription view."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class MemberType(str, Enum):
    """Membership affiliation of a subscriber."""

    AFFILIATED = "AFFILIATED"
    NON_MEMBER = "NON_MEMBER"


class PaymentStatus(str, Enum):
    """Status of a subscription record for a period."""

    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"  # any other server status


@dataclass(frozen=True)
class Subscriber:
    """A subscriber as seen by the dues view (read-only)."""

    id: int
    status: str = ""  # "active" means affiliated
    name: str = ""
    phone: str = ""
    email: str = ""
    user_id: int = 0
    affiliation: str = ""
    subscribed_at: str | None = None

    @property
    def is_affiliated(self) -> bool:
        return self.status == "active"

    @property
    def member_type(self) -> MemberType:
        return MemberType.AFFILIATED if self.is_affiliated else MemberType.NON_MEMBER


@dataclass(frozen=True)
class SubscriptionRecord:
    """A single subscription/payment entry for one month."""

    id: int
    month: int
    year: int
    amount: Decimal = Decimal("0")
    status: str = ""  # lower-cased server status
    payment_method: str | None = None
    paid_at: str | None = None

    @property
    def payment_status(self) -> PaymentStatus:
        if self.status == PaymentStatus.PAID.value:
            return PaymentStatus.PAID
        if self.status == PaymentStatus.PENDING.value:
            return PaymentStatus.PENDING
        return PaymentStatus.FAILED


@dataclass(frozen=True)
class PeriodRow:
    """One subscriber's standing for the selected period.

    ``subscription`` is None when nothing was recorded for the period yet.
    """

    subscriber: Subscriber
    subscription: SubscriptionRecord | None = None

    @property
    def is_paid(self) -> bool:
        return self.subscription is not None and self.subscription.status == PaymentStatus.PAID.value

    @property
    def amount(self) -> Decimal:
        return self.subscription.amount if self.subscription else Decimal("0")


@dataclass(frozen=True)
class ReceiptDraft:
    """Data shown on a cash receipt, fixed when the payment succeeds."""

    receipt_number: str
    amount: Decimal
    date: date
    subscriber: Subscriber
    month: int
    year: int
    description: str = field(default="")
