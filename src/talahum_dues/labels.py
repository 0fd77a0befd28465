"""Arabic display labels used on screen and in exported documents."""

from datetime import date
from decimal import Decimal

from talahum_dues.models import MemberType, PaymentStatus, PeriodRow

MONTH_NAMES: tuple[str, ...] = (
    "يناير",
    "فبراير",
    "مارس",
    "أبريل",
    "مايو",
    "يونيو",
    "يوليو",
    "أغسطس",
    "سبتمبر",
    "أكتوبر",
    "نوفمبر",
    "ديسمبر",
)

MEMBER_TYPE_LABELS: dict[MemberType, str] = {
    MemberType.AFFILIATED: "منتسب",
    MemberType.NON_MEMBER: "غير منتسب",
}

STATUS_PAID = "مدفوع"
STATUS_PENDING = "قيد الانتظار"
STATUS_FAILED = "فشل"
STATUS_UNPAID = "لم يدفع بعد"

STATUS_LABELS: dict[PaymentStatus, str] = {
    PaymentStatus.PAID: STATUS_PAID,
    PaymentStatus.PENDING: STATUS_PENDING,
    PaymentStatus.FAILED: STATUS_FAILED,
}

# Number of years offered in the period picker, counting back from this year
YEAR_OPTION_COUNT = 5


def month_name(month: int) -> str:
    """Arabic name of a month (1-12)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return MONTH_NAMES[month - 1]


def year_options(today: date | None = None, count: int = YEAR_OPTION_COUNT) -> list[int]:
    """Years offered for selection, newest first."""
    current = (today or date.today()).year
    return [current - offset for offset in range(count)]


def member_type_label(member_type: MemberType) -> str:
    return MEMBER_TYPE_LABELS[member_type]


def payment_status_label(row: PeriodRow) -> str:
    if row.subscription is None:
        return STATUS_UNPAID
    return STATUS_LABELS[row.subscription.payment_status]


def format_amount(amount: Decimal) -> str:
    """Render an amount without a trailing ``.00`` for whole numbers."""
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")
