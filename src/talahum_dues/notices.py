"""User-facing notices emitted by the view and the payment flow.

The caller decides how to present them (toast, status bar, log); the core
only hands them to a ``Notifier`` callback.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class NoticeLevel(str, Enum):
    """Severity of a notice."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A message for the person operating the dashboard."""

    level: NoticeLevel
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


Notifier = Callable[[Notice], None]

MSG_LOAD_FAILED = "حدث خطأ أثناء تحميل البيانات"
MSG_INVALID_AMOUNT = "الرجاء إدخال مبلغ صحيح"
MSG_INVALID_DATE = "الرجاء إدخال تاريخ صحيح"
MSG_PAYMENT_RECORDED = "تم تسجيل الدفع بنجاح"
MSG_PAYMENT_FAILED = "حدث خطأ أثناء تسجيل الدفع"
MSG_RECEIPT_EXPORT_FAILED = "حدث خطأ أثناء إنشاء ملف PDF"
MSG_SUMMARY_EXPORTED = "تم تصدير PDF بنجاح!"
MSG_SUMMARY_EXPORT_FAILED = "حدث خطأ أثناء تصدير PDF"


def ignore_notice(notice: Notice) -> None:
    """Default notifier: drop the notice."""


# Factory functions for creating notices


def load_failed() -> Notice:
    return Notice(NoticeLevel.ERROR, MSG_LOAD_FAILED)


def invalid_amount() -> Notice:
    return Notice(NoticeLevel.ERROR, MSG_INVALID_AMOUNT)


def invalid_date() -> Notice:
    return Notice(NoticeLevel.ERROR, MSG_INVALID_DATE)


def payment_recorded() -> Notice:
    return Notice(NoticeLevel.SUCCESS, MSG_PAYMENT_RECORDED)


def payment_failed(server_message: str | None = None) -> Notice:
    """Create a payment failure notice, preferring the server's own message."""
    return Notice(NoticeLevel.ERROR, server_message or MSG_PAYMENT_FAILED)


def receipt_export_failed() -> Notice:
    return Notice(NoticeLevel.ERROR, MSG_RECEIPT_EXPORT_FAILED)


def summary_exported() -> Notice:
    return Notice(NoticeLevel.SUCCESS, MSG_SUMMARY_EXPORTED)


def summary_export_failed() -> Notice:
    return Notice(NoticeLevel.ERROR, MSG_SUMMARY_EXPORT_FAILED)
