"""Printable document models for receipts and period summaries.

These are plain data; a ``DocumentRenderer`` decides how they look on paper.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from talahum_dues.config.settings import FlatSettings, get_settings
from talahum_dues.labels import (
    format_amount,
    member_type_label,
    month_name,
    payment_status_label,
)
from talahum_dues.models import PeriodRow, ReceiptDraft
from talahum_dues.summary import PeriodSummary, summarize

RECEIPT_TITLE = "سند قبض"
RECEIPT_SIGNATURES = ("توقيع المستلم", "توقيع أمين الصندوق")

SUMMARY_TITLE = "إدارة الاشتراكات الشهرية"
SUMMARY_COLUMNS = ("الاسم", "الهاتف", "نوع العضو", "الحالة", "تاريخ الدفع", "المبلغ")
SUMMARY_EMPTY_MESSAGE = "لم يتم العثور على اشتراكات للفترة المحددة"
SUMMARY_FOOTER = "الجمعية الخيرية - لوحة التحكم"


@dataclass(frozen=True)
class DocumentField:
    """A labelled value printed on a document."""

    label: str
    value: str


@dataclass(frozen=True)
class ReceiptDocument:
    """Cash receipt for one recorded payment."""

    filename: str
    organization: str
    header_lines: tuple[str, ...]
    title: str
    fields: tuple[DocumentField, ...]
    signatures: tuple[str, ...]


@dataclass(frozen=True)
class PeriodSummaryDocument:
    """Subscriptions table of one period with its counters."""

    filename: str
    title: str
    subtitle: str
    stats: tuple[DocumentField, ...]
    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    empty_message: str
    footer_lines: tuple[str, ...]


Document = ReceiptDocument | PeriodSummaryDocument


def receipt_filename(receipt_number: str) -> str:
    return f"سند_دفع_{receipt_number}.pdf"


def summary_filename(month: int, year: int) -> str:
    return f"اشتراكات-{month_name(month)}-{year}.pdf"


def build_receipt_document(
    draft: ReceiptDraft, settings: FlatSettings | None = None
) -> ReceiptDocument:
    """Lay out the receipt for a successful payment."""
    settings = settings or get_settings()
    subscriber = draft.subscriber
    fields = [
        DocumentField("رقم السند:", draft.receipt_number),
        DocumentField("التاريخ:", draft.date.isoformat()),
        DocumentField("اسم العضو:", subscriber.name),
        DocumentField("رقم الهاتف:", subscriber.phone),
        DocumentField("المبلغ:", f"{format_amount(draft.amount)} {settings.currency_label}"),
        DocumentField("نوع العضو:", member_type_label(subscriber.member_type)),
    ]
    if draft.description:
        fields.append(DocumentField("الوصف:", draft.description))
    return ReceiptDocument(
        filename=receipt_filename(draft.receipt_number),
        organization=settings.association_name,
        header_lines=(settings.association_address, settings.association_locality),
        title=RECEIPT_TITLE,
        fields=tuple(fields),
        signatures=RECEIPT_SIGNATURES,
    )


def _summary_row(row: PeriodRow, currency: str) -> tuple[str, ...]:
    subscription = row.subscription
    return (
        row.subscriber.name,
        row.subscriber.phone,
        member_type_label(row.subscriber.member_type),
        payment_status_label(row),
        (subscription.paid_at if subscription else None) or "-",
        f"{format_amount(row.amount)} {currency}",
    )


def build_period_summary_document(
    rows: Sequence[PeriodRow],
    month: int,
    year: int,
    summary: PeriodSummary | None = None,
    generated_on: date | None = None,
    settings: FlatSettings | None = None,
) -> PeriodSummaryDocument:
    """Lay out the period export: counters, one table line per row, footer."""
    settings = settings or get_settings()
    summary = summary or summarize(rows)
    currency = settings.currency_label
    generated_on = generated_on or date.today()
    return PeriodSummaryDocument(
        filename=summary_filename(month, year),
        title=SUMMARY_TITLE,
        subtitle=f"{month_name(month)} {year}",
        stats=(
            DocumentField("إجمالي الاشتراكات", str(summary.total)),
            DocumentField("الاشتراكات المدفوعة", str(summary.paid)),
            DocumentField("قيد الانتظار", str(summary.pending)),
            DocumentField("إجمالي المبالغ", f"{format_amount(summary.amount)} {currency}"),
        ),
        columns=SUMMARY_COLUMNS,
        rows=tuple(_summary_row(row, currency) for row in rows),
        empty_message=SUMMARY_EMPTY_MESSAGE,
        footer_lines=(
            f"تم إنشاء هذا التقرير في {generated_on.isoformat()}",
            SUMMARY_FOOTER,
        ),
    )
