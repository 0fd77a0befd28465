"""Interactive capture of a cash subscription payment.

A flow walks one subscriber through::

    CLOSED -> COLLECTING -> SUBMITTING -> RECEIPT -> CLOSED

``COLLECTING -> CLOSED`` on cancel and ``SUBMITTING -> COLLECTING`` when the
API rejects the payment. Leaving ``RECEIPT`` always asks the owning view to
refresh; the flow never edits the view's rows itself.
"""

from collections.abc import Awaitable, Callable
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from talahum_dues import notices
from talahum_dues.api.client import SubscriptionsAPIClient, SubscriptionsAPIError
from talahum_dues.config.settings import FlatSettings
from talahum_dues.documents import build_receipt_document
from talahum_dues.models import PeriodRow, ReceiptDraft
from talahum_dues.notices import Notifier
from talahum_dues.payload import PayloadDecodeError, coerce_int
from talahum_dues.rendering import DocumentRenderer, RenderError

logger = structlog.get_logger(__name__)

FALLBACK_RECEIPT_NUMBER = "000001"
RECEIPT_NUMBER_WIDTH = 6
PAYMENT_METHOD = "CASH"


class CaptureState(str, Enum):
    """States of a payment capture flow."""

    CLOSED = "closed"
    COLLECTING = "collecting"
    SUBMITTING = "submitting"
    RECEIPT = "receipt"


class FlowStateError(Exception):
    """An action was attempted in a state that does not allow it."""

    def __init__(self, action: str, state: CaptureState):
        super().__init__(f"Cannot {action} while flow is {state.value}")
        self.action = action
        self.state = state


def format_receipt_number(max_id: int) -> str:
    return str(max_id).zfill(RECEIPT_NUMBER_WIDTH)


async def reserve_receipt_number(client: SubscriptionsAPIClient) -> str:
    """Derive the next receipt number from the highest subscription id.

    Best-effort sequencing: two flows opened at the same time can get the
    same number. Falls back to ``FALLBACK_RECEIPT_NUMBER`` if the lookup
    fails.
    """
    try:
        records = await client.list_subscriptions()
    except (SubscriptionsAPIError, PayloadDecodeError) as e:
        logger.warning("receipt_number_fallback", error=str(e))
        return FALLBACK_RECEIPT_NUMBER

    ids = [
        coerce_int(record.get("id")) or 0
        for record in records
        if isinstance(record, dict)
    ]
    return format_receipt_number(max(ids, default=0))


def parse_amount(text: str) -> Decimal | None:
    """Parse an entered amount; None unless it is a finite number above zero."""
    try:
        amount = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def _json_number(amount: Decimal) -> int | float:
    return int(amount) if amount == amount.to_integral_value() else float(amount)


class PaymentCaptureFlow:
    """Records one payment for one subscriber and produces its receipt.

    Usage:
        flow = PaymentCaptureFlow(client, row, month, year, renderer, on_success)
        await flow.open()
        flow.set_amount("50")
        if await flow.submit():
            await flow.export_receipt()  # or await flow.dismiss()
    """

    def __init__(
        self,
        client: SubscriptionsAPIClient,
        row: PeriodRow,
        month: int,
        year: int,
        renderer: DocumentRenderer,
        on_success: Callable[[], Awaitable[Any]],
        notifier: Notifier | None = None,
        today: date | None = None,
        settings: FlatSettings | None = None,
    ):
        self._client = client
        # Frozen snapshot; the receipt shows what the operator saw at open time
        self.subscriber = row.subscriber
        self.month = month
        self.year = year
        self._renderer = renderer
        self._on_success = on_success
        self._notify = notifier or notices.ignore_notice
        self._settings = settings

        self.state = CaptureState.CLOSED
        self.receipt_number: str | None = None
        self.amount_text = ""
        self.description = ""
        self.payment_date = today or date.today()
        self.error: str | None = None
        self.draft: ReceiptDraft | None = None

        self._opened = False
        self._exporting = False
        self._finished = False

        self._logger = logger.bind(
            subscriber_id=self.subscriber.id, month=month, year=year
        )

    @property
    def is_busy(self) -> bool:
        """True while a request or export is in flight."""
        return self.state == CaptureState.SUBMITTING or self._exporting

    def _require(self, state: CaptureState, action: str) -> None:
        if self.state != state:
            raise FlowStateError(action, self.state)

    async def open(self) -> None:
        """Reserve a receipt number and start collecting input."""
        if self._opened:
            raise FlowStateError("open", self.state)
        self._opened = True
        self.receipt_number = await reserve_receipt_number(self._client)
        self.state = CaptureState.COLLECTING
        self._logger.info("payment_flow_opened", receipt_number=self.receipt_number)

    def set_amount(self, text: str) -> None:
        self._require(CaptureState.COLLECTING, "edit amount")
        self.amount_text = text

    def set_description(self, text: str) -> None:
        self._require(CaptureState.COLLECTING, "edit description")
        self.description = text

    def set_payment_date(self, value: date | str) -> bool:
        """Set the payment date from a date or an ISO ``YYYY-MM-DD`` string.

        An unparseable string keeps the previous date and reports the error.
        """
        self._require(CaptureState.COLLECTING, "edit date")
        if not isinstance(value, date):
            try:
                value = date.fromisoformat(value)
            except ValueError:
                self.error = notices.MSG_INVALID_DATE
                self._notify(notices.invalid_date())
                self._logger.info("payment_date_rejected", date_text=value)
                return False
        self.payment_date = value
        if self.error == notices.MSG_INVALID_DATE:
            self.error = None
        return True

    def cancel(self) -> None:
        """Close the flow before anything was recorded."""
        self._require(CaptureState.COLLECTING, "cancel")
        self.state = CaptureState.CLOSED
        self._finished = True
        self._logger.info("payment_flow_cancelled")

    async def submit(self) -> bool:
        """Validate the amount and record the payment.

        Returns:
            True when the payment was recorded and the receipt is ready.

        Raises:
            FlowStateError: If not collecting input (e.g. already submitting).
        """
        self._require(CaptureState.COLLECTING, "submit")

        amount = parse_amount(self.amount_text)
        if amount is None:
            self.error = notices.MSG_INVALID_AMOUNT
            self._notify(notices.invalid_amount())
            self._logger.info("payment_amount_rejected", amount_text=self.amount_text)
            return False

        self.state = CaptureState.SUBMITTING
        self.error = None
        payload = {
            "subscriber_id": self.subscriber.user_id,
            "amount": _json_number(amount),
            "month": self.month,
            "payment_method": PAYMENT_METHOD,
            "status": "paid",
            "paid_at": self.payment_date.isoformat(),
        }
        try:
            await self._client.create_subscription(payload)
        except SubscriptionsAPIError as e:
            self.state = CaptureState.COLLECTING
            notice = notices.payment_failed(e.server_message)
            self.error = notice.message
            self._notify(notice)
            self._logger.warning(
                "payment_submit_failed", status_code=e.status_code, error=str(e)
            )
            return False

        self.draft = ReceiptDraft(
            receipt_number=self.receipt_number or FALLBACK_RECEIPT_NUMBER,
            amount=amount,
            date=self.payment_date,
            subscriber=self.subscriber,
            month=self.month,
            year=self.year,
            description=self.description,
        )
        self.state = CaptureState.RECEIPT
        self._notify(notices.payment_recorded())
        self._logger.info(
            "payment_recorded",
            receipt_number=self.draft.receipt_number,
            amount=str(amount),
        )
        return True

    async def export_receipt(self) -> Path | None:
        """Render the receipt; on success the flow closes.

        A failed export keeps the flow on the receipt so it can be retried or
        dismissed. The payment itself is already recorded either way.
        """
        self._require(CaptureState.RECEIPT, "export receipt")
        if self._exporting:
            raise FlowStateError("export receipt", self.state)
        assert self.draft is not None

        self._exporting = True
        try:
            document = build_receipt_document(self.draft, self._settings)
            path = await self._renderer.render(document)
        except RenderError as e:
            self.error = notices.MSG_RECEIPT_EXPORT_FAILED
            self._notify(notices.receipt_export_failed())
            self._logger.warning("receipt_export_failed", error=str(e))
            return None
        finally:
            self._exporting = False

        self._logger.info("receipt_exported", path=str(path))
        await self._finish()
        return path

    async def dismiss(self) -> None:
        """Close the receipt without (further) exporting."""
        self._require(CaptureState.RECEIPT, "dismiss")
        if self._exporting:
            raise FlowStateError("dismiss", self.state)
        await self._finish()

    async def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self.state = CaptureState.CLOSED
        self.draft = None
        self.amount_text = ""
        self.description = ""
        self._logger.info("payment_flow_closed")
        await self._on_success()
