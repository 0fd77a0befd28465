"""Tests for the payment capture flow."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from talahum_dues.api.client import SubscriptionsAPIError
from talahum_dues.notices import (
    MSG_INVALID_AMOUNT,
    MSG_INVALID_DATE,
    MSG_PAYMENT_FAILED,
    MSG_PAYMENT_RECORDED,
    NoticeLevel,
)
from talahum_dues.payment_flow import (
    FALLBACK_RECEIPT_NUMBER,
    CaptureState,
    FlowStateError,
    PaymentCaptureFlow,
    format_receipt_number,
    parse_amount,
    reserve_receipt_number,
)
from talahum_dues.rendering import RenderError


@pytest.fixture
def notices_seen():
    return []


@pytest.fixture
def on_success():
    return AsyncMock()


@pytest.fixture
def flow(mock_client, unpaid_row, mock_renderer, on_success, notices_seen, today, settings):
    return PaymentCaptureFlow(
        client=mock_client,
        row=unpaid_row,
        month=3,
        year=2024,
        renderer=mock_renderer,
        on_success=on_success,
        notifier=notices_seen.append,
        today=today,
        settings=settings,
    )


class TestReceiptNumber:
    """Tests for receipt number reservation."""

    def test_format_pads_to_six_digits(self):
        assert format_receipt_number(42) == "000042"
        assert format_receipt_number(1234567) == "1234567"

    @pytest.mark.asyncio
    async def test_uses_highest_existing_id(self, mock_client):
        mock_client.list_subscriptions.return_value = [{"id": 3}, {"id": "17"}, {"id": 9}]

        assert await reserve_receipt_number(mock_client) == "000017"

    @pytest.mark.asyncio
    async def test_no_subscriptions_yet(self, mock_client):
        mock_client.list_subscriptions.return_value = []

        assert await reserve_receipt_number(mock_client) == "000000"

    @pytest.mark.asyncio
    async def test_falls_back_when_lookup_fails(self, mock_client):
        mock_client.list_subscriptions.side_effect = SubscriptionsAPIError("Request failed")

        assert await reserve_receipt_number(mock_client) == FALLBACK_RECEIPT_NUMBER


class TestParseAmount:
    """Tests for amount validation."""

    @pytest.mark.parametrize("text", ["", "0", "-5", "abc", "NaN", "Infinity", "  "])
    def test_rejects_invalid(self, text):
        assert parse_amount(text) is None

    def test_accepts_positive(self):
        assert parse_amount(" 50.25 ") == Decimal("50.25")


class TestOpen:
    """Tests for opening a flow."""

    @pytest.mark.asyncio
    async def test_open_reserves_number(self, flow, mock_client):
        mock_client.list_subscriptions.return_value = [{"id": 41}]

        await flow.open()

        assert flow.state is CaptureState.COLLECTING
        assert flow.receipt_number == "000041"
        assert flow.payment_date == date(2024, 3, 15)

    @pytest.mark.asyncio
    async def test_open_survives_lookup_failure(self, flow, mock_client):
        mock_client.list_subscriptions.side_effect = SubscriptionsAPIError("Request failed")

        await flow.open()

        assert flow.state is CaptureState.COLLECTING
        assert flow.receipt_number == "000001"

    @pytest.mark.asyncio
    async def test_open_twice_is_rejected(self, flow):
        await flow.open()

        with pytest.raises(FlowStateError):
            await flow.open()

    @pytest.mark.asyncio
    async def test_cancel_closes_without_refresh(self, flow, on_success, mock_client):
        await flow.open()

        flow.cancel()

        assert flow.state is CaptureState.CLOSED
        on_success.assert_not_awaited()
        mock_client.create_subscription.assert_not_awaited()


class TestSubmit:
    """Tests for submitting a payment."""

    @pytest.mark.asyncio
    async def test_zero_amount_makes_no_request(self, flow, mock_client, notices_seen):
        await flow.open()
        flow.set_amount("0")

        assert await flow.submit() is False

        mock_client.create_subscription.assert_not_awaited()
        assert flow.state is CaptureState.COLLECTING
        assert flow.error == MSG_INVALID_AMOUNT
        assert notices_seen[-1].level is NoticeLevel.ERROR
        assert notices_seen[-1].message == MSG_INVALID_AMOUNT

    @pytest.mark.asyncio
    async def test_success_moves_to_receipt(self, flow, mock_client, subscriber, notices_seen):
        mock_client.list_subscriptions.return_value = [{"id": 41}]
        await flow.open()
        flow.set_amount("50")
        flow.set_description("اشتراك مارس")
        flow.set_payment_date("2024-03-10")

        assert await flow.submit() is True

        mock_client.create_subscription.assert_awaited_once_with(
            {
                "subscriber_id": 42,
                "amount": 50,
                "month": 3,
                "payment_method": "CASH",
                "status": "paid",
                "paid_at": "2024-03-10",
            }
        )
        assert flow.state is CaptureState.RECEIPT
        assert flow.draft.receipt_number == "000041"
        assert flow.draft.amount == Decimal("50")
        assert flow.draft.date == date(2024, 3, 10)
        assert flow.draft.subscriber == subscriber
        assert notices_seen[-1].message == MSG_PAYMENT_RECORDED

    @pytest.mark.asyncio
    async def test_fractional_amount_is_sent_as_float(self, flow, mock_client):
        await flow.open()
        flow.set_amount("12.5")

        await flow.submit()

        assert mock_client.create_subscription.call_args.args[0]["amount"] == 12.5

    @pytest.mark.asyncio
    async def test_failure_returns_to_collecting_with_server_message(
        self, flow, mock_client, notices_seen
    ):
        mock_client.create_subscription.side_effect = SubscriptionsAPIError(
            "API error: 422", status_code=422, details={"error": "تم الدفع مسبقا"}
        )
        await flow.open()
        flow.set_amount("50")

        assert await flow.submit() is False

        assert flow.state is CaptureState.COLLECTING
        assert flow.error == "تم الدفع مسبقا"
        assert flow.amount_text == "50"
        assert notices_seen[-1].message == "تم الدفع مسبقا"

    @pytest.mark.asyncio
    async def test_failure_without_server_message(self, flow, mock_client):
        mock_client.create_subscription.side_effect = SubscriptionsAPIError("Request failed")
        await flow.open()
        flow.set_amount("50")

        await flow.submit()

        assert flow.error == MSG_PAYMENT_FAILED

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, flow, mock_client):
        mock_client.create_subscription.side_effect = [
            SubscriptionsAPIError("Request failed"),
            {"message": "ok"},
        ]
        await flow.open()
        flow.set_amount("50")

        assert await flow.submit() is False
        assert await flow.submit() is True
        assert flow.state is CaptureState.RECEIPT

    @pytest.mark.asyncio
    async def test_second_submit_while_in_flight_is_rejected(self, flow, mock_client):
        release = asyncio.Event()

        async def slow_create(payload):
            await release.wait()
            return {}

        mock_client.create_subscription.side_effect = slow_create
        await flow.open()
        flow.set_amount("50")

        first = asyncio.create_task(flow.submit())
        await asyncio.sleep(0)
        assert flow.state is CaptureState.SUBMITTING
        assert flow.is_busy

        with pytest.raises(FlowStateError):
            await flow.submit()

        release.set()
        assert await first is True
        assert mock_client.create_subscription.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_date_is_rejected_locally(self, flow, mock_client, notices_seen):
        await flow.open()
        flow.set_payment_date("2024-03-10")

        assert flow.set_payment_date("2024-13-40") is False

        assert flow.state is CaptureState.COLLECTING
        assert flow.payment_date == date(2024, 3, 10)
        assert flow.error == MSG_INVALID_DATE
        assert notices_seen[-1].level is NoticeLevel.ERROR
        assert notices_seen[-1].message == MSG_INVALID_DATE

        assert flow.set_payment_date("2024-03-11") is True
        assert flow.error is None
        flow.set_amount("50")
        await flow.submit()
        assert mock_client.create_subscription.call_args.args[0]["paid_at"] == "2024-03-11"

    @pytest.mark.asyncio
    async def test_inputs_locked_outside_collecting(self, flow):
        with pytest.raises(FlowStateError):
            flow.set_amount("10")


class TestReceipt:
    """Tests for the receipt state."""

    async def _to_receipt(self, flow):
        await flow.open()
        flow.set_amount("50")
        assert await flow.submit() is True

    @pytest.mark.asyncio
    async def test_export_success_closes_and_refreshes(
        self, flow, mock_renderer, on_success, tmp_path
    ):
        await self._to_receipt(flow)

        path = await flow.export_receipt()

        assert path == tmp_path / f"سند_دفع_{flow.receipt_number}.pdf"
        document = mock_renderer.render.call_args.args[0]
        assert document.filename == path.name
        assert flow.state is CaptureState.CLOSED
        on_success.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_export_failure_keeps_receipt_and_payment(
        self, flow, mock_client, mock_renderer, on_success, notices_seen
    ):
        await self._to_receipt(flow)
        mock_renderer.render.side_effect = RenderError("disk full")

        assert await flow.export_receipt() is None

        assert flow.state is CaptureState.RECEIPT
        assert notices_seen[-1].level is NoticeLevel.ERROR
        on_success.assert_not_awaited()
        assert mock_client.create_subscription.await_count == 1

    @pytest.mark.asyncio
    async def test_dismiss_after_failed_export_refreshes_once(
        self, flow, mock_client, mock_renderer, on_success
    ):
        await self._to_receipt(flow)
        mock_renderer.render.side_effect = RenderError("disk full")
        await flow.export_receipt()

        await flow.dismiss()

        assert flow.state is CaptureState.CLOSED
        on_success.assert_awaited_once()
        assert mock_client.create_subscription.await_count == 1

    @pytest.mark.asyncio
    async def test_dismiss_without_export_refreshes_once(self, flow, on_success):
        await self._to_receipt(flow)

        await flow.dismiss()

        on_success.assert_awaited_once()
        with pytest.raises(FlowStateError):
            await flow.dismiss()
        on_success.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_receipt_number_stable_through_flow(self, flow, mock_client):
        mock_client.list_subscriptions.return_value = [{"id": 5}]
        await flow.open()
        mock_client.list_subscriptions.return_value = [{"id": 99}]
        flow.set_amount("50")

        await flow.submit()

        assert flow.draft.receipt_number == "000005"
        assert mock_client.list_subscriptions.await_count == 1
