"""Build per-period rows from the subscriber payload."""

from collections.abc import Iterable
from typing import Any

import structlog

from talahum_dues.models import PeriodRow, Subscriber, SubscriptionRecord
from talahum_dues.payload import RawSubscriberItem, RawSubscriptionRecord, decode_subscriber_item

logger = structlog.get_logger(__name__)


def _to_subscriber(item: RawSubscriberItem) -> Subscriber:
    return Subscriber(
        id=item.subscriber_id,
        status=item.status,
        name=item.user.name,
        phone=item.user.phone,
        email=item.user.email,
        user_id=item.user.id,
        affiliation=item.user.affiliation,
        subscribed_at=item.subscribed_at,
    )


def _to_record(raw: RawSubscriptionRecord, month: int, year: int) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=raw.id,
        month=month,
        year=year,
        amount=raw.amount,
        status=raw.status,
        payment_method=raw.payment_method,
        paid_at=raw.paid_at,
    )


def select_period_subscription(
    item: RawSubscriberItem, month: int, year: int
) -> SubscriptionRecord | None:
    """Pick the first subscription entry recorded for ``(month, year)``."""
    matches = [s for s in item.subscriptions if s.month == month and s.year == year]
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "duplicate_period_subscription",
            subscriber_id=item.subscriber_id,
            month=month,
            year=year,
            match_count=len(matches),
            kept_id=matches[0].id,
        )
    return _to_record(matches[0], month, year)


def normalize(raw_items: Iterable[Any], month: int, year: int) -> list[PeriodRow]:
    """Turn raw subscriber items into one row per subscriber for a period.

    Items keep their order and none are dropped: a malformed item becomes a
    row with an empty subscriber and no subscription.

    Args:
        raw_items: Items of the ``GET /subscription`` response.
        month: Selected month (1-12).
        year: Selected year.

    Returns:
        Rows in input order.
    """
    rows = []
    for raw in raw_items:
        item = decode_subscriber_item(raw)
        rows.append(
            PeriodRow(
                subscriber=_to_subscriber(item),
                subscription=select_period_subscription(item, month, year),
            )
        )
    return rows
