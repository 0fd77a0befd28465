"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from talahum_dues.api.client import SubscriptionsAPIClient
from talahum_dues.config.settings import FlatSettings, get_settings
from talahum_dues.models import PeriodRow, Subscriber, SubscriptionRecord


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    for name in (
        "TALAHUM_API_URL",
        "TALAHUM_API_TOKEN",
        "TALAHUM_TOKEN_FILE",
        "TALAHUM_TIMEOUT",
        "EXPORT_DIR",
        "PDF_FONT_PATH",
        "CURRENCY_LABEL",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path):
    """Settings with exports going to a temporary directory."""
    return FlatSettings(EXPORT_DIR=tmp_path / "exports")


@pytest.fixture
def today():
    return date(2024, 3, 15)


@pytest.fixture
def mock_client():
    """A SubscriptionsAPIClient with its endpoint methods mocked."""
    client = MagicMock(spec=SubscriptionsAPIClient)
    client.list_period_subscribers = AsyncMock(return_value=[])
    client.list_subscriptions = AsyncMock(return_value=[])
    client.create_subscription = AsyncMock(return_value={"message": "ok"})
    return client


@pytest.fixture
def mock_renderer(tmp_path):
    """A renderer that pretends to write files into tmp_path."""
    renderer = MagicMock()

    async def render(document):
        return Path(tmp_path) / document.filename

    renderer.render = AsyncMock(side_effect=render)
    return renderer


@pytest.fixture
def subscriber():
    return Subscriber(
        id=7,
        status="active",
        name="أحمد علي",
        phone="777123456",
        email="ahmed@example.com",
        user_id=42,
    )


@pytest.fixture
def unpaid_row(subscriber):
    return PeriodRow(subscriber=subscriber, subscription=None)


@pytest.fixture
def paid_row(subscriber):
    return PeriodRow(
        subscriber=subscriber,
        subscription=SubscriptionRecord(
            id=11,
            month=3,
            year=2024,
            amount=Decimal("50"),
            status="paid",
            payment_method="CASH",
            paid_at="2024-03-02",
        ),
    )


@pytest.fixture
def mock_period_response():
    """Mock GET /subscription response for March 2024."""
    return {
        "data": [
            {
                "Subscriber_Id": 1,
                "status": "active",
                "subscribed_at": "2023-01-10",
                "user": {
                    "id": 101,
                    "name": "محمد سعيد",
                    "email": "m@example.com",
                    "phone": 777000111,
                },
                "subscriptions": [
                    {
                        "id": 5,
                        "amount": "50",
                        "month": "2",
                        "year": 2024,
                        "status": "paid",
                        "paid_at": "2024-02-03",
                    },
                    {
                        "id": 9,
                        "amount": 50,
                        "month": 3,
                        "year": "2024",
                        "status": "Paid",
                        "payment_method": "CASH",
                        "paidAt": "2024-03-04",
                    },
                ],
            },
            {
                "id": 2,
                "status": "inactive",
                "user": {"id": 102, "name": "خالد", "email": "k@example.com", "phone": "733"},
                "subscriptions": [
                    {"id": 10, "amount": 0, "month": 3, "year": 2024, "status": "pending"},
                ],
            },
            {
                "id": 3,
                "status": "active",
                "user": {"id": 103, "name": "سالم", "phone": "711"},
                "subscriptions": None,
            },
        ]
    }
