"""Decoding of the loosely typed subscription payloads returned by the API.

The dashboard API mixes numbers and strings freely (``month: "3"``,
``phone: 777123456``) and occasionally omits fields. These models coerce what
they can and fall back to empty values for the rest, so one bad record never
prevents the list from loading. A broken envelope (``data`` that is not a
list) is reported as a ``PayloadDecodeError`` instead.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = structlog.get_logger(__name__)


class PayloadDecodeError(Exception):
    """The response envelope does not have the expected shape."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


def coerce_int(value: Any) -> int | None:
    """Coerce an int-like value (``3``, ``"3"``, ``"03"``, ``3.0``) or return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def coerce_amount(value: Any) -> Decimal:
    """Coerce a currency amount; anything unparseable counts as zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not number.is_finite():
        return Decimal("0")
    return number


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


class RawSubscriptionRecord(BaseModel):
    """One historical subscription/payment entry of a subscriber."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    month: int | None = None
    year: int | None = None
    amount: Decimal = Decimal("0")
    status: str = ""
    payment_method: str | None = None
    paid_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def merge_paid_at(cls, data: Any) -> Any:
        # Older endpoints send camelCase paidAt
        if isinstance(data, dict) and data.get("paid_at") is None and "paidAt" in data:
            data = {**data, "paid_at": data["paidAt"]}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> int:
        return coerce_int(value) or 0

    @field_validator("month", "year", mode="before")
    @classmethod
    def coerce_period(cls, value: Any) -> int | None:
        return coerce_int(value)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount_value(cls, value: Any) -> Decimal:
        return coerce_amount(value)

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, value: Any) -> str:
        return _text(value).lower()

    @field_validator("payment_method", "paid_at", mode="before")
    @classmethod
    def coerce_optional(cls, value: Any) -> str | None:
        return _optional_text(value)


class RawUser(BaseModel):
    """The user account attached to a subscriber."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    name: str = ""
    email: str = ""
    phone: str = ""
    affiliation: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> int:
        return coerce_int(value) or 0

    @field_validator("name", "email", "phone", "affiliation", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _text(value)


class RawSubscriberItem(BaseModel):
    """One item of ``GET /subscription``."""

    model_config = ConfigDict(extra="ignore")

    subscriber_id: int = 0
    status: str = ""
    subscribed_at: str | None = None
    user: RawUser = Field(default_factory=RawUser)
    subscriptions: list[RawSubscriptionRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def pick_subscriber_id(cls, data: Any) -> Any:
        if isinstance(data, dict):
            subscriber_id = data.get("Subscriber_Id")
            if subscriber_id is None:
                subscriber_id = data.get("id")
            data = {**data, "subscriber_id": subscriber_id}
        return data

    @field_validator("subscriber_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> int:
        return coerce_int(value) or 0

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> str:
        return _text(value)

    @field_validator("subscribed_at", mode="before")
    @classmethod
    def coerce_subscribed_at(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("user", mode="before")
    @classmethod
    def user_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("subscriptions", mode="before")
    @classmethod
    def subscription_entries(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]


def decode_subscriber_item(raw: Any) -> RawSubscriberItem:
    """Decode one subscriber item, degrading to an empty item on failure."""
    try:
        return RawSubscriberItem.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            "malformed_subscriber_item",
            item_type=type(raw).__name__,
            error_count=e.error_count(),
        )
        return RawSubscriberItem()


def extract_data(envelope: Any) -> list[Any]:
    """Return the ``data`` list of a ``{"data": [...]}`` envelope.

    A missing envelope or missing ``data`` means an empty list.

    Raises:
        PayloadDecodeError: If the envelope or its ``data`` has the wrong type.
    """
    if envelope is None:
        return []
    if not isinstance(envelope, dict):
        raise PayloadDecodeError(
            f"Expected an object envelope, got {type(envelope).__name__}",
            payload=envelope,
        )
    data = envelope.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise PayloadDecodeError(
            f"Expected 'data' to be a list, got {type(data).__name__}",
            payload=envelope,
        )
    return data
