"""Talahum dues - monthly subscription reconciliation and cash receipts."""

__version__ = "0.1.0"

from talahum_dues.aggregator import normalize
from talahum_dues.api import (
    AuthenticationError,
    FileTokenProvider,
    StaticTokenProvider,
    SubscriptionsAPIClient,
    SubscriptionsAPIError,
)
from talahum_dues.config import configure_logging, get_settings
from talahum_dues.models import (
    MemberType,
    PaymentStatus,
    PeriodRow,
    ReceiptDraft,
    Subscriber,
    SubscriptionRecord,
)
from talahum_dues.notices import Notice, NoticeLevel
from talahum_dues.payment_flow import CaptureState, FlowStateError, PaymentCaptureFlow
from talahum_dues.rendering import DocumentRenderer, PdfDocumentRenderer, RenderError
from talahum_dues.summary import PeriodSummary, summarize
from talahum_dues.view import SubscriptionsView

__all__ = [
    # Version
    "__version__",
    # Core
    "normalize",
    "summarize",
    "PeriodSummary",
    "PaymentCaptureFlow",
    "CaptureState",
    "FlowStateError",
    "SubscriptionsView",
    # Models
    "Subscriber",
    "SubscriptionRecord",
    "PeriodRow",
    "ReceiptDraft",
    "MemberType",
    "PaymentStatus",
    # API
    "SubscriptionsAPIClient",
    "SubscriptionsAPIError",
    "AuthenticationError",
    "StaticTokenProvider",
    "FileTokenProvider",
    # Rendering & notices
    "DocumentRenderer",
    "PdfDocumentRenderer",
    "RenderError",
    "Notice",
    "NoticeLevel",
    # Config
    "get_settings",
    "configure_logging",
]
