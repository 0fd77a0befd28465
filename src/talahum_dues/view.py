"""Monthly subscriptions view: the owner of the period rows."""

from datetime import date
from pathlib import Path

import structlog

from talahum_dues import notices
from talahum_dues.aggregator import normalize
from talahum_dues.api.client import SubscriptionsAPIClient, SubscriptionsAPIError
from talahum_dues.config.settings import FlatSettings
from talahum_dues.documents import build_period_summary_document
from talahum_dues.models import PeriodRow
from talahum_dues.notices import Notifier
from talahum_dues.payload import PayloadDecodeError
from talahum_dues.payment_flow import PaymentCaptureFlow
from talahum_dues.rendering import DocumentRenderer, PdfDocumentRenderer, RenderError
from talahum_dues.summary import PeriodSummary, summarize

logger = structlog.get_logger(__name__)


class SubscriptionsView:
    """Loads a period's rows and exposes what the dues screen needs.

    Only the latest requested period may update the rows: every load takes a
    generation number and a response that arrives after a newer load started
    is dropped. ``month`` and ``year`` always name the period of the rows
    held; ``requested_month`` and ``requested_year`` the latest load call.

    Usage:
        view = SubscriptionsView(client)
        await view.load(3, 2024)
        view.summary
        flow = view.start_payment(view.rows[0])
    """

    def __init__(
        self,
        client: SubscriptionsAPIClient,
        renderer: DocumentRenderer | None = None,
        notifier: Notifier | None = None,
        today: date | None = None,
        settings: FlatSettings | None = None,
    ):
        self._client = client
        self._renderer = renderer
        self._notify = notifier or notices.ignore_notice
        self._today = today
        self._settings = settings

        current = today or date.today()
        self.month = current.month
        self.year = current.year
        self.requested_month = self.month
        self.requested_year = self.year

        self._rows: list[PeriodRow] = []
        self._generation = 0
        self.loading = False
        self.exporting = False

        self._logger = logger.bind(component="subscriptions_view")

    @property
    def rows(self) -> list[PeriodRow]:
        """Rows of the displayed period."""
        return self._rows.copy()

    @property
    def summary(self) -> PeriodSummary:
        """Counters recomputed from the current rows."""
        return summarize(self._rows)

    @property
    def renderer(self) -> DocumentRenderer:
        if self._renderer is None:
            self._renderer = PdfDocumentRenderer()
        return self._renderer

    async def load(self, month: int | None = None, year: int | None = None) -> bool:
        """Fetch and normalize the rows of a period.

        Returns:
            True if the rows were replaced, False on failure or a stale result.
        """
        month = self.month if month is None else month
        year = self.year if year is None else year
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        self._generation += 1
        generation = self._generation
        self.requested_month, self.requested_year = month, year
        self.loading = True

        try:
            raw_items = await self._client.list_period_subscribers(month, year)
        except (SubscriptionsAPIError, PayloadDecodeError) as e:
            if generation != self._generation:
                self._logger.debug("stale_period_error_discarded", month=month, year=year)
                return False
            self._notify(notices.load_failed())
            self._logger.warning("period_load_failed", month=month, year=year, error=str(e))
            return False
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            self._logger.debug("stale_period_response_discarded", month=month, year=year)
            return False

        # The displayed period only moves together with its rows
        self._rows = normalize(raw_items, month, year)
        self.month, self.year = month, year
        self._logger.info("period_loaded", month=month, year=year, rows=len(self._rows))
        return True

    async def refresh(self) -> bool:
        """Reload the displayed period."""
        return await self.load(self.month, self.year)

    def start_payment(self, row: PeriodRow) -> PaymentCaptureFlow:
        """Create a capture flow for an unpaid row; call ``open()`` on it next."""
        if row.is_paid:
            raise ValueError(f"Subscriber {row.subscriber.id} already paid for this period")
        return PaymentCaptureFlow(
            client=self._client,
            row=row,
            month=self.month,
            year=self.year,
            renderer=self.renderer,
            on_success=self.refresh,
            notifier=self._notify,
            today=self._today,
            settings=self._settings,
        )

    async def export_summary(self) -> Path | None:
        """Export the displayed period as a document.

        Returns None if the export failed or another export is running.
        """
        if self.exporting:
            self._logger.warning("summary_export_already_running")
            return None

        self.exporting = True
        try:
            document = build_period_summary_document(
                self._rows,
                self.month,
                self.year,
                summary=self.summary,
                generated_on=self._today,
                settings=self._settings,
            )
            path = await self.renderer.render(document)
        except RenderError as e:
            self._notify(notices.summary_export_failed())
            self._logger.warning("summary_export_failed", error=str(e))
            return None
        finally:
            self.exporting = False

        self._notify(notices.summary_exported())
        self._logger.info("summary_exported", path=str(path))
        return path
