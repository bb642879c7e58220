"""Background worker polling the number of bookings awaiting approval."""

import logging
from datetime import datetime, timezone

from ..core.observability import metrics_collector
from ..schemas.admin import PendingBookingsCount
from ..services.admin_service import AdminService
from .base import BaseWorker

logger = logging.getLogger(__name__)


class PendingBookingsWorker(BaseWorker):
    """
    Polls GET /admin/dashboard with a service admin token.

    The latest count is kept on `latest` and published on the pending
    bookings gauge. The worker never reads or writes booking drafts.
    """

    def __init__(self, admin: AdminService, token: str, interval_seconds: float = 30):
        super().__init__(name="PendingBookings", interval_seconds=interval_seconds)
        self.admin = admin
        self.token = token
        self.latest = PendingBookingsCount()

    async def process(self) -> None:
        stats = await self.admin.dashboard(token=self.token)

        previous = self.latest.pending_bookings
        self.latest = PendingBookingsCount(
            pending_bookings=stats.pending_bookings,
            polled_at=datetime.now(timezone.utc),
        )
        metrics_collector.set_pending_bookings(stats.pending_bookings)

        if previous is not None and stats.pending_bookings > previous:
            logger.info(
                "New bookings awaiting approval",
                extra={
                    "pending_bookings": stats.pending_bookings,
                    "new": stats.pending_bookings - previous,
                    "worker": self.name,
                }
            )
