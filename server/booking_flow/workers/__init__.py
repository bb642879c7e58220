"""Background workers for the booking flow service."""

from .manager import WorkerManager
from .pending_bookings_worker import PendingBookingsWorker

__all__ = ["PendingBookingsWorker", "WorkerManager"]
