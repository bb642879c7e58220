"""Worker manager for coordinating background tasks."""

import asyncio
import logging
from typing import Dict

from .base import BaseWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """
    Manages background workers for the application.

    Coordinates starting, stopping, and monitoring of the registered workers.
    """

    def __init__(self):
        self.workers: Dict[str, BaseWorker] = {}

    def register(self, name: str, worker: BaseWorker) -> None:
        if name in self.workers:
            raise ValueError(f"Worker {name} is already registered")
        self.workers[name] = worker

    async def start_all(self) -> None:
        """Start all workers."""
        for name, worker in self.workers.items():
            await worker.start()
            logger.info(f"Started worker: {name}")

        logger.info(f"Started {len(self.workers)} workers")

    async def stop_all(self) -> None:
        """Stop all workers gracefully."""
        names = list(self.workers)
        results = await asyncio.gather(
            *(self.workers[name].stop() for name in names), return_exceptions=True
        )

        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.error(f"Error stopping worker {name}: {result!s}")
            else:
                logger.info(f"Stopped worker: {name}")

    def get_worker(self, name: str) -> BaseWorker:
        """
        Get a specific worker by name.

        Raises:
            KeyError: If worker not found
        """
        return self.workers[name]

    def get_worker_status(self) -> Dict[str, bool]:
        """Running status of every worker, by name."""
        return {name: worker.running for name, worker in self.workers.items()}
