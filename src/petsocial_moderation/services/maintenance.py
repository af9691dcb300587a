"""Scheduled sweeps: audit queue replay and soft-delete retention.

The sweeps are normally triggered by cron through
``python -m petsocial_moderation.scripts.sweeps``. The :class:`MaintenanceWorker`
can run them in-process instead when ``MAINTENANCE_WORKER_ENABLED`` is set.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petsocial_moderation.core.settings import settings
from petsocial_moderation.services.audit_queue import AuditQueueProcessor
from petsocial_moderation.services.retention import RetentionManager

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Counts produced by one maintenance pass."""

    audit_entries_replayed: int = 0
    soft_deletes_purged: int = 0


def run_audit_queue_sweep(db: Session) -> int:
    return AuditQueueProcessor(db).process_audit_queue()


def run_retention_sweep(db: Session) -> int:
    return RetentionManager(db).cleanup_expired_soft_deletes()


def run_all_sweeps(db: Session) -> SweepReport:
    return SweepReport(
        audit_entries_replayed=run_audit_queue_sweep(db),
        soft_deletes_purged=run_retention_sweep(db),
    )


class MaintenanceWorker:
    """Periodically runs both sweeps in the background.

    Each pass opens its own session; a failing pass is logged and retried on
    the next tick.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            session_factory: Callable returning a new session. Defaults to SessionLocal.
            interval_seconds: Delay between passes. Defaults to the configured interval.
        """
        if session_factory is None:
            from petsocial_moderation.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self.interval = max(
            0.1, float(interval_seconds or settings.maintenance_interval_seconds)
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background loop and wait for the current pass to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def run_once(self) -> SweepReport:
        with self._session_factory() as db:
            report = run_all_sweeps(db)
        logger.info(
            "Maintenance pass replayed %d audit entries, purged %d soft deletes",
            report.audit_entries_replayed,
            report.soft_deletes_purged,
        )
        return report

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(self.run_once)
            except SQLAlchemyError as e:
                logger.warning("MaintenanceWorker encountered database error: %s", e)
            except Exception:
                logger.exception("MaintenanceWorker pass failed")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue
