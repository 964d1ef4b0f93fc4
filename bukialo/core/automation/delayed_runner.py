"""Background runner for deferred actions."""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from bukialo.core.automation.engine import AutomationEngine
from bukialo.core.automation.types import json_safe
from bukialo.core.clock import Clock, SystemClock
from bukialo.core.config_file import Settings, get_settings
from bukialo.models.automation import ScheduledAction, ScheduledActionStatus
from bukialo.repositories.automation_repository import AutomationRepository

logger = logging.getLogger(__name__)


class DelayedActionRunner:
    """Polls for deferred actions that are due and runs them.

    Single-process and best-effort: rows are not locked, so two runners
    against the same database may both pick up a row.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        settings: Settings | None = None,
        batch_size: int = 100,
    ):
        """Initialize delayed action runner.

        Args:
            session_factory: Creates a new database session per polling round
            clock: Time source (defaults to SystemClock)
            settings: Settings (defaults to cached settings)
            batch_size: Max rows handled per polling round
        """
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.poll_seconds = self.settings.AUTOMATION_DELAYED_POLL_SECONDS
        self.batch_size = batch_size
        self._running = False
        self._task: asyncio.Task | None = None

    async def run_due(self) -> int:
        """Run every pending deferred action whose time has come.

        Returns:
            Number of deferred actions handled
        """
        db = self.session_factory()
        try:
            engine = AutomationEngine.from_session(
                db, clock=self.clock, settings=self.settings
            )
            repository = engine.repository
            due = repository.get_due_scheduled_actions(self.clock.now(), self.batch_size)
            for scheduled in due:
                await self._run_one(db, engine, repository, scheduled)
            if due:
                logger.info(f"Processed {len(due)} deferred actions")
            return len(due)
        finally:
            db.close()

    async def _run_one(
        self,
        db: Session,
        engine: AutomationEngine,
        repository: AutomationRepository,
        scheduled: ScheduledAction,
    ) -> None:
        if not scheduled.automation.is_active:
            repository.update_scheduled_action(
                scheduled,
                {
                    "status": ScheduledActionStatus.CANCELLED.value,
                    "error": "Automation is not active",
                    "processed_at": self.clock.now(),
                },
            )
            logger.info(f"Cancelled deferred action {scheduled.id}: automation inactive")
            return

        try:
            result = await engine.executor.run_action(
                scheduled.action, scheduled.trigger_payload or {}
            )
        except Exception as e:
            logger.error(f"Deferred action {scheduled.id} failed: {e}", exc_info=True)
            db.rollback()
            repository.update_scheduled_action(
                scheduled,
                {
                    "status": ScheduledActionStatus.FAILED.value,
                    "error": str(e),
                    "processed_at": self.clock.now(),
                },
            )
            return

        repository.update_scheduled_action(
            scheduled,
            {
                "status": ScheduledActionStatus.COMPLETED.value,
                "result": json_safe(result),
                "processed_at": self.clock.now(),
            },
        )
        logger.info(f"Executed deferred action {scheduled.id} ({scheduled.action.action_type})")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_due()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in deferred action runner: {e}", exc_info=True)
            try:
                await asyncio.sleep(self.poll_seconds)
            except asyncio.CancelledError:
                break

    async def start(self) -> None:
        """Start polling in the background."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Deferred action runner started (every {self.poll_seconds}s)")

    async def stop(self) -> None:
        """Stop polling and wait for the current round to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("Deferred action runner stopped")
