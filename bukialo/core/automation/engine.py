"""Automation engine for executing automations."""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from bukialo.core.automation.action_executor import ActionExecutor
from bukialo.core.automation.errors import (
    AutomationConfigurationError,
    AutomationInactiveError,
    AutomationNotFoundError,
    ExecutionRecordingError,
)
from bukialo.core.automation.handlers import ActionHandlers
from bukialo.core.automation.recorder import ExecutionRecorder
from bukialo.core.automation.scheduler import DelayScheduler
from bukialo.core.automation.types import ActionLogEntry, ExecutionResult, json_safe
from bukialo.core.clock import Clock, SystemClock
from bukialo.core.config_file import Settings, get_settings
from bukialo.core.messaging.gateway import MessageGateway, TemplateMessageGateway
from bukialo.models.automation import ExecutionStatus
from bukialo.models.task import TaskPriority
from bukialo.repositories.automation_repository import AutomationRepository
from bukialo.repositories.contact_repository import ContactRepository
from bukialo.repositories.message_repository import MessageRepository
from bukialo.repositories.task_repository import TaskRepository
from bukialo.repositories.trip_repository import TripRepository
from bukialo.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class AutomationEngine:
    """Engine for executing automations.

    The engine assumes the caller already decided the automation should fire
    (see TriggerHandler). It refuses missing or inactive automations, opens an
    execution record, runs every action in order and closes the record.
    """

    def __init__(
        self,
        repository: AutomationRepository,
        executor: ActionExecutor,
        recorder: ExecutionRecorder,
        clock: Clock,
    ):
        """Initialize automation engine.

        Args:
            repository: Automation lookups
            executor: Action executor
            recorder: Execution recorder
            clock: Time source
        """
        self.repository = repository
        self.executor = executor
        self.recorder = recorder
        self.clock = clock

    @classmethod
    def from_session(
        cls,
        db: Session,
        clock: Clock | None = None,
        settings: Settings | None = None,
        message_gateway: MessageGateway | None = None,
    ) -> "AutomationEngine":
        """Build an engine backed by the SQLAlchemy repositories.

        Args:
            db: Database session
            clock: Time source (defaults to SystemClock)
            settings: Settings (defaults to cached settings)
            message_gateway: Message gateway (defaults to TemplateMessageGateway)

        Returns:
            Wired AutomationEngine
        """
        settings = settings or get_settings()
        clock = clock or SystemClock()
        automations = AutomationRepository(db)
        messages = message_gateway or TemplateMessageGateway(MessageRepository(db))

        handlers = ActionHandlers(
            contacts=ContactRepository(db),
            tasks=TaskRepository(db),
            trips=TripRepository(db),
            users=UserRepository(db),
            messages=messages,
            clock=clock,
            default_task_priority=TaskPriority(settings.AUTOMATION_DEFAULT_TASK_PRIORITY),
        )
        executor = ActionExecutor(
            handlers,
            DelayScheduler(automations, clock),
            clock,
            on_action_failure=db.rollback,
        )
        recorder = ExecutionRecorder(automations, clock, on_failure=db.rollback)
        return cls(automations, executor, recorder, clock)

    def _elapsed_ms(self, started: datetime) -> int:
        return max(int((self.clock.now() - started).total_seconds() * 1000), 0)

    async def execute(
        self, automation_id: UUID, payload: dict[str, Any] | None = None
    ) -> ExecutionResult:
        """Execute an automation for one trigger payload.

        Args:
            automation_id: Automation to execute
            payload: Trigger payload (must carry the identifiers the actions need)

        Returns:
            ExecutionResult. success is False only for configuration or
            recording failures; per-action failures live in actions_executed.
        """
        started = self.clock.now()
        payload = json_safe(payload or {})

        # Configuration checks, no execution record exists yet
        try:
            automation = self.repository.get_automation_by_id(automation_id)
            if automation is None:
                raise AutomationNotFoundError(automation_id)
            if not automation.is_active:
                raise AutomationInactiveError(automation_id)
            actions = list(automation.actions)
            self.executor.validate(actions)
        except AutomationConfigurationError as e:
            logger.warning(f"Automation {automation_id} not executed: {e}")
            return ExecutionResult(
                automation_id=automation_id,
                success=False,
                error=str(e),
                duration_ms=self._elapsed_ms(started),
            )
        except Exception as e:
            logger.error(f"Failed to load automation {automation_id}: {e}", exc_info=True)
            return ExecutionResult(
                automation_id=automation_id,
                success=False,
                error=str(e),
                duration_ms=self._elapsed_ms(started),
            )

        try:
            execution_id = self.recorder.open(automation_id, payload, started_at=started)
        except ExecutionRecordingError as e:
            logger.error(f"Automation {automation_id} not executed: {e}", exc_info=True)
            return ExecutionResult(
                automation_id=automation_id,
                success=False,
                error=str(e),
                duration_ms=self._elapsed_ms(started),
            )

        log: list[ActionLogEntry] = []
        try:
            log = await self.executor.execute(
                actions, payload, execution_id, started_at=started
            )
            self.recorder.close(execution_id, ExecutionStatus.COMPLETED, log)
        except Exception as e:
            logger.error(
                f"Execution {execution_id} of automation {automation_id} failed: {e}",
                exc_info=True,
            )
            self.recorder.mark_failed(execution_id, str(e), log)
            return ExecutionResult(
                automation_id=automation_id,
                success=False,
                execution_id=execution_id,
                actions_executed=log,
                error=str(e),
                duration_ms=self._elapsed_ms(started),
            )

        result = ExecutionResult(
            automation_id=automation_id,
            success=True,
            execution_id=execution_id,
            actions_executed=log,
            duration_ms=self._elapsed_ms(started),
        )
        logger.info(
            f"Executed automation {automation_id}: {result.executed_count}/{len(log)} "
            f"actions completed in {result.duration_ms} ms"
        )
        return result
