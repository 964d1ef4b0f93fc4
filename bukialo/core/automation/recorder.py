"""Execution recorder: one AutomationExecution row per engine run."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from bukialo.core.automation.errors import ExecutionRecordingError
from bukialo.core.automation.types import ActionLogEntry
from bukialo.core.clock import Clock
from bukialo.models.automation import AutomationExecution, ExecutionStatus

logger = logging.getLogger(__name__)


class ExecutionStore(Protocol):
    def create_execution(self, execution_data: dict) -> AutomationExecution: ...

    def update_execution(
        self, execution_id: UUID, execution_data: dict
    ) -> AutomationExecution | None: ...


class ExecutionRecorder:
    """Opens and closes execution records."""

    def __init__(
        self,
        store: ExecutionStore,
        clock: Clock,
        on_failure: Callable[[], None] | None = None,
    ):
        """Initialize execution recorder.

        Args:
            store: Persistence for execution records
            clock: Time source for startedAt/completedAt
            on_failure: Called when a write fails (e.g. session rollback)
        """
        self.store = store
        self.clock = clock
        self.on_failure = on_failure

    def _failed(self) -> None:
        if self.on_failure:
            self.on_failure()

    def open(
        self,
        automation_id: UUID,
        payload: dict[str, Any],
        started_at: datetime | None = None,
    ) -> UUID:
        """Create a running execution record.

        Args:
            automation_id: Automation being executed
            payload: Trigger payload stored as triggered_by
            started_at: Execution start (defaults to now)

        Returns:
            ID of the new execution record

        Raises:
            ExecutionRecordingError: If the record cannot be written
        """
        try:
            execution = self.store.create_execution(
                {
                    "automation_id": automation_id,
                    "triggered_by": payload,
                    "status": ExecutionStatus.RUNNING.value,
                    "started_at": started_at or self.clock.now(),
                    "actions_executed": [],
                }
            )
        except Exception as e:
            self._failed()
            raise ExecutionRecordingError(f"Failed to open execution record: {e}") from e
        return execution.id

    def close(
        self,
        execution_id: UUID,
        status: ExecutionStatus,
        actions_executed: list[ActionLogEntry],
        error: str | None = None,
    ) -> None:
        """Move an execution record to its terminal status.

        Raises:
            ExecutionRecordingError: If the record cannot be written or is gone
        """
        try:
            execution = self.store.update_execution(
                execution_id,
                {
                    "status": status.value,
                    "completed_at": self.clock.now(),
                    "actions_executed": [entry.to_dict() for entry in actions_executed],
                    "error": error,
                },
            )
        except Exception as e:
            self._failed()
            raise ExecutionRecordingError(f"Failed to close execution record: {e}") from e
        if execution is None:
            raise ExecutionRecordingError(f"Execution record {execution_id} not found")

    def mark_failed(
        self,
        execution_id: UUID,
        error: str,
        actions_executed: list[ActionLogEntry] | None = None,
    ) -> None:
        """Best-effort close with status failed; never raises."""
        try:
            self.close(execution_id, ExecutionStatus.FAILED, actions_executed or [], error)
        except ExecutionRecordingError as e:
            logger.error(f"Could not mark execution {execution_id} as failed: {e}")
