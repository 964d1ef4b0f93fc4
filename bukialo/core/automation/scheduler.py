"""Delay scheduler for actions carrying a delay."""

import logging
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

from bukialo.core.clock import Clock
from bukialo.models.automation import (
    AutomationAction,
    ScheduledAction,
    ScheduledActionStatus,
)

logger = logging.getLogger(__name__)


class ScheduledActionStore(Protocol):
    def create_scheduled_action(self, scheduled_data: dict) -> ScheduledAction: ...


class DelayScheduler:
    """Records when a delayed action is due. It never runs the action itself."""

    def __init__(self, store: ScheduledActionStore, clock: Clock):
        """Initialize delay scheduler.

        Args:
            store: Persistence for deferred actions
            clock: Time source
        """
        self.store = store
        self.clock = clock

    def defer(
        self,
        action: AutomationAction,
        payload: dict[str, Any],
        execution_id: UUID | None = None,
        started_at: datetime | None = None,
    ) -> dict[str, Any]:
        """Defer an action by its delay.

        Args:
            action: Action with delay_minutes > 0
            payload: Trigger payload the action will run with
            execution_id: Execution that deferred the action
            started_at: Start of that execution, delays count from it (defaults to now)

        Returns:
            Dictionary with scheduled=True and executeAt in ISO format
        """
        base = started_at or self.clock.now()
        execute_at = base + timedelta(minutes=action.delay_minutes)
        self.store.create_scheduled_action(
            {
                "automation_id": action.automation_id,
                "action_id": action.id,
                "execution_id": execution_id,
                "trigger_payload": payload,
                "execute_at": execute_at,
                "status": ScheduledActionStatus.PENDING.value,
            }
        )
        logger.info(
            f"Deferred action {action.id} ({action.action_type}) "
            f"by {action.delay_minutes} min, due at {execute_at.isoformat()}"
        )
        return {"scheduled": True, "executeAt": execute_at.isoformat()}
