"""Action executor: walks an automation's actions in order."""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from bukialo.core.automation.errors import UnknownActionTypeError
from bukialo.core.automation.handlers import ActionHandlers
from bukialo.core.automation.parameters import parse_action_parameters
from bukialo.core.automation.scheduler import DelayScheduler
from bukialo.core.automation.types import ActionLogEntry
from bukialo.core.clock import Clock
from bukialo.models.automation import ActionLogStatus, AutomationAction

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Executor for automation actions."""

    def __init__(
        self,
        handlers: ActionHandlers,
        scheduler: DelayScheduler,
        clock: Clock,
        on_action_failure: Callable[[], None] | None = None,
    ):
        """Initialize action executor.

        Args:
            handlers: Per-type action handlers
            scheduler: Delay scheduler for actions with delay_minutes > 0
            clock: Time source for log timestamps
            on_action_failure: Called after a failed action (e.g. session rollback)
        """
        self.handlers = handlers
        self.scheduler = scheduler
        self.clock = clock
        self.on_action_failure = on_action_failure

    def validate(self, actions: Iterable[AutomationAction]) -> None:
        """Check every action type has a handler before anything runs.

        Raises:
            UnknownActionTypeError: For the first unsupported action type
        """
        for action in actions:
            if not self.handlers.supports(action.action_type):
                raise UnknownActionTypeError(action.action_type)

    async def execute(
        self,
        actions: Iterable[AutomationAction],
        payload: dict[str, Any],
        execution_id: UUID | None = None,
        started_at: datetime | None = None,
    ) -> list[ActionLogEntry]:
        """Execute actions strictly by order.

        A failed action is logged and the remaining actions still run.

        Args:
            actions: Actions of one automation
            payload: Trigger payload
            execution_id: Execution record the actions belong to
            started_at: Execution start, delays are counted from it

        Returns:
            One log entry per action, in execution order
        """
        log: list[ActionLogEntry] = []
        for action in sorted(actions, key=lambda a: a.order):
            try:
                if action.delay_minutes and action.delay_minutes > 0:
                    result = self.scheduler.defer(
                        action, payload, execution_id, started_at=started_at
                    )
                else:
                    result = await self.run_action(action, payload)
                    logger.info(
                        f"Executed action {action.order} ({action.action_type}) "
                        f"of automation {action.automation_id}"
                    )
                log.append(
                    ActionLogEntry(
                        action_id=action.id,
                        action_type=action.action_type,
                        order=action.order,
                        status=ActionLogStatus.COMPLETED,
                        executed_at=self.clock.now(),
                        result=result,
                    )
                )
            except Exception as e:
                logger.error(
                    f"Failed to execute action {action.order} ({action.action_type}) "
                    f"of automation {action.automation_id}: {e}",
                    exc_info=True,
                )
                if self.on_action_failure:
                    self.on_action_failure()
                log.append(
                    ActionLogEntry(
                        action_id=action.id,
                        action_type=action.action_type,
                        order=action.order,
                        status=ActionLogStatus.FAILED,
                        executed_at=self.clock.now(),
                        error=str(e),
                    )
                )
        return log

    async def run_action(
        self, action: AutomationAction, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Run one action's handler now, ignoring its delay.

        Raises:
            UnknownActionTypeError: If the action type has no handler
            ActionExecutionError: If the handler fails
        """
        params = parse_action_parameters(action.action_type, action.parameters)
        handler = self.handlers.get(action.action_type)
        return await handler(params, payload)
