"""Data models for execution outcomes."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from bukialo.models.automation import ActionLogStatus


@dataclass
class ActionLogEntry:
    """Outcome of one action inside an execution."""

    action_id: UUID
    action_type: str
    order: int
    status: ActionLogStatus
    executed_at: datetime
    result: dict[str, Any] | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == ActionLogStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form stored in AutomationExecution.actions_executed."""
        entry: dict[str, Any] = {
            "actionId": str(self.action_id),
            "type": self.action_type,
            "order": self.order,
            "status": self.status.value,
            "executedAt": self.executed_at.isoformat(),
        }
        if self.succeeded:
            entry["result"] = json_safe(self.result)
        else:
            entry["error"] = self.error
        return entry


@dataclass
class ExecutionResult:
    """What AutomationEngine.execute returns to its caller."""

    automation_id: UUID
    success: bool
    execution_id: UUID | None = None  # None when no record was opened
    actions_executed: list[ActionLogEntry] = field(default_factory=list)
    error: str | None = None
    duration_ms: int = 0

    @property
    def executed_count(self) -> int:
        return sum(1 for entry in self.actions_executed if entry.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.actions_executed) - self.executed_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "automationId": str(self.automation_id),
            "executionId": str(self.execution_id) if self.execution_id else None,
            "success": self.success,
            "actionsExecuted": [entry.to_dict() for entry in self.actions_executed],
            "executedCount": self.executed_count,
            "error": self.error,
            "duration": self.duration_ms,
        }


def json_safe(value: Any) -> Any:
    """Convert UUIDs, datetimes and decimals so the value can be stored in a JSON column."""
    return json.loads(json.dumps(value, default=str))
