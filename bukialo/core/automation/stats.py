"""Stats aggregator over execution history."""

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from bukialo.core.clock import Clock
from bukialo.models.automation import ExecutionStatus
from bukialo.repositories.automation_repository import AutomationRepository

ONE_DECIMAL = Decimal("0.1")


def success_rate(completed: int, total: int) -> float:
    """Percentage of completed executions, one decimal (halves round up), 0 for an empty window."""
    if total <= 0:
        return 0.0
    rate = Decimal(completed * 100) / Decimal(total)
    return float(rate.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


class StatsAggregator:
    """Operational metrics for the automations dashboard."""

    def __init__(
        self,
        repository: AutomationRepository,
        clock: Clock,
        window_days: int = 7,
        recent_limit: int = 10,
    ):
        self.repository = repository
        self.clock = clock
        self.window_days = window_days
        self.recent_limit = recent_limit

    def get_stats(self, created_by_id: UUID | None = None) -> dict[str, Any]:
        """Get automation stats.

        Args:
            created_by_id: Restrict to automations created by this user

        Returns:
            Dictionary with totalAutomations, activeAutomations, totalExecutions,
            recentExecutions, successRate and recentActivity
        """
        since = self.clock.now() - timedelta(days=self.window_days)

        recent_total = self.repository.count_executions_since(
            since, created_by_id=created_by_id
        )
        recent_completed = self.repository.count_executions_since(
            since, status=ExecutionStatus.COMPLETED.value, created_by_id=created_by_id
        )
        recent = self.repository.get_executions_since(
            since, self.recent_limit, created_by_id=created_by_id
        )

        return {
            "totalAutomations": self.repository.count_automations(
                created_by_id=created_by_id
            ),
            "activeAutomations": self.repository.count_automations(
                is_active=True, created_by_id=created_by_id
            ),
            "totalExecutions": self.repository.count_all_executions(created_by_id),
            "recentExecutions": recent_total,
            "successRate": success_rate(recent_completed, recent_total),
            "recentActivity": [
                {
                    "id": str(execution.id),
                    "automationId": str(execution.automation_id),
                    "automationName": name,
                    "status": execution.status,
                    "startedAt": execution.started_at.isoformat(),
                    "completedAt": (
                        execution.completed_at.isoformat()
                        if execution.completed_at
                        else None
                    ),
                    "error": execution.error,
                }
                for execution, name in recent
            ],
        }
