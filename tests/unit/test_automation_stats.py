"""Unit tests for automation stats."""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from bukialo.core.automation.stats import StatsAggregator, success_rate
from tests.helpers import FIXED_NOW, FixedClock


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [
        (0, 0, 0.0),
        (3, 4, 75.0),
        (1, 3, 33.3),
        (2, 3, 66.7),
        (5, 5, 100.0),
        (1, 16, 6.3),
        (3, 16, 18.8),
    ],
)
def test_success_rate(completed, total, expected):
    assert success_rate(completed, total) == expected


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.count_automations.side_effect = lambda is_active=None, trigger_type=None, created_by_id=None: (
        2 if is_active else 5
    )
    repo.count_all_executions.return_value = 40
    repo.count_executions_since.side_effect = lambda since, status=None, created_by_id=None: (
        3 if status == "completed" else 4
    )
    repo.get_executions_since.return_value = []
    return repo


def test_get_stats(repository):
    automation_id = uuid4()
    execution = SimpleNamespace(
        id=uuid4(),
        automation_id=automation_id,
        status="failed",
        started_at=FIXED_NOW - timedelta(hours=1),
        completed_at=None,
        error="Execution record lost",
    )
    repository.get_executions_since.return_value = [(execution, "Bienvenida")]
    aggregator = StatsAggregator(repository, FixedClock(FIXED_NOW), window_days=7, recent_limit=10)

    stats = aggregator.get_stats()

    assert stats["totalAutomations"] == 5
    assert stats["activeAutomations"] == 2
    assert stats["totalExecutions"] == 40
    assert stats["recentExecutions"] == 4
    assert stats["successRate"] == 75.0
    assert stats["recentActivity"] == [
        {
            "id": str(execution.id),
            "automationId": str(automation_id),
            "automationName": "Bienvenida",
            "status": "failed",
            "startedAt": (FIXED_NOW - timedelta(hours=1)).isoformat(),
            "completedAt": None,
            "error": "Execution record lost",
        }
    ]

    since = repository.get_executions_since.call_args.args[0]
    assert since == FIXED_NOW - timedelta(days=7)
    assert repository.get_executions_since.call_args.args[1] == 10


def test_get_stats_empty_window(repository):
    repository.count_executions_since.side_effect = None
    repository.count_executions_since.return_value = 0

    stats = StatsAggregator(repository, FixedClock(FIXED_NOW)).get_stats()

    assert stats["recentExecutions"] == 0
    assert stats["successRate"] == 0.0
    assert stats["recentActivity"] == []


def test_get_stats_scoped_to_owner(repository):
    owner_id = uuid4()

    StatsAggregator(repository, FixedClock(FIXED_NOW)).get_stats(created_by_id=owner_id)

    repository.count_all_executions.assert_called_once_with(owner_id)
    for call in repository.count_executions_since.call_args_list:
        assert call.kwargs["created_by_id"] == owner_id
