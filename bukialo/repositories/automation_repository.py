"""Automation repository for data access operations."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from bukialo.models.automation import (
    Automation,
    AutomationAction,
    AutomationExecution,
    ScheduledAction,
    ScheduledActionStatus,
)


class AutomationRepository:
    """Repository for automation data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    # Automation operations
    def create_automation(
        self, automation_data: dict, actions_data: list[dict]
    ) -> Automation:
        """Create an automation together with its actions in one transaction."""
        automation = Automation(**automation_data)
        automation.actions = [AutomationAction(**data) for data in actions_data]
        self.db.add(automation)
        self.db.commit()
        self.db.refresh(automation)
        return automation

    def get_automation_by_id(self, automation_id: UUID) -> Automation | None:
        """Get automation by ID with its actions loaded."""
        return (
            self.db.query(Automation)
            .options(selectinload(Automation.actions))
            .filter(Automation.id == automation_id)
            .first()
        )

    def _filtered_query(
        self,
        is_active: bool | None = None,
        trigger_type: str | None = None,
        created_by_id: UUID | None = None,
    ):
        query = self.db.query(Automation)
        if is_active is not None:
            query = query.filter(Automation.is_active == is_active)
        if trigger_type:
            query = query.filter(Automation.trigger_type == trigger_type)
        if created_by_id:
            query = query.filter(Automation.created_by_id == created_by_id)
        return query

    def get_all_automations(
        self,
        is_active: bool | None = None,
        trigger_type: str | None = None,
        created_by_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Automation]:
        """Get automations with filters, newest first."""
        return (
            self._filtered_query(is_active, trigger_type, created_by_id)
            .options(selectinload(Automation.actions))
            .order_by(Automation.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_automations(
        self,
        is_active: bool | None = None,
        trigger_type: str | None = None,
        created_by_id: UUID | None = None,
    ) -> int:
        """Count automations with filters."""
        return (
            self._filtered_query(is_active, trigger_type, created_by_id)
            .with_entities(func.count(Automation.id))
            .scalar()
            or 0
        )

    def get_active_by_trigger(self, trigger_type: str) -> list[Automation]:
        """Get active automations for a trigger type in creation order."""
        return (
            self.db.query(Automation)
            .options(selectinload(Automation.actions))
            .filter(
                Automation.trigger_type == trigger_type,
                Automation.is_active.is_(True),
            )
            .order_by(Automation.created_at.asc())
            .all()
        )

    def update_automation(
        self,
        automation: Automation,
        automation_data: dict,
        actions_data: list[dict] | None = None,
    ) -> Automation:
        """Update an automation.

        When actions_data is given, the stored actions are replaced wholesale.
        """
        for key, value in automation_data.items():
            setattr(automation, key, value)
        if actions_data is not None:
            automation.actions.clear()
            # Old rows must be gone before new ones reuse their order values
            self.db.flush()
            automation.actions.extend(AutomationAction(**data) for data in actions_data)
        self.db.commit()
        self.db.refresh(automation)
        return automation

    def delete_automation(self, automation: Automation) -> None:
        """Delete an automation, its actions and its execution history."""
        self.db.delete(automation)
        self.db.commit()

    # AutomationExecution operations
    def create_execution(self, execution_data: dict) -> AutomationExecution:
        """Create a new automation execution record."""
        execution = AutomationExecution(**execution_data)
        self.db.add(execution)
        self.db.commit()
        self.db.refresh(execution)
        return execution

    def get_execution_by_id(self, execution_id: UUID) -> AutomationExecution | None:
        """Get execution by ID."""
        return (
            self.db.query(AutomationExecution)
            .filter(AutomationExecution.id == execution_id)
            .first()
        )

    def update_execution(
        self, execution_id: UUID, execution_data: dict
    ) -> AutomationExecution | None:
        """Update an execution record."""
        execution = self.get_execution_by_id(execution_id)
        if not execution:
            return None
        for key, value in execution_data.items():
            setattr(execution, key, value)
        self.db.commit()
        self.db.refresh(execution)
        return execution

    def list_executions(
        self, automation_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[AutomationExecution]:
        """Get executions for an automation, newest first."""
        return (
            self.db.query(AutomationExecution)
            .filter(AutomationExecution.automation_id == automation_id)
            .order_by(AutomationExecution.started_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_executions(self, automation_id: UUID) -> int:
        """Count executions for an automation."""
        return (
            self.db.query(func.count(AutomationExecution.id))
            .filter(AutomationExecution.automation_id == automation_id)
            .scalar()
            or 0
        )

    # Stats operations
    def _executions_query(self, created_by_id: UUID | None = None):
        query = self.db.query(AutomationExecution)
        if created_by_id:
            query = query.join(Automation).filter(
                Automation.created_by_id == created_by_id
            )
        return query

    def count_all_executions(self, created_by_id: UUID | None = None) -> int:
        """Count every execution ever recorded."""
        return (
            self._executions_query(created_by_id)
            .with_entities(func.count(AutomationExecution.id))
            .scalar()
            or 0
        )

    def count_executions_since(
        self,
        since: datetime,
        status: str | None = None,
        created_by_id: UUID | None = None,
    ) -> int:
        """Count executions started at or after `since`."""
        query = self._executions_query(created_by_id).filter(
            AutomationExecution.started_at >= since
        )
        if status:
            query = query.filter(AutomationExecution.status == status)
        return query.with_entities(func.count(AutomationExecution.id)).scalar() or 0

    def get_executions_since(
        self, since: datetime, limit: int, created_by_id: UUID | None = None
    ) -> list[tuple[AutomationExecution, str]]:
        """Get the newest executions since `since` with their automation name."""
        query = (
            self.db.query(AutomationExecution, Automation.name)
            .join(Automation, Automation.id == AutomationExecution.automation_id)
            .filter(AutomationExecution.started_at >= since)
        )
        if created_by_id:
            query = query.filter(Automation.created_by_id == created_by_id)
        return [
            (execution, name)
            for execution, name in query.order_by(AutomationExecution.started_at.desc())
            .limit(limit)
            .all()
        ]

    # ScheduledAction operations
    def create_scheduled_action(self, scheduled_data: dict) -> ScheduledAction:
        """Persist a deferred action."""
        scheduled = ScheduledAction(**scheduled_data)
        self.db.add(scheduled)
        self.db.commit()
        self.db.refresh(scheduled)
        return scheduled

    def get_due_scheduled_actions(
        self, now: datetime, limit: int = 100
    ) -> list[ScheduledAction]:
        """Get pending deferred actions due at or before `now`, oldest first."""
        return (
            self.db.query(ScheduledAction)
            .options(selectinload(ScheduledAction.action))
            .filter(
                ScheduledAction.status == ScheduledActionStatus.PENDING.value,
                ScheduledAction.execute_at <= now,
            )
            .order_by(ScheduledAction.execute_at.asc())
            .limit(limit)
            .all()
        )

    def list_scheduled_actions(
        self, automation_id: UUID, status: str | None = None
    ) -> list[ScheduledAction]:
        """Get deferred actions for an automation."""
        query = self.db.query(ScheduledAction).filter(
            ScheduledAction.automation_id == automation_id
        )
        if status:
            query = query.filter(ScheduledAction.status == status)
        return query.order_by(ScheduledAction.execute_at.asc()).all()

    def update_scheduled_action(
        self, scheduled: ScheduledAction, scheduled_data: dict
    ) -> ScheduledAction:
        """Update a deferred action."""
        for key, value in scheduled_data.items():
            setattr(scheduled, key, value)
        self.db.commit()
        self.db.refresh(scheduled)
        return scheduled
