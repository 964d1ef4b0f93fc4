"""Automation models for the rule engine."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from bukialo.core.db.session import Base
from bukialo.core.db.types import JSONType


class TriggerType(str, Enum):
    """Category of CRM event that can fire an automation."""

    CONTACT_CREATED = "CONTACT_CREATED"
    TRIP_QUOTE_REQUESTED = "TRIP_QUOTE_REQUESTED"
    PAYMENT_OVERDUE = "PAYMENT_OVERDUE"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    NO_ACTIVITY_30_DAYS = "NO_ACTIVITY_30_DAYS"
    SEASONAL_OPPORTUNITY = "SEASONAL_OPPORTUNITY"
    BIRTHDAY = "BIRTHDAY"
    CUSTOM = "CUSTOM"


class ActionType(str, Enum):
    """Kind of step an automation performs."""

    SEND_EMAIL = "SEND_EMAIL"
    CREATE_TASK = "CREATE_TASK"
    SCHEDULE_CALL = "SCHEDULE_CALL"
    ADD_TAG = "ADD_TAG"
    UPDATE_STATUS = "UPDATE_STATUS"
    GENERATE_QUOTE = "GENERATE_QUOTE"
    ASSIGN_AGENT = "ASSIGN_AGENT"
    SEND_WHATSAPP = "SEND_WHATSAPP"


class ExecutionStatus(str, Enum):
    """Status of an automation execution."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ActionLogStatus(str, Enum):
    """Outcome of a single action inside an execution."""

    COMPLETED = "completed"
    FAILED = "failed"


class ScheduledActionStatus(str, Enum):
    """Status of a deferred action."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Automation deactivated before the action was due


class Automation(Base):
    """Automation model: a trigger plus an ordered list of actions."""

    __tablename__ = "automations"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(String(50), nullable=False, index=True)
    trigger_conditions = Column(JSONType, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    actions = relationship(
        "AutomationAction",
        back_populates="automation",
        order_by="AutomationAction.order",
        cascade="all, delete-orphan",
    )
    executions = relationship(
        "AutomationExecution", back_populates="automation", cascade="all, delete-orphan"
    )
    scheduled_actions = relationship(
        "ScheduledAction", back_populates="automation", cascade="all, delete-orphan"
    )
    created_by = relationship("User")

    __table_args__ = (
        Index("idx_automations_trigger_active", "trigger_type", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Automation(id={self.id}, name={self.name}, trigger_type={self.trigger_type})>"


class AutomationAction(Base):
    """One step of an automation."""

    __tablename__ = "automation_actions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    automation_id = Column(
        Uuid,
        ForeignKey("automations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action_type = Column(String(50), nullable=False)
    parameters = Column(JSONType, nullable=False, default=dict)
    delay_minutes = Column(Integer, nullable=False, default=0)
    order = Column(Integer, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    automation = relationship("Automation", back_populates="actions")
    scheduled_runs = relationship(
        "ScheduledAction", back_populates="action", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("automation_id", "order", name="uq_automation_actions_order"),
    )

    def __repr__(self) -> str:
        return f"<AutomationAction(id={self.id}, type={self.action_type}, order={self.order})>"


class AutomationExecution(Base):
    """One historical firing of an automation."""

    __tablename__ = "automation_executions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    automation_id = Column(
        Uuid,
        ForeignKey("automations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    triggered_by = Column(JSONType, nullable=True)  # Trigger payload, stored as received
    status = Column(
        String(20), nullable=False, default=ExecutionStatus.RUNNING.value, index=True
    )
    started_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error = Column(Text, nullable=True)
    actions_executed = Column(JSONType, nullable=False, default=list)

    # Relationships
    automation = relationship("Automation", back_populates="executions")

    __table_args__ = (
        Index("idx_automation_executions_started_at", "started_at"),
        Index("idx_automation_executions_automation_status", "automation_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<AutomationExecution(id={self.id}, status={self.status})>"


class ScheduledAction(Base):
    """Action deferred by its delay, due at execute_at."""

    __tablename__ = "automation_scheduled_actions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    automation_id = Column(
        Uuid,
        ForeignKey("automations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action_id = Column(
        Uuid,
        ForeignKey("automation_actions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    execution_id = Column(
        Uuid,
        ForeignKey("automation_executions.id", ondelete="SET NULL"),
        nullable=True,
    )
    trigger_payload = Column(JSONType, nullable=True)
    execute_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        String(20), nullable=False, default=ScheduledActionStatus.PENDING.value
    )
    result = Column(JSONType, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    processed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    automation = relationship("Automation", back_populates="scheduled_actions")
    action = relationship("AutomationAction", back_populates="scheduled_runs")

    __table_args__ = (
        Index("idx_scheduled_actions_status_execute_at", "status", "execute_at"),
    )
