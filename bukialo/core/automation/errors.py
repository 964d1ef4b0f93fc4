"""Custom exceptions for the automation engine."""


class AutomationError(Exception):
    """Base exception for automation errors."""

    pass


class AutomationConfigurationError(AutomationError):
    """Raised before any action runs when the automation cannot be executed."""

    pass


class AutomationNotFoundError(AutomationConfigurationError):
    """Raised when an automation does not exist."""

    def __init__(self, automation_id):
        super().__init__(f"Automation not found: {automation_id}")
        self.automation_id = automation_id


class AutomationInactiveError(AutomationConfigurationError):
    """Raised when an inactive automation is asked to execute."""

    def __init__(self, automation_id):
        super().__init__("Automation is not active")
        self.automation_id = automation_id


class UnknownActionTypeError(AutomationConfigurationError):
    """Raised when an automation holds an action type with no handler."""

    def __init__(self, action_type):
        super().__init__(f"Unknown action type: {action_type}")
        self.action_type = action_type


class ActionExecutionError(AutomationError):
    """Raised by an action handler; logged per action, never aborts the execution."""

    pass


class MissingReferenceError(ActionExecutionError):
    """Raised when the trigger payload lacks an identifier the action needs."""

    def __init__(self, field: str, action_type: str):
        super().__init__(f"{field} is required for {action_type} action")
        self.field = field


class InvalidActionParametersError(ActionExecutionError):
    """Raised when stored action parameters do not fit their action type."""

    pass


class RelatedEntityNotFoundError(ActionExecutionError):
    """Raised when a referenced contact, user or template does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class CollaboratorError(ActionExecutionError):
    """Raised when a gateway fails to perform its effect."""

    pass


class ExecutionRecordingError(AutomationError):
    """Raised when the execution record cannot be opened or closed."""

    pass
