"""Trigger and action catalogs shown to operators when authoring automations."""

from typing import Any

from bukialo.models.automation import ActionType, TriggerType
from bukialo.models.contact import BudgetRange, ContactStatus
from bukialo.models.task import TaskPriority

CONTACT_STATUSES = [status.value for status in ContactStatus]
BUDGET_RANGES = [budget.value for budget in BudgetRange]
CONTACT_SOURCES = ["WEBSITE", "REFERRAL", "SOCIAL_MEDIA", "ADVERTISING"]
TASK_PRIORITIES = [priority.value for priority in TaskPriority]

STATUS_FIELD = {
    "field": "status",
    "label": "Estado del contacto",
    "type": "select",
    "options": CONTACT_STATUSES,
}

TRIGGER_TEMPLATES: list[dict[str, Any]] = [
    {
        "type": TriggerType.CONTACT_CREATED.value,
        "name": "Contacto Creado",
        "description": "Se ejecuta cuando se crea un nuevo contacto",
        "icon": "UserPlus",
        "conditions": [
            STATUS_FIELD,
            {
                "field": "source",
                "label": "Fuente del contacto",
                "type": "select",
                "options": CONTACT_SOURCES,
            },
            {
                "field": "budgetRange",
                "label": "Rango de presupuesto",
                "type": "select",
                "options": BUDGET_RANGES,
            },
            {"field": "tags", "label": "Etiquetas requeridas", "type": "array"},
        ],
    },
    {
        "type": TriggerType.TRIP_QUOTE_REQUESTED.value,
        "name": "Cotización Solicitada",
        "description": "Se ejecuta cuando se solicita una cotización de viaje",
        "icon": "FileText",
        "conditions": [
            {"field": "destination", "label": "Destino", "type": "text"},
            {"field": "budgetMin", "label": "Presupuesto mínimo", "type": "number"},
            {"field": "budgetMax", "label": "Presupuesto máximo", "type": "number"},
        ],
    },
    {
        "type": TriggerType.NO_ACTIVITY_30_DAYS.value,
        "name": "Sin Actividad",
        "description": "Se ejecuta cuando un contacto no tiene actividad por X días",
        "icon": "Clock",
        "conditions": [
            {"field": "days", "label": "Días sin actividad", "type": "number", "default": 30},
            STATUS_FIELD,
            {"field": "excludeTags", "label": "Excluir etiquetas", "type": "array"},
        ],
    },
    {
        "type": TriggerType.PAYMENT_OVERDUE.value,
        "name": "Pago Vencido",
        "description": "Se ejecuta cuando un pago está vencido",
        "icon": "AlertTriangle",
        "conditions": [
            {
                "field": "daysOverdue",
                "label": "Días de vencimiento",
                "type": "number",
                "default": 1,
            },
            {"field": "amount", "label": "Monto mínimo", "type": "number"},
            {"field": "maxAmount", "label": "Monto máximo", "type": "number"},
        ],
    },
    {
        "type": TriggerType.TRIP_COMPLETED.value,
        "name": "Viaje Completado",
        "description": "Se ejecuta cuando un viaje es completado",
        "icon": "CheckCircle",
        "conditions": [
            {"field": "destination", "label": "Destino", "type": "text"},
            {"field": "rating", "label": "Calificación mínima", "type": "number"},
        ],
    },
    {
        "type": TriggerType.SEASONAL_OPPORTUNITY.value,
        "name": "Oportunidad de Temporada",
        "description": "Se ejecuta al comenzar una temporada de viajes",
        "icon": "Sun",
        "conditions": [
            {
                "field": "season",
                "label": "Temporada",
                "type": "select",
                "options": ["SUMMER", "WINTER", "SPRING", "AUTUMN"],
            },
            {"field": "destination", "label": "Destino", "type": "text"},
        ],
    },
    {
        "type": TriggerType.BIRTHDAY.value,
        "name": "Cumpleaños",
        "description": "Se ejecuta en el cumpleaños del contacto",
        "icon": "Gift",
        "conditions": [
            {
                "field": "daysBefore",
                "label": "Días antes del cumpleaños",
                "type": "number",
                "default": 0,
            },
            STATUS_FIELD,
            {
                "field": "includeInactive",
                "label": "Incluir contactos inactivos",
                "type": "boolean",
                "default": False,
            },
        ],
    },
    {
        "type": TriggerType.CUSTOM.value,
        "name": "Personalizado",
        "description": "Se ejecuta con eventos propios; cada condición debe coincidir exactamente",
        "icon": "Settings",
        "conditions": [],
    },
]

ACTION_TEMPLATES: list[dict[str, Any]] = [
    {
        "type": ActionType.SEND_EMAIL.value,
        "name": "Enviar Email",
        "description": "Envía un email usando una plantilla",
        "icon": "Mail",
        "parameters": [
            {"field": "templateId", "label": "Plantilla de email", "type": "select", "required": True},
            {"field": "variables", "label": "Variables personalizadas", "type": "object"},
        ],
    },
    {
        "type": ActionType.CREATE_TASK.value,
        "name": "Crear Tarea",
        "description": "Crea una tarea para un agente",
        "icon": "CheckSquare",
        "parameters": [
            {"field": "title", "label": "Título de la tarea", "type": "text", "required": True},
            {"field": "description", "label": "Descripción", "type": "textarea"},
            {
                "field": "priority",
                "label": "Prioridad",
                "type": "select",
                "options": TASK_PRIORITIES,
                "default": TaskPriority.MEDIUM.value,
            },
            {"field": "assignedToId", "label": "Asignar a", "type": "select"},
            {"field": "dueDate", "label": "Fecha de vencimiento", "type": "date"},
        ],
    },
    {
        "type": ActionType.ADD_TAG.value,
        "name": "Agregar Etiqueta",
        "description": "Agrega etiquetas al contacto",
        "icon": "Tag",
        "parameters": [
            {"field": "tags", "label": "Etiquetas", "type": "array", "required": True},
        ],
    },
    {
        "type": ActionType.UPDATE_STATUS.value,
        "name": "Cambiar Estado",
        "description": "Cambia el estado del contacto",
        "icon": "ArrowRight",
        "parameters": [
            {
                "field": "status",
                "label": "Nuevo estado",
                "type": "select",
                "options": CONTACT_STATUSES,
                "required": True,
            },
            {"field": "reason", "label": "Motivo", "type": "text"},
        ],
    },
    {
        "type": ActionType.ASSIGN_AGENT.value,
        "name": "Asignar Agente",
        "description": "Asigna el contacto a un agente",
        "icon": "UserCheck",
        "parameters": [
            {"field": "agentId", "label": "Agente", "type": "select", "required": True},
        ],
    },
    {
        "type": ActionType.SCHEDULE_CALL.value,
        "name": "Programar Llamada",
        "description": "Programa una llamada de seguimiento",
        "icon": "Phone",
        "parameters": [
            {"field": "title", "label": "Título de la llamada", "type": "text", "required": True},
            {"field": "scheduledDate", "label": "Fecha programada", "type": "datetime", "required": True},
            {"field": "duration", "label": "Duración (minutos)", "type": "number", "default": 30},
        ],
    },
    {
        "type": ActionType.GENERATE_QUOTE.value,
        "name": "Generar Cotización",
        "description": "Crea un viaje en estado de cotización para el contacto",
        "icon": "Calculator",
        "parameters": [
            {"field": "destination", "label": "Destino", "type": "text"},
            {"field": "travelers", "label": "Viajeros", "type": "number", "default": 1},
            {"field": "estimatedBudget", "label": "Presupuesto estimado", "type": "number"},
            {"field": "departureDate", "label": "Fecha de salida", "type": "date"},
            {"field": "returnDate", "label": "Fecha de regreso", "type": "date"},
        ],
    },
    {
        "type": ActionType.SEND_WHATSAPP.value,
        "name": "Enviar WhatsApp",
        "description": "Envía un mensaje de WhatsApp al teléfono del contacto",
        "icon": "MessageCircle",
        "parameters": [
            {"field": "templateId", "label": "Plantilla", "type": "select"},
            {"field": "message", "label": "Mensaje", "type": "textarea"},
        ],
    },
]


def get_trigger_templates() -> list[dict[str, Any]]:
    return TRIGGER_TEMPLATES


def get_action_templates() -> list[dict[str, Any]]:
    return ACTION_TEMPLATES
