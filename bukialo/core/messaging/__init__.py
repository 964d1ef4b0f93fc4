"""Outbound message gateway used by messaging actions."""

from bukialo.core.messaging.gateway import MessageGateway, TemplateMessageGateway

__all__ = ["MessageGateway", "TemplateMessageGateway"]
