"""Condition evaluator for automation triggers."""

import logging
from typing import Any

from bukialo.core.automation.parameters import (
    BirthdayConditions,
    ContactCreatedConditions,
    NoActivityConditions,
    PaymentOverdueConditions,
    SeasonalOpportunityConditions,
    TripCompletedConditions,
    TripQuoteRequestedConditions,
    parse_trigger_conditions,
)
from bukialo.models.automation import TriggerType

logger = logging.getLogger(__name__)

_MISSING = object()


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return str(value).strip().lower()


class ConditionEvaluator:
    """Decides whether a trigger payload satisfies an automation's stored conditions.

    Matching is a conjunction over the configured fields only: an empty
    condition set always matches, and a configured field whose payload value
    is absent never matches.
    """

    def matches(
        self,
        trigger_type: TriggerType | str,
        conditions: dict[str, Any] | None,
        payload: dict[str, Any],
    ) -> bool:
        """Evaluate stored conditions against a trigger payload.

        Args:
            trigger_type: Trigger type of the automation
            conditions: Stored trigger conditions (camelCase keys)
            payload: Trigger event payload

        Returns:
            True if every configured condition is met, False otherwise
        """
        if not conditions:
            return True

        try:
            typed = parse_trigger_conditions(trigger_type, conditions)
        except ValueError as e:
            logger.warning(f"Unusable conditions for trigger {trigger_type}: {e}")
            return False

        trigger_type = TriggerType(trigger_type)
        if trigger_type == TriggerType.CUSTOM:
            return self._match_custom(typed.model_extra or {}, payload)

        evaluator = getattr(self, f"_match_{trigger_type.value.lower()}")
        return evaluator(typed, payload)

    # Comparison helpers

    @staticmethod
    def _equals(expected: Any, payload: dict[str, Any], key: str) -> bool:
        if expected is None:
            return True
        actual = payload.get(key, _MISSING)
        if actual is _MISSING or actual is None:
            return False
        if hasattr(expected, "value"):
            expected = expected.value
        return actual == expected

    @staticmethod
    def _equals_ignore_case(expected: str | None, payload: dict[str, Any], key: str) -> bool:
        if expected is None:
            return True
        actual = payload.get(key)
        if actual is None:
            return False
        return _text(actual) == _text(expected)

    @staticmethod
    def _at_least(threshold: float | None, payload: dict[str, Any], key: str) -> bool:
        if threshold is None:
            return True
        actual = _number(payload.get(key))
        return actual is not None and actual >= threshold

    @staticmethod
    def _at_most(threshold: float | None, payload: dict[str, Any], key: str) -> bool:
        if threshold is None:
            return True
        actual = _number(payload.get(key))
        return actual is not None and actual <= threshold

    @staticmethod
    def _payload_tags(payload: dict[str, Any]) -> set[str] | None:
        tags = payload.get("tags")
        if not isinstance(tags, (list, tuple, set)):
            return None
        return {str(tag) for tag in tags}

    # Per-trigger evaluation

    def _match_contact_created(
        self, conditions: ContactCreatedConditions, payload: dict[str, Any]
    ) -> bool:
        if conditions.tags:
            payload_tags = self._payload_tags(payload)
            if payload_tags is None or not set(conditions.tags) <= payload_tags:
                return False
        return (
            self._equals(conditions.status, payload, "status")
            and self._equals(conditions.source, payload, "source")
            and self._equals(conditions.budget_range, payload, "budgetRange")
        )

    def _match_trip_quote_requested(
        self, conditions: TripQuoteRequestedConditions, payload: dict[str, Any]
    ) -> bool:
        return (
            self._equals_ignore_case(conditions.destination, payload, "destination")
            and self._at_least(conditions.budget_min, payload, "budget")
            and self._at_most(conditions.budget_max, payload, "budget")
        )

    def _match_payment_overdue(
        self, conditions: PaymentOverdueConditions, payload: dict[str, Any]
    ) -> bool:
        return (
            self._at_least(conditions.days_overdue, payload, "daysOverdue")
            and self._at_least(conditions.amount, payload, "amount")
            and self._at_least(conditions.min_amount, payload, "amount")
            and self._at_most(conditions.max_amount, payload, "amount")
        )

    def _match_trip_completed(
        self, conditions: TripCompletedConditions, payload: dict[str, Any]
    ) -> bool:
        return (
            self._equals_ignore_case(conditions.destination, payload, "destination")
            and self._at_least(conditions.min_rating, payload, "rating")
            and self._at_least(conditions.rating, payload, "rating")
        )

    def _match_no_activity_30_days(
        self, conditions: NoActivityConditions, payload: dict[str, Any]
    ) -> bool:
        if conditions.exclude_tags:
            payload_tags = self._payload_tags(payload) or set()
            if payload_tags & set(conditions.exclude_tags):
                return False
        return self._at_least(conditions.days, payload, "days") and self._equals(
            conditions.status, payload, "status"
        )

    def _match_seasonal_opportunity(
        self, conditions: SeasonalOpportunityConditions, payload: dict[str, Any]
    ) -> bool:
        return self._equals_ignore_case(
            conditions.season, payload, "season"
        ) and self._equals_ignore_case(conditions.destination, payload, "destination")

    def _match_birthday(
        self, conditions: BirthdayConditions, payload: dict[str, Any]
    ) -> bool:
        if conditions.include_inactive is False and payload.get("isActive") is False:
            return False
        return self._equals(conditions.days_before, payload, "daysBefore") and self._equals(
            conditions.status, payload, "status"
        )

    def _match_custom(self, conditions: dict[str, Any], payload: dict[str, Any]) -> bool:
        return all(
            key in payload and payload[key] == expected
            for key, expected in conditions.items()
        )
