"""Unit tests for ConditionEvaluator."""

import pytest

from bukialo.core.automation.condition_evaluator import ConditionEvaluator
from bukialo.models.automation import TriggerType


@pytest.fixture
def evaluator():
    """Create ConditionEvaluator instance."""
    return ConditionEvaluator()


@pytest.mark.parametrize("trigger_type", list(TriggerType))
def test_empty_conditions_always_match(evaluator, trigger_type):
    assert evaluator.matches(trigger_type, {}, {"anything": 1}) is True
    assert evaluator.matches(trigger_type, None, {}) is True


def test_contact_created_status_equal(evaluator):
    conditions = {"status": "INTERESADO"}
    assert evaluator.matches("CONTACT_CREATED", conditions, {"status": "INTERESADO"})
    assert not evaluator.matches("CONTACT_CREATED", conditions, {"status": "CLIENTE"})


def test_missing_payload_field_does_not_match(evaluator):
    """A configured field whose payload value is absent never matches."""
    assert not evaluator.matches("CONTACT_CREATED", {"source": "WEBSITE"}, {})


def test_contact_created_conjunction(evaluator):
    conditions = {"status": "INTERESADO", "source": "REFERRAL", "budgetRange": "HIGH"}
    payload = {"status": "INTERESADO", "source": "REFERRAL", "budgetRange": "HIGH"}
    assert evaluator.matches("CONTACT_CREATED", conditions, payload)
    assert not evaluator.matches(
        "CONTACT_CREATED", conditions, {**payload, "budgetRange": "LOW"}
    )


def test_contact_created_tags_must_be_subset(evaluator):
    conditions = {"tags": ["vip", "europa"]}
    assert evaluator.matches(
        "CONTACT_CREATED", conditions, {"tags": ["europa", "vip", "familia"]}
    )
    assert not evaluator.matches("CONTACT_CREATED", conditions, {"tags": ["vip"]})
    assert not evaluator.matches("CONTACT_CREATED", conditions, {})


def test_unknown_fields_are_ignored(evaluator):
    assert evaluator.matches("CONTACT_CREATED", {"favoriteColor": "blue"}, {})


def test_trip_quote_budget_bounds(evaluator):
    conditions = {"budgetMin": 1000, "budgetMax": 5000}
    assert evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"budget": 1000})
    assert evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"budget": "5000"})
    assert not evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"budget": 999.99})
    assert not evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"budget": 5001})
    assert not evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {})


def test_trip_quote_destination_ignores_case(evaluator):
    conditions = {"destination": "Cancún"}
    assert evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"destination": "cancún "})
    assert not evaluator.matches("TRIP_QUOTE_REQUESTED", conditions, {"destination": "Roma"})


def test_payment_overdue_thresholds(evaluator):
    conditions = {"daysOverdue": 3, "maxAmount": 2000}
    assert evaluator.matches("PAYMENT_OVERDUE", conditions, {"daysOverdue": 5, "amount": 1500})
    assert not evaluator.matches("PAYMENT_OVERDUE", conditions, {"daysOverdue": 2, "amount": 10})
    assert not evaluator.matches(
        "PAYMENT_OVERDUE", conditions, {"daysOverdue": 5, "amount": 2500}
    )


def test_payment_overdue_minimum_amount(evaluator):
    assert evaluator.matches("PAYMENT_OVERDUE", {"amount": 500}, {"amount": 500})
    assert not evaluator.matches("PAYMENT_OVERDUE", {"amount": 500}, {"amount": 499})
    assert not evaluator.matches("PAYMENT_OVERDUE", {"amount": 500}, {"amount": "n/a"})


def test_trip_completed_minimum_rating(evaluator):
    conditions = {"minRating": 4}
    assert evaluator.matches("TRIP_COMPLETED", conditions, {"rating": 5})
    assert not evaluator.matches("TRIP_COMPLETED", conditions, {"rating": 3})


def test_no_activity_days_and_excluded_tags(evaluator):
    conditions = {"days": 30, "excludeTags": ["no-contactar"]}
    assert evaluator.matches("NO_ACTIVITY_30_DAYS", conditions, {"days": 45, "tags": ["vip"]})
    assert not evaluator.matches("NO_ACTIVITY_30_DAYS", conditions, {"days": 29})
    assert not evaluator.matches(
        "NO_ACTIVITY_30_DAYS", conditions, {"days": 45, "tags": ["no-contactar"]}
    )


def test_seasonal_opportunity(evaluator):
    conditions = {"season": "SUMMER", "destination": "Bariloche"}
    assert evaluator.matches(
        "SEASONAL_OPPORTUNITY", conditions, {"season": "summer", "destination": "Bariloche"}
    )
    assert not evaluator.matches(
        "SEASONAL_OPPORTUNITY", conditions, {"season": "WINTER", "destination": "Bariloche"}
    )


def test_birthday_excludes_inactive_contacts(evaluator):
    conditions = {"daysBefore": 0, "includeInactive": False}
    assert evaluator.matches("BIRTHDAY", conditions, {"daysBefore": 0, "isActive": True})
    assert not evaluator.matches("BIRTHDAY", conditions, {"daysBefore": 0, "isActive": False})
    assert not evaluator.matches("BIRTHDAY", conditions, {"daysBefore": 3})


def test_custom_conditions_use_equality(evaluator):
    conditions = {"campaign": "black-friday", "channel": "instagram"}
    assert evaluator.matches(
        "CUSTOM", conditions, {"campaign": "black-friday", "channel": "instagram", "x": 1}
    )
    assert not evaluator.matches("CUSTOM", conditions, {"campaign": "black-friday"})
    assert not evaluator.matches(
        "CUSTOM", conditions, {"campaign": "cyber-monday", "channel": "instagram"}
    )


def test_invalid_stored_conditions_do_not_match(evaluator):
    assert not evaluator.matches("PAYMENT_OVERDUE", {"daysOverdue": "soon"}, {"daysOverdue": 9})


def test_custom_null_condition_requires_null_payload_value(evaluator):
    conditions = {"segment": None}
    assert not evaluator.matches("CUSTOM", conditions, {"segment": "vip"})
    assert not evaluator.matches("CUSTOM", conditions, {})
    assert evaluator.matches("CUSTOM", conditions, {"segment": None})
