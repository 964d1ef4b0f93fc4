"""Integration tests for the automations API."""

import logging
from uuid import uuid4

import pytest

from bukialo.core.auth import create_access_token
from bukialo.models.contact import Contact

BASE_URL = "/api/v1/automations"


def _automation_body(**overrides):
    body = {
        "name": "Bienvenida",
        "description": "Etiqueta y saluda a los nuevos contactos",
        "triggerType": "CONTACT_CREATED",
        "triggerConditions": {"status": "INTERESADO"},
        "actions": [
            {"actionType": "ADD_TAG", "parameters": {"tags": ["nuevo"]}, "order": 1},
            {
                "actionType": "CREATE_TASK",
                "parameters": {"title": "Llamar", "priority": "HIGH"},
                "order": 2,
            },
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
def created_automation(client, manager_headers):
    response = client.post(BASE_URL, json=_automation_body(), headers=manager_headers)
    assert response.status_code == 201
    return response.json()["data"]


def test_requires_authentication(client):
    response = client.get(BASE_URL)

    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "AUTH_MISSING_TOKEN"
    assert body["data"] is None


def test_rejects_invalid_token(client):
    response = client.get(BASE_URL, headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_INVALID_TOKEN"


def test_rejects_unknown_and_inactive_users(client, inactive_user):
    token = create_access_token({"sub": str(uuid4()), "role": "ADMIN"})
    response = client.get(BASE_URL, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_USER_NOT_FOUND"

    token = create_access_token({"sub": str(inactive_user.id), "role": inactive_user.role})
    response = client.get(BASE_URL, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTH_USER_INACTIVE"


def test_templates(client, agent_headers):
    triggers = client.get(f"{BASE_URL}/trigger-templates", headers=agent_headers)
    actions = client.get(f"{BASE_URL}/action-templates", headers=agent_headers)

    assert triggers.status_code == 200
    assert actions.status_code == 200
    assert len(triggers.json()["data"]) == 8
    assert {t["type"] for t in actions.json()["data"]} == {
        "SEND_EMAIL",
        "CREATE_TASK",
        "SCHEDULE_CALL",
        "ADD_TAG",
        "UPDATE_STATUS",
        "GENERATE_QUOTE",
        "ASSIGN_AGENT",
        "SEND_WHATSAPP",
    }


def test_create_automation(client, manager_headers, manager_user):
    response = client.post(BASE_URL, json=_automation_body(), headers=manager_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Bienvenida"
    assert data["triggerType"] == "CONTACT_CREATED"
    assert data["triggerConditions"] == {"status": "INTERESADO"}
    assert data["isActive"] is True
    assert data["createdById"] == str(manager_user.id)
    assert [a["actionType"] for a in data["actions"]] == ["ADD_TAG", "CREATE_TASK"]
    assert data["actions"][1]["parameters"] == {"title": "Llamar", "priority": "HIGH"}
    assert data["recentExecutions"] == []


def test_agents_cannot_create(client, agent_headers):
    response = client.post(BASE_URL, json=_automation_body(), headers=agent_headers)

    assert response.status_code == 403
    assert response.json()["error"]["details"] == {"required_roles": ["ADMIN", "MANAGER"]}


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"actions": []},
        {
            "actions": [
                {"actionType": "ADD_TAG", "parameters": {"tags": ["a"]}, "order": 1},
                {"actionType": "ADD_TAG", "parameters": {"tags": ["b"]}, "order": 1},
            ]
        },
        {"actions": [{"actionType": "SEND_EMAIL", "parameters": {}, "order": 1}]},
        {"triggerType": "CONTACT_DELETED"},
    ],
)
def test_create_validation_errors(client, manager_headers, overrides):
    response = client.post(BASE_URL, json=_automation_body(**overrides), headers=manager_headers)

    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["data"] is None


def test_list_is_scoped_to_owner(
    client, created_automation, manager_headers, other_manager_headers, admin_headers
):
    own = client.get(BASE_URL, headers=manager_headers).json()
    assert own["meta"]["total"] == 1
    assert own["data"][0]["id"] == created_automation["id"]

    other = client.get(BASE_URL, headers=other_manager_headers).json()
    assert other["meta"]["total"] == 0

    everything = client.get(BASE_URL, headers=admin_headers).json()
    assert everything["meta"]["total"] == 1


def test_list_filters(client, created_automation, manager_headers):
    response = client.get(
        BASE_URL, params={"is_active": "false"}, headers=manager_headers
    )
    assert response.json()["meta"]["total"] == 0

    response = client.get(
        BASE_URL, params={"trigger_type": "CONTACT_CREATED"}, headers=manager_headers
    )
    assert response.json()["meta"]["total"] == 1


def test_get_automation(client, created_automation, manager_headers, other_manager_headers):
    url = f"{BASE_URL}/{created_automation['id']}"

    assert client.get(url, headers=manager_headers).status_code == 200

    response = client.get(url, headers=other_manager_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "AUTOMATION_NOT_FOUND"

    response = client.get(f"{BASE_URL}/{uuid4()}", headers=manager_headers)
    assert response.status_code == 404


def test_update_replaces_actions(client, created_automation, manager_headers):
    response = client.put(
        f"{BASE_URL}/{created_automation['id']}",
        json={
            "name": "Bienvenida v2",
            "actions": [
                {"actionType": "UPDATE_STATUS", "parameters": {"status": "PASAJERO"}, "order": 1}
            ],
        },
        headers=manager_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Bienvenida v2"
    assert data["description"] == "Etiqueta y saluda a los nuevos contactos"
    assert [a["actionType"] for a in data["actions"]] == ["UPDATE_STATUS"]


def test_update_rejects_conditions_for_stored_type(client, created_automation, manager_headers):
    response = client.put(
        f"{BASE_URL}/{created_automation['id']}",
        json={"triggerConditions": {"status": "DESCONOCIDO"}},
        headers=manager_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "AUTOMATION_INVALID"


def test_toggle(client, created_automation, manager_headers):
    url = f"{BASE_URL}/{created_automation['id']}/toggle"

    assert client.patch(url, headers=manager_headers).json()["data"]["isActive"] is False
    assert client.patch(url, headers=manager_headers).json()["data"]["isActive"] is True


def test_delete(client, created_automation, manager_headers):
    url = f"{BASE_URL}/{created_automation['id']}"

    response = client.delete(url, headers=manager_headers)
    assert response.status_code == 204
    assert client.get(url, headers=manager_headers).status_code == 404


def test_execute_and_history(client, db_session, created_automation, manager_headers, test_contact):
    url = f"{BASE_URL}/{created_automation['id']}"

    response = client.post(
        f"{url}/execute",
        json={"triggerData": {"contactId": str(test_contact.id)}},
        headers=manager_headers,
    )

    assert response.status_code == 200
    result = response.json()["data"]
    assert result["success"] is True
    assert result["executedCount"] == 2
    assert result["executionId"] is not None
    assert [a["status"] for a in result["actionsExecuted"]] == ["completed", "completed"]

    db_session.expire_all()
    assert "nuevo" in db_session.get(Contact, test_contact.id).tags

    history = client.get(f"{url}/executions", headers=manager_headers).json()
    assert history["meta"]["total"] == 1
    assert history["data"][0]["id"] == result["executionId"]
    assert history["data"][0]["status"] == "completed"
    assert history["data"][0]["triggeredBy"] == {"contactId": str(test_contact.id)}

    detail = client.get(url, headers=manager_headers).json()["data"]
    assert [e["id"] for e in detail["recentExecutions"]] == [result["executionId"]]


def test_execute_inactive_automation(client, created_automation, manager_headers):
    url = f"{BASE_URL}/{created_automation['id']}"
    client.patch(f"{url}/toggle", headers=manager_headers)

    response = client.post(f"{url}/execute", json={"triggerData": {}}, headers=manager_headers)

    assert response.status_code == 200
    result = response.json()["data"]
    assert result["success"] is False
    assert result["error"] == "Automation is not active"
    assert result["executionId"] is None
    assert client.get(f"{url}/executions", headers=manager_headers).json()["meta"]["total"] == 0


def test_stats(client, created_automation, manager_headers, other_manager_headers, test_contact):
    client.post(
        f"{BASE_URL}/{created_automation['id']}/execute",
        json={"triggerData": {"contactId": str(test_contact.id)}},
        headers=manager_headers,
    )

    stats = client.get(f"{BASE_URL}/stats", headers=manager_headers).json()["data"]
    assert stats["totalAutomations"] == 1
    assert stats["activeAutomations"] == 1
    assert stats["totalExecutions"] == 1
    assert stats["successRate"] == 100.0
    assert stats["recentActivity"][0]["automationName"] == "Bienvenida"

    other = client.get(f"{BASE_URL}/stats", headers=other_manager_headers).json()["data"]
    assert other["totalAutomations"] == 0
    assert other["successRate"] == 0.0


def test_openapi_documents_error_envelope(client):
    schema = client.get("/openapi.json").json()

    operation = schema["paths"][f"{BASE_URL}/{{automation_id}}"]["get"]
    assert operation["responses"]["404"]["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/ErrorResponse"
    }
    assert "ErrorDetail" in schema["components"]["schemas"]


def test_execute_audit_entry_without_execution_record(
    client, created_automation, manager_headers, caplog
):
    url = f"{BASE_URL}/{created_automation['id']}"
    client.patch(f"{url}/toggle", headers=manager_headers)
    caplog.set_level(logging.INFO, logger="bukialo.audit")

    client.post(f"{url}/execute", json={"triggerData": {}}, headers=manager_headers)

    [entry] = [
        r.getMessage()
        for r in caplog.records
        if r.name == "bukialo.audit" and "action=execute" in r.getMessage()
    ]
    assert "'execution_id': None" in entry
    assert "'execution_id': 'None'" not in entry
