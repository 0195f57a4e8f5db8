"""API tests for /api/v1/tickets"""

from datetime import datetime, timezone

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from ticketdesk.api.deps import get_correlation_id_dep
from ticketdesk.domain.enums import TicketStatus
from ticketdesk.main import app
from ticketdesk.utils.jwt import JWTValidator

BASE = "/api/v1/tickets"


@pytest.fixture
def client():
    # No context manager: lifespan (indexes, scheduler) stays off
    return TestClient(app)


@pytest.fixture
def auth(actors):
    validator = JWTValidator()

    def _headers(actor):
        return {"Authorization": f"Bearer {validator.create_token(actor)}"}

    return _headers


@pytest.fixture
def created(client, auth, actors):
    response = client.post(
        f"{BASE}/",
        json={"subject": "Monitor flickers", "description": "Since Monday", "department_id": "d-it"},
        headers=auth(actors.requester),
    )
    assert response.status_code == 201
    return response.json()


class TestAuth:

    def test_missing_token(self, client, directory):
        response = client.get(f"{BASE}/")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    def test_garbage_token(self, client, directory):
        response = client.get(f"{BASE}/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_correlation_id_is_echoed(self, client, auth, actors):
        response = client.get(f"{BASE}/", headers={**auth(actors.admin), "X-Correlation-Id": "COR-test-1"})
        assert response.headers["X-Correlation-Id"] == "COR-test-1"

    def test_correlation_id_resolved_before_auth(self):
        routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith(BASE)]

        assert routes
        for route in routes:
            assert route.dependant.dependencies[0].call is get_correlation_id_dep, route.path


class TestTicketEndpoints:

    def test_create_and_get(self, client, auth, actors, created):
        assert created["status"] == "OPEN"
        assert created["priority"] == "MEDIUM"
        assert created["department"]["name"] == "IT"

        response = client.get(f"{BASE}/{created['ticket_id']}", headers=auth(actors.requester))
        assert response.status_code == 200
        assert response.json()["subject"] == "Monitor flickers"
        assert "history" not in response.json()

    def test_create_validation_error(self, client, auth, actors):
        response = client.post(f"{BASE}/", json={"subject": "No body"}, headers=auth(actors.requester))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_list_paginated(self, client, auth, actors, created):
        response = client.get(f"{BASE}/", params={"page": 1, "page_size": 10}, headers=auth(actors.admin))

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 1
        assert body["items"][0]["ticket_id"] == created["ticket_id"]
        assert "comments" not in body["items"][0]

    def test_list_filter_by_status(self, client, auth, actors, created):
        response = client.get(f"{BASE}/", params={"status": "CLOSED"}, headers=auth(actors.admin))
        assert response.json()["total"] == 0

    def test_assign_and_history(self, client, auth, actors, created):
        ticket_id = created["ticket_id"]

        response = client.post(
            f"{BASE}/{ticket_id}/assign", json={"assignee_id": "u-agent"}, headers=auth(actors.agent)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "IN_PROGRESS"

        history = client.get(f"{BASE}/{ticket_id}/history", headers=auth(actors.agent)).json()["items"]
        assert [(h["kind"], h["old_value"], h["new_value"]) for h in history] == [
            ("AGENT_ASSIGNED", "unassigned", "Alex Agent")
        ]

    def test_requester_cannot_read_history(self, client, auth, actors, created):
        response = client.get(f"{BASE}/{created['ticket_id']}/history", headers=auth(actors.requester))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_update_null_clears_section(self, client, auth, actors, insert_ticket):
        stored = insert_ticket(section_id="s-net")

        response = client.put(f"{BASE}/{stored.ticket_id}", json={"section_id": None}, headers=auth(actors.admin))

        assert response.status_code == 200
        assert response.json()["section"] is None
        assert response.json()["department"]["department_id"] == "d-it"

    def test_invalid_section_relationship(self, client, auth, actors, created):
        response = client.put(
            f"{BASE}/{created['ticket_id']}", json={"section_id": "s-pay"}, headers=auth(actors.admin)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_RELATIONSHIP"

    def test_requester_status_change_forbidden(self, client, auth, actors, created):
        response = client.put(
            f"{BASE}/{created['ticket_id']}", json={"status": "CLOSED"}, headers=auth(actors.requester)
        )
        assert response.status_code == 403

    def test_delete(self, client, auth, actors, created):
        response = client.delete(f"{BASE}/{created['ticket_id']}", headers=auth(actors.admin))
        assert response.status_code == 204

        response = client.get(f"{BASE}/{created['ticket_id']}", headers=auth(actors.admin))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TICKET_NOT_FOUND"


class TestCommentEndpoints:

    def test_reply_flow(self, client, auth, actors, created):
        ticket_id = created["ticket_id"]
        client.post(f"{BASE}/{ticket_id}/assign", json={"assignee_id": "u-agent"}, headers=auth(actors.agent))

        response = client.post(
            f"{BASE}/{ticket_id}/comments", json={"content": "Which cable?"}, headers=auth(actors.agent)
        )
        assert response.status_code == 201
        comment_id = response.json()["comment_id"]

        ticket = client.get(f"{BASE}/{ticket_id}", headers=auth(actors.requester)).json()
        assert ticket["status"] == "WAITING_REQUESTER"

        client.post(
            f"{BASE}/{ticket_id}/comments", json={"content": "HDMI"}, headers=auth(actors.requester)
        )
        ticket = client.get(f"{BASE}/{ticket_id}", headers=auth(actors.requester)).json()
        assert ticket["status"] == "WAITING_AGENT"

        response = client.get(f"{BASE}/{ticket_id}/comments/{comment_id}", headers=auth(actors.requester))
        assert response.json()["content"] == "Which cable?"

    def test_internal_comment_hidden_from_requester(self, client, auth, actors, created):
        ticket_id = created["ticket_id"]
        client.post(
            f"{BASE}/{ticket_id}/comments",
            json={"content": "Known driver bug", "is_internal": True},
            headers=auth(actors.agent),
        )

        requester_view = client.get(f"{BASE}/{ticket_id}/comments", headers=auth(actors.requester)).json()
        agent_view = client.get(f"{BASE}/{ticket_id}/comments", headers=auth(actors.agent)).json()

        assert requester_view["items"] == []
        assert len(agent_view["items"]) == 1

    def test_edit_and_delete_comment(self, client, auth, actors, created):
        ticket_id = created["ticket_id"]
        comment_id = client.post(
            f"{BASE}/{ticket_id}/comments", json={"content": "teh screen"}, headers=auth(actors.requester)
        ).json()["comment_id"]

        response = client.put(
            f"{BASE}/{ticket_id}/comments/{comment_id}",
            json={"content": "the screen"},
            headers=auth(actors.requester),
        )
        assert response.json()["content"] == "the screen"

        response = client.delete(f"{BASE}/{ticket_id}/comments/{comment_id}", headers=auth(actors.requester))
        assert response.status_code == 204


class TestTenantBoundary:

    def test_foreign_tenant_gets_not_found(self, client, auth, actors, created):
        response = client.get(f"{BASE}/{created['ticket_id']}", headers=auth(actors.globex_admin))
        assert response.status_code == 404

    def test_subdomain_must_match_token(self, auth, actors, created):
        globex_host = TestClient(app, base_url="http://globex.ticketdesk.io")

        response = globex_host.get(f"{BASE}/", headers=auth(actors.admin))

        assert response.status_code == 403

    def test_matching_subdomain(self, auth, actors, created):
        acme_host = TestClient(app, base_url="http://acme.ticketdesk.io")

        response = acme_host.get(f"{BASE}/", headers=auth(actors.admin))

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_unknown_subdomain(self, auth, actors):
        unknown_host = TestClient(app, base_url="http://initech.ticketdesk.io")

        response = unknown_host.get(f"{BASE}/", headers=auth(actors.admin))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TENANT_NOT_FOUND"


class TestAnalyticsAndLifecycle:

    def test_analytics_stats(self, client, auth, actors, insert_ticket):
        insert_ticket(
            status=TicketStatus.RESOLVED,
            assignee=actors.agent,
            created_at=datetime(2024, 3, 2, 6, tzinfo=timezone.utc),
            resolved_at=datetime(2024, 3, 2, 9, tzinfo=timezone.utc),
        )

        response = client.get(
            f"{BASE}/analytics/stats",
            params={"start_date": "2024-03-01", "end_date": "2024-03-10", "view_mode": "DAILY"},
            headers=auth(actors.admin),
        )

        body = response.json()
        assert response.status_code == 200
        assert len(body["general"]) == 10
        assert body["general"][1] == {"period": "2024-03-02", "count": 1}
        assert body["average_resolution_time"] == pytest.approx(3.0)
        assert body["by_person"][0]["name"] == "Alex Agent"

    def test_analytics_inverted_range(self, client, auth, actors):
        response = client.get(
            f"{BASE}/analytics/stats",
            params={"start_date": "2024-03-10", "end_date": "2024-03-01"},
            headers=auth(actors.admin),
        )
        assert response.status_code == 400

    def test_analytics_refused_for_requester(self, client, auth, actors):
        response = client.get(f"{BASE}/analytics/stats", headers=auth(actors.requester))
        assert response.status_code == 403

    def test_auto_close_admin_only(self, client, auth, actors, insert_ticket):
        old = datetime(2024, 1, 1, tzinfo=timezone.utc)
        insert_ticket(status=TicketStatus.RESOLVED, created_at=old, updated_at=old, resolved_at=old)

        assert client.post(f"{BASE}/auto-close", headers=auth(actors.agent)).status_code == 403

        response = client.post(f"{BASE}/auto-close", headers=auth(actors.admin))
        assert response.status_code == 200
        assert response.json() == {"closed": 1}
