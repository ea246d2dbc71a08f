"""
Integration tests for the HTTP API.

The application runs in-process through httpx's ASGI transport with the
request session and the broadcaster replaced by the test fixtures.
"""
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from kanban.core.broadcast import get_broadcaster
from kanban.core.database import get_db_session
from kanban.core.security import create_access_token
from main import create_application

pytestmark = pytest.mark.integration

API = "/api/v1"


def auth_headers(user) -> dict:
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(db_session, broadcaster):
    """HTTP client bound to the test session and broadcaster."""
    app = create_application()

    async def override_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestAuthentication:
    """Test principal resolution at the API edge."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(f"{API}/workspaces")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/workspaces", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_unknown_user(self, client):
        token = create_access_token({"sub": uuid4()})

        response = await client.get(f"{API}/workspaces", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client, owner_user):
        response = await client.get(
            f"{API}/workspaces", headers={**auth_headers(owner_user), "X-Request-ID": "req-123"}
        )

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-123"


class TestWorkspaceEndpoints:
    """Test workspace endpoints."""

    @pytest.mark.asyncio
    async def test_create_and_list_workspaces(self, client, outsider_user):
        headers = auth_headers(outsider_user)

        created = await client.post(f"{API}/workspaces", json={"name": "Mine"}, headers=headers)
        listed = await client.get(f"{API}/workspaces", headers=headers)

        assert created.status_code == 201
        assert created.json()["owner_id"] == str(outsider_user.id)
        assert listed.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_member_conflicts(self, client, workspace, owner_user, member_user):
        response = await client.post(
            f"{API}/workspaces/{workspace.id}/members",
            json={"user_id": str(member_user.id)},
            headers=auth_headers(owner_user),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "RESOURCE_CONFLICT"

    @pytest.mark.asyncio
    async def test_member_cannot_delete_workspace(self, client, workspace, member_user):
        response = await client.delete(f"{API}/workspaces/{workspace.id}", headers=auth_headers(member_user))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ACCESS_DENIED"


class TestBoardEndpoints:
    """Test board reads."""

    @pytest.mark.asyncio
    async def test_board_detail(self, client, board, lists, member_user, make_card):
        await make_card(lists[0], "C1", 0)

        response = await client.get(f"{API}/boards/{board.id}", headers=auth_headers(member_user))

        assert response.status_code == 200
        body = response.json()
        assert [board_list["name"] for board_list in body["lists"]] == ["L1", "L2", "L3"]
        assert body["lists"][0]["cards"][0]["title"] == "C1"

    @pytest.mark.asyncio
    async def test_missing_board(self, client, member_user):
        response = await client.get(f"{API}/boards/{uuid4()}", headers=auth_headers(member_user))

        assert response.status_code == 404
        assert response.json()["error"]["details"]["resource"] == "Board"

    @pytest.mark.asyncio
    async def test_malformed_board_id(self, client, member_user):
        response = await client.get(f"{API}/boards/not-a-uuid", headers=auth_headers(member_user))

        assert response.status_code == 422


class TestListEndpoints:
    """Test list structure endpoints."""

    @pytest.mark.asyncio
    async def test_member_cannot_move_list(self, client, board, lists, member_user):
        response = await client.post(
            f"{API}/lists/{lists[0].id}/move", json={"new_position": 2}, headers=auth_headers(member_user)
        )
        listed = await client.get(f"{API}/boards/{board.id}/lists", headers=auth_headers(member_user))

        assert response.status_code == 403
        assert [board_list["name"] for board_list in listed.json()["lists"]] == ["L1", "L2", "L3"]

    @pytest.mark.asyncio
    async def test_owner_moves_list(self, client, board, lists, owner_user):
        response = await client.post(
            f"{API}/lists/{lists[0].id}/move", json={"new_position": 2}, headers=auth_headers(owner_user)
        )
        listed = await client.get(f"{API}/boards/{board.id}/lists", headers=auth_headers(owner_user))

        assert response.status_code == 200
        assert response.json()["position"] == 2
        assert [(l["name"], l["position"]) for l in listed.json()["lists"]] == [
            ("L2", 0), ("L3", 1), ("L1", 2)
        ]


class TestCardEndpoints:
    """Test card endpoints."""

    @pytest.mark.asyncio
    async def test_create_card(self, client, lists, member_user, make_card):
        await make_card(lists[0], "C1", 0)
        await make_card(lists[0], "C2", 1)

        response = await client.post(
            f"{API}/cards",
            json={"list_id": str(lists[0].id), "title": "C3"},
            headers=auth_headers(member_user),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["position"] == 2
        assert body["priority"] == "medium"
        assert body["version"] == 1

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, client, lists, member_user):
        response = await client.post(
            f"{API}/cards",
            json={"list_id": str(lists[0].id), "title": "   "},
            headers=auth_headers(member_user),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_move_card_across_lists(self, client, lists, member_user, make_card):
        card = await make_card(lists[0], "C", 0)
        await make_card(lists[1], "C4", 0)
        headers = auth_headers(member_user)

        response = await client.post(
            f"{API}/cards/{card.id}/move",
            json={"target_list_id": str(lists[1].id), "new_position": 0},
            headers=headers,
        )
        target = await client.get(f"{API}/lists/{lists[1].id}/cards", headers=headers)

        assert response.status_code == 200
        assert response.json()["list_id"] == str(lists[1].id)
        assert [(c["title"], c["position"]) for c in target.json()["cards"]] == [("C", 0), ("C4", 1)]

    @pytest.mark.asyncio
    async def test_member_cannot_delete_others_card(self, client, lists, owner_user, member_user, make_card):
        card = await make_card(lists[0], "C1", 0, created_by=owner_user)

        response = await client.delete(f"{API}/cards/{card.id}", headers=auth_headers(member_user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_creator_deletes_card(self, client, lists, member_user, make_card):
        card = await make_card(lists[0], "C1", 0, created_by=member_user)
        headers = auth_headers(member_user)

        deleted = await client.delete(f"{API}/cards/{card.id}", headers=headers)
        fetched = await client.get(f"{API}/cards/{card.id}", headers=headers)

        assert deleted.status_code == 200
        assert deleted.json()["success"] is True
        assert fetched.status_code == 404


class TestHealthEndpoints:
    """Test health and metrics endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        response = await client.get(f"{API}/metrics")

        assert response.status_code == 200
        assert "board_event_delivery_failures_total" in response.text
