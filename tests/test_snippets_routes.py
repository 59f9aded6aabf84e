"""
mdsnips: Snippet Route Tests
==============================

What:  End-to-end HTTP tests for the /md endpoints and /health, through the
       full middleware stack, against a real SQLite database.

What we test:
    ✅ POST /md: 201 with camelCase fields and the update key; 400 on bad input
    ✅ GET /md/{id}: 200 without the update key; 404 for unknown ids
    ✅ PATCH /md: 200 with the right key; 401 otherwise, data untouched
    ✅ GET /md/search: pagination, sort, text filter, bad parameters
    ✅ GET /md (deprecated listing)
    ✅ DELETE /md/{id}: key required, 204 then 404
    ✅ Persistence failures answer 500 with the error shape, context kept in the log
    ✅ Store validation errors answer 400 with field details
    ✅ /health and X-Request-ID propagation
"""

from unittest.mock import AsyncMock

import pytest

from mdsnips.dependencies import get_snippet_store
from mdsnips.exceptions import PersistenceError, ValidationError


async def _create(client, title="Hello", body="# Hi"):
    response = await client.post("/md", json={"title": title, "body": body})
    assert response.status_code == 201
    return response.json()


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_returns_snippet_and_key(self, test_client):
        response = await test_client.post("/md", json={"title": "Hello", "body": "# Hi"})

        assert response.status_code == 201
        data = response.json()
        assert set(data) == {"id", "title", "body", "createDate", "updateKey"}
        assert data["title"] == "Hello"
        assert data["body"] == "# Hi"
        assert data["id"]
        assert data["updateKey"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "", "body": "# Hi"},
            {"title": "Hello", "body": ""},
            {"title": "x" * 65, "body": "# Hi"},
            {"title": "Hello", "body": "b" * 64_001},
            {"title": "Hello"},
            {},
        ],
    )
    async def test_invalid_body_is_400(self, test_client, payload):
        response = await test_client.post("/md", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["details"]["errors"]

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client):
        response = await test_client.post(
            "/md",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_boundary_lengths_are_accepted(self, test_client):
        response = await test_client.post("/md", json={"title": "x" * 64, "body": "b" * 64_000})

        assert response.status_code == 201


class TestGet:

    @pytest.mark.asyncio
    async def test_get_returns_snippet_without_key(self, test_client):
        created = await _create(test_client)

        response = await test_client.get(f"/md/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"id", "title", "body", "createDate"}
        assert data["id"] == created["id"]
        assert data["body"] == "# Hi"
        assert created["updateKey"] not in response.text

    @pytest.mark.asyncio
    async def test_get_unknown_is_404(self, test_client):
        response = await test_client.get("/md/doesnotexist")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "not_found"
        assert "request_id" in data


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_with_key(self, test_client):
        created = await _create(test_client)

        response = await test_client.patch(
            "/md",
            json={
                "id": created["id"],
                "updateKey": created["updateKey"],
                "title": "Hello 2",
                "body": "# Hi again",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["title"] == "Hello 2"
        assert data["createDate"] == created["createDate"]
        assert "updateKey" not in data

        fetched = (await test_client.get(f"/md/{created['id']}")).json()
        assert fetched["body"] == "# Hi again"

    @pytest.mark.asyncio
    async def test_wrong_key_is_401_and_unchanged(self, test_client):
        created = await _create(test_client)

        response = await test_client.patch(
            "/md",
            json={"id": created["id"], "updateKey": "wrong", "title": "Hacked", "body": "pwned"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Update Key"
        fetched = (await test_client.get(f"/md/{created['id']}")).json()
        assert fetched["title"] == "Hello"
        assert fetched["body"] == "# Hi"

    @pytest.mark.asyncio
    async def test_unknown_id_is_401(self, test_client):
        response = await test_client.patch(
            "/md",
            json={"id": "missing", "updateKey": "key", "title": "T", "body": "B"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_key_is_400(self, test_client):
        created = await _create(test_client)

        response = await test_client.patch(
            "/md",
            json={"id": created["id"], "title": "T", "body": "B"},
        )

        assert response.status_code == 400


class TestSearch:

    @pytest.mark.asyncio
    async def test_defaults_and_projection(self, test_client):
        for i in range(12):
            await _create(test_client, title=f"Snippet {i}", body=f"body {i}")

        response = await test_client.get("/md/search")

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 10
        assert set(items[0]) == {"id", "title", "createDate"}
        assert items[0]["title"] == "Snippet 11"

    @pytest.mark.asyncio
    async def test_pagination_and_sort(self, test_client):
        created = [await _create(test_client, title=f"Snippet {i}") for i in range(5)]

        page = (await test_client.get("/md/search", params={"limit": 2, "skip": 1, "sort": "createDate_ASC"})).json()
        tail = (await test_client.get("/md/search", params={"limit": 10, "skip": 4})).json()

        assert [item["id"] for item in page] == [created[1]["id"], created[2]["id"]]
        assert [item["id"] for item in tail] == [created[0]["id"]]

    @pytest.mark.asyncio
    async def test_text_filter(self, test_client):
        wanted = await _create(test_client, title="Python tips", body="list comprehensions")
        await _create(test_client, title="Groceries", body="milk")

        items = (await test_client.get("/md/search", params={"text": "comprehensions"})).json()

        assert [item["id"] for item in items] == [wanted["id"]]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [{"sort": "title_ASC"}, {"limit": 0}, {"limit": 101}, {"skip": -1}, {"limit": "ten"}],
    )
    async def test_invalid_parameters_are_400(self, test_client, params):
        response = await test_client.get("/md/search", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestDeprecatedList:

    @pytest.mark.asyncio
    async def test_list_all(self, test_client):
        await _create(test_client, title="One")
        await _create(test_client, title="Two")

        response = await test_client.get("/md")

        assert response.status_code == 200
        assert sorted(item["title"] for item in response.json()) == ["One", "Two"]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_with_key(self, test_client):
        created = await _create(test_client)

        response = await test_client.delete(
            f"/md/{created['id']}",
            headers={"X-Update-Key": created["updateKey"]},
        )

        assert response.status_code == 204
        assert (await test_client.get(f"/md/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_with_wrong_key_is_401(self, test_client):
        created = await _create(test_client)

        response = await test_client.delete(
            f"/md/{created['id']}",
            headers={"X-Update-Key": "wrong"},
        )

        assert response.status_code == 401
        assert (await test_client.get(f"/md/{created['id']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_without_key_is_400(self, test_client):
        created = await _create(test_client)

        response = await test_client.delete(f"/md/{created['id']}")

        assert response.status_code == 400


class TestServerErrors:

    @pytest.mark.asyncio
    async def test_persistence_error_is_500(self, api_app, test_client):
        store = AsyncMock()
        store.get.side_effect = PersistenceError("Database operation timed out")
        api_app.dependency_overrides[get_snippet_store] = lambda: store

        response = await test_client.get("/md/abc")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "server_error"
        assert data["message"] == "Database operation timed out"

    @pytest.mark.asyncio
    async def test_persistence_context_is_not_returned(self, api_app, test_client):
        store = AsyncMock()
        store.list_all.side_effect = PersistenceError(context={"operation": "list", "error_type": "OperationalError"})
        api_app.dependency_overrides[get_snippet_store] = lambda: store

        response = await test_client.get("/md")

        assert response.status_code == 500
        assert "details" not in response.json()
        assert "OperationalError" not in response.text

    @pytest.mark.asyncio
    async def test_store_validation_error_returns_field_details(self, api_app, test_client):
        store = AsyncMock()
        store.search.side_effect = ValidationError(
            message="`title_ASC` is not a valid value for sort",
            field="sort",
            context={"allowed": ["createDate_ASC", "createDate_DESC"]},
        )
        api_app.dependency_overrides[get_snippet_store] = lambda: store

        response = await test_client.get("/md/search")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["details"] == {
            "allowed": ["createDate_ASC", "createDate_DESC"],
            "field": "sort",
        }


class TestHealthAndRequestId:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/md/search", headers={"X-Request-ID": "abc12345"})

        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/md/search")

        assert len(response.headers["X-Request-ID"]) == 8
