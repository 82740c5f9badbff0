"""
StudyGrove Backend — Notes API Tests
=====================================

End-to-end through the FastAPI app with an in-memory database and the stub
identity verifier (see conftest.py).

What we test:
    ✅ Create / list / get / update / delete for the owner
    ✅ 401 without or with an unknown token
    ✅ 403 on another user's note, 404 on unknown ids
    ✅ 400 with the offending field on malformed input
"""

import pytest

pytestmark = pytest.mark.asyncio


async def _create(client, headers, **fields):
    body = {"title": "Photosynthesis", "content": "Light → sugar"}
    body.update(fields)
    response = await client.post("/api/notes", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateNote:
    async def test_create_returns_owned_note(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        assert isinstance(note["id"], int)
        assert note["userId"] == "alice"
        assert note["title"] == "Photosynthesis"
        assert note["isFavorite"] is False
        assert note["createdAt"]
        assert note["updatedAt"]

    async def test_client_supplied_user_id_is_ignored(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers, userId="bob")

        assert note["userId"] == "alice"

    async def test_create_favorite(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers, isFavorite=True)

        assert note["isFavorite"] is True

    async def test_missing_title_is_400_with_field(self, test_client, alice_headers):
        response = await test_client.post(
            "/api/notes", json={"content": "no title"}, headers=alice_headers
        )

        assert response.status_code == 400
        assert response.json()["field"] == "title"
        assert response.json()["message"]

    async def test_requires_token(self, test_client):
        response = await test_client.post("/api/notes", json={"title": "t", "content": "c"})

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}


class TestReadNotes:
    async def test_list_is_scoped_and_newest_first(self, test_client, alice_headers, bob_headers):
        first = await _create(test_client, alice_headers, title="first")
        second = await _create(test_client, alice_headers, title="second")
        await _create(test_client, bob_headers, title="bob's")

        response = await test_client.get("/api/notes", headers=alice_headers)

        assert response.status_code == 200
        assert [n["id"] for n in response.json()] == [second["id"], first["id"]]

    async def test_list_empty(self, test_client, bob_headers):
        response = await test_client.get("/api/notes", headers=bob_headers)

        assert response.status_code == 200
        assert response.json() == []

    async def test_get_own_note(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.get(f"/api/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 200
        assert response.json() == note

    async def test_get_other_users_note_is_forbidden(self, test_client, alice_headers, bob_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.get(f"/api/notes/{note['id']}", headers=bob_headers)

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}

    async def test_get_unknown_note_is_404(self, test_client, alice_headers):
        response = await test_client.get("/api/notes/9999", headers=alice_headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Note not found"}

    async def test_non_numeric_id_is_400(self, test_client, alice_headers):
        response = await test_client.get("/api/notes/abc", headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "note_id"

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer not-a-real-token"},
            {"Authorization": "Basic dXNlcjpwYXNz"},
        ],
    )
    async def test_bad_credentials_are_401(self, test_client, headers):
        response = await test_client.get("/api/notes", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}


class TestUpdateNote:
    async def test_partial_update_changes_only_sent_fields(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}",
            json={"isFavorite": True},
            headers=alice_headers,
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["isFavorite"] is True
        assert updated["title"] == note["title"]
        assert updated["content"] == note["content"]
        assert updated["createdAt"] == note["createdAt"]
        assert updated["updatedAt"] >= note["updatedAt"]

    async def test_update_title_and_content(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}",
            json={"title": "Respiration", "content": "Sugar → energy"},
            headers=alice_headers,
        )

        assert response.json()["title"] == "Respiration"
        assert response.json()["content"] == "Sugar → energy"

    async def test_update_other_users_note_is_forbidden(self, test_client, alice_headers, bob_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json={"title": "hijacked"}, headers=bob_headers
        )
        after = await test_client.get(f"/api/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 403
        assert after.json()["title"] == note["title"]

    async def test_update_unknown_note_is_404(self, test_client, alice_headers):
        response = await test_client.put(
            "/api/notes/4242", json={"title": "x"}, headers=alice_headers
        )

        assert response.status_code == 404

    async def test_wrong_type_is_400(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json={"isFavorite": "definitely"}, headers=alice_headers
        )

        assert response.status_code == 400
        assert response.json()["field"] == "isFavorite"

    async def test_bad_body_on_foreign_note_is_forbidden(self, test_client, alice_headers, bob_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json={"title": 5}, headers=bob_headers
        )

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}

    async def test_bad_body_on_unknown_note_is_404(self, test_client, alice_headers):
        response = await test_client.put(
            "/api/notes/4242", json={"title": 5}, headers=alice_headers
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Note not found"}

    async def test_bad_body_on_own_note_names_field(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json={"title": 5}, headers=alice_headers
        )
        after = await test_client.get(f"/api/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["field"] == "title"
        assert response.json()["message"]
        assert after.json()["title"] == note["title"]

    async def test_non_object_body_is_400(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.put(
            f"/api/notes/{note['id']}", json=[1, 2], headers=alice_headers
        )

        assert response.status_code == 400
        assert response.json()["field"] is None


class TestDeleteNote:
    async def test_delete_then_get_is_404(self, test_client, alice_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.delete(f"/api/notes/{note['id']}", headers=alice_headers)
        after = await test_client.get(f"/api/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 204
        assert response.content == b""
        assert after.status_code == 404

    async def test_delete_other_users_note_is_forbidden(self, test_client, alice_headers, bob_headers):
        note = await _create(test_client, alice_headers)

        response = await test_client.delete(f"/api/notes/{note['id']}", headers=bob_headers)
        after = await test_client.get(f"/api/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 403
        assert after.status_code == 200

    async def test_delete_unknown_note_is_404(self, test_client, alice_headers):
        response = await test_client.delete("/api/notes/31337", headers=alice_headers)

        assert response.status_code == 404
