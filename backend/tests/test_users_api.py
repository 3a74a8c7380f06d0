"""
Taskboard Backend — /api/users Endpoint Tests
===============================================

What:  End-to-end behaviour of the user routes against a real SQLite
       database and a temporary static root.

What we test:
    ✅ Create: 201, sanitized output, hashed storage, optional image
    ✅ Upload rejection: 415 with no row and no file left behind
    ✅ Field rules: phone, birthday (today ok, tomorrow not), required fields
    ✅ Unique fields: 422 naming the field; orphaned upload removed
    ✅ PUT: 201 under the URL id when missing, 200 when present, idempotent
    ✅ Pagination: slices, totals, defaults, bounds
    ✅ PATCH images (superseded files removed), tasks-of-user, delete with cascade
"""

from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import select

from taskboard.models import User
from taskboard.security import verify_password
from taskboard.validation import MESSAGES, utc_today

FORBIDDEN_KEYS = {"password", "passwordHash", "password_hash", "createdAt", "updatedAt", "created_at", "updated_at"}


def stored_files(settings) -> list:
    return [p for p in Path(settings.static_root).rglob("*") if p.is_file()]


def png_part(content: bytes, content_type: str = "image/png", filename: str = "avatar.png"):
    return {"image": (filename, content, content_type)}


def assert_sanitized(user: dict) -> None:
    assert not FORBIDDEN_KEYS & set(user)
    for value in user.values():
        assert value != "secret123"
        assert not (isinstance(value, str) and value.startswith("$2b$"))


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_create_returns_sanitized_user(self, test_client, user_form):
        response = await test_client.post("/api/users", data=user_form(1))

        assert response.status_code == 201
        user = response.json()
        assert user["id"] == 1
        assert user["nickname"] == "user1"
        assert user["tel"] == "0000000001"
        assert user["birthday"] == "1990-05-17"
        assert user["image"] is None
        assert_sanitized(user)

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, test_client, user_form, db_session):
        await test_client.post("/api/users", data=user_form(1))

        row = (await db_session.execute(select(User))).scalar_one()
        assert row.password_hash != "secret123"
        assert verify_password("secret123", row.password_hash)

    @pytest.mark.asyncio
    async def test_post_is_not_idempotent(self, create_user):
        first = await create_user(1)
        second = await create_user(2)
        assert first["id"] != second["id"]

    @pytest.mark.asyncio
    async def test_reread_never_exposes_password(self, test_client, create_user):
        created = await create_user(1)

        for response in (
            await test_client.get(f"/api/users/{created['id']}"),
            await test_client.get("/api/users"),
        ):
            assert "secret123" not in response.text
            assert "$2b$" not in response.text
        assert_sanitized((await test_client.get("/api/users")).json()["items"][0])

    @pytest.mark.asyncio
    async def test_create_with_image(self, test_client, user_form, settings, sample_png_bytes):
        response = await test_client.post(
            "/api/users", data=user_form(1), files=png_part(sample_png_bytes)
        )

        assert response.status_code == 201
        image = response.json()["image"]
        assert image.endswith(".png")
        assert not image.startswith("/")
        assert (Path(settings.static_root) / image).read_bytes() == sample_png_bytes

        served = await test_client.get(f"{settings.static_url}/{image}")
        assert served.status_code == 200
        assert served.content == sample_png_bytes

    @pytest.mark.asyncio
    async def test_text_plain_upload_is_415_with_nothing_persisted(self, test_client, user_form, settings):
        response = await test_client.post(
            "/api/users",
            data=user_form(1),
            files=png_part(b"just some text", content_type="text/plain", filename="notes.txt"),
        )

        assert response.status_code == 415
        assert "text/plain" in response.json()["message"]
        assert (await test_client.get("/api/users")).json()["total"] == 0
        assert stored_files(settings) == []

    @pytest.mark.asyncio
    async def test_empty_image_part_is_ignored(self, test_client, user_form, settings):
        response = await test_client.post("/api/users", data=user_form(1), files=png_part(b""))

        assert response.status_code == 201
        assert response.json()["image"] is None
        assert stored_files(settings) == []


class TestCreateUserValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tel", ["380501234567", "+38050123456", "05012345678", "phone", "0501234567\n", "0" + "\u0665" * 9]
    )
    async def test_bad_phone(self, test_client, user_form, tel):
        response = await test_client.post("/api/users", data=user_form(1, tel=tel))

        assert response.status_code == 422
        assert response.json() == [{"field": "tel", "message": MESSAGES["tel"]}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tel", ["+380501234567", "0501234567"])
    async def test_good_phone(self, test_client, user_form, tel):
        response = await test_client.post("/api/users", data=user_form(1, tel=tel))
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_birthday_today_is_accepted(self, test_client, user_form):
        today = utc_today().isoformat()
        response = await test_client.post("/api/users", data=user_form(1, birthday=today))

        assert response.status_code == 201
        assert response.json()["birthday"] == today

    @pytest.mark.asyncio
    async def test_birthday_tomorrow_is_rejected(self, test_client, user_form):
        tomorrow = (utc_today() + timedelta(days=1)).isoformat()
        response = await test_client.post("/api/users", data=user_form(1, birthday=tomorrow))

        assert response.status_code == 422
        assert response.json() == [{"field": "birthday", "message": MESSAGES["birthday"]}]

    @pytest.mark.asyncio
    async def test_missing_required_fields_are_listed(self, test_client):
        response = await test_client.post("/api/users", data={"gender": "male"})

        assert response.status_code == 422
        fields = {error["field"] for error in response.json()}
        assert fields == {"nickname", "email", "tel", "password"}

    @pytest.mark.asyncio
    async def test_duplicate_email_names_the_field(self, test_client, create_user, user_form):
        await create_user(1)
        response = await test_client.post("/api/users", data=user_form(2, email="user1@example.com"))

        assert response.status_code == 422
        assert response.json() == [{"field": "email", "message": "email is already taken"}]

    @pytest.mark.asyncio
    async def test_duplicate_with_upload_removes_the_file(
        self, test_client, create_user, user_form, settings, sample_png_bytes
    ):
        await create_user(1)
        response = await test_client.post(
            "/api/users",
            data=user_form(2, tel="0000000001"),
            files=png_part(sample_png_bytes),
        )

        assert response.status_code == 422
        assert response.json()[0]["field"] == "tel"
        assert stored_files(settings) == []


class TestPutUser:

    @pytest.mark.asyncio
    async def test_put_missing_id_creates_it(self, test_client, user_form):
        response = await test_client.put("/api/users/999", data=user_form(7))

        assert response.status_code == 201
        user = response.json()
        assert user["id"] == 999
        assert user["nickname"] == "user7"
        assert user["email"] == "user7@example.com"
        assert_sanitized(user)
        assert (await test_client.get("/api/users/999")).status_code == 200

    @pytest.mark.asyncio
    async def test_put_existing_id_updates_it(self, test_client, create_user):
        created = await create_user(5)

        response = await test_client.put(
            f"/api/users/{created['id']}", data={"nickname": "renamed", "role": "admin"}
        )

        assert response.status_code == 200
        user = response.json()
        assert user["id"] == created["id"]
        assert user["nickname"] == "renamed"
        assert user["role"] == "admin"
        assert user["email"] == created["email"]

    @pytest.mark.asyncio
    async def test_repeated_put_is_idempotent(self, test_client, create_user):
        created = await create_user(5)
        payload = {"nickname": "same", "tel": "+380671112233"}

        first = await test_client.put(f"/api/users/{created['id']}", data=payload)
        second = await test_client.put(f"/api/users/{created['id']}", data=payload)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert (await test_client.get("/api/users")).json()["total"] == 1

    @pytest.mark.asyncio
    async def test_put_missing_id_with_partial_payload_is_422(self, test_client):
        response = await test_client.put("/api/users/999", data={"nickname": "ghost"})

        assert response.status_code == 422
        assert {"email", "tel", "password"} <= {error["field"] for error in response.json()}
        assert (await test_client.get("/api/users/999")).status_code == 404

    @pytest.mark.asyncio
    async def test_put_invalid_field_on_existing_user_is_422(self, test_client, create_user):
        created = await create_user(1)

        response = await test_client.put(f"/api/users/{created['id']}", data={"tel": "123"})

        assert response.status_code == 422
        assert response.json() == [{"field": "tel", "message": MESSAGES["tel"]}]

    @pytest.mark.asyncio
    async def test_fallthrough_keeps_uploaded_image(self, test_client, user_form, settings, sample_png_bytes):
        response = await test_client.put(
            "/api/users/42", data=user_form(1), files=png_part(sample_png_bytes)
        )

        assert response.status_code == 201
        image = response.json()["image"]
        assert image is not None
        files = stored_files(settings)
        assert len(files) == 1
        assert files[0].name == Path(image).name

    @pytest.mark.asyncio
    async def test_generated_ids_continue_after_explicit_id(self, test_client, user_form, create_user):
        await test_client.put("/api/users/3", data=user_form(3))
        created = await create_user(4)
        assert created["id"] == 4

    @pytest.mark.asyncio
    async def test_put_password_is_rehashed(self, test_client, create_user, db_session):
        created = await create_user(1)

        await test_client.put(f"/api/users/{created['id']}", data={"password": "n3w-pass"})

        row = (await db_session.execute(select(User))).scalar_one()
        assert verify_password("n3w-pass", row.password_hash)
        assert not verify_password("secret123", row.password_hash)


class TestListUsers:

    @pytest.mark.asyncio
    async def test_second_page_of_ten(self, test_client, create_user):
        for n in range(1, 26):
            await create_user(n)

        response = await test_client.get("/api/users", params={"page": 2, "results": 10})

        assert response.status_code == 200
        body = response.json()
        assert [user["id"] for user in body["items"]] == list(range(11, 21))
        assert body["total"] == 25
        assert body["page"] == 2
        assert body["pageSize"] == 10

    @pytest.mark.asyncio
    async def test_defaults_to_first_page_of_default_size(self, test_client, create_user):
        for n in range(1, 13):
            await create_user(n)

        body = (await test_client.get("/api/users")).json()

        assert body["page"] == 1
        assert body["pageSize"] == 10
        assert [user["id"] for user in body["items"]] == list(range(1, 11))
        assert body["total"] == 12

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, test_client, create_user):
        await create_user(1)

        body = (await test_client.get("/api/users", params={"page": 5, "results": 10})).json()

        assert body["items"] == []
        assert body["total"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params,field",
        [
            ({"page": 0}, "page"),
            ({"page": -1}, "page"),
            ({"results": 0}, "results"),
            ({"results": 101}, "results"),
            ({"page": "two"}, "page"),
        ],
    )
    async def test_out_of_range_parameters(self, test_client, params, field):
        response = await test_client.get("/api/users", params=params)

        assert response.status_code == 422
        assert response.json()[0]["field"] == field


class TestUserImage:

    @pytest.mark.asyncio
    async def test_patch_replaces_image(self, test_client, create_user, settings, sample_png_bytes):
        created = await create_user(1)

        response = await test_client.patch(
            f"/api/users/{created['id']}/images",
            files=png_part(sample_png_bytes, content_type="image/gif", filename="a.gif"),
        )

        assert response.status_code == 200
        user = response.json()
        assert user["image"].endswith(".gif")
        assert user["nickname"] == created["nickname"]
        assert_sanitized(user)
        assert len(stored_files(settings)) == 1

    @pytest.mark.asyncio
    async def test_patch_again_removes_previous_file(self, test_client, create_user, settings, sample_png_bytes):
        created = await create_user(1)
        url = f"/api/users/{created['id']}/images"
        first = (await test_client.patch(url, files=png_part(sample_png_bytes))).json()["image"]

        response = await test_client.patch(
            url, files=png_part(sample_png_bytes, content_type="image/gif", filename="b.gif")
        )

        assert response.status_code == 200
        second = response.json()["image"]
        assert second != first
        assert [p.name for p in stored_files(settings)] == [Path(second).name]

    @pytest.mark.asyncio
    async def test_put_with_new_image_removes_previous_file(
        self, test_client, user_form, settings, sample_png_bytes
    ):
        created = await test_client.post("/api/users", data=user_form(1), files=png_part(sample_png_bytes))
        user_id = created.json()["id"]

        response = await test_client.put(
            f"/api/users/{user_id}", data={"role": "admin"}, files=png_part(sample_png_bytes)
        )

        assert response.status_code == 200
        assert [p.name for p in stored_files(settings)] == [Path(response.json()["image"]).name]

    @pytest.mark.asyncio
    async def test_patch_unknown_user_is_404(self, test_client, sample_png_bytes, settings):
        response = await test_client.patch("/api/users/77/images", files=png_part(sample_png_bytes))

        assert response.status_code == 404
        assert stored_files(settings) == []

    @pytest.mark.asyncio
    async def test_patch_wrong_type_is_415(self, test_client, create_user, settings):
        created = await create_user(1)

        response = await test_client.patch(
            f"/api/users/{created['id']}/images",
            files=png_part(b"%PDF-1.4", content_type="application/pdf", filename="cv.pdf"),
        )

        assert response.status_code == 415
        assert stored_files(settings) == []
        assert (await test_client.get(f"/api/users/{created['id']}")).json()["image"] is None

    @pytest.mark.asyncio
    async def test_patch_without_file_is_422(self, test_client, create_user):
        created = await create_user(1)

        response = await test_client.patch(f"/api/users/{created['id']}/images", data={"x": "y"})

        assert response.status_code == 422
        assert response.json()[0]["field"] == "image"


class TestUserTasksAndDelete:

    @pytest.mark.asyncio
    async def test_tasks_of_unknown_user_is_404(self, test_client):
        response = await test_client.get("/api/users/31/tasks")

        assert response.status_code == 404
        assert "message" in response.json()

    @pytest.mark.asyncio
    async def test_tasks_of_user(self, test_client, create_user):
        alice = await create_user(1, nickname="alice")
        bob = await create_user(2, nickname="bob")
        await test_client.post("/api/tasks", json={"body": "a1", "userId": alice["id"]})
        await test_client.post("/api/tasks", json={"body": "b1", "userId": bob["id"]})
        await test_client.post("/api/tasks", json={"body": "a2", "userId": alice["id"]})

        response = await test_client.get(f"/api/users/{alice['id']}/tasks")

        assert response.status_code == 200
        assert [task["body"] for task in response.json()] == ["a1", "a2"]
        assert all(task["userId"] == alice["id"] for task in response.json())

    @pytest.mark.asyncio
    async def test_tasks_of_user_without_tasks_is_empty(self, test_client, create_user):
        created = await create_user(1)
        response = await test_client.get(f"/api/users/{created['id']}/tasks")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_delete_cascades_to_tasks(self, test_client, create_user):
        alice = await create_user(1, nickname="alice")
        bob = await create_user(2, nickname="bob")
        await test_client.post("/api/tasks", json={"body": "a1", "userId": alice["id"]})
        await test_client.post("/api/tasks", json={"body": "b1", "userId": bob["id"]})

        response = await test_client.delete(f"/api/users/{alice['id']}")

        assert response.status_code == 204
        assert (await test_client.get(f"/api/users/{alice['id']}")).status_code == 404
        remaining = (await test_client.get("/api/tasks")).json()
        assert [task["body"] for task in remaining] == ["b1"]

    @pytest.mark.asyncio
    async def test_delete_unknown_user_is_404(self, test_client):
        assert (await test_client.delete("/api/users/5")).status_code == 404


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_request_id_header(self, test_client):
        response = await test_client.get("/api/users")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/users", headers={"X-Request-ID": "trace-1"})
        assert response.headers["X-Request-ID"] == "trace-1"
