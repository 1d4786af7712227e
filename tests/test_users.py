"""Tests for registration, login and profile endpoints."""

import pytest

from resort_api.core.config import settings
from resort_api.core.security import decode_access_token
from resort_api.models import User, UserRole
from tests.utils import DEFAULT_PASSWORD, auth_headers, make_user, registration_payload

PICTURE_URL_PREFIX = "https://cdn.resort.com/"


class TestRegister:

    async def test_register_creates_user_and_token(self, client):
        response = await client.post("/api/users/register", json=registration_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User registered successfully"
        user = body["user"]
        assert user["username"] == "asha_n"
        assert user["email"] == "asha@resort.com"
        assert user["phone"] == "+919876543210"
        assert user["role"] == "user"
        assert user["isActive"] is True
        assert "password" not in user
        assert "passwordHash" not in user
        assert "password_hash" not in user

        assert decode_access_token(body["token"]) == user["id"]

    async def test_register_normalizes_case(self, client):
        response = await client.post(
            "/api/users/register",
            json=registration_payload(username="Asha_N", email="Asha@Resort.COM", name="  Asha  "),
        )

        assert response.status_code == 201
        user = await User.get(username="asha_n")
        assert user.email == "asha@resort.com"
        assert user.name == "Asha"

    @pytest.mark.parametrize("missing", ["name", "username", "email", "phone", "password"])
    async def test_register_requires_all_fields(self, client, missing):
        payload = registration_payload()
        del payload[missing]

        response = await client.post("/api/users/register", json=payload)

        assert response.status_code == 400
        assert response.json() == {"message": "All required fields must be provided"}

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"name": " A "}, "Name must be at least 2 characters long"),
            ({"email": "not-an-email"}, "Please provide a valid email address"),
            ({"phone": "12ab"}, "Please provide a valid phone number"),
            ({"username": "ab"}, "Username must be between 3 and 20 characters"),
            ({"username": "a" * 21}, "Username must be between 3 and 20 characters"),
            ({"username": "asha-n"}, "Username can only contain letters, numbers, and underscores"),
            ({"password": "12345"}, "Password must be at least 6 characters long"),
            ({"name": "A" * 101}, "Name must be at most 100 characters long"),
            ({"password": "pass\u0000word"}, "Password must not contain null characters"),
        ],
    )
    async def test_register_field_validation(self, client, overrides, message):
        response = await client.post("/api/users/register", json=registration_payload(**overrides))

        assert response.status_code == 400
        assert response.json() == {"message": message}
        assert await User.all().count() == 0

    async def test_duplicate_email(self, client, regular_user):
        response = await client.post(
            "/api/users/register", json=registration_payload(email="GUEST@resort.com")
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Email already registered"}

    async def test_duplicate_username(self, client, regular_user):
        response = await client.post(
            "/api/users/register", json=registration_payload(username="Guest")
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Username already taken"}

    async def test_duplicate_phone(self, client, regular_user):
        response = await client.post(
            "/api/users/register", json=registration_payload(phone="+91 98000 00001")
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Phone number already registered"}

    async def test_email_reported_when_email_and_username_collide(self, client, regular_user):
        response = await client.post(
            "/api/users/register",
            json=registration_payload(username="guest", email="guest@resort.com"),
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Email already registered"}

    async def test_register_refused_without_signing_key(self, client, monkeypatch):
        monkeypatch.setattr(settings, "JWT_SECRET", None)

        response = await client.post("/api/users/register", json=registration_payload())

        assert response.status_code == 500
        assert response.json() == {"message": "Server error"}
        assert await User.all().count() == 0

    async def test_wrong_body_type_is_a_bad_request(self, client):
        response = await client.post("/api/users/register", json=registration_payload(name=42))

        assert response.status_code == 400
        assert "name" in response.json()["message"]

    async def test_name_at_column_limit(self, client):
        response = await client.post("/api/users/register", json=registration_payload(name="A" * 100))

        assert response.status_code == 201
        assert (await User.get(username="asha_n")).name == "A" * 100


class TestLogin:

    async def test_login_with_username_or_email(self, client):
        register = await client.post("/api/users/register", json=registration_payload())
        user_id = register.json()["user"]["id"]

        for identifier in ("asha_n", "ASHA@resort.com"):
            response = await client.post(
                "/api/users/login",
                json={"emailOrUsername": identifier, "password": DEFAULT_PASSWORD},
            )
            assert response.status_code == 200
            body = response.json()
            assert body["message"] == "Login successful"
            assert decode_access_token(body["token"]) == user_id

    async def test_wrong_password_and_unknown_user_look_the_same(self, client, regular_user):
        wrong_password = await client.post(
            "/api/users/login", json={"emailOrUsername": "guest", "password": "password124"}
        )
        unknown_user = await client.post(
            "/api/users/login", json={"emailOrUsername": "nobody", "password": DEFAULT_PASSWORD}
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json() == {"message": "Invalid credentials"}

    async def test_deactivated_account(self, client, db):
        await make_user(username="sleeper", phone="+919800000009", is_active=False)

        response = await client.post(
            "/api/users/login", json={"emailOrUsername": "sleeper", "password": "wrong-password"}
        )

        # Active check comes before the password check
        assert response.status_code == 401
        assert response.json() == {"message": "Account is deactivated"}

    async def test_missing_credentials(self, client, db):
        response = await client.post("/api/users/login", json={"emailOrUsername": "guest"})

        assert response.status_code == 400
        assert response.json() == {"message": "Email/Username and password are required"}


class TestProfile:

    async def test_get_profile(self, client, regular_user, user_headers):
        response = await client.get("/api/users/profile", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "guest"

    async def test_partial_update_leaves_other_fields(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile", headers=user_headers, json={"name": "Guest Renamed"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated successfully"
        stored = await User.get(id=regular_user.id)
        assert stored.name == "Guest Renamed"
        assert stored.email == "guest@resort.com"
        assert stored.phone == "+919800000001"
        assert stored.username == "guest"
        assert stored.password_hash == regular_user.password_hash

    async def test_update_contact_fields(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile",
            headers=user_headers,
            json={"email": "New@Resort.com", "phone": "(022) 555-0199", "username": "New_Guest"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "new@resort.com"
        assert user["phone"] == "0225550199"
        assert user["username"] == "new_guest"

    async def test_keeping_own_values_is_not_a_conflict(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile",
            headers=user_headers,
            json={"email": "guest@resort.com", "username": "guest", "phone": "+919800000001"},
        )

        assert response.status_code == 200

    @pytest.mark.parametrize(
        "body,message",
        [
            ({"email": "manager@resort.com"}, "Email already registered by another user"),
            ({"phone": "+919800000002"}, "Phone number already registered by another user"),
            ({"username": "MANAGER"}, "Username already taken"),
        ],
    )
    async def test_update_conflicts(self, client, regular_user, admin_user, user_headers, body, message):
        response = await client.put("/api/users/profile", headers=user_headers, json=body)

        assert response.status_code == 400
        assert response.json() == {"message": message}

    @pytest.mark.parametrize(
        "body,message",
        [
            ({"name": "x"}, "Name must be at least 2 characters long"),
            ({"email": "bad@"}, "Please provide a valid email address"),
            ({"phone": "call me"}, "Please provide a valid phone number"),
            ({"username": "no spaces"}, "Username can only contain letters, numbers, and underscores"),
            ({"dateOfBirth": "31/31/1990"}, "Please provide a valid date of birth"),
            ({"name": "A" * 101}, "Name must be at most 100 characters long"),
            (
                {"profilePicture": PICTURE_URL_PREFIX + "p" * (501 - len(PICTURE_URL_PREFIX))},
                "Profile picture URL must be at most 500 characters long",
            ),
        ],
    )
    async def test_update_validation(self, client, regular_user, user_headers, body, message):
        response = await client.put("/api/users/profile", headers=user_headers, json=body)

        assert response.status_code == 400
        assert response.json() == {"message": message}

    async def test_address_object_is_completed(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile",
            headers=user_headers,
            json={"address": {"city": "Panaji", "zipCode": "403001"}},
        )

        assert response.status_code == 200
        assert response.json()["user"]["address"] == {
            "street": "",
            "city": "Panaji",
            "state": "",
            "zipCode": "403001",
            "country": "",
        }

    async def test_address_string_becomes_street(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile", headers=user_headers, json={"address": "  12 Beach Road "}
        )

        assert response.status_code == 200
        stored = await User.get(id=regular_user.id)
        assert stored.address == {
            "street": "12 Beach Road",
            "city": "",
            "state": "",
            "zipCode": "",
            "country": "",
        }

    async def test_date_of_birth_and_picture(self, client, regular_user, user_headers):
        response = await client.put(
            "/api/users/profile",
            headers=user_headers,
            json={"dateOfBirth": "1990-05-17", "profilePicture": "https://cdn.resort.com/p.png"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["dateOfBirth"] == "1990-05-17"
        assert user["profilePicture"] == "https://cdn.resort.com/p.png"

        cleared = await client.put(
            "/api/users/profile", headers=user_headers, json={"dateOfBirth": ""}
        )
        assert cleared.json()["user"]["dateOfBirth"] is None

    async def test_free_text_at_column_limits(self, client, regular_user, user_headers):
        picture = PICTURE_URL_PREFIX + "p" * (500 - len(PICTURE_URL_PREFIX))

        response = await client.put(
            "/api/users/profile",
            headers=user_headers,
            json={"name": "N" * 100, "profilePicture": picture},
        )

        assert response.status_code == 200
        stored = await User.get(id=regular_user.id)
        assert stored.name == "N" * 100
        assert stored.profile_picture == picture


class TestAdminUsers:

    async def test_list_all_hides_password_hash(self, client, regular_user, admin_headers):
        response = await client.get("/api/users/all", headers=admin_headers)

        assert response.status_code == 200
        users = response.json()["users"]
        assert {u["username"] for u in users} == {"guest", "manager"}
        for user in users:
            assert not any("password" in key.lower() for key in user)

    async def test_create_admin(self, client, admin_headers):
        response = await client.post(
            "/api/users/admin",
            headers=admin_headers,
            json=registration_payload(username="frontdesk", email="desk@resort.com"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Admin user created successfully"
        assert body["user"]["role"] == "admin"
        assert "token" not in body
        assert (await User.get(username="frontdesk")).role == UserRole.ADMIN

    async def test_create_admin_validates_like_register(self, client, admin_headers):
        response = await client.post(
            "/api/users/admin",
            headers=admin_headers,
            json=registration_payload(username="manager", email="other@resort.com"),
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Username already taken"}

    async def test_create_admin_rejects_unhashable_password(self, client, admin_headers):
        response = await client.post(
            "/api/users/admin",
            headers=admin_headers,
            json=registration_payload(username="frontdesk", password="desk\u0000pass"),
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Password must not contain null characters"}
        assert not await User.filter(username="frontdesk").exists()

    async def test_create_admin_requires_admin(self, client, user_headers):
        response = await client.post(
            "/api/users/admin", headers=user_headers, json=registration_payload()
        )

        assert response.status_code == 403

    async def test_created_admin_can_use_admin_routes(self, client, admin_headers):
        await client.post(
            "/api/users/admin",
            headers=admin_headers,
            json=registration_payload(username="frontdesk", email="desk@resort.com"),
        )
        new_admin = await User.get(username="frontdesk")

        response = await client.get("/api/users/all", headers=auth_headers(new_admin))

        assert response.status_code == 200
