"""
Tests for the authentication routes.

The identity provider is mocked; profile creation runs against the
in-memory data layer through a scoped fake client.
"""

import pytest
from unittest.mock import AsyncMock, patch

from conftest import ALICE_ID
from soundnest.core.errors import UpstreamAuthError
from soundnest.schemas.auth import AuthSession, SignUpResult

USER = {
    "id": ALICE_ID,
    "email": "u@example.com",
    "user_metadata": {"username": "roadie"},
}


@pytest.fixture
def session():
    return AuthSession(access_token="alice-token", refresh_token="refresh", user=USER)


@pytest.fixture
def scoped_clients(make_data_client):
    """Route profile creation through the fake data layer."""
    with patch(
        "soundnest.api.routes.auth.create_scoped_client", side_effect=make_data_client
    ) as factory:
        yield factory


def test_register_creates_profile(client, database, session, scoped_clients):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=USER, session=session)
        response = client.post(
            "/auth/register",
            json={"email": "u@example.com", "password": "secret", "username": "roadie"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"] == "alice-token"
    assert body["refresh_token"] == "refresh"
    assert body["profile"]["username"] == "roadie"
    assert body["message"] == "Registration successful. Profile created."
    mock_sign_up.assert_awaited_once_with("u@example.com", "secret", "roadie")
    # The profile is written as the new user, never with an admin identity
    scoped_clients.assert_called_once_with("alice-token")
    assert len(database.rows["profiles"]) == 1


def test_register_trims_username(client, database, session, scoped_clients):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=USER, session=session)
        response = client.post(
            "/auth/register",
            json={"email": "u@example.com", "password": "secret", "username": "  road_trip-1 "},
        )

    assert response.status_code == 200
    mock_sign_up.assert_awaited_once_with("u@example.com", "secret", "road_trip-1")
    assert database.rows["profiles"][0]["username"] == "road_trip-1"

def test_register_is_idempotent_for_profile(client, database, session, scoped_clients):
    database.seed("profiles", user_id=ALICE_ID, username="already")

    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=USER, session=session)
        response = client.post(
            "/auth/register", json={"email": "u@example.com", "password": "secret"}
        )

    assert response.status_code == 200
    assert response.json()["profile"]["username"] == "already"
    assert response.json()["message"] == "Registration successful. Existing profile found."
    assert len(database.rows["profiles"]) == 1


def test_register_default_username(client, database, scoped_clients):
    user = {"id": ALICE_ID, "email": "u@example.com"}
    session = AuthSession(access_token="alice-token", user=user)

    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=user, session=session)
        response = client.post(
            "/auth/register", json={"email": "u@example.com", "password": "secret"}
        )

    assert response.json()["profile"]["username"] == f"u_{ALICE_ID[:8]}"


def test_register_username_collision_gets_suffix(client, database, session, scoped_clients):
    database.seed("profiles", user_id="someone-else", username="roadie")

    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=USER, session=session)
        response = client.post(
            "/auth/register",
            json={"email": "u@example.com", "password": "secret", "username": "roadie"},
        )

    assert response.status_code == 200
    assert response.json()["profile"]["username"].startswith("roadie_")


def test_register_pending_confirmation(client, database, scoped_clients):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        mock_sign_up.return_value = SignUpResult(user=USER)
        response = client.post(
            "/auth/register", json={"email": "u@example.com", "password": "secret"}
        )

    assert response.status_code == 200
    body = response.json()
    assert "access_token" not in body
    assert "check your email" in body["message"]
    scoped_clients.assert_not_called()
    assert database.rows["profiles"] == []


@pytest.mark.parametrize(
    "payload",
    [
        {"password": "secret"},
        {"email": "u@example.com"},
        {"email": "not-an-email", "password": "secret"},
        {"email": "u@example.com", "password": ""},
        {"email": "u@example.com", "password": "secret", "username": "bad name!" + "x" * 60},
        {"email": "u@example.com", "password": "secret", "username": "x" * 51},
        {"email": "u@example.com", "password": "secret", "username": "   "},
        {"email": "u@example.com", "password": "secret", "username": 7},
    ],
)
def test_register_validation(client, database, payload):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up", new_callable=AsyncMock
    ) as mock_sign_up:
        response = client.post("/auth/register", json=payload)

    assert response.status_code == 400
    mock_sign_up.assert_not_called()
    assert database.rows["profiles"] == []


def test_register_rejected_by_provider(client):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_up",
        new_callable=AsyncMock,
        side_effect=UpstreamAuthError("User already registered"),
    ):
        response = client.post(
            "/auth/register", json={"email": "u@example.com", "password": "secret"}
        )

    assert response.status_code == 400
    assert response.json()["error"] == "User already registered"


def test_login_returns_tokens_and_ensures_profile(client, database, session, scoped_clients):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_in_with_password",
        new_callable=AsyncMock,
    ) as mock_sign_in:
        mock_sign_in.return_value = session
        response = client.post(
            "/auth/login", json={"email": "u@example.com", "password": "secret"}
        )

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == ALICE_ID
    assert body["access_token"] == "alice-token"
    assert body["profile"]["username"] == "roadie"
    assert len(database.rows["profiles"]) == 1


def test_login_bad_credentials(client):
    with patch(
        "soundnest.api.routes.auth.AuthService.sign_in_with_password",
        new_callable=AsyncMock,
        side_effect=UpstreamAuthError("Invalid login credentials"),
    ):
        response = client.post(
            "/auth/login", json={"email": "u@example.com", "password": "wrong"}
        )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid login credentials"


def test_login_missing_fields(client):
    response = client.post("/auth/login", json={"email": "u@example.com"})
    assert response.status_code == 400


def test_refresh(client, session):
    with patch(
        "soundnest.api.routes.auth.AuthService.refresh_session", new_callable=AsyncMock
    ) as mock_refresh:
        mock_refresh.return_value = session
        response = client.post("/auth/refresh", json={"refresh_token": "refresh"})

    assert response.status_code == 200
    assert response.json()["access_token"] == "alice-token"
    mock_refresh.assert_awaited_once_with("refresh")
