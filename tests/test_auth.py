from datetime import datetime, timedelta, timezone

import jwt
import pytest

from intake_backend.errors import Unauthorized
from intake_backend.services.auth_service import (
    AuthUser,
    decode_access_token,
    hash_password,
    sign_access_token,
    verify_password,
)

from .conftest import JWT_SECRET


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret", rounds=4)

    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("")


def test_access_token_roundtrip():
    user = AuthUser(id="u-1", role="admin", email="a@example.com", name="A")

    decoded = decode_access_token(sign_access_token(user, secret=JWT_SECRET), secret=JWT_SECRET)

    assert decoded == user


def test_expired_access_token():
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = sign_access_token(AuthUser(id="u-1", role="user"), secret=JWT_SECRET, now=issued)

    with pytest.raises(Unauthorized):
        decode_access_token(token, secret=JWT_SECRET)


def test_access_token_signed_with_another_secret():
    token = sign_access_token(AuthUser(id="u-1", role="user"), secret="x" * 40)

    with pytest.raises(Unauthorized):
        decode_access_token(token, secret=JWT_SECRET)


def test_access_token_without_role():
    token = jwt.encode({"sub": "u-1"}, JWT_SECRET, algorithm="HS256")

    with pytest.raises(Unauthorized):
        decode_access_token(token, secret=JWT_SECRET)


def test_login_me_logout(client, admin_user):
    res = client.post("/auth/login", json={"email": "ADMIN@example.com", "password": "admin-pass"})

    assert res.status_code == 200
    body = res.json()
    assert body["user"] == {
        "id": admin_user.id,
        "role": "admin",
        "name": "Admin User",
        "email": "admin@example.com",
    }

    res = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert res.status_code == 200
    assert res.json()["user"]["id"] == admin_user.id

    res = client.post("/auth/logout")
    assert res.status_code == 200
    assert res.json()["success"] is True
    assert "auth-token=" in res.headers["set-cookie"]


@pytest.mark.parametrize(
    "email, password",
    [("admin@example.com", "wrong"), ("nobody@example.com", "admin-pass")],
)
def test_login_failures_share_one_message(client, admin_user, email, password):
    res = client.post("/auth/login", json={"email": email, "password": password})

    assert res.status_code == 401
    assert res.json() == {"error": "Invalid email or password", "code": "unauthorized"}


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer "}, {"Authorization": "Bearer not.a.jwt"}],
)
def test_me_rejects_bad_credentials(client, headers):
    res = client.get("/auth/me", headers=headers)

    assert res.status_code == 401
    assert res.json()["code"] == "unauthorized"
