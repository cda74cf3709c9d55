# tests/test_auth.py
from __future__ import annotations

import pytest

from app.core.security import create_access_token
from conftest import auth_headers, create_user


async def login(client, email: str) -> str:
    r = await client.post("/api/v1/auth/request-code", json={"email": email})
    assert r.status_code == 200, r.text
    code = r.json()["code"]

    r = await client.post("/api/v1/auth/verify-code", json={"email": email, "code": code})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


@pytest.mark.asyncio
async def test_magic_code_login_roundtrip(client, db):
    user = await create_user(db, "ana@example.com", "EXECUTIVE")
    await db.commit()

    token = await login(client, "ANA@example.com")

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["id"] == str(user.id)
    assert r.json()["role"] == "EXECUTIVE"


@pytest.mark.asyncio
async def test_code_is_single_use(client, db):
    await create_user(db, "ana@example.com")
    await db.commit()

    r = await client.post("/api/v1/auth/request-code", json={"email": "ana@example.com"})
    code = r.json()["code"]

    r = await client.post("/api/v1/auth/verify-code", json={"email": "ana@example.com", "code": code})
    assert r.status_code == 200

    r = await client.post("/api/v1/auth/verify-code", json={"email": "ana@example.com", "code": code})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_or_inactive_accounts_cannot_request_codes(client, db):
    await create_user(db, "gone@example.com", is_active=False)
    await db.commit()

    r = await client.post("/api/v1/auth/request-code", json={"email": "nobody@example.com"})
    assert r.status_code == 404

    r = await client.post("/api/v1/auth/request-code", json={"email": "gone@example.com"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_wrong_code_is_rejected(client, db):
    await create_user(db, "ana@example.com")
    await db.commit()

    r = await client.post("/api/v1/auth/request-code", json={"email": "ana@example.com"})
    code = r.json()["code"]
    wrong = "000000" if code != "000000" else "111111"

    r = await client.post("/api/v1/auth/verify-code", json={"email": "ana@example.com", "code": wrong})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_bad_tokens_are_rejected(client, db):
    user = await create_user(db, "ana@example.com")
    await db.commit()

    r = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

    r = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {create_access_token(str(user.id), expires_minutes=-5)}"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user_token_stops_working(client, db):
    user = await create_user(db, "ana@example.com")
    await db.commit()
    headers = auth_headers(user)

    user.is_active = False
    await db.commit()

    r = await client.get("/api/v1/auth/me", headers=headers)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_profile_update(client, db):
    user = await create_user(db, "ana@example.com")
    await db.commit()
    headers = auth_headers(user)

    r = await client.patch(
        "/api/v1/auth/me",
        json={
            "name": "  Ana   Souza ",
            "location": "São Paulo, SP",
            "pj_details": {
                "cnpj": "12.345.678/0001-90",
                "legal_name": "Ana Souza Consultoria ME",
                "address": "Rua A, 10",
                "city": "São Paulo",
                "state": "SP",
                "bank_info": {"bank": "001", "agency": "1234", "account": "98765-4", "pix_key": "ana@example.com"},
            },
        },
        headers=headers,
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Ana Souza"
    assert body["pj_details"]["bank_info"]["pix_key"] == "ana@example.com"

    r = await client.patch("/api/v1/auth/me", json={}, headers=headers)
    assert r.status_code == 400

    # role is ADMIN-managed
    r = await client.patch("/api/v1/auth/me", json={"role": "ADMIN"}, headers=headers)
    assert r.status_code == 422
