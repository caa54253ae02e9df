"""Registration, login and the ownership boundary (require_path_owner).

Learn: Tests cover:
1. Registration + duplicate prevention
2. Login → token; failures indistinguishable
3. Every step of the path-owner check, each yielding the same 403 body
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tasklist.auth.jwt import TokenService
from tasklist.errors import StoreError
from tasklist.services.user_service import _dummy_hash, warm_login_guard


DENIED = {"error": "permission denied"}


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    """Register returns the public view of the user, never the digest."""
    r = await client.post(
        "/register",
        json={"username": "carol", "email": "carol@example.com", "password": "pw-123456"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["username"] == "carol"
    assert user["email"] == "carol@example.com"
    uuid.UUID(user["id"])
    assert "password" not in user
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_register_stores_bcrypt_digest(client, store):
    r = await client.post(
        "/register",
        json={"username": "dave", "email": "dave@example.com", "password": "hunter2"},
    )
    stored = await store.get_user_by_id(uuid.UUID(r.json()["id"]))
    assert stored.password_hash.startswith("$2")
    assert stored.password_hash != "hunter2"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Same email twice → 400 with a readable message."""
    body = {"username": "erin", "email": "erin@example.com", "password": "pw"}
    r1 = await client.post("/register", json=body)
    assert r1.status_code == 201

    r2 = await client.post("/register", json={**body, "username": "erin2"})
    assert r2.status_code == 400
    assert r2.json() == {"error": "email already registered"}


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["username", "email", "password"])
async def test_register_requires_all_fields(client, missing):
    body = {"username": "frank", "email": "frank@example.com", "password": "pw"}
    body.pop(missing)
    r = await client.post("/register", json=body)
    assert r.status_code == 400
    assert missing in r.json()["error"]


@pytest.mark.asyncio
async def test_register_malformed_json(client):
    r = await client.post(
        "/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, alice, tokens):
    r = await client.post(
        "/login", json={"email": alice["email"], "password": alice["password"]}
    )
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"username", "token"}
    assert body["username"] == "alice"
    assert tokens.verify(body["token"]) == uuid.UUID(alice["id"])


@pytest.mark.asyncio
async def test_login_wrong_password_matches_unknown_email(client, alice):
    """Wrong password and unknown email look exactly the same."""
    wrong_pw = await client.post(
        "/login", json={"email": alice["email"], "password": "not-it"}
    )
    no_user = await client.post(
        "/login", json={"email": "nobody@example.com", "password": "not-it"}
    )
    assert wrong_pw.status_code == no_user.status_code == 403
    assert wrong_pw.json() == no_user.json() == DENIED


@pytest.mark.asyncio
async def test_login_guard_digest_precomputed():
    """Startup fills the dummy digest, so no login pays for creating it."""
    _dummy_hash.cache_clear()
    await warm_login_guard()
    assert _dummy_hash.cache_info().currsize == 1
    assert _dummy_hash().startswith("$2")


# ═══════════════════════════════════════════════════════════
# Ownership boundary
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_can_access_own_tasks(client, alice):
    r = await client.get(f"/tasks/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_missing_header(client, alice):
    r = await client.get(f"/tasks/{alice['id']}")
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header",
    [
        "Bearer {token}",       # wrong scheme tag
        "jwt {token}",          # scheme is case-sensitive
        "JWT",                  # no token
        "JWT {token} extra",    # three parts
        "JWT  {token}",         # double space → three parts
        "{token}",              # no scheme
    ],
)
async def test_malformed_header(client, alice, header):
    r = await client.get(
        f"/tasks/{alice['id']}",
        headers={"Authorization": header.format(token=alice["token"])},
    )
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_other_users_token_rejected(client, alice, bob):
    """Bob's perfectly valid token does not open Alice's paths."""
    r = await client.get(f"/tasks/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 403
    assert r.json() == DENIED

    r = await client.get(f"/users/{alice['id']}", headers=bob["headers"])
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_claim_mismatch_rejected_regardless_of_signature(
    client, alice, bob, signing_secret, foreign_secret
):
    """A token whose claim isn't the path user is denied, signed right or wrong."""
    good_sig = TokenService(signing_secret).issue(uuid.UUID(bob["id"]))
    bad_sig = TokenService(foreign_secret).issue(uuid.UUID(bob["id"]))
    for token in (good_sig, bad_sig):
        r = await client.get(
            f"/tasks/{alice['id']}", headers={"Authorization": f"JWT {token}"}
        )
        assert r.status_code == 403
        assert r.json() == DENIED


@pytest.mark.asyncio
async def test_forged_token_for_path_user_rejected(client, alice, foreign_secret):
    """Right claim, wrong key."""
    forged = TokenService(foreign_secret).issue(uuid.UUID(alice["id"]))
    r = await client.get(
        f"/tasks/{alice['id']}", headers={"Authorization": f"JWT {forged}"}
    )
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_expired_token_on_task_route(client, alice, signing_secret):
    """Expired token on /tasks/{user}/{task} → 403 with exactly the denied body."""
    r = await client.post(
        f"/tasks/{alice['id']}",
        json={"title": "Water plants", "deadline": "2025-06-01"},
        headers=alice["headers"],
    )
    task_id = r.json()["task_id"]

    long_ago = datetime.now(timezone.utc) - timedelta(days=2)
    expired = TokenService(signing_secret, clock=lambda: long_ago).issue(uuid.UUID(alice["id"]))

    r = await client.get(
        f"/tasks/{alice['id']}/{task_id}",
        headers={"Authorization": f"JWT {expired}"},
    )
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_alg_none_token_rejected(client, alice):
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    unsigned = jwt.encode({"user_id": alice["id"], "exp": exp}, key=None, algorithm="none")
    r = await client.get(
        f"/tasks/{alice['id']}", headers={"Authorization": f"JWT {unsigned}"}
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_invalid_path_identity(client, alice):
    """A path user id that isn't a UUID is an auth failure, not a 400."""
    r = await client.get("/tasks/not-a-uuid", headers=alice["headers"])
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_unknown_path_user(client, tokens):
    """Valid token for a user that doesn't exist (e.g. deleted) → 403."""
    ghost = uuid.uuid4()
    token = tokens.issue(ghost)
    r = await client.get(f"/tasks/{ghost}", headers={"Authorization": f"JWT {token}"})
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_token_dies_with_its_user(client, alice):
    r = await client.delete(f"/users/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 200

    r = await client.get(f"/users/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_method_not_allowed_answered_before_auth(client, alice):
    """Unmatched method is a 405 even with no credentials at all."""
    r = await client.patch(f"/tasks/{alice['id']}", json={})
    assert r.status_code == 405
    assert r.json() == {"error": "method not allowed"}


@pytest.mark.asyncio
async def test_store_fault_during_auth_is_denied(client, alice, store, monkeypatch):
    """A failing user lookup is a 403, never a storage error."""
    async def broken_lookup(user_id):
        raise StoreError("connection reset")

    monkeypatch.setattr(store, "get_user_by_id", broken_lookup)

    r = await client.get(f"/tasks/{alice['id']}", headers=alice["headers"])
    assert r.status_code == 403
    assert r.json() == DENIED


# ═══════════════════════════════════════════════════════════
# Auth before body
# ═══════════════════════════════════════════════════════════

BROKEN_JSON = {"content": b"{not json", "headers": {"Content-Type": "application/json"}}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("POST", "/tasks/{uid}"),
        ("PUT", "/tasks/{uid}/00000000-0000-0000-0000-000000000000"),
        ("PUT", "/users/{uid}"),
    ],
)
async def test_broken_body_without_token_is_denied(client, alice, method, path):
    """No token means 403, however broken the body is."""
    r = await client.request(method, path.format(uid=alice["id"]), **BROKEN_JSON)
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
async def test_broken_body_with_foreign_token_is_denied(client, alice, bob):
    r = await client.request(
        "PUT",
        f"/users/{alice['id']}",
        content=b"{not json",
        headers={"Content-Type": "application/json", **bob["headers"]},
    )
    assert r.status_code == 403
    assert r.json() == DENIED


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/tasks/{uid}", "/users/{uid}"])
async def test_broken_body_with_owner_token_is_400(client, alice, path):
    method = "POST" if path.startswith("/tasks") else "PUT"
    r = await client.request(
        method,
        path.format(uid=alice["id"]),
        content=b"{not json",
        headers={"Content-Type": "application/json", **alice["headers"]},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "malformed JSON body"}


@pytest.mark.asyncio
async def test_wrong_field_type_with_owner_token_is_400(client, alice):
    r = await client.post(
        f"/tasks/{alice['id']}",
        json={"title": 42, "deadline": "2025-06-01"},
        headers=alice["headers"],
    )
    assert r.status_code == 400
    assert r.json()["error"].startswith("title:")
