"""Admin API tests — access control, moderation, maintenance, audit review, users."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from app.core.errors import InvalidStateError
from app.models.audit_log import AuditLog
from app.services.identity import IdentityService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


async def _voted_game(client):
    """Game in the voting phase with one image, one meme and one vote."""
    game = (await client.post(
        "/api/v1/games", json={"name": "Mod me", "creatorName": "Alice"},
    )).json()
    gid = game["id"]
    image = (await client.post(
        f"/api/v1/games/{gid}/upload",
        files={"image": ("a.png", PNG, "image/png")},
    )).json()
    await client.post(f"/api/v1/games/{gid}/next-phase")
    meme = (await client.post(
        f"/api/v1/games/{gid}/memes/create", json={"imageId": image["id"]},
    )).json()
    await client.post(f"/api/v1/games/{gid}/next-phase")
    await client.post(
        f"/api/v1/games/{gid}/memes/{meme['id']}/vote", json={"voter": "Alice"},
    )
    return game, image, meme


async def _audit_actions(test_db):
    test_db.expire_all()
    return list((await test_db.execute(select(AuditLog.action))).scalars().all())


# --- Access control -----------------------------------------------------------

async def test_requires_token(client):
    res = await client.get("/api/v1/admin/games")
    assert res.status_code == 401


async def test_non_admin_is_forbidden_and_audited(client, test_db, user_headers):
    res = await client.get("/api/v1/admin/dashboard", headers=user_headers)
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "PERMISSION_DENIED"
    assert "UNAUTHORIZED_ACCESS_ATTEMPT" in await _audit_actions(test_db)


# --- Games --------------------------------------------------------------------

async def test_games_with_stats(client, test_db, admin_headers):
    game, _, _ = await _voted_game(client)
    res = await client.get("/api/v1/admin/games", headers=admin_headers)

    assert res.status_code == 200
    (listed,) = res.json()
    assert listed["id"] == game["id"]
    assert listed["stats"] == {"imageCount": 1, "memeCount": 1, "voteCount": 1}
    assert "ADMIN_VIEWED_ALL_GAMES" in await _audit_actions(test_db)


async def test_game_details(client, admin_headers):
    game, image, meme = await _voted_game(client)
    res = await client.get(
        f"/api/v1/admin/games/{game['id']}/details", headers=admin_headers,
    )
    body = res.json()
    assert body["game"]["status"] == "voting"
    assert [i["id"] for i in body["images"]] == [image["id"]]
    assert body["memes"][0]["id"] == meme["id"]
    assert body["memes"][0]["voteCount"] == 1
    assert body["totalVotes"] == 1


async def test_set_status_override(client, test_db, admin_headers):
    game = (await client.post(
        "/api/v1/games", json={"name": "g", "creatorName": "Alice"},
    )).json()
    res = await client.patch(
        f"/api/v1/admin/games/{game['id']}/status",
        json={"status": "voting"}, headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "voting"

    test_db.expire_all()
    entry = (await test_db.execute(
        select(AuditLog).where(AuditLog.action == "ADMIN_CHANGED_GAME_STATUS"),
    )).scalar_one()
    assert entry.details["oldStatus"] == "collecting"
    assert entry.details["isForwardTransition"] is False


async def test_set_status_rejects_unknown_status(client, admin_headers):
    game = (await client.post(
        "/api/v1/games", json={"name": "g", "creatorName": "Alice"},
    )).json()
    res = await client.patch(
        f"/api/v1/admin/games/{game['id']}/status",
        json={"status": "paused"}, headers=admin_headers,
    )
    assert res.status_code == 400


async def test_delete_game_removes_files(client, blob_store, admin_headers):
    game, image, _ = await _voted_game(client)
    res = await client.delete(
        f"/api/v1/admin/games/{game['id']}", headers=admin_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["deletedFiles"] == 1
    assert body["missingFiles"] == 0
    assert not await blob_store.exists(image["imagePath"])

    gone = await client.get(f"/api/v1/games/{game['id']}")
    assert gone.status_code == 404


async def test_delete_unknown_game(client, admin_headers):
    res = await client.delete(f"/api/v1/admin/games/{uuid4()}", headers=admin_headers)
    assert res.status_code == 404


# --- Maintenance & monitoring -------------------------------------------------

@pytest.mark.parametrize("cleanup_type", ["games", "images", "all"])
async def test_manual_cleanup(client, admin_headers, cleanup_type):
    res = await client.post(
        "/api/v1/admin/maintenance/cleanup",
        json={"type": cleanup_type}, headers=admin_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["type"] == cleanup_type
    if cleanup_type == "all":
        assert body["result"]["success"] is True
    elif cleanup_type == "games":
        assert body["result"]["deletedGames"] == 0
    else:
        assert body["result"]["deleted"] == 0


async def test_cleanup_rejects_unknown_type(client, admin_headers):
    res = await client.post(
        "/api/v1/admin/maintenance/cleanup",
        json={"type": "everything"}, headers=admin_headers,
    )
    assert res.status_code == 400


async def test_dashboard(client, admin_headers):
    await _voted_game(client)
    res = await client.get("/api/v1/admin/dashboard", headers=admin_headers)
    body = res.json()
    assert body["overview"]["totalGames"] == 1
    assert body["overview"]["activeGames"] == 1
    assert body["overview"]["totalVotes"] == 1
    assert body["recentActivity"]["logins"] == 1
    assert body["storage"]["fileCount"] == 1
    assert body["serverInfo"]["cleanupRunning"] is False


async def test_storage_status(client, admin_headers):
    res = await client.get("/api/v1/admin/storage-status", headers=admin_headers)
    assert res.json()["fileCount"] == 0
    assert res.json()["thresholdExceeded"] is False


async def test_audit_logs_and_stats(client, admin_headers):
    await client.get("/api/v1/admin/games", headers=admin_headers)

    logs = (await client.get(
        "/api/v1/admin/audit-logs", params={"limit": 1}, headers=admin_headers,
    )).json()
    assert logs["total"] == 2
    assert len(logs["logs"]) == 1
    assert logs["logs"][0]["action"] == "ADMIN_VIEWED_ALL_GAMES"

    stats = (await client.get(
        "/api/v1/admin/audit-stats", headers=admin_headers,
    )).json()
    counts = {s["action"]: s["count"] for s in stats["stats"]}
    assert counts == {"LOGIN_SUCCESS": 1, "ADMIN_VIEWED_ALL_GAMES": 1}


# --- Users --------------------------------------------------------------------

async def test_user_management(client, admin_headers, admin_user):
    created = await client.post(
        "/api/v1/admin/users",
        json={"username": "mod-two", "password": "long-enough", "role": "admin"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    user = created.json()
    assert user["role"] == "admin" and user["active"] is True

    duplicate = await client.post(
        "/api/v1/admin/users",
        json={"username": "mod-two", "password": "long-enough"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    toggled = await client.patch(
        f"/api/v1/admin/users/{user['id']}/toggle-status", headers=admin_headers,
    )
    assert toggled.json()["active"] is False

    listed = (await client.get("/api/v1/admin/users", headers=admin_headers)).json()
    assert {u["username"] for u in listed} == {"root-admin", "mod-two"}

    deleted = await client.delete(
        f"/api/v1/admin/users/{user['id']}", headers=admin_headers,
    )
    assert deleted.status_code == 200


async def test_invalid_new_user(client, admin_headers):
    res = await client.post(
        "/api/v1/admin/users",
        json={"username": "abc", "password": "short"},
        headers=admin_headers,
    )
    assert res.status_code == 400


async def test_admin_cannot_remove_themselves(client, admin_headers, admin_user):
    toggle = await client.patch(
        f"/api/v1/admin/users/{admin_user.id}/toggle-status", headers=admin_headers,
    )
    delete = await client.delete(
        f"/api/v1/admin/users/{admin_user.id}", headers=admin_headers,
    )
    assert toggle.status_code == 400
    assert delete.status_code == 400


async def test_last_admin_is_protected(test_db, audit_sink, admin_user):
    identity = IdentityService(test_db, audit_sink)
    other = await identity.create_user(admin_user, "second", "password-2")
    with pytest.raises(InvalidStateError):
        await identity.delete_user(other, admin_user.id)
