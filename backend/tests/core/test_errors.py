"""Error hierarchy tests — codes, HTTP statuses, response envelope."""

import pytest

from app.core.errors import (
    AuthenticationError, BlobStorageError, ConcurrencyError, DatabaseError,
    DuplicateVoteError, ErrorContext, InputValidationError, InvalidStateError,
    MemeVaultError, PermissionDeniedError, ResourceNotFoundError,
)


@pytest.mark.parametrize("error, code, http_status", [
    (ResourceNotFoundError("Game", "x"), "RESOURCE_NOT_FOUND", 404),
    (InvalidStateError("nope"), "INVALID_STATE", 400),
    (DuplicateVoteError(), "DUPLICATE_VOTE", 400),
    (InputValidationError("bad", "name"), "VALIDATION_ERROR", 400),
    (AuthenticationError(), "AUTHENTICATION_REQUIRED", 401),
    (PermissionDeniedError(), "PERMISSION_DENIED", 403),
    (ConcurrencyError("busy"), "CONCURRENCY_CONFLICT", 409),
    (DatabaseError("down", "query"), "DATABASE_ERROR", 503),
    (BlobStorageError("disk"), "BLOB_STORAGE_ERROR", 500),
])
def test_codes_and_statuses(error, code, http_status):
    assert isinstance(error, MemeVaultError)
    assert error.code == code
    assert error.http_status == http_status


def test_envelope_shape():
    err = ResourceNotFoundError("Meme", "m1", ErrorContext(game_id="g1", meme_id="m1"))
    body = err.to_response()["error"]
    assert body["message"] == "Meme 'm1' not found"
    assert body["category"] == "resource_not_found"
    assert body["context"] == {"game_id": "g1", "meme_id": "m1"}
    assert "timestamp" in body


def test_storage_errors_hide_internals():
    body = BlobStorageError("EACCES /srv/uploads/x.png").to_response()["error"]
    assert body["message"] == "Image storage is unavailable"
