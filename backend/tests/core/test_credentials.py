"""Credential tests — bcrypt hashing, verification, token hashing."""

from app.core.credentials import (
    generate_temporary_password, generate_token, hash_password, hash_token,
    verify_password,
)


def test_hash_roundtrip_and_format():
    encoded = hash_password("correct horse")
    assert encoded.startswith("$2")
    assert "correct horse" not in encoded
    assert verify_password("correct horse", encoded)
    assert not verify_password("wrong horse", encoded)


def test_salts_differ():
    first, second = hash_password("pw"), hash_password("pw")
    assert first != second
    assert verify_password("pw", first)
    assert verify_password("pw", second)


def test_malformed_hash_never_verifies():
    assert not verify_password("pw", "garbage")
    assert not verify_password("pw", "pbkdf2_sha256$1000$salt$abc")
    assert not verify_password("pw", "")


def test_token_hash_is_stable_sha256():
    token = generate_token()
    assert hash_token(token) == hash_token(token)
    assert len(hash_token(token)) == 64
    assert generate_token() != token


def test_temporary_password_is_16_hex_chars():
    pw = generate_temporary_password()
    assert len(pw) == 16
    int(pw, 16)
