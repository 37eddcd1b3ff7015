"""Unit tests for password hashing and JWT helpers."""

import jwt
import pytest

from school_api.core.security import (
    ACCESS,
    REFRESH,
    create_refresh_token,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)

pytestmark = pytest.mark.unit

class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("kilimanjaro-2024")
        assert hashed != "kilimanjaro-2024"
        assert verify_password("kilimanjaro-2024", hashed)

    def test_wrong_password_rejected(self):
        assert not verify_password("wrong", hash_password("kilimanjaro-2024"))

class TestTokens:
    def test_access_token_claims(self):
        token = create_token(
            sub="user-1", roles=["ADMIN"], active_school_id="school-1", full_name="Grace Wanjiku", email="g@x.ac.ke"
        )
        claims = decode_token(token)
        assert claims["sub"] == "user-1"
        assert claims["roles"] == ["ADMIN"]
        assert claims["active_school_id"] == "school-1"
        assert claims["type"] == ACCESS
        assert claims["full_name"] == "Grace Wanjiku"
        assert claims["exp"] > claims["iat"]

    def test_refresh_token_type_and_lifetime(self):
        access = decode_token(create_token(sub="u", roles=[], active_school_id=None))
        refresh = decode_token(create_refresh_token("u", [], None))
        assert refresh["type"] == REFRESH
        assert refresh["exp"] > access["exp"]

    def test_expired_token_rejected(self):
        token = create_token(sub="u", roles=[], active_school_id=None, minutes=-1)
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_tampered_token_rejected(self):
        token = create_token(sub="u", roles=["TEACHER"], active_school_id="s")
        forged = jwt.encode({**decode_token(token), "roles": ["ADMIN"]}, "another-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_token(forged)
