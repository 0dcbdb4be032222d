"""
Token verification, encryption and input validation.
"""
import os

import pytest

import api.security as security
from api.security import (
    decrypt, encrypt, get_claims, get_user_id, normalize_referral_code, parse_int,
    sanitize_text, validate_email,
)
from conftest import make_token


# ═══════════════════════════════════════════════
# 1. JWT
# ═══════════════════════════════════════════════

class TestTokens:
    def test_valid_token(self, jwt_secret):
        assert get_user_id(f"Bearer {make_token(sub='abc')}") == "abc"

    def test_missing_bearer_prefix(self, jwt_secret):
        assert get_user_id(make_token()) is None
        assert get_user_id("") is None
        assert get_user_id("Bearer ") is None

    def test_wrong_audience(self, jwt_secret):
        assert get_user_id(f"Bearer {make_token(aud='anon')}") is None

    def test_claims_include_email(self, jwt_secret):
        assert get_claims(f"Bearer {make_token(email='z@y.co')}")["email"] == "z@y.co"

    def test_dev_mode_accepts_unsigned(self, monkeypatch):
        monkeypatch.setattr(security, "SUPABASE_JWT_SECRET", "")
        token = make_token(sub="dev", secret="whatever-secret-used-by-the-client-0000")
        assert get_user_id(f"Bearer {token}") == "dev"

    def test_garbage_token(self, jwt_secret):
        assert get_user_id("Bearer not.a.jwt") is None


# ═══════════════════════════════════════════════
# 2. ENCRYPTION
# ═══════════════════════════════════════════════

class TestEncryption:
    def test_encrypt_decrypt_roundtrip(self):
        original = "My manager called me out in front of the whole team."
        enc = encrypt(original)
        assert enc != original or not os.environ.get("ENCRYPTION_KEY"), "Should be encrypted when key is set"
        assert decrypt(enc) == original

    def test_empty_string(self):
        assert encrypt("") == ""
        assert decrypt("") == ""

    def test_none_value(self):
        assert encrypt(None) is None
        assert decrypt(None) is None

    def test_with_key(self, monkeypatch):
        from cryptography.fernet import Fernet
        monkeypatch.setattr(security, "ENCRYPTION_KEY", Fernet.generate_key().decode())
        monkeypatch.setattr(security, "_fernet", None)
        enc = encrypt("panic attack before the review")
        assert "panic" not in enc
        assert decrypt(enc) == "panic attack before the review"
        assert decrypt("plain text") == "plain text"


# ═══════════════════════════════════════════════
# 3. INPUT VALIDATION
# ═══════════════════════════════════════════════

class TestInputValidation:
    def test_sanitize_text_strips_control_chars(self):
        assert sanitize_text("hello\x00world") == "helloworld"

    def test_sanitize_text_enforces_length(self):
        assert len(sanitize_text("a" * 10000, max_length=5000)) == 5000

    @pytest.mark.parametrize("raw,expected", [
        (5, 5), ("42", 42), (" 7 ", 7), (3.0, 3), (3.5, None), (True, None), ("x", None), (None, None),
    ])
    def test_parse_int(self, raw, expected):
        assert parse_int(raw) == expected

    def test_referral_code(self):
        assert normalize_referral_code(" abcd1234 ") == "ABCD1234"
        assert normalize_referral_code("ABC-1234") is None
        assert normalize_referral_code(None) is None

    def test_email(self):
        assert validate_email(" Asha@Example.com ") == "asha@example.com"
        assert validate_email("no-at-sign") is None
