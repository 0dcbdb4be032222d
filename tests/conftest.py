import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import jwt
import pytest

TEST_JWT_SECRET = "unwind-test-secret-0123456789abcdef0123456789"


def make_token(sub="user-1", email="asha@example.com", secret=TEST_JWT_SECRET, exp_in=3600, aud="authenticated"):
    payload = {"sub": sub, "email": email, "aud": aud, "exp": int(time.time()) + exp_in}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def jwt_secret(monkeypatch):
    import api.security
    monkeypatch.setattr(api.security, "SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def client(jwt_secret, monkeypatch):
    import server
    server.reset_states()
    monkeypatch.setattr(server, "OPENAI_KEY", "")
    monkeypatch.setattr(server, "CHAT_LOG_ENABLED", False)
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c
    server.reset_states()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}
