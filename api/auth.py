"""
Supabase Auth: password sign-up/sign-in, magic link / OTP, sign-out.

Only the resolved user id, email and name flow on to the rest of the app;
gating works off the app's own User record.
"""
import logging

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """The identity provider rejected the request."""


def _session_payload(res) -> dict:
    user = getattr(res, "user", None)
    session = getattr(res, "session", None)
    meta = getattr(user, "user_metadata", None) or {}
    return {
        "user_id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "name": meta.get("name", ""),
        "access_token": getattr(session, "access_token", None),
        "refresh_token": getattr(session, "refresh_token", None),
    }


def _call(label: str, fn, *args):
    try:
        return fn(*args)
    except Exception as e:
        logger.info("[auth] %s failed: %s %s", label, type(e).__name__, e)
        raise AuthError(str(e)) from e


def sign_up(supabase, email: str, password: str, name: str = "", redirect_to: str = None) -> dict:
    """Create an account; Supabase sends the verification email."""
    if len(password or "") < 8:
        raise ValueError("Password must be at least 8 characters")
    options = {"data": {"name": name}}
    if redirect_to:
        options["email_redirect_to"] = redirect_to
    res = _call("sign_up", supabase.auth.sign_up, {"email": email, "password": password, "options": options})
    return _session_payload(res)


def sign_in(supabase, email: str, password: str) -> dict:
    res = _call("sign_in", supabase.auth.sign_in_with_password, {"email": email, "password": password})
    return _session_payload(res)


def send_magic_link(supabase, email: str, redirect_to: str = None) -> None:
    """Passwordless: email a one-time link/code."""
    options = {"email_redirect_to": redirect_to} if redirect_to else {}
    _call("magic_link", supabase.auth.sign_in_with_otp, {"email": email, "options": options})


def verify_otp(supabase, email: str, token: str) -> dict:
    if not token or not token.strip():
        raise ValueError("Code required")
    res = _call("verify_otp", supabase.auth.verify_otp, {"email": email, "token": token.strip(), "type": "email"})
    return _session_payload(res)


def sign_out(supabase, access_token: str) -> None:
    """Revoke the session behind access_token."""
    _call("sign_out", supabase.auth.admin.sign_out, access_token)
