"""
Unwind local dev server: JSON API for mood, journal, vent chat, skills, audio and subscriptions.
Set env: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY), SUPABASE_JWT_SECRET,
OPENAI_API_KEY (optional), STRIPE_SECRET_KEY + STRIPE_PRICE_* (optional).
Run: python server.py  →  http://127.0.0.1:5001/
"""
import logging
import os
import threading
import time
from collections import defaultdict
from dataclasses import replace
from functools import wraps

try:
    from dotenv import load_dotenv
    import pathlib
    env_path = pathlib.Path(__file__).resolve().parent / ".env"
    load_dotenv(dotenv_path=env_path)
except ImportError:
    pass

from flask import Flask, request, jsonify, Response

from api import auth, burnout, catalog, journal, payments, state as app_state, storage
from api.chat import (
    MAX_MESSAGES, UNABLE_TO_RESPOND, ChatRelayError, get_supabase, log_exchange, parse_messages,
    relay_chat,
)
from api.models import AudioBoost
from api.security import get_claims, parse_int, sanitize_text, validate_email
from api.subscription import can_access_chat, is_paid_tier, subscription_status

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("unwind")

app = Flask(__name__)

OPENAI_KEY = (os.environ.get("OPENAI_API_KEY") or "").strip()
CHAT_LOG_ENABLED = os.environ.get("CHAT_LOG_ENABLED", "false").lower() == "true"


# ── Security headers ──

@app.after_request
def add_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), geolocation=()"
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, OPTIONS"
    return response


# ── Rate limiting (simple in-memory) ──

_rate_limits = defaultdict(list)
RATE_LIMIT_WINDOW = 60
RATE_LIMIT_MAX = 60

def check_rate_limit(key: str) -> bool:
    now = time.time()
    _rate_limits[key] = [t for t in _rate_limits[key] if now - t < RATE_LIMIT_WINDOW]
    if len(_rate_limits[key]) >= RATE_LIMIT_MAX:
        return False
    _rate_limits[key].append(now)
    return True


# ── Session state (in memory, one AppState per user) ──

_states = {}
_states_lock = threading.Lock()


def load_state(user_id: str, claims: dict = None) -> app_state.AppState:
    with _states_lock:
        current = _states.get(user_id)
        if current is None:
            claims = claims or {}
            meta = claims.get("user_metadata") or {}
            current = app_state.new_state(user_id, name=meta.get("name", ""), email=claims.get("email", ""))
            _states[user_id] = current
            logger.info("Created state for user %s", user_id)
        return current


def apply(user_id: str, reducer, *args, **kwargs):
    """Run a reducer against the user's current state and store the result."""
    with _states_lock:
        result = reducer(_states[user_id], *args, **kwargs)
        new_state = result[-1] if isinstance(result, tuple) else result
        _states[user_id] = new_state
        return result


def reset_states() -> None:
    with _states_lock:
        _states.clear()
    _rate_limits.clear()


# ── Auth decorator ──

def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        claims = get_claims(request.headers.get("Authorization", ""))
        if not claims:
            return jsonify({"error": "Authentication required"}), 401
        user_id = claims["sub"]
        request.authenticated_user_id = user_id
        if not check_rate_limit(user_id):
            return jsonify({"error": "Too many requests. Try again shortly."}), 429
        load_state(user_id, claims)
        return f(*args, **kwargs)
    return decorated


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


@app.route("/")
def index():
    return jsonify({"message": "Unwind API running"})


@app.route("/api/<path:_any>", methods=["OPTIONS"])
def preflight(_any):
    return Response("", 204)


# --- State ---

@app.route("/api/state", methods=["GET"])
@require_auth
def get_state():
    return jsonify(load_state(request.authenticated_user_id).to_dict())


# --- Mood ---

@app.route("/api/mood", methods=["GET"])
@require_auth
def list_mood():
    s = load_state(request.authenticated_user_id)
    return jsonify({"data": [m.to_dict() for m in s.mood_entries]})


@app.route("/api/mood", methods=["POST"])
@require_auth
def add_mood():
    data = _json_body()
    value = parse_int(data.get("value"))
    if value is None:
        return jsonify({"error": "Mood value must be an integer from 0 to 100"}), 400
    try:
        s = apply(request.authenticated_user_id, app_state.add_mood_entry, value)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    level = app_state.current_burnout_risk(s)
    return jsonify({
        "data": [m.to_dict() for m in s.mood_entries],
        "mood_text": burnout.mood_text(value),
        "mood_emoji": burnout.mood_emoji(value),
        "burnout_risk": level.value,
    })


@app.route("/api/burnout-risk", methods=["GET"])
@require_auth
def burnout_risk():
    s = load_state(request.authenticated_user_id)
    level = burnout.evaluate(s.mood_entries)
    score = burnout.risk_score(s.mood_entries)
    return jsonify({
        "level": level.value,
        "score": round(score, 2) if score is not None else None,
        "tip": burnout.burnout_tip(level),
        "samples": len(s.mood_entries),
    })


# --- Journal ---

@app.route("/api/journal", methods=["GET"])
@require_auth
def list_journal():
    s = load_state(request.authenticated_user_id)
    return jsonify({"data": [e.to_dict() for e in s.journal_entries]})


@app.route("/api/journal", methods=["POST"])
@require_auth
def add_journal():
    data = _json_body()
    content = sanitize_text(data.get("content") or "", max_length=5000)
    if not content:
        return jsonify({"error": "Text required"}), 400
    entry, _ = apply(request.authenticated_user_id, app_state.add_journal_entry, content)
    return jsonify({"data": entry.to_dict()}), 201


@app.route("/api/journal/<entry_id>/reframe", methods=["POST"])
@require_auth
def reframe_journal(entry_id):
    user_id = request.authenticated_user_id
    entry = app_state.find_journal_entry(load_state(user_id), entry_id)
    if entry is None:
        return jsonify({"error": "Entry not found"}), 404
    if entry.reframe:
        return jsonify({"error": "Entry already has a reframe"}), 409
    text, source = journal.reframe_entry(entry.content, api_key=OPENAI_KEY)
    try:
        s = apply(user_id, app_state.set_journal_reframe, entry_id, text)
    except KeyError:
        return jsonify({"error": "Entry not found"}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify({"data": app_state.find_journal_entry(s, entry_id).to_dict(), "source": source})


# --- Vent chat ---

@app.route("/api/chat", methods=["GET"])
@require_auth
def chat_history():
    s = load_state(request.authenticated_user_id)
    return jsonify({"data": [m.to_dict() for m in s.chat_history]})


@app.route("/api/chat", methods=["POST"])
@require_auth
def chat():
    """Relay a message. {"messages": [...]} relays as given; {"text": "..."} uses the stored history."""
    user_id = request.authenticated_user_id
    data = _json_body()
    if not can_access_chat(load_state(user_id).user):
        return jsonify({"error": "Your free trial has ended. Upgrade to keep chatting."}), 403

    if "messages" in data:
        try:
            messages = parse_messages(data.get("messages"))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
    else:
        text = sanitize_text(data.get("text") or "", max_length=4000)
        if not text:
            return jsonify({"error": "Message text required"}), 400
        messages = list(apply(user_id, app_state.add_chat_message, text, True).chat_history[-MAX_MESSAGES:])

    try:
        reply = relay_chat(messages, api_key=OPENAI_KEY)
    except ChatRelayError:
        return jsonify({"error": UNABLE_TO_RESPOND}), 502

    if "messages" not in data:
        apply(user_id, app_state.add_chat_message, reply, False)
    if CHAT_LOG_ENABLED:
        log_exchange(get_supabase(), user_id, messages[-1], reply)
    return jsonify({"response": reply})


# --- Skills ---

@app.route("/api/skills", methods=["GET"])
@require_auth
def list_skills():
    s = load_state(request.authenticated_user_id)
    return jsonify({"data": [l.to_dict() for l in s.skill_lessons]})


@app.route("/api/skills/<lesson_id>/answer", methods=["POST"])
@require_auth
def answer_skill(lesson_id):
    option = parse_int(_json_body().get("option"))
    if option is None:
        return jsonify({"error": "option must be an integer"}), 400
    try:
        result, _ = apply(request.authenticated_user_id, app_state.answer_quiz, lesson_id, option)
    except KeyError:
        return jsonify({"error": "Lesson not found"}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result)


# --- Audio ---

@app.route("/api/audio", methods=["GET"])
@require_auth
def list_audio():
    s = load_state(request.authenticated_user_id)
    return jsonify({
        "data": [b.to_dict() for b in s.audio_boosts],
        "plays_today": s.user.audio_plays_today,
    })


@app.route("/api/audio/<boost_id>/play", methods=["POST"])
@require_auth
def play_audio(boost_id):
    user_id = request.authenticated_user_id
    if not any(b.id == boost_id for b in load_state(user_id).audio_boosts):
        return jsonify({"allowed": False, "error": "Audio boost not found"}), 404
    allowed, s = apply(user_id, app_state.play_audio_boost, boost_id)
    if not allowed:
        return jsonify({"allowed": False, "error": "Upgrade to play this audio boost"}), 403
    return jsonify({"allowed": True, "plays_today": s.user.audio_plays_today})


@app.route("/api/audio/upload", methods=["POST"])
@require_auth
def upload_audio():
    user_id = request.authenticated_user_id
    if not is_paid_tier(load_state(user_id).user.tier):
        return jsonify({"error": "Uploading audio requires a paid plan"}), 403
    file = request.files.get("audio") or request.files.get("file")
    if not file or not file.filename:
        return jsonify({"error": "No audio file in request"}), 400
    blob = file.read()
    err = storage.validate_audio(file.filename, len(blob))
    if err:
        return jsonify({"error": err}), 400
    supabase = get_supabase()
    if not supabase:
        return jsonify({"error": "Server not configured"}), 503
    try:
        url = storage.upload_audio(supabase, file.filename, blob, file.mimetype)
    except storage.StorageError:
        return jsonify({"error": "Upload failed"}), 502

    title = sanitize_text(request.form.get("title") or file.filename, max_length=120)
    boost = AudioBoost(id=f"u-{int(time.time() * 1000)}", title=title, category="My uploads",
                       duration=sanitize_text(request.form.get("duration") or "", max_length=10),
                       is_premium=False, audio_url=url)
    apply(user_id, lambda s: replace(s, audio_boosts=s.audio_boosts + (boost,)))
    return jsonify({"url": url, "data": boost.to_dict()}), 201


# --- Subscription ---

@app.route("/api/tiers", methods=["GET"])
def list_tiers():
    return jsonify({"data": [t.to_dict() for t in catalog.SUBSCRIPTION_TIERS]})


@app.route("/api/subscription", methods=["GET"])
@require_auth
def get_subscription():
    return jsonify(subscription_status(load_state(request.authenticated_user_id).user))


@app.route("/api/referral", methods=["POST"])
@require_auth
def redeem_referral():
    try:
        s = apply(request.authenticated_user_id, app_state.redeem_referral, _json_body().get("code"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(subscription_status(s.user))


@app.route("/api/checkout", methods=["POST"])
@require_auth
def checkout():
    data = _json_body()
    s = load_state(request.authenticated_user_id)
    try:
        session = payments.create_checkout_session(
            data.get("plan_id") or "",
            data.get("success_url") or "",
            data.get("cancel_url") or "",
            user_id=s.user.id,
            customer_email=s.user.email or None,
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except payments.PaymentError as e:
        if not payments.is_configured():
            return jsonify({"error": "Server not configured"}), 503
        return jsonify({"error": f"Checkout failed: {e}"}), 502
    return jsonify(session)


@app.route("/api/checkout/confirm", methods=["POST"])
@require_auth
def confirm_checkout():
    user_id = request.authenticated_user_id
    session_id = (_json_body().get("session_id") or "").strip()
    if not session_id:
        return jsonify({"error": "session_id required"}), 400
    try:
        tier = payments.confirm_checkout_session(session_id, user_id)
    except payments.PaymentError as e:
        return jsonify({"error": str(e)}), 400
    if tier is None:
        return jsonify({"paid": False}), 402
    s = apply(user_id, app_state.change_tier, tier)
    logger.info("User %s upgraded to %s", user_id, tier)
    return jsonify({"paid": True, **subscription_status(s.user)})


# --- Profile ---

@app.route("/api/profile", methods=["PATCH"])
@require_auth
def update_profile():
    data = _json_body()
    name = data.get("name")
    if name is not None:
        name = sanitize_text(str(name), max_length=80)
    try:
        s = apply(request.authenticated_user_id, app_state.update_profile,
                  name=name, language=data.get("language"), notifications=data.get("notifications"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"data": s.user.to_dict()})


# --- Auth ---

def _auth_call(fn, *args, **kwargs):
    supabase = get_supabase()
    if not supabase:
        return jsonify({"error": "Server not configured"}), 503
    try:
        out = fn(supabase, *args, **kwargs)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except auth.AuthError as e:
        return jsonify({"error": str(e) or "Authentication failed"}), 401
    return jsonify(out if out is not None else {"ok": True})


@app.route("/api/auth/signup", methods=["POST"])
def signup():
    data = _json_body()
    email = validate_email(data.get("email"))
    if not email:
        return jsonify({"error": "Valid email required"}), 400
    return _auth_call(auth.sign_up, email, data.get("password") or "",
                      name=sanitize_text(data.get("name") or "", max_length=80),
                      redirect_to=data.get("redirect_to"))


@app.route("/api/auth/signin", methods=["POST"])
def signin():
    data = _json_body()
    email = validate_email(data.get("email"))
    if not email:
        return jsonify({"error": "Valid email required"}), 400
    return _auth_call(auth.sign_in, email, data.get("password") or "")


@app.route("/api/auth/magic-link", methods=["POST"])
def magic_link():
    data = _json_body()
    email = validate_email(data.get("email"))
    if not email:
        return jsonify({"error": "Valid email required"}), 400
    return _auth_call(auth.send_magic_link, email, redirect_to=data.get("redirect_to"))


@app.route("/api/auth/verify-otp", methods=["POST"])
def verify_otp():
    data = _json_body()
    email = validate_email(data.get("email"))
    if not email:
        return jsonify({"error": "Valid email required"}), 400
    return _auth_call(auth.verify_otp, email, data.get("token") or "")


@app.route("/api/auth/signout", methods=["POST"])
@require_auth
def signout():
    token = request.headers.get("Authorization", "")[7:].strip()
    return _auth_call(auth.sign_out, token)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    logger.info("Unwind running at http://127.0.0.1:%d/", port)
    if not OPENAI_KEY:
        logger.warning("OPENAI_API_KEY not set in .env; chat and reframes use offline replies.")
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
