"""
Vercel serverless: POST /api/chat. Relays the vent conversation to OpenAI and
optionally logs the exchange in Supabase.
Requires: OPENAI_API_KEY. Optional: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY (transcript log).
"""
import json
import logging
import os
import random
from http.server import BaseHTTPRequestHandler

from api.models import ChatMessage
from api.security import encrypt, get_user_id, sanitize_text

logger = logging.getLogger(__name__)

OPENAI_KEY = os.environ.get("OPENAI_API_KEY", "")

CHAT_MODEL = "gpt-4-turbo-preview"
MAX_MESSAGES = 50
UNABLE_TO_RESPOND = "I apologize, but I am unable to respond at the moment."

SYSTEM_PROMPT = """You are an empathetic AI therapist focused on workplace wellbeing. Your goal is to:
- Listen actively and validate feelings
- Help identify workplace stressors
- Suggest practical coping strategies
- Maintain a professional, supportive tone
- Focus on work-related challenges
- Never give medical advice
- Encourage professional help when needed

If someone expresses serious mental health concerns, always recommend speaking with a qualified mental health professional."""

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


class ChatRelayError(Exception):
    """The completion service could not produce a reply."""


# ── Offline responder (no API key configured) ──

_PATTERNS = [
    (
        ("stress", "overwhelm", "pressure", "too much"),
        [
            "It sounds like you're dealing with a lot of pressure. Can you tell me what specific aspects of work are feeling most overwhelming?",
            "I hear that you're feeling stressed. Let's break this down into smaller, more manageable parts. What's your most immediate concern?",
            "That sounds really challenging. Have you been able to take any breaks or practice self-care during your workday?",
        ],
    ),
    (
        ("manager", "boss", "supervisor", "lead"),
        [
            "Relationships with managers can be complex. How long has this situation been affecting you?",
            "That's a challenging situation with your manager. Have you had a chance to discuss your concerns with them directly?",
            "Managing up can be tricky. What kind of support or changes would help improve the situation?",
        ],
    ),
    (
        ("colleague", "coworker", "team", "peer"),
        [
            "Team dynamics can significantly impact our wellbeing. How are these interactions affecting your work?",
            "It's important to maintain professional relationships while setting healthy boundaries. What strategies have you tried so far?",
            "Working with others can be challenging. What would an ideal resolution look like for you?",
        ],
    ),
    (
        ("tired", "exhausted", "burnout", "fatigue"),
        [
            "I'm hearing signs of potential burnout. Have you noticed any changes in your energy levels or motivation recently?",
            "It's important to recognize when we need rest. What opportunities do you have to recharge during your workday?",
            "Taking care of yourself is crucial. What small changes could you make to your routine to help manage your energy better?",
        ],
    ),
]

_DEFAULT_RESPONSES = [
    "Can you tell me more about how this situation is affecting you?",
    "That sounds challenging. What support would be most helpful right now?",
    "I'm here to listen. How long have you been feeling this way?",
    "Thank you for sharing that. What aspects of this situation feel most pressing to address?",
    "It takes courage to open up about these feelings. What would you like to focus on first?",
]


def fallback_responses(text: str) -> list:
    """Canned replies for the first keyword group the message hits."""
    t = (text or "").lower()
    for keywords, responses in _PATTERNS:
        if any(k in t for k in keywords):
            return responses
    return _DEFAULT_RESPONSES


def fallback_reply(text: str) -> str:
    return random.choice(fallback_responses(text))


# ── Relay ──

def parse_messages(raw) -> list:
    """Validate a client message list. Raises ValueError on a bad shape."""
    if not isinstance(raw, list) or not raw:
        raise ValueError("messages must be a non-empty list")
    messages = [ChatMessage.from_dict(m, i) for i, m in enumerate(raw[-MAX_MESSAGES:])]
    if not messages[-1].is_user:
        raise ValueError("Invalid message sequence")
    return messages


def build_completion_messages(messages: list) -> list:
    out = [{"role": "system", "content": SYSTEM_PROMPT}]
    for m in messages:
        out.append({
            "role": "user" if m.is_user else "assistant",
            "content": sanitize_text(m.text, max_length=4000),
        })
    return out


def relay_chat(messages: list, api_key: str = None) -> str:
    """Forward the transcript and return the assistant's reply text.

    Without an API key the offline responder answers instead. Any upstream
    failure is raised as ChatRelayError; there is no retry.
    """
    key = (api_key if api_key is not None else OPENAI_KEY or "").strip()
    if not key:
        return fallback_reply(messages[-1].text)
    try:
        import openai
        client = openai.OpenAI(api_key=key)
        r = client.chat.completions.create(
            model=CHAT_MODEL,
            messages=build_completion_messages(messages),
            temperature=0.7,
            max_tokens=300,
        )
    except Exception as e:
        logger.error("[chat] completion failed: %s %s", type(e).__name__, e)
        raise ChatRelayError("Unable to respond") from e
    content = (r.choices[0].message.content or "").strip() if r.choices else ""
    return content or UNABLE_TO_RESPOND


def log_exchange(supabase, user_id: str, user_message: ChatMessage, reply: str) -> bool:
    """Append the user message and reply to the chat_messages table. Never raises."""
    if supabase is None:
        return False
    rows = [
        {"user_id": user_id, "text": encrypt(user_message.text), "is_user": True},
        {"user_id": user_id, "text": encrypt(reply), "is_user": False},
    ]
    try:
        supabase.table("chat_messages").insert(rows).execute()
        return True
    except Exception as e:
        logger.warning("[chat] transcript log failed: %s %s", type(e).__name__, e)
        return False


def get_supabase():
    url = os.environ.get("SUPABASE_URL", "")
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY", "")
    if not url or not key:
        return None
    from supabase import create_client
    return create_client(url, key)


class handler(BaseHTTPRequestHandler):
    def do_POST(self):
        user_id = get_user_id(self.headers.get("Authorization", ""))
        if not user_id:
            self._send(401, {"error": "Unauthorized"})
            return

        try:
            content_len = int(self.headers.get("Content-Length", 0))
            raw = self.rfile.read(content_len).decode("utf-8") if content_len else "{}"
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            self._send(400, {"error": "Invalid JSON"})
            return

        try:
            messages = parse_messages(data.get("messages") if isinstance(data, dict) else None)
        except ValueError as e:
            self._send(400, {"error": str(e)})
            return

        try:
            reply = relay_chat(messages)
        except ChatRelayError:
            self._send(502, {"error": UNABLE_TO_RESPOND})
            return

        if data.get("log"):
            log_exchange(get_supabase(), user_id, messages[-1], reply)
        self._send(200, {"response": reply})

    def do_OPTIONS(self):
        self.send_response(200)
        for k, v in CORS_HEADERS.items():
            self.send_header(k, v)
        self.end_headers()

    def _send(self, status, body):
        self.send_response(status)
        self.send_header("Content-type", "application/json")
        for k, v in CORS_HEADERS.items():
            self.send_header(k, v)
        self.end_headers()
        self.wfile.write(json.dumps(body).encode("utf-8"))
