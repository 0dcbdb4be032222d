"""
Per-user application state and the reducers that change it.

Every reducer takes an AppState and returns a new one; the input is never
mutated. The server stores the returned state back as a whole.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import date

from api import burnout, catalog
from api.models import (
    LANGUAGES, TIERS, ChatMessage, JournalEntry, MoodEntry, Preferences,
    RiskLevel, User, utcnow,
)
from api.security import normalize_referral_code
from api.subscription import (
    FREE_DAILY_AUDIO_PLAYS, apply_referral_benefit, generate_referral_code,
    is_paid_tier, start_trial,
)


@dataclass(frozen=True)
class AppState:
    user: User
    mood_entries: tuple[MoodEntry, ...] = ()
    journal_entries: tuple[JournalEntry, ...] = ()  # newest first
    chat_history: tuple[ChatMessage, ...] = ()
    skill_lessons: tuple = field(default_factory=lambda: catalog.SKILL_LESSONS)
    audio_boosts: tuple = field(default_factory=lambda: catalog.AUDIO_BOOSTS)

    def to_dict(self) -> dict:
        return {
            "user": self.user.to_dict(),
            "mood_entries": [m.to_dict() for m in self.mood_entries],
            "journal_entries": [j.to_dict() for j in self.journal_entries],
            "chat_history": [c.to_dict() for c in self.chat_history],
            "skill_lessons": [s.to_dict() for s in self.skill_lessons],
            "audio_boosts": [a.to_dict() for a in self.audio_boosts],
            "burnout_risk": current_burnout_risk(self).value,
        }


def _new_id() -> str:
    return uuid.uuid4().hex


def new_state(user_id: str, name: str = "", email: str = "", now=None) -> AppState:
    """Fresh state for a user at signup: Explore tier with a one-week trial."""
    user = User(
        id=user_id,
        name=name,
        email=email,
        trial_ends_at=start_trial(now),
        referral_code=generate_referral_code(),
    )
    return AppState(user=user)


def current_burnout_risk(state: AppState) -> RiskLevel:
    return burnout.evaluate(state.mood_entries)


# ── User ──

def update_user(state: AppState, **changes) -> AppState:
    return replace(state, user=replace(state.user, **changes))


def update_profile(state: AppState, name=None, language=None, notifications=None) -> AppState:
    if language is not None and language not in LANGUAGES:
        raise ValueError(f"language must be one of {', '.join(LANGUAGES)}")
    if notifications is not None and not isinstance(notifications, bool):
        raise ValueError("notifications must be a boolean")
    prefs = state.user.preferences
    prefs = Preferences(
        language=language if language is not None else prefs.language,
        notifications=notifications if notifications is not None else prefs.notifications,
    )
    changes = {"preferences": prefs}
    if name is not None:
        changes["name"] = name
    return update_user(state, **changes)


def change_tier(state: AppState, tier: str) -> AppState:
    if tier not in TIERS:
        raise ValueError(f"Unknown tier: {tier}")
    return update_user(state, tier=tier)


def redeem_referral(state: AppState, code: str, now=None) -> AppState:
    """Extend the trial by one referral benefit. Own or malformed codes are rejected."""
    normalized = normalize_referral_code(code)
    if not normalized:
        raise ValueError("Invalid referral code")
    if normalized == state.user.referral_code:
        raise ValueError("You can't redeem your own referral code")
    return update_user(state, trial_ends_at=apply_referral_benefit(state.user, now))


# ── Mood ──

def add_mood_entry(state: AppState, value: int, today: date | None = None) -> AppState:
    """Log today's mood; a second save on the same day overwrites the value."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ValueError("Mood value must be an integer from 0 to 100")
    today = today or utcnow().date()
    entries = list(state.mood_entries)
    for i, entry in enumerate(entries):
        if entry.date == today:
            entries[i] = replace(entry, value=value)
            break
    else:
        entries.append(MoodEntry(id=_new_id(), date=today, value=value))
    return replace(state, mood_entries=tuple(entries))


# ── Journal ──

def add_journal_entry(state: AppState, content: str, now=None) -> tuple[JournalEntry, AppState]:
    if not content or not content.strip():
        raise ValueError("Journal content required")
    entry = JournalEntry(
        id=_new_id(),
        date=now or utcnow(),
        content=content,
        burnout_level=current_burnout_risk(state),
    )
    return entry, replace(state, journal_entries=(entry,) + state.journal_entries)


def find_journal_entry(state: AppState, entry_id: str) -> JournalEntry | None:
    return next((e for e in state.journal_entries if e.id == entry_id), None)


def set_journal_reframe(state: AppState, entry_id: str, reframe: str) -> AppState:
    entry = find_journal_entry(state, entry_id)
    if entry is None:
        raise KeyError(entry_id)
    if entry.reframe:
        raise ValueError("Entry already has a reframe")
    entries = tuple(replace(e, reframe=reframe) if e.id == entry_id else e for e in state.journal_entries)
    return replace(state, journal_entries=entries)


# ── Chat ──

def add_chat_message(state: AppState, text: str, is_user: bool, now=None) -> AppState:
    message = ChatMessage(id=_new_id(), text=text, is_user=is_user, timestamp=now or utcnow())
    return replace(state, chat_history=state.chat_history + (message,))


# ── Skills ──

def complete_skill_lesson(state: AppState, lesson_id: str) -> AppState:
    if not any(l.id == lesson_id for l in state.skill_lessons):
        raise KeyError(lesson_id)
    lessons = tuple(replace(l, completed=True) if l.id == lesson_id else l for l in state.skill_lessons)
    return replace(state, skill_lessons=lessons)


def answer_quiz(state: AppState, lesson_id: str, option: int) -> tuple[dict, AppState]:
    """Check a quiz answer; a correct one completes the lesson."""
    lesson = next((l for l in state.skill_lessons if l.id == lesson_id), None)
    if lesson is None:
        raise KeyError(lesson_id)
    if isinstance(option, bool) or not isinstance(option, int) or not 0 <= option < len(lesson.quiz.options):
        raise ValueError("Option out of range")
    correct = option == lesson.quiz.correct_index
    result = {
        "correct": correct,
        "correct_index": lesson.quiz.correct_index,
        "explanation": lesson.quiz.explanation,
    }
    if correct:
        state = complete_skill_lesson(state, lesson_id)
    return result, state


# ── Audio ──

def play_audio_boost(state: AppState, boost_id: str, today: date | None = None) -> tuple[bool, AppState]:
    """Admission check for one audio play. Refusals leave the state untouched.

    Free-tier users get FREE_DAILY_AUDIO_PLAYS plays per calendar day and no
    premium clips; paid tiers are unlimited.
    """
    boost = next((b for b in state.audio_boosts if b.id == boost_id), None)
    if boost is None:
        return False, state

    user = state.user
    paid = is_paid_tier(user.tier)
    if boost.is_premium and not paid:
        return False, state

    today = today or utcnow().date()
    # Counter carries no date until the first play; treat it as today's
    plays = user.audio_plays_today if user.audio_plays_date in (None, today) else 0
    if not paid and plays >= FREE_DAILY_AUDIO_PLAYS:
        return False, state

    return True, update_user(state, audio_plays_today=plays + 1, audio_plays_date=today)
