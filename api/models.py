"""
Data models shared by the API: users, mood/journal/chat records and catalog entries.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


TIERS = ("explore", "reflect", "heal", "thrive")
FREE_TIER = "explore"
LANGUAGES = ("english", "hindi")


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class Preferences:
    language: str = "english"
    notifications: bool = True


@dataclass(frozen=True)
class User:
    id: str
    name: str = ""
    email: str = ""
    tier: str = FREE_TIER
    trial_ends_at: datetime | None = None
    referral_code: str = ""
    audio_plays_today: int = 0
    audio_plays_date: date | None = None
    preferences: Preferences = field(default_factory=Preferences)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["trial_ends_at"] = _iso(self.trial_ends_at)
        d["audio_plays_date"] = _iso(self.audio_plays_date)
        return d


@dataclass(frozen=True)
class MoodEntry:
    id: str
    date: date
    value: int  # 0-100

    def to_dict(self) -> dict:
        return {"id": self.id, "date": self.date.isoformat(), "value": self.value}


@dataclass(frozen=True)
class JournalEntry:
    id: str
    date: datetime
    content: str
    reframe: str | None = None
    burnout_level: RiskLevel | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "content": self.content,
            "reframe": self.reframe,
            "burnout_level": self.burnout_level.value if self.burnout_level else None,
        }


@dataclass(frozen=True)
class ChatMessage:
    id: str
    text: str
    is_user: bool
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "is_user": self.is_user,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> ChatMessage:
        """Build from a client payload. Accepts isUser/is_user; timestamp is optional."""
        if not isinstance(data, dict):
            raise ValueError("message must be an object")
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("message text required")
        is_user = data.get("is_user", data.get("isUser"))
        if not isinstance(is_user, bool):
            raise ValueError("message is_user must be a boolean")
        ts = data.get("timestamp")
        try:
            timestamp = datetime.fromisoformat(ts) if isinstance(ts, str) else utcnow()
        except ValueError:
            timestamp = utcnow()
        return cls(id=str(data.get("id") or index), text=text, is_user=is_user, timestamp=timestamp)


@dataclass(frozen=True)
class SubscriptionTier:
    id: str
    name: str
    price: int  # whole rupees per interval
    description: str
    features: tuple[str, ...]
    currency: str = "INR"
    interval: str = "month"
    referral_benefit: str | None = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["features"] = list(self.features)
        return d


@dataclass(frozen=True)
class AudioBoost:
    id: str
    title: str
    category: str
    duration: str
    is_premium: bool
    audio_url: str = "#"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Quiz:
    question: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str


@dataclass(frozen=True)
class SkillLesson:
    id: str
    title: str
    content: str
    quiz: Quiz
    completed: bool = False

    def to_dict(self) -> dict:
        d = asdict(self)
        d["quiz"]["options"] = list(self.quiz.options)
        return d
