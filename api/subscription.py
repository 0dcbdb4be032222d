"""
Tier and trial gating: chat access, trial countdown, referral extension.

All functions take an optional `now` so callers (and tests) can pin the clock.
"""
import math
import secrets
import string
from datetime import datetime, timedelta

from api.models import FREE_TIER, TIERS, User, utcnow

TRIAL_DAYS = 7
REFERRAL_EXTENSION_DAYS = 7
REFERRAL_CODE_LENGTH = 8
FREE_DAILY_AUDIO_PLAYS = 2

_REFERRAL_ALPHABET = string.ascii_uppercase + string.digits


def is_paid_tier(tier: str) -> bool:
    return tier in TIERS and tier != FREE_TIER


def can_access_chat(user: User, now=None) -> bool:
    """Paid tiers always; the free tier only while its trial is running."""
    if is_paid_tier(user.tier):
        return True
    if not user.trial_ends_at:
        return False
    return (now or utcnow()) < user.trial_ends_at


def get_remaining_trial_days(user: User, now=None) -> int:
    """Whole days left in the trial, rounded up, never negative."""
    if not user.trial_ends_at:
        return 0
    diff = (user.trial_ends_at - (now or utcnow())).total_seconds()
    return max(0, math.ceil(diff / 86400))


def apply_referral_benefit(user: User, now=None) -> datetime:
    """New trial end: the current end (or now, if unset) plus one week."""
    current_end = user.trial_ends_at or (now or utcnow())
    return current_end + timedelta(days=REFERRAL_EXTENSION_DAYS)


def start_trial(now=None) -> datetime:
    return (now or utcnow()) + timedelta(days=TRIAL_DAYS)


def generate_referral_code() -> str:
    return "".join(secrets.choice(_REFERRAL_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))


def subscription_status(user: User, now=None) -> dict:
    now = now or utcnow()
    return {
        "tier": user.tier,
        "is_paid": is_paid_tier(user.tier),
        "can_access_chat": can_access_chat(user, now),
        "remaining_trial_days": get_remaining_trial_days(user, now),
        "trial_ends_at": user.trial_ends_at.isoformat() if user.trial_ends_at else None,
        "referral_code": user.referral_code,
    }
