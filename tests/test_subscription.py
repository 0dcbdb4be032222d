"""
Tier and trial gating.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from api import catalog
from api.models import User
from api.security import normalize_referral_code
from api.subscription import (
    apply_referral_benefit, can_access_chat, generate_referral_code,
    get_remaining_trial_days, is_paid_tier, start_trial, subscription_status,
)

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


def user(**kw):
    return User(id="u1", **kw)


# ═══════════════════════════════════════════════
# 1. CHAT ACCESS
# ═══════════════════════════════════════════════

class TestCanAccessChat:
    @pytest.mark.parametrize("tier", ["reflect", "heal", "thrive"])
    def test_paid_tiers_always(self, tier):
        assert can_access_chat(user(tier=tier), NOW)
        assert can_access_chat(user(tier=tier, trial_ends_at=NOW - timedelta(days=30)), NOW)

    def test_free_tier_during_trial(self):
        assert can_access_chat(user(trial_ends_at=NOW + timedelta(seconds=1)), NOW)

    def test_free_tier_trial_ended(self):
        assert not can_access_chat(user(trial_ends_at=NOW), NOW)
        assert not can_access_chat(user(trial_ends_at=NOW - timedelta(days=1)), NOW)

    def test_free_tier_without_trial(self):
        assert not can_access_chat(user(), NOW)

    def test_unknown_tier_is_not_paid(self):
        assert not is_paid_tier("platinum")
        assert not can_access_chat(user(tier="platinum"), NOW)


# ═══════════════════════════════════════════════
# 2. TRIAL COUNTDOWN
# ═══════════════════════════════════════════════

class TestRemainingTrialDays:
    def test_rounds_partial_days_up(self):
        assert get_remaining_trial_days(user(trial_ends_at=NOW + timedelta(days=3, hours=1)), NOW) == 4

    def test_whole_days(self):
        assert get_remaining_trial_days(user(trial_ends_at=NOW + timedelta(days=3)), NOW) == 3

    def test_expired_is_zero(self):
        assert get_remaining_trial_days(user(trial_ends_at=NOW - timedelta(days=2)), NOW) == 0

    def test_no_trial_is_zero(self):
        assert get_remaining_trial_days(user(), NOW) == 0

    def test_non_increasing_over_time(self):
        u = user(trial_ends_at=NOW + timedelta(days=5))
        days = [get_remaining_trial_days(u, NOW + timedelta(hours=h)) for h in range(0, 24 * 8, 7)]
        assert all(a >= b for a, b in zip(days, days[1:]))
        assert days[-1] == 0
        assert min(days) >= 0


# ═══════════════════════════════════════════════
# 3. REFERRALS & TRIAL START
# ═══════════════════════════════════════════════

class TestReferral:
    def test_extends_existing_trial(self):
        end = NOW + timedelta(days=2)
        assert apply_referral_benefit(user(trial_ends_at=end), NOW) == end + timedelta(days=7)

    def test_starts_from_now_without_trial(self):
        assert apply_referral_benefit(user(), NOW) == NOW + timedelta(days=7)

    def test_twice_is_fourteen_days(self):
        base = NOW + timedelta(days=1)
        u = user(trial_ends_at=base)
        u = replace(u, trial_ends_at=apply_referral_benefit(u, NOW))
        u = replace(u, trial_ends_at=apply_referral_benefit(u, NOW))
        assert u.trial_ends_at - base == timedelta(days=14)

    def test_referral_code_shape(self):
        code = generate_referral_code()
        assert len(code) == 8
        assert normalize_referral_code(code) == code

    def test_trial_is_one_week(self):
        assert start_trial(NOW) == NOW + timedelta(days=7)


class TestStatusAndCatalog:
    def test_status_for_free_user(self):
        status = subscription_status(user(trial_ends_at=NOW + timedelta(days=2), referral_code="ABCD1234"), NOW)
        assert status["tier"] == "explore"
        assert status["is_paid"] is False
        assert status["can_access_chat"] is True
        assert status["remaining_trial_days"] == 2
        assert status["referral_code"] == "ABCD1234"

    def test_catalog_prices(self):
        prices = {t.id: t.price for t in catalog.SUBSCRIPTION_TIERS}
        assert prices == {"explore": 0, "reflect": 599, "heal": 999, "thrive": 1499}
        assert catalog.get_tier("heal").name == "Heal"
        assert catalog.get_tier("nope") is None
