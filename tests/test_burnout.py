"""
Burnout risk scoring and mood display helpers.

Run: python -m pytest tests/ -v
"""
import math
from datetime import date, timedelta

import pytest

from api import burnout
from api.models import MoodEntry, RiskLevel


def history(*values):
    start = date(2026, 3, 1)
    return [MoodEntry(id=str(i), date=start + timedelta(days=i), value=v) for i, v in enumerate(values)]


# ═══════════════════════════════════════════════
# 1. MINIMUM SAMPLES
# ═══════════════════════════════════════════════

class TestMinimumSamples:
    @pytest.mark.parametrize("n", [0, 1, 2, 3, 4])
    def test_short_history_is_low(self, n):
        assert burnout.evaluate(history(*[0] * n)) == RiskLevel.LOW

    def test_short_history_has_no_score(self):
        assert burnout.risk_score(history(0, 0, 0, 0)) is None

    def test_none_is_low(self):
        assert burnout.evaluate(None) == RiskLevel.LOW

    def test_five_samples_are_scored(self):
        assert burnout.risk_score(history(50, 50, 50, 50, 50)) == pytest.approx(25.0)


# ═══════════════════════════════════════════════
# 2. FORMULA
# ═══════════════════════════════════════════════

class TestScore:
    def test_declining_week_scenario(self):
        # average 67, trend -30, volatility sqrt(62.5)
        score = burnout.risk_score(history(80, 75, 70, 60, 50))
        expected = (100 - 67) * 0.5 + 30 * 0.3 + math.sqrt(62.5) * 0.2
        assert score == pytest.approx(expected)
        assert score == pytest.approx(27.08, abs=0.01)
        assert burnout.evaluate(history(80, 75, 70, 60, 50)) == RiskLevel.LOW

    def test_constant_history_depends_only_on_value(self):
        for v in (0, 20, 55, 100):
            assert burnout.risk_score(history(*[v] * 6)) == pytest.approx((100 - v) * 0.5)

    def test_improving_trend_adds_nothing(self):
        rising = burnout.risk_score(history(50, 50, 50, 50, 90))
        falling = burnout.risk_score(history(90, 50, 50, 50, 50))
        # same average and volatility, only the fall is penalised
        assert falling - rising == pytest.approx(40 * 0.3)

    def test_only_latest_window_counts(self):
        assert burnout.risk_score(history(0, 0, 0, 100, 100, 100, 100, 100, 100, 100)) == pytest.approx(0.0)

    def test_accepts_dicts_and_numbers(self):
        as_dicts = [{"date": "x", "value": v} for v in (80, 75, 70, 60, 50)]
        assert burnout.risk_score(as_dicts) == burnout.risk_score([80, 75, 70, 60, 50])


# ═══════════════════════════════════════════════
# 3. THRESHOLDS
# ═══════════════════════════════════════════════

class TestThresholds:
    def test_score_of_exactly_forty_is_low(self):
        assert burnout.risk_score(history(*[20] * 5)) == 40
        assert burnout.evaluate(history(*[20] * 5)) == RiskLevel.LOW

    def test_just_over_forty_is_medium(self):
        assert burnout.evaluate(history(*[18] * 5)) == RiskLevel.MEDIUM

    def test_exactly_sixty_is_medium(self, monkeypatch):
        monkeypatch.setattr(burnout, "risk_score", lambda h: 60.0)
        assert burnout.evaluate([]) == RiskLevel.MEDIUM

    def test_over_sixty_is_high(self, monkeypatch):
        monkeypatch.setattr(burnout, "risk_score", lambda h: 60.01)
        assert burnout.evaluate([]) == RiskLevel.HIGH

    def test_crash_is_high(self):
        assert burnout.evaluate(history(90, 10, 0, 0, 0)) == RiskLevel.HIGH


# ═══════════════════════════════════════════════
# 4. DISPLAY HELPERS
# ═══════════════════════════════════════════════

class TestDisplayHelpers:
    def test_mood_text_bands(self):
        assert burnout.mood_text(0) == "Struggling"
        assert burnout.mood_text(39) == "Down"
        assert burnout.mood_text(40) == "Okay"
        assert burnout.mood_text(79) == "Good"
        assert burnout.mood_text(100) == "Great"

    def test_mood_emoji_clamps_top(self):
        assert burnout.mood_emoji(100) == burnout.MOOD_EMOJIS[-1]
        assert burnout.mood_emoji(0) == burnout.MOOD_EMOJIS[0]

    def test_tip_per_level(self):
        assert "day off" in burnout.burnout_tip(RiskLevel.HIGH)
        assert "breaks" in burnout.burnout_tip(RiskLevel.MEDIUM)
        assert "good work" in burnout.burnout_tip(RiskLevel.LOW)
