"""
Burnout risk from recent mood samples, plus the mood display helpers.

The score blends how low the recent average is, how sharply mood has fallen
across the window, and how jumpy it has been day to day:

    score = (100 - average) * 0.5 + max(0, -trend) * 0.3 + volatility * 0.2

where trend is last minus first value in the window and volatility is the
root-mean-square of successive differences. score > 60 is High, score > 40 is
Medium, anything else Low.
"""
import math

from api.models import RiskLevel

MIN_SAMPLES = 5
WINDOW = 7

HIGH_THRESHOLD = 60
MEDIUM_THRESHOLD = 40

BURNOUT_TIPS = {
    RiskLevel.HIGH: "Consider taking a day off to recharge. Your wellbeing matters.",
    RiskLevel.MEDIUM: "Try scheduling short breaks throughout your day to prevent burnout.",
    RiskLevel.LOW: "Keep up the good work! Regular self-care helps maintain your wellbeing.",
}

MOOD_EMOJIS = ["😩", "😔", "😐", "😊", "😃"]


def _values(history) -> list[float]:
    """Accept MoodEntry objects, dicts with a "value" key, or bare numbers."""
    out = []
    for item in history or []:
        if isinstance(item, dict):
            v = item.get("value")
        else:
            v = getattr(item, "value", item)
        if isinstance(v, bool) or not isinstance(v, (int, float)) or math.isnan(v):
            continue
        out.append(float(v))
    return out


def risk_score(history) -> float | None:
    """Numeric risk score over the latest window, or None with too few samples."""
    values = _values(history)
    if len(values) < MIN_SAMPLES:
        return None
    window = values[-WINDOW:]
    average = sum(window) / len(window)
    trend = window[-1] - window[0]
    diffs = [b - a for a, b in zip(window, window[1:])]
    volatility = math.sqrt(sum(d * d for d in diffs) / len(diffs))
    return (100 - average) * 0.5 + max(0.0, -trend) * 0.3 + volatility * 0.2


def evaluate(history) -> RiskLevel:
    """Map an oldest-to-newest mood history to Low/Medium/High. Never raises."""
    score = risk_score(history)
    if score is None:
        return RiskLevel.LOW
    if score > HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score > MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def burnout_tip(level: RiskLevel) -> str:
    return BURNOUT_TIPS.get(RiskLevel(level), BURNOUT_TIPS[RiskLevel.LOW])


def mood_text(value: int) -> str:
    if value < 20:
        return "Struggling"
    if value < 40:
        return "Down"
    if value < 60:
        return "Okay"
    if value < 80:
        return "Good"
    return "Great"


def mood_emoji(value: int) -> str:
    # 0-100 scale onto five faces
    index = max(0, min(int(value // 25), len(MOOD_EMOJIS) - 1))
    return MOOD_EMOJIS[index]
