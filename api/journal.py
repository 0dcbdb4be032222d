"""
AI reframing of journal entries, with canned reframes when GPT is unavailable.
"""
import logging
import os
import random

logger = logging.getLogger(__name__)

OPENAI_KEY = os.environ.get("OPENAI_API_KEY", "")

FALLBACK_REFRAMES = [
    "While today presented challenges, I notice you practiced resilience by persisting through difficult tasks. Consider how this strengthens your professional capabilities over time.",
    "I see that you're experiencing frustration, which shows you care deeply about your work. This passion, when channeled constructively, can drive meaningful improvements.",
    "The obstacles you faced today are temporary learning opportunities. Each challenge is developing problem-solving skills that will serve you throughout your career.",
    "You've identified specific workplace tensions, which demonstrates your emotional intelligence. This awareness can be leveraged to improve team dynamics and communication.",
    "Your reflection shows conscientiousness about your performance. Remember that growth isn't linear. Today's struggles are building tomorrow's strengths.",
]


def fallback_reframe() -> str:
    return random.choice(FALLBACK_REFRAMES)


def reframe_entry(content: str, api_key: str = None) -> tuple[str, str]:
    """Return (reframe, source) where source is "gpt" or "fallback"."""
    key = (api_key if api_key is not None else OPENAI_KEY or "").strip()
    if not key:
        return fallback_reframe(), "fallback"
    try:
        import openai
        client = openai.OpenAI(api_key=key)
        prompt = f"""You help people reframe difficult workdays. Read this journal entry and write a short, warm, realistic positive reframe (2-3 sentences).
- Acknowledge the feeling, don't dismiss it
- Point to a strength or growth the writer showed
- Suggest one small, concrete next step if it fits
- No medical advice, no diagnoses

Journal entry: "{content[:1500]}"

Return the reframe text only."""
        r = client.chat.completions.create(model="gpt-4o-mini", messages=[{"role": "user", "content": prompt}], temperature=0.7, max_tokens=200)
        text = (r.choices[0].message.content or "").strip().strip('"')
        if text:
            return text, "gpt"
        logger.warning("[reframe] empty completion, using fallback")
    except Exception as e:
        logger.warning("[reframe] GPT error: %s %s", type(e).__name__, e)
    return fallback_reframe(), "fallback"
