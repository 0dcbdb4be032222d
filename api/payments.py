"""
Stripe Checkout for paid tiers.
Requires: STRIPE_SECRET_KEY, STRIPE_PRICE_REFLECT, STRIPE_PRICE_HEAL, STRIPE_PRICE_THRIVE
"""
import logging
import os

from api.catalog import get_tier
from api.subscription import is_paid_tier

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Checkout could not be created or confirmed."""


def _stripe():
    key = os.environ.get("STRIPE_SECRET_KEY", "")
    if not key:
        return None
    import stripe
    stripe.api_key = key
    return stripe


def is_configured() -> bool:
    return bool(os.environ.get("STRIPE_SECRET_KEY"))


def price_for(plan_id: str) -> str | None:
    return os.environ.get(f"STRIPE_PRICE_{plan_id.upper()}") or None


def create_checkout_session(plan_id: str, success_url: str, cancel_url: str,
                            user_id: str, customer_email: str = None) -> dict:
    """Start a subscription checkout. Returns {"id", "url"} for the redirect."""
    tier = get_tier(plan_id)
    if tier is None or not is_paid_tier(tier.id):
        raise ValueError(f"Not a paid plan: {plan_id}")
    if not success_url or not cancel_url:
        raise ValueError("success_url and cancel_url required")
    stripe = _stripe()
    price = price_for(tier.id)
    if stripe is None or not price:
        raise PaymentError("Payments not configured")
    params = {
        "mode": "subscription",
        "line_items": [{"price": price, "quantity": 1}],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "client_reference_id": user_id,
        "metadata": {"tier": tier.id, "user_id": user_id},
    }
    if customer_email:
        params["customer_email"] = customer_email
    try:
        session = stripe.checkout.Session.create(**params)
    except Exception as e:
        logger.error("[checkout] create failed: %s %s", type(e).__name__, e)
        raise PaymentError(str(e)) from e
    logger.info("[checkout] session %s for %s -> %s", session.id, user_id, tier.id)
    return {"id": session.id, "url": session.url}


def confirm_checkout_session(session_id: str, user_id: str) -> str | None:
    """Tier paid for in a completed session owned by user_id, or None if unpaid."""
    stripe = _stripe()
    if stripe is None:
        raise PaymentError("Payments not configured")
    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except Exception as e:
        logger.error("[checkout] retrieve failed: %s %s", type(e).__name__, e)
        raise PaymentError(str(e)) from e
    if session.client_reference_id != user_id:
        raise PaymentError("Session does not belong to this user")
    if session.payment_status != "paid":
        return None
    tier = (session.metadata or {}).get("tier")
    if not is_paid_tier(tier):
        raise PaymentError("Session has no paid tier")
    return tier
