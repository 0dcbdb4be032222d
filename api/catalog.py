"""
Static catalog: subscription tiers, audio boosts and skill lessons.
"""
from api.models import AudioBoost, Quiz, SkillLesson, SubscriptionTier

SUBSCRIPTION_TIERS = (
    SubscriptionTier(
        id="explore",
        name="Explore",
        price=0,
        description="Start your mental wellness journey",
        features=(
            "AI chat access for 1 week",
            "Basic mood tracking",
            "Limited journal entries",
            "Access to free audio boosts",
        ),
    ),
    SubscriptionTier(
        id="reflect",
        name="Reflect",
        price=599,
        description="Build self-awareness and track patterns",
        features=(
            "Unlimited AI chat access",
            "Full mood tracking & notifications",
            "Unlimited journal entries",
            "Basic burnout analytics",
            "1-week free extension on referral",
        ),
        referral_benefit="1 week free",
    ),
    SubscriptionTier(
        id="heal",
        name="Heal",
        price=999,
        description="Gain deeper insights and support",
        features=(
            "Everything in Reflect",
            "Personalized session summaries",
            "Advanced burnout analytics",
            "Weekly & monthly mood trends",
            "Priority chat support",
        ),
        referral_benefit="1 week free",
    ),
    SubscriptionTier(
        id="thrive",
        name="Thrive",
        price=1499,
        description="Maximum support for optimal wellbeing",
        features=(
            "Everything in Heal",
            "Advanced burnout prediction",
            "Deeper personalized insights",
            "Mood trigger analysis",
            "Custom action plans",
            "VIP support access",
        ),
        referral_benefit="1 week free",
    ),
)

AUDIO_BOOSTS = (
    AudioBoost(id="1", title="Pre-Meeting Confidence Boost", category="Before tough call", duration="2:15", is_premium=False),
    AudioBoost(id="2", title="Midday Energy Renewal", category="Midday motivation", duration="1:45", is_premium=False),
    AudioBoost(id="3", title="Handling Difficult Feedback", category="Tough situations", duration="3:20", is_premium=True),
    AudioBoost(id="4", title="End of Day Decompression", category="Wind down", duration="4:10", is_premium=True),
)

SKILL_LESSONS = (
    SkillLesson(
        id="1",
        title="Setting Healthy Boundaries",
        content=(
            "Setting boundaries at work is essential for your wellbeing and productivity. "
            "Here are three simple ways to establish healthy boundaries:\n\n"
            "1. Be clear and direct about your capacity\n"
            "2. Use \"I\" statements when communicating limits\n"
            "3. Schedule focused work time on your calendar\n\n"
            "Remember, setting boundaries isn't selfish - it helps you deliver your best work sustainably."
        ),
        quiz=Quiz(
            question="What's an effective way to communicate a boundary to a colleague who frequently interrupts your work?",
            options=(
                "Ignore their messages and hope they stop",
                "Say: 'I'd like to help, but I need to finish this task first. Can we talk at 2pm?'",
                "Complain to your manager about the interruptions",
                "Take on their request but work late to finish your own tasks",
            ),
            correct_index=1,
            explanation=(
                "Using clear, respectful communication that acknowledges their needs while protecting "
                "your time is the most effective approach to setting boundaries."
            ),
        ),
    ),
    SkillLesson(
        id="2",
        title="Effective Email Communication",
        content=(
            "Email overwhelm is a common workplace stressor. "
            "These strategies can help you communicate more effectively:\n\n"
            "1. Use clear, specific subject lines\n"
            "2. Start with your main point or request\n"
            "3. Format using bullets and short paragraphs\n"
            "4. End with clear next steps or expectations\n\n"
            "Mastering email communication can save you hours each week and reduce miscommunication stress."
        ),
        quiz=Quiz(
            question="Which of these is the most effective email subject line?",
            options=(
                "Hello",
                "Quick question",
                "Project update - decision needed by Friday",
                "URGENT!!!",
            ),
            correct_index=2,
            explanation="The best subject lines are specific, informative, and include any relevant deadlines or actions needed.",
        ),
    ),
)


def get_tier(tier_id: str) -> SubscriptionTier | None:
    for tier in SUBSCRIPTION_TIERS:
        if tier.id == tier_id:
            return tier
    return None
