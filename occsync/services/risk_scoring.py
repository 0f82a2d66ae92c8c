"""
Automation risk heuristic.

Titles are matched against keyword tiers in order; the first tier with a matching
keyword wins. Within a tier the score is picked from the tier's range using a
CRC32 of the occupation code (or title), so a given occupation always gets the
same score.
"""

import zlib
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RiskTier:
    category: str
    low: int
    high: int
    keywords: tuple[str, ...]
    skills_at_risk: tuple[str, ...]
    skills_needed: tuple[str, ...]
    outlook: str


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    category: str
    skills_at_risk: tuple[str, ...]
    skills_needed: tuple[str, ...]
    outlook: str


TIERS: tuple[RiskTier, ...] = (
    RiskTier(
        category="Very High",
        low=80,
        high=94,
        keywords=(
            "cashier",
            "data entry",
            "telemarketer",
            "assembly",
            "fast food",
            "toll booth",
            "parking lot attendant",
            "library technician",
        ),
        skills_at_risk=(
            "Routine transactions",
            "Manual data entry",
            "Repetitive calculations",
            "Basic customer interactions",
            "Inventory counting",
        ),
        skills_needed=(
            "Customer relationship management",
            "Complex problem-solving",
            "Technology adaptation",
            "Emotional intelligence",
            "Digital literacy",
        ),
        outlook=(
            "Very high automation risk within 3-7 years. Move toward work that needs "
            "human judgment, interpersonal skills and supervision of automated systems."
        ),
    ),
    RiskTier(
        category="High",
        low=65,
        high=79,
        keywords=(
            "bookkeeping",
            "tax preparer",
            "insurance claims",
            "loan officer",
            "paralegal",
            "proofreader",
            "translator",
            "radiologic technician",
        ),
        skills_at_risk=(
            "Routine analysis",
            "Standard procedures",
            "Document processing",
            "Basic calculations",
            "Rule-based decisions",
        ),
        skills_needed=(
            "Strategic thinking",
            "Client consultation",
            "AI tool proficiency",
            "Regulatory expertise",
            "Risk assessment",
        ),
        outlook=(
            "High risk of task automation within 5-10 years. The role is likely to shift "
            "toward advisory work and oversight of AI-assisted processing."
        ),
    ),
    RiskTier(
        category="Medium-High",
        low=50,
        high=64,
        keywords=(
            "analyst",
            "accountant",
            "market research",
            "technical writer",
            "real estate agent",
            "insurance agent",
            "financial advisor",
        ),
        skills_at_risk=(
            "Routine analysis",
            "Report generation",
            "Basic research",
            "Simple forecasting",
            "Data compilation",
        ),
        skills_needed=(
            "Strategic consulting",
            "Complex data interpretation",
            "Client relationship management",
            "Industry expertise",
            "AI-assisted analysis",
        ),
        outlook=(
            "Moderate to high risk. Routine analysis will be automated while interpretation, "
            "strategy and client work remain with people."
        ),
    ),
    RiskTier(
        category="Medium",
        low=35,
        high=49,
        keywords=(
            "technician",
            "mechanic",
            "electrician",
            "plumber",
            "carpenter",
            "engineer",
            "programmer",
            "web developer",
        ),
        skills_at_risk=(
            "Routine diagnostics",
            "Standard installations",
            "Basic troubleshooting",
            "Code generation",
            "Predictable maintenance",
        ),
        skills_needed=(
            "Complex problem diagnosis",
            "Custom solutions",
            "Safety management",
            "AI tool integration",
            "Continuous learning",
        ),
        outlook=(
            "Moderate risk. AI assists with diagnostics and planning; hands-on expertise and "
            "complex problem solving stay central."
        ),
    ),
    RiskTier(
        category="Low-Medium",
        low=20,
        high=34,
        keywords=(
            "sales",
            "marketing",
            "human resources",
            "project manager",
            "consultant",
            "trainer",
            "coordinator",
        ),
        skills_at_risk=(
            "Basic scheduling",
            "Simple reporting",
            "Routine communications",
            "Data collection",
        ),
        skills_needed=(
            "Relationship building",
            "Emotional intelligence",
            "Complex negotiation",
            "Leadership",
            "Change management",
        ),
        outlook=(
            "Low to moderate risk. Administrative work gets automated, freeing time for "
            "strategy and relationships."
        ),
    ),
    RiskTier(
        category="Low",
        low=5,
        high=19,
        keywords=(
            "teacher",
            "therapist",
            "counselor",
            "social worker",
            "nurse",
            "doctor",
            "physician",
            "manager",
            "executive",
            "artist",
            "designer",
            "chef",
        ),
        skills_at_risk=(
            "Administrative tasks",
            "Basic documentation",
            "Simple scheduling",
            "Standard reporting",
        ),
        skills_needed=(
            "Emotional intelligence",
            "Creative thinking",
            "Ethical decision making",
            "AI collaboration",
            "Cultural competency",
        ),
        outlook=(
            "Low automation risk. AI acts as an assistant; care, creativity and judgment "
            "remain the core of the work."
        ),
    ),
)

DEFAULT_TIER = RiskTier(
    category="Medium",
    low=40,
    high=59,
    keywords=(),
    skills_at_risk=("Routine tasks", "Standard procedures", "Basic data processing", "Simple analysis"),
    skills_needed=("Critical thinking", "Adaptability", "Digital literacy", "Collaboration", "Problem solving"),
    outlook=(
        "Moderate risk with significant role evolution expected. Working alongside AI systems "
        "and continuous learning will matter most."
    ),
)


def find_tier(title: str) -> RiskTier:
    text = title.lower()
    for tier in TIERS:
        if any(keyword in text for keyword in tier.keywords):
            return tier
    return DEFAULT_TIER


def score_risk(title: str, code: Optional[str] = None) -> RiskAssessment:
    """
    Score how exposed an occupation is to automation.

    Args:
        title: Occupation title, matched case-insensitively
        code: Occupation code used to spread scores within the tier range

    Returns:
        RiskAssessment with a score in [0, 100]
    """
    tier = find_tier(title)
    seed = (code or title).encode("utf-8")
    span = tier.high - tier.low + 1
    score = tier.low + zlib.crc32(seed) % span
    return RiskAssessment(
        score=max(0, min(100, score)),
        category=tier.category,
        skills_at_risk=tier.skills_at_risk,
        skills_needed=tier.skills_needed,
        outlook=tier.outlook,
    )
