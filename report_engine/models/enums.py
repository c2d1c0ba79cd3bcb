"""
Enumeration definitions for the report engine.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models and FastAPI query parameters.
"""

from enum import Enum
from typing import FrozenSet


class PriorityBucket(str, Enum):
    """
    Priority bucket derived from a report's 1-5 priority score.

    - high: score >= 4
    - medium: score == 3
    - low: score <= 2
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: int) -> "PriorityBucket":
        if score >= 4:
            return cls.HIGH
        if score == 3:
            return cls.MEDIUM
        return cls.LOW


class LeadStatus(str, Enum):
    """
    Lead status facet for chatbot conversations.

    - converted: the conversation captured a lead
    - high_potential: classified as high potential or high value
    - low_potential: neither captured nor classified high potential
    """
    CONVERTED = "converted"
    HIGH_POTENTIAL = "high_potential"
    LOW_POTENTIAL = "low_potential"


class AnalysisStatus(str, Enum):
    """Whether the conversation has been through the analysis pipeline yet."""
    PENDING = "pending"
    ANALYZED = "analyzed"


class ExplodeMode(str, Enum):
    """
    Nested collection to expand into one export row per item.

    - faqs: suggested FAQ entries
    - keywords: missing feature keywords
    - actions: priority action recommendations
    """
    FAQS = "faqs"
    KEYWORDS = "keywords"
    ACTIONS = "actions"


# Lead classifications counted as high potential
HIGH_POTENTIAL_CLASSIFICATIONS: FrozenSet[str] = frozenset({
    "high_potential",
    "high_value_lead",
})
