"""Short natural-language assessment attached to a report."""

from dataclasses import dataclass


NARRATIVE_SOURCE_AI = "ai"
NARRATIVE_SOURCE_RULES = "rule_based"


@dataclass
class Narrative:
    """Coaching text for one report, produced by the LLM or by rules."""

    headline: str
    assessment: str
    recommendation: str
    source: str = NARRATIVE_SOURCE_RULES

    def to_dict(self) -> dict:
        return {
            "headline": self.headline,
            "assessment": self.assessment,
            "recommendation": self.recommendation,
            "source": self.source,
        }

    def to_text(self) -> str:
        return f"{self.headline}\n{self.assessment}\n{self.recommendation}"
