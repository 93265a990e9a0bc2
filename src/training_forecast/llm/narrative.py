"""
Narrative generation for forecast reports.

One capability, two implementations:
- LLMNarrativeGenerator asks the model for a short JSON assessment
- RuleBasedNarrativeGenerator derives the same fields from thresholds

FallbackNarrativeGenerator wraps the pair so callers always get a
Narrative back, whatever happens to the LLM call.
"""

import logging
from datetime import timedelta
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from ..analysis.impact import ImpactComparison
from ..analysis.taper import TaperRecommendation
from ..config import Settings, get_settings
from ..exceptions import LLMError, LLMResponseInvalidError
from ..metrics.fitness import DEFAULT_PROJECTION_CONFIG, ProjectionConfig, classify_form
from ..models.narrative import NARRATIVE_SOURCE_AI, NARRATIVE_SOURCE_RULES, Narrative
from .prompts import NARRATIVE_SYSTEM_PROMPT, build_impact_prompt, build_taper_prompt
from .providers import LLMClient

logger = logging.getLogger(__name__)


@runtime_checkable
class NarrativeGenerator(Protocol):
    """Turns a numbers-only projection summary into coaching text."""

    def describe_impact(self, comparison: ImpactComparison) -> Narrative:
        ...

    def describe_taper(self, recommendation: TaperRecommendation) -> Narrative:
        ...


class NarrativeResponse(BaseModel):
    """Shape the LLM must return."""

    headline: str = Field(min_length=1)
    assessment: str = Field(min_length=1)
    recommendation: str = Field(min_length=1)


class LLMNarrativeGenerator:
    """Narratives written by the LLM. Raises LLMError on any failure."""

    def __init__(self, client: LLMClient) -> None:
        self.client = client

    def _generate(self, prompt: str) -> Narrative:
        data = self.client.completion_json(NARRATIVE_SYSTEM_PROMPT, prompt)
        try:
            response = NarrativeResponse.model_validate(data)
        except ValidationError as e:
            raise LLMResponseInvalidError(
                message=f"LLM narrative missing fields: {e.error_count()} errors",
                raw_response=str(data),
            ) from e
        return Narrative(
            headline=response.headline.strip(),
            assessment=response.assessment.strip(),
            recommendation=response.recommendation.strip(),
            source=NARRATIVE_SOURCE_AI,
        )

    def describe_impact(self, comparison: ImpactComparison) -> Narrative:
        return self._generate(build_impact_prompt(comparison.narrative_summary()))

    def describe_taper(self, recommendation: TaperRecommendation) -> Narrative:
        return self._generate(build_taper_prompt(recommendation.narrative_summary()))


class RuleBasedNarrativeGenerator:
    """Deterministic narratives from form thresholds. Never fails."""

    def __init__(self, config: ProjectionConfig = DEFAULT_PROJECTION_CONFIG) -> None:
        self.config = config

    def _recovery_sentence(self, comparison: ImpactComparison) -> str:
        days = comparison.days_to_non_negative_form
        if days is None:
            return f"Form stays negative for the next {len(comparison.with_session)} days."
        if days == 0:
            return "Form stays non-negative from today."
        return f"Form turns positive again in {days} days."

    def describe_impact(self, comparison: ImpactComparison) -> Narrative:
        form = comparison.tomorrow_form
        state = classify_form(form, self.config)
        numbers = (
            f"Tomorrow's form would be {form:+.1f} ({comparison.tomorrow_form_delta:+.1f} vs resting) "
            f"and the lowest form over the next week {comparison.lowest_form_next_week:+.1f}. "
            f"{self._recovery_sentence(comparison)}"
        )

        if state == "fatigued":
            return Narrative(
                headline="This session would leave you fatigued",
                assessment=numbers,
                recommendation="Swap it for an easy session or rest and keep the next two days light.",
            )
        if state == "well-rested":
            return Narrative(
                headline="You're well-rested - a good day for this session",
                assessment=numbers,
                recommendation="Go ahead with the session as planned.",
            )
        return Narrative(
            headline="Productive training load",
            assessment=numbers,
            recommendation=(
                f"Do the session; it adds {comparison.two_week_load_delta:+.1f} CTL "
                f"over two weeks compared with resting."
            ),
        )

    def describe_taper(self, recommendation: TaperRecommendation) -> Narrative:
        if not recommendation.available or recommendation.recommended is None:
            return Narrative(
                headline="Taper planning not applicable",
                assessment=recommendation.reason or "No upcoming race to taper for.",
                recommendation="Set a future race date to get a taper plan.",
            )

        best = recommendation.recommended
        assessment = (
            f"Keeping {best.intensity_fraction:.0%} of your normal "
            f"{recommendation.stress_estimate:.0f} TSS/day from {best.start_date.strftime('%a %d %b')} "
            f"projects race-day form of {best.race_day_form:+.1f} (target {recommendation.target_form:+.0f}) "
            f"with CTL {best.race_day_ctl:.1f}, {best.ctl_loss:.1f} below training on as usual."
        )
        if best.start_date <= recommendation.today:
            action = "Start reducing load today."
        else:
            last_normal_day = best.start_date - timedelta(days=1)
            action = (
                f"Train normally through {last_normal_day.strftime('%a %d %b')}, "
                f"then cut daily load to about {recommendation.stress_estimate * best.intensity_fraction:.0f} TSS."
            )
        return Narrative(
            headline=f"{best.length_days}-day {best.intensity} taper",
            assessment=assessment,
            recommendation=action,
        )


class FallbackNarrativeGenerator:
    """Try the primary generator; on any LLMError use the rule-based one."""

    def __init__(
        self,
        primary: NarrativeGenerator,
        fallback: Optional[RuleBasedNarrativeGenerator] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or RuleBasedNarrativeGenerator()

    def describe_impact(self, comparison: ImpactComparison) -> Narrative:
        try:
            return self.primary.describe_impact(comparison)
        except LLMError as e:
            logger.warning(f"AI impact narrative unavailable, using rules: {e.message}")
            return self.fallback.describe_impact(comparison)

    def describe_taper(self, recommendation: TaperRecommendation) -> Narrative:
        try:
            return self.primary.describe_taper(recommendation)
        except LLMError as e:
            logger.warning(f"AI taper narrative unavailable, using rules: {e.message}")
            return self.fallback.describe_taper(recommendation)


def build_narrative_generator(
    settings: Optional[Settings] = None,
    config: Optional[ProjectionConfig] = None,
) -> NarrativeGenerator:
    """
    Pick the narrative implementation for this run.

    Returns the LLM generator wrapped in the rule-based fallback when an
    OpenAI key is configured, otherwise the rule-based generator alone.
    """
    settings = settings or get_settings()
    rules = RuleBasedNarrativeGenerator(config or settings.projection_config())

    if not settings.llm_configured:
        logger.info("No OpenAI key configured; using rule-based narratives")
        return rules

    try:
        client = LLMClient(settings=settings)
    except LLMError as e:
        logger.warning(f"LLM client unavailable: {e.message}")
        return rules

    return FallbackNarrativeGenerator(LLMNarrativeGenerator(client), rules)
