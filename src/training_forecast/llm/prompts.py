"""Prompt templates for forecast narratives."""

import json
from typing import Any, Dict


NARRATIVE_SYSTEM_PROMPT = """You are an endurance coach reviewing a training-load projection.
You receive numbers only: CTL (fitness), ATL (fatigue) and TSB (form = CTL - ATL).
Form below -20 means the athlete is fatigued, 0 to 20 is a good window for hard efforts or racing,
above 10 means well-rested.

Reply with a JSON object with exactly these string fields:
- "headline": one short sentence
- "assessment": two or three sentences interpreting the numbers
- "recommendation": one concrete, actionable sentence
Do not invent numbers that are not in the input."""


IMPACT_PROMPT = """Should the athlete do today's session or rest?
The projection compares doing the session against a rest day over 14 days.

{summary}"""


TAPER_PROMPT = """Explain the recommended pre-race taper.
Intensity fraction is the share of normal daily TSS kept during the taper.

{summary}"""


def _dump(summary: Dict[str, Any]) -> str:
    return json.dumps(summary, indent=2, sort_keys=True, default=str)


def build_impact_prompt(summary: Dict[str, Any]) -> str:
    return IMPACT_PROMPT.format(summary=_dump(summary))


def build_taper_prompt(summary: Dict[str, Any]) -> str:
    return TAPER_PROMPT.format(summary=_dump(summary))
