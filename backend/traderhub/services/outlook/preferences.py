"""
Report preferences from a free-text prompt.

Defaults: directional naked, wheel naked, mode both.
- "spread(s)" without wheel context switches directional to spreads
- wheel context ("wheel", "csp", "cc") with spreads switches the wheel to spreads
- "naked" together with "only" forces naked everywhere
- wheel context with "auto" lets the wheel structure be chosen later
"""

import re
from typing import Optional

from traderhub.schemas.report import (
    ReportMode,
    ReportPreferences,
    StructurePreference,
    WheelPreference,
)

_WHEEL = re.compile(r"\b(wheel|csp|cc)\b")
_SPREADS = re.compile(r"\bspreads?\b|\bdebit spread\b|\bcredit spread\b")
_NAKED = re.compile(r"\bnaked\b")
_ONLY = re.compile(r"\bonly\b")
_AUTO = re.compile(r"\bauto\b")


def parse_preferences(prompt: Optional[str]) -> ReportPreferences:
    text = (prompt or "").lower()

    wants_wheel = bool(_WHEEL.search(text))
    wants_spreads = bool(_SPREADS.search(text))

    directional = StructurePreference.NAKED
    wheel = WheelPreference.NAKED

    if wants_spreads and not wants_wheel:
        directional = StructurePreference.SPREADS

    if wants_wheel and wants_spreads:
        wheel = WheelPreference.SPREADS

    if _NAKED.search(text) and _ONLY.search(text):
        directional = StructurePreference.NAKED
        wheel = WheelPreference.NAKED

    if wants_wheel and _AUTO.search(text):
        wheel = WheelPreference.AUTO

    return ReportPreferences(
        directional_structure=directional,
        wheel_structure_preference=wheel,
        mode=ReportMode.BOTH,
    )
