"""PCSS risk stratification.

Thresholds match the provider dashboard colouring: above 60 is critical
(red), above 30 is recovering (yellow), everything else is stable (green).
"""

from __future__ import annotations

from typing import Literal

RiskLevel = Literal["critical", "recovering", "stable"]

PCSS_METRIC_TYPE = "pcss_total"
PCSS_MAX_SCORE = 132
CRITICAL_ABOVE = 60
RECOVERING_ABOVE = 30


def classify_pcss(score: float | None) -> RiskLevel:
    """Risk level for a Post-Concussion Symptom Scale total. No score is stable."""
    if score is None:
        return "stable"
    if score > CRITICAL_ABOVE:
        return "critical"
    if score > RECOVERING_ABOVE:
        return "recovering"
    return "stable"


def recovery_percentage(score: float) -> int:
    """Share of the PCSS range the patient is symptom-free, clamped to 0-100."""
    return min(100, max(0, 100 - round(score / PCSS_MAX_SCORE * 100)))
