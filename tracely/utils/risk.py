"""Risk band helpers shared by the aggregate, reports and offline mirror."""

from __future__ import annotations

from typing import Literal

RiskLevel = Literal["low", "medium", "high", "critical"]


def risk_level(score: int) -> RiskLevel:
    """Map a 0-100 score to its risk band.

    Bands: low below 31, medium 31-60, high 61-80, critical 81+.
    """
    if score >= 81:
        return "critical"
    if score >= 61:
        return "high"
    if score >= 31:
        return "medium"
    return "low"


def risk_label(score: int) -> str:
    """Map a 0-100 score to a human risk label."""
    return f"{risk_level(score).capitalize()} Risk"
