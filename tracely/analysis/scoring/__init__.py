"""Privacy risk score.

A single shared score function used by the server recompute
path and the offline mirror.  The public API is
:func:`calculate_score` and :func:`round_half_away_from_zero`.
"""

from __future__ import annotations

from tracely.analysis.scoring.calculator import calculate_score, round_half_away_from_zero

__all__ = ["calculate_score", "round_half_away_from_zero"]
