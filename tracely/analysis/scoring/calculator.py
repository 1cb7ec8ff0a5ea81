"""Privacy score calculator.

Converts raw observation counts into a 0–100 risk score:

    score = clamp(round(√trackers·5 + ln(max(thirdParty, 1))·4
                        + √max(cookies, 0)·1.5), 0, 100)

The square root dampens the marginal risk of repeated
observations, the logarithm dampens the third-party
contribution, and the cookie term grows with its square root.
No score state is ever carried between calls; the score is
always recomputed from counts alone.
"""

from __future__ import annotations

import math

# ── Weights ─────────────────────────────────────────────────

_TRACKER_WEIGHT = 5.0
_THIRD_PARTY_WEIGHT = 4.0
_COOKIE_WEIGHT = 1.5

_MIN_SCORE = 0
_MAX_SCORE = 100


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Python's built-in :func:`round` rounds ties to even
    (``round(2.5) == 2``); the score rounds ``2.5`` to ``3``
    so that every client computing it agrees.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def calculate_score(tracker_count: int, third_party_count: int, cookie_count: int) -> int:
    """Calculate the privacy risk score from observation counts.

    Args:
        tracker_count: Total observations in the scope.
        third_party_count: Observations flagged third-party.
        cookie_count: Observations whose tracker type is ``cookie``.

    Returns:
        Integer score in the range 0–100.
    """
    raw = (
        math.sqrt(max(tracker_count, 0)) * _TRACKER_WEIGHT
        + math.log(max(third_party_count, 1)) * _THIRD_PARTY_WEIGHT
        + math.sqrt(max(cookie_count, 0)) * _COOKIE_WEIGHT
    )
    return max(_MIN_SCORE, min(_MAX_SCORE, round_half_away_from_zero(raw)))
