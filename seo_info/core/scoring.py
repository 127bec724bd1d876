"""
Score helpers shared by every facet analyzer.

Scoring model:
- Each sub-analysis keeps a ScoreCard: a raw score plus issue and
  recommendation lists owned by that one invocation
- Points are added/subtracted freely; the 0-100 clamp happens once, on result()
- Some sub-analyses treat "no issues at all" as a perfect 100
- Facet and composite scores are unweighted rounded means
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

MIN_SCORE = 0
MAX_SCORE = 100


def clamp_score(value: float) -> int:
    """Clamp to [0, 100] and round half away from zero."""
    bounded = max(MIN_SCORE, min(MAX_SCORE, value))
    return int(round_half_up(bounded))


def round_half_up(value: float) -> int:
    # round() in Python is banker's rounding; scores use half-up
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def average_score(scores: Iterable[float]) -> int:
    values = list(scores)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def calculate_grade(score: float) -> str:
    """Convert numeric score to letter grade."""
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 65:
        return "C"
    elif score >= 50:
        return "D"
    return "F"


@dataclass
class ScoreCard:
    """
    Bounded score accumulator for one sub-analysis.

    Usage:
        card = ScoreCard(start=100)
        card.issue("URL contains underscores", "Use hyphens instead", penalty=10)
        card.recommend("Consider a shorter domain")
        card.result()  # -> (issues, recommendations, score)
    """
    start: float = 0
    perfect_when_clean: bool = False
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    raw: float = field(init=False)

    def __post_init__(self):
        self.raw = self.start

    def add(self, points: float) -> None:
        self.raw += points

    def subtract(self, points: float) -> None:
        self.raw -= points

    def issue(self, message: str, recommendation: str | None = None, penalty: float = 0) -> None:
        self.issues.append(message)
        if recommendation:
            self.recommendations.append(recommendation)
        self.raw -= penalty

    def recommend(self, message: str, penalty: float = 0) -> None:
        self.recommendations.append(message)
        self.raw -= penalty

    @property
    def score(self) -> int:
        if self.perfect_when_clean and not self.issues:
            return MAX_SCORE
        return clamp_score(self.raw)

    def result(self) -> tuple[list[str], list[str], int]:
        return list(self.issues), list(self.recommendations), self.score
