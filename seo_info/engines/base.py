"""
Base class and type contracts for all facet analysis engines.
Every facet engine MUST inherit from AnalysisEngine and implement run().

Design principles:
- Engines are stateless: all state comes from the PageContext
- Engines are independent: no engine imports another
- Engines return a FacetResult subclass (issues, recommendations, 0-100 score)
- Engines do not swallow their own errors; the aggregation engine records them
"""

from __future__ import annotations

import time
import traceback
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field

from seo_info.core.config import AnalysisOptions
from seo_info.core.dom import Document
from seo_info.core.scoring import ScoreCard

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Core data types
# ─────────────────────────────────────────────

class FacetResult(BaseModel):
    """The universal shape every analyzer returns."""
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    score: int = Field(ge=0, le=100, default=0)

    @classmethod
    def from_card(cls, card: ScoreCard, **fields):
        issues, recommendations, score = card.result()
        return cls(issues=issues, recommendations=recommendations, score=score, **fields)


class AnalysisErrorEntry(BaseModel):
    """A facet analyzer exception, captured by the aggregation engine."""
    type: str
    message: str
    stack: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AnalysisErrorEntry":
        return cls(
            type=type(exc).__name__,
            message=str(exc),
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )


class PageContext(BaseModel):
    """Normalized page input passed to every facet engine."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str
    html: str
    document: Document
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


ResultT = TypeVar("ResultT", bound=FacetResult)


# ─────────────────────────────────────────────
# Base Engine
# ─────────────────────────────────────────────

class AnalysisEngine(ABC, Generic[ResultT]):
    """
    Abstract base class for all facet engines.

    All engines MUST:
    1. Implement run(page) -> FacetResult
    2. Be stateless - store nothing on self between calls
    """

    FACET_NAME: str = "base"

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)

    @abstractmethod
    def run(self, page: PageContext) -> ResultT:
        """
        Execute the facet analysis against one page.

        Args:
            page: Parsed page plus analysis options

        Returns:
            FacetResult with issues, recommendations and score
        """
        ...

    def execute(self, page: PageContext) -> ResultT:
        """
        Wrapper around run() that adds timing and logging.
        Exceptions propagate to the caller after being logged.
        """
        start = time.perf_counter()
        self.logger.debug("Engine starting", facet=self.FACET_NAME, url=page.url)

        try:
            result = self.run(page)
        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.error(
                "Engine failed",
                facet=self.FACET_NAME,
                url=page.url,
                error=str(exc),
                elapsed_ms=round(elapsed, 2),
                exc_info=True,
            )
            raise

        elapsed = (time.perf_counter() - start) * 1000
        self.logger.info(
            "Engine complete",
            facet=self.FACET_NAME,
            url=page.url,
            score=result.score,
            issue_count=len(result.issues),
            elapsed_ms=round(elapsed, 2),
        )
        return result
