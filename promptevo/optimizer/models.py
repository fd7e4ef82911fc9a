from __future__ import annotations
import math
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

EvaluationMethod = Literal["remote", "deterministic"]


class OptimizerConfig(BaseModel):
    """Configuration for the optimization process."""

    max_references: int = 5  # Reference prompts used for inspiration
    similarity_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    cache_ttl_seconds: float = 3600.0  # Corpus staleness window
    tie_margin: float = 0.5  # Scores closer than this go to A/B comparison


class QualityScore(BaseModel):
    """A judge's verdict on a single prompt."""

    score: float  # 1.0 to 5.0
    method: EvaluationMethod
    feedback: str = ""
    model: Optional[str] = None

    @field_validator("score")
    @classmethod
    def _clamp(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("score must be a finite number")
        return min(5.0, max(1.0, value))


class ComparisonResult(BaseModel):
    """Outcome of an A/B comparison between two prompt versions."""

    winner: Literal["A", "B"]
    feedback: str = ""
    method: EvaluationMethod


class OptimizationResult(BaseModel):
    """Record of one optimize pass. Not persisted."""

    original_content: str
    optimized_content: str
    original_score: float
    optimized_score: float
    improved: bool
    feedback: str
    inspiration_sources: List[str] = Field(default_factory=list)
    method: EvaluationMethod
    applied_rules: List[str] = Field(default_factory=list)
    reference_patterns: List[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.optimized_content != self.original_content
