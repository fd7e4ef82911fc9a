from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

VersionSource = Literal["manual", "auto-optimize", "import"]


class PromptVersion(BaseModel):
    """
    One immutable snapshot of a prompt.

    Only judge_score may change, and only once: use with_score() to get the
    scored copy.
    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=1)
    content: str
    judge_score: Optional[float] = None
    source: VersionSource = "manual"
    inspiration_source: Optional[str] = None
    change_note: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_scored(self) -> bool:
        return self.judge_score is not None

    def with_score(self, score: float) -> "PromptVersion":
        if self.judge_score is not None:
            raise ValueError(f"version {self.version} already has a score")
        return self.model_copy(update={"judge_score": score})


class PromptHistory(BaseModel):
    """All versions of one prompt plus the version currently recommended."""

    prompt_id: str
    versions: List[PromptVersion] = Field(min_length=1)
    recommended_version: int = 1

    @property
    def latest(self) -> PromptVersion:
        return self.versions[-1]

    def find(self, version: int) -> Optional[PromptVersion]:
        return next((v for v in self.versions if v.version == version), None)

    def recalc_recommended(self) -> int:
        """Point at the best-scored version (newest wins ties), else the latest."""
        best: Optional[PromptVersion] = None
        for ver in self.versions:
            if ver.judge_score is None:
                continue
            if best is None or ver.judge_score >= best.judge_score:
                best = ver
        self.recommended_version = (best or self.latest).version
        return self.recommended_version


class VersionStore(BaseModel):
    """The persisted document: every tracked prompt's history."""

    histories: Dict[str, PromptHistory] = Field(default_factory=dict)
    last_modified: datetime = Field(default_factory=datetime.now)
