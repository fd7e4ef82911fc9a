"""Runtime settings resolved from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from promptevo.llm.base import ProviderConfig
from promptevo.llm.factory import config_from_env, env_number


def _default_home() -> Path:
    return Path(os.environ.get("PROMPTEVO_HOME") or Path.home() / ".promptevo")


class Settings(BaseModel):
    """Everything the CLI needs to wire the pipeline together."""

    home: Path = Field(default_factory=_default_home)
    provider: Optional[str] = None  # None -> deterministic judge only
    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)
    max_references: int = 5
    similarity_threshold: float = 0.1
    crawl_interval_seconds: float = 6 * 3600
    optimize_interval_seconds: float = 12 * 3600

    @property
    def ledger_path(self) -> Path:
        return self.home / "versions.json"

    @property
    def corpus_path(self) -> Path:
        return self.home / "corpus.json"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """
        Resolve settings from the environment after loading an optional .env.

        Raises ValueError naming the variable when a numeric value is malformed.
        """
        # real env vars win over .env entries
        load_dotenv(env_file, override=False)
        env = os.environ
        return cls(
            home=_default_home(),
            provider=(env.get("PROMPTEVO_LLM_PROVIDER") or "").lower() or None,
            provider_config=config_from_env(),
            max_references=env_number("PROMPTEVO_MAX_REFERENCES", 5, int),
            similarity_threshold=env_number("PROMPTEVO_SIMILARITY_THRESHOLD", 0.1, float),
            crawl_interval_seconds=env_number("PROMPTEVO_CRAWL_INTERVAL", 6 * 3600.0, float),
            optimize_interval_seconds=env_number(
                "PROMPTEVO_OPTIMIZE_INTERVAL", 12 * 3600.0, float
            ),
        )
