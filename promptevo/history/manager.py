"""
Prompt Version Ledger

Append-only version history per prompt, with a recommended version that
always points at the best-scored entry. The whole store lives in one JSON
file that is loaded at startup and rewritten after every mutation.
"""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .models import PromptHistory, PromptVersion, VersionSource, VersionStore

logger = logging.getLogger("promptevo.ledger")


class VersionLedger:
    """Manages prompt version histories and their persistence"""

    def __init__(self, storage_path: Optional[Path] = None):
        """
        Initialize the ledger

        Args:
            storage_path: Path to the JSON store. Defaults to ~/.promptevo/versions.json
        """
        if storage_path is None:
            storage_path = Path.home() / ".promptevo" / "versions.json"

        self.storage_path = Path(storage_path)
        self.store = self._load()

    def _load(self) -> VersionStore:
        """Load the store from disk"""
        if self.storage_path.exists():
            try:
                return VersionStore.model_validate_json(
                    self.storage_path.read_text(encoding="utf-8")
                )
            except (OSError, ValidationError) as exc:
                # If file is corrupted, start fresh
                logger.warning("Could not read version store %s: %s", self.storage_path, exc)
        return VersionStore()

    def _save(self):
        """Rewrite the store; the old file stays intact until the new one is complete"""
        self.store.last_modified = datetime.now()
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(
            dir=self.storage_path.parent, prefix=".versions-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.store.model_dump_json(indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.storage_path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    # -- Mutations --

    def init_history(
        self, prompt_id: str, content: str, source: VersionSource = "manual"
    ) -> PromptHistory:
        """
        Start tracking a prompt with content as version 1.

        Calling it again for a known prompt returns the existing history unchanged.
        """
        existing = self.store.histories.get(prompt_id)
        if existing is not None:
            return existing

        history = PromptHistory(
            prompt_id=prompt_id,
            versions=[PromptVersion(version=1, content=content, source=source)],
            recommended_version=1,
        )
        self.store.histories[prompt_id] = history
        self._save()
        return history

    def add_version(
        self,
        prompt_id: str,
        content: str,
        source: VersionSource = "manual",
        judge_score: Optional[float] = None,
        inspiration_source: Optional[str] = None,
        change_note: Optional[str] = None,
    ) -> Optional[PromptVersion]:
        """Append a new version. Returns None if the prompt is not tracked."""
        history = self.store.histories.get(prompt_id)
        if history is None:
            return None

        ver = PromptVersion(
            version=history.latest.version + 1,
            content=content,
            judge_score=judge_score,
            source=source,
            inspiration_source=inspiration_source,
            change_note=change_note,
        )
        history.versions.append(ver)
        history.recalc_recommended()
        self._save()
        return ver

    def set_score(self, prompt_id: str, version: int, score: float) -> bool:
        """
        Record the judge score of an existing version.

        Returns False for an unknown prompt or version, or if the version is
        already scored.
        """
        history = self.store.histories.get(prompt_id)
        if history is None:
            return False
        for idx, ver in enumerate(history.versions):
            if ver.version == version:
                if ver.is_scored:
                    return False
                history.versions[idx] = ver.with_score(score)
                history.recalc_recommended()
                self._save()
                return True
        return False

    def delete_history(self, prompt_id: str) -> bool:
        if prompt_id not in self.store.histories:
            return False
        del self.store.histories[prompt_id]
        self._save()
        return True

    # -- Getters --

    def get_history(self, prompt_id: str) -> Optional[PromptHistory]:
        return self.store.histories.get(prompt_id)

    def get_version(self, prompt_id: str, version: int) -> Optional[PromptVersion]:
        history = self.store.histories.get(prompt_id)
        return history.find(version) if history else None

    def get_recommended_version(self, prompt_id: str) -> Optional[PromptVersion]:
        history = self.store.histories.get(prompt_id)
        return history.find(history.recommended_version) if history else None

    def get_latest_version(self, prompt_id: str) -> Optional[PromptVersion]:
        history = self.store.histories.get(prompt_id)
        return history.latest if history else None

    def get_all_versions(self, prompt_id: str) -> List[PromptVersion]:
        history = self.store.histories.get(prompt_id)
        return list(history.versions) if history else []

    def get_version_count(self, prompt_id: str) -> int:
        history = self.store.histories.get(prompt_id)
        return len(history.versions) if history else 0

    def list_prompt_ids(self) -> List[str]:
        return list(self.store.histories.keys())

    def did_improve(self, prompt_id: str) -> bool:
        """True if the latest version outscored the one before it (both scored)."""
        history = self.store.histories.get(prompt_id)
        if history is None or len(history.versions) < 2:
            return False
        prev, latest = history.versions[-2], history.versions[-1]
        if latest.judge_score is None or prev.judge_score is None:
            return False
        return latest.judge_score > prev.judge_score

    def export_all(self) -> str:
        """Serialize the whole store as JSON"""
        return self.store.model_dump_json(indent=2)
