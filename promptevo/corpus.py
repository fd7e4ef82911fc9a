"""
Reference corpus types.

The corpus is produced elsewhere (crawlers, exports, fixtures) and consumed
here as a ready-made list of ReferenceRecord objects.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger("promptevo.corpus")


class ReferenceRecord(BaseModel):
    """A high-quality example prompt used as optimization inspiration."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    source: str  # origin identifier, e.g. the repository URL
    source_id: str = ""
    category: str = "General"
    tags: List[str] = Field(default_factory=list)
    fetched_at: str = Field(default_factory=lambda: datetime.now().isoformat())


_RECORDS = TypeAdapter(List[ReferenceRecord])


@runtime_checkable
class CorpusLoader(Protocol):
    """Anything that can (re)fetch the full reference corpus."""

    async def fetch(self) -> List[ReferenceRecord]:
        ...


class StaticCorpusLoader:
    """Serves a fixed, pre-fetched list (tests and offline use)."""

    def __init__(self, records: Sequence[ReferenceRecord]):
        self.records = list(records)

    async def fetch(self) -> List[ReferenceRecord]:
        return list(self.records)


class JsonFileCorpusLoader:
    """
    Reads a JSON array of record objects from disk.

    A missing or malformed file yields an empty corpus rather than an error.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def fetch(self) -> List[ReferenceRecord]:
        # file IO runs in a worker thread, off the event loop
        return await asyncio.to_thread(load_records, self.path)


def load_records(path: Path) -> List[ReferenceRecord]:
    if not path.exists():
        logger.info("Corpus file %s not found, using empty corpus", path)
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return _RECORDS.validate_python(data)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Ignoring unreadable corpus file %s: %s", path, exc)
        return []
