"""Lexical similarity search over the reference corpus."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Set

from promptevo.corpus import ReferenceRecord

_NON_WORD = re.compile(r"[^a-z0-9\s]")
MIN_TOKEN_LENGTH = 4

# Structural patterns worth borrowing from a reference, in report order
PATTERN_CHECKS = [
    ("role-definition", re.compile(r"you are|act as", re.IGNORECASE)),
    ("code-blocks", re.compile(r"```")),
    ("step-by-step", re.compile(r"\b(step|1\.|first)\b", re.IGNORECASE)),
    ("constraints", re.compile(r"\b(must|should|ensure)\b", re.IGNORECASE)),
    ("examples", re.compile(r"\b(example|e\.g\.|for instance)\b", re.IGNORECASE)),
    ("output-spec", re.compile(r"\b(output|format|respond)\b", re.IGNORECASE)),
    ("sections", re.compile(r"^##\s", re.MULTILINE)),
]


def tokenize(text: str) -> Set[str]:
    """Lowercase alphanumeric words longer than three characters."""
    cleaned = _NON_WORD.sub("", text.lower())
    return {w for w in cleaned.split() if len(w) >= MIN_TOKEN_LENGTH}


def similarity(query_tokens: Set[str], record: ReferenceRecord) -> float:
    """Share of the query's tokens found in the record (normalized by query size)."""
    if not query_tokens:
        return 0.0
    record_tokens = tokenize(f"{record.title} {record.content}")
    return len(query_tokens & record_tokens) / len(query_tokens)


def find_similar(
    query: str,
    corpus: Sequence[ReferenceRecord],
    max_results: int = 5,
    threshold: float = 0.1,
) -> List[ReferenceRecord]:
    """
    Return up to max_results records whose similarity to query is >= threshold.

    Results are ordered by descending similarity; equal scores keep corpus order.
    """
    query_tokens = tokenize(query)
    if not query_tokens or not corpus:
        return []

    scored = []
    for record in corpus:
        sim = similarity(query_tokens, record)
        if sim >= threshold:
            scored.append((sim, record))

    # sorted() is stable, so ties stay in corpus order
    scored = sorted(scored, key=lambda item: item[0], reverse=True)
    return [record for _, record in scored[: max(0, max_results)]]


def extract_patterns(references: Iterable[ReferenceRecord]) -> List[str]:
    """Collect the structural patterns used by the references, without duplicates."""
    patterns: List[str] = []
    for ref in references:
        for name, pattern in PATTERN_CHECKS:
            if name not in patterns and pattern.search(ref.content):
                patterns.append(name)
    return patterns
