from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List, Optional, Sequence

from promptevo.corpus import CorpusLoader, ReferenceRecord
from .judge import QualityJudge
from .models import OptimizationResult, OptimizerConfig
from .retriever import extract_patterns, find_similar
from .rules import apply_rules_traced

if TYPE_CHECKING:
    from promptevo.history.manager import VersionLedger

logger = logging.getLogger("promptevo.optimizer")


class PromptOptimizer:
    """
    The Orchestrator.
    Finds similar reference prompts, rewrites the input with the rule
    catalogue, lets the judge score both versions and decides whether the
    rewrite is an improvement.
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        judge: Optional[QualityJudge] = None,
        loader: Optional[CorpusLoader] = None,
    ):
        self.config = config or OptimizerConfig()
        self.judge = judge or QualityJudge()
        self.loader = loader
        self._references: List[ReferenceRecord] = []
        self._loaded_at: Optional[float] = None

    # -- Reference corpus cache --

    @property
    def reference_count(self) -> int:
        return len(self._references)

    @property
    def references(self) -> List[ReferenceRecord]:
        return list(self._references)

    def _is_fresh(self) -> bool:
        if not self._references or self._loaded_at is None:
            return False
        return (time.monotonic() - self._loaded_at) < self.config.cache_ttl_seconds

    async def load_references(self, force: bool = False) -> int:
        """
        Refresh the reference cache through the loader when forced or stale.

        Returns the number of cached references. Loader errors propagate.
        """
        if not force and self._is_fresh():
            return len(self._references)
        if self.loader is None:
            return len(self._references)

        records = await self.loader.fetch()
        self._references = list(records)
        self._loaded_at = time.monotonic()
        logger.info("Loaded %d reference prompts", len(self._references))
        return len(self._references)

    def set_references(self, records: Sequence[ReferenceRecord]) -> None:
        """Use a pre-fetched corpus (tests / offline) and mark it fresh."""
        self._references = list(records)
        self._loaded_at = time.monotonic()

    # -- Optimization --

    async def optimize(self, content: str) -> OptimizationResult:
        """Optimize a single prompt. Nothing is persisted."""
        # 1. Find similar reference prompts
        references = find_similar(
            content,
            self._references,
            max_results=self.config.max_references,
            threshold=self.config.similarity_threshold,
        )

        # 2. Generate the candidate from the rule catalogue
        optimized, applied = apply_rules_traced(content, references)

        # 3. Score both versions
        original_result = await self.judge.score(content)
        optimized_result = await self.judge.score(optimized)
        methods = {original_result.method, optimized_result.method}

        # 4. Decide; close scores go to an A/B comparison
        improved = optimized_result.score > original_result.score
        feedback = f"Original: {original_result.score}/5, Optimized: {optimized_result.score}/5"

        margin = abs(optimized_result.score - original_result.score)
        if margin < self.config.tie_margin and optimized != content:
            comparison = await self.judge.compare(content, optimized)
            methods.add(comparison.method)
            improved = comparison.winner == "B"
            feedback += f"\nA/B comparison: {comparison.feedback}"

        logger.debug("optimize: rules=%s improved=%s", applied, improved)

        return OptimizationResult(
            original_content=content,
            optimized_content=optimized,
            original_score=original_result.score,
            optimized_score=optimized_result.score,
            improved=improved,
            feedback=feedback,
            inspiration_sources=[r.source for r in references],
            method="remote" if "remote" in methods else "deterministic",
            applied_rules=applied,
            reference_patterns=extract_patterns(references),
        )

    async def optimize_and_version(
        self, prompt_id: str, content: str, ledger: "VersionLedger"
    ) -> OptimizationResult:
        """Optimize a prompt and record the rewrite in the ledger if it won."""
        result = await self.optimize(content)

        if result.improved:
            added = ledger.add_version(
                prompt_id,
                result.optimized_content,
                source="auto-optimize",
                judge_score=result.optimized_score,
                inspiration_source=", ".join(result.inspiration_sources),
                change_note=f"Auto-optimized: {result.feedback}",
            )
            if added is None:
                logger.debug("No history for %s, rewrite not recorded", prompt_id)

            # Backfill the original's score if it was never judged
            history = ledger.get_history(prompt_id)
            if history:
                original = next((v for v in history.versions if v.content == content), None)
                if original is not None and original.judge_score is None:
                    ledger.set_score(prompt_id, original.version, result.original_score)

        return result
