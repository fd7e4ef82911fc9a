"""
Periodic Update Scheduler

Runs two independent asyncio timers:
  1. crawl: force-refresh the reference corpus
  2. optimize: auto-optimize the most used tracked prompts

Both cycles can also be run on demand. Stopping the scheduler only disarms
the timers; a cycle that is already running is allowed to finish.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from enum import Enum
from typing import Any, Callable, Iterable, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field

from promptevo.history.manager import VersionLedger
from promptevo.optimizer.engine import PromptOptimizer
from promptevo.optimizer.models import OptimizationResult

logger = logging.getLogger("promptevo.scheduler")

EventType = Literal["crawl-start", "crawl-done", "optimize-start", "optimize-done", "error"]


class SchedulerConfig(BaseModel):
    crawl_interval_seconds: float = 6 * 3600
    optimize_interval_seconds: float = 12 * 3600
    max_optimize_per_cycle: int = 10
    min_usage_for_optimize: int = 2
    enabled: bool = True
    # Opt-in: skip a cycle while another of the same kind is still running
    skip_overlapping_cycles: bool = False


class SchedulerEvent(BaseModel):
    type: EventType
    timestamp: float = Field(default_factory=time.time)
    detail: Optional[str] = None


class PromptCandidate(BaseModel):
    """A tracked prompt offered for auto-optimization."""

    id: str
    content: str
    usage_weight: float = 0


class ControllerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


SchedulerEventListener = Callable[[SchedulerEvent], Any]
CandidateLike = Union[PromptCandidate, dict, tuple]
PromptProvider = Callable[[], Iterable[CandidateLike]]


def _coerce_candidate(item: CandidateLike) -> PromptCandidate:
    if isinstance(item, PromptCandidate):
        return item
    if isinstance(item, dict):
        return PromptCandidate.model_validate(item)
    prompt_id, content, usage_weight = item
    return PromptCandidate(id=prompt_id, content=content, usage_weight=usage_weight)


class UpdateController:
    """Drives crawl and optimize cycles on a timer and reports progress as events."""

    def __init__(
        self,
        optimizer: PromptOptimizer,
        config: Optional[SchedulerConfig] = None,
        ledger: Optional[VersionLedger] = None,
        prompt_provider: Optional[PromptProvider] = None,
    ):
        self.config = config or SchedulerConfig()
        self.optimizer = optimizer
        self.ledger = ledger
        self.prompt_provider = prompt_provider

        self.state = ControllerState.IDLE
        self.crawl_count = 0
        self.optimize_count = 0
        self.last_crawl: float = 0.0
        self.last_optimize: float = 0.0

        self._listeners: List[SchedulerEventListener] = []
        self._crawl_timer: Optional[asyncio.Task] = None
        self._optimize_timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._crawl_busy = False
        self._optimize_busy = False

    # -- Wiring --

    def set_version_manager(self, ledger: VersionLedger) -> None:
        self.ledger = ledger

    def set_prompt_provider(self, provider: PromptProvider) -> None:
        self.prompt_provider = provider

    def on_event(self, listener: SchedulerEventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SchedulerEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: EventType, detail: Optional[str] = None) -> None:
        event = SchedulerEvent(type=event_type, detail=detail)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.debug("Scheduler listener %r raised: %s", listener, exc)

    # -- Cycles --

    async def run_crawl_cycle(self) -> Optional[int]:
        """Force-refresh the corpus. Returns the reference count, or None on failure."""
        if self.config.skip_overlapping_cycles and self._crawl_busy:
            logger.info("Crawl cycle already running, skipping")
            return None

        self._crawl_busy = True
        try:
            self._emit("crawl-start")
            try:
                count = await self.optimizer.load_references(force=True)
            except Exception as exc:
                logger.warning("Crawl cycle failed: %s", exc)
                self._emit("error", f"Crawl error: {exc}")
                return None

            self.crawl_count += 1
            self.last_crawl = time.time()
            self._emit("crawl-done", f"Fetched {count} prompts")
            return count
        finally:
            self._crawl_busy = False

    async def run_optimize_cycle(self) -> List[OptimizationResult]:
        """Optimize eligible prompts one after another, in provider order."""
        if self.prompt_provider is None:
            return []
        if self.config.skip_overlapping_cycles and self._optimize_busy:
            logger.info("Optimize cycle already running, skipping")
            return []

        self._optimize_busy = True
        results: List[OptimizationResult] = []
        try:
            self._emit("optimize-start")
            try:
                candidates = await self._read_candidates()
                for candidate in candidates:
                    try:
                        if self.ledger is not None:
                            result = await self.optimizer.optimize_and_version(
                                candidate.id, candidate.content, self.ledger
                            )
                        else:
                            result = await self.optimizer.optimize(candidate.content)
                        results.append(result)
                    except Exception as exc:
                        logger.warning("Optimizing prompt %s failed: %s", candidate.id, exc)

                self.optimize_count += 1
                self.last_optimize = time.time()
                improved = sum(1 for r in results if r.improved)
                self._emit(
                    "optimize-done", f"Optimized {len(results)} prompts, {improved} improved"
                )
            except Exception as exc:
                logger.warning("Optimize cycle failed: %s", exc)
                self._emit("error", f"Optimize error: {exc}")
        finally:
            self._optimize_busy = False

        return results

    async def _read_candidates(self) -> List[PromptCandidate]:
        raw = self.prompt_provider()
        if inspect.isawaitable(raw):
            raw = await raw
        eligible = [
            c
            for c in (_coerce_candidate(item) for item in raw)
            if c.usage_weight >= self.config.min_usage_for_optimize
        ]
        return eligible[: max(0, self.config.max_optimize_per_cycle)]

    # -- Lifecycle --

    @property
    def is_running(self) -> bool:
        return self.state is ControllerState.RUNNING

    def start(self) -> None:
        """Arm both timers. Must be called from inside a running event loop."""
        if self.state is not ControllerState.IDLE or not self.config.enabled:
            return
        loop = asyncio.get_running_loop()
        self._crawl_timer = loop.create_task(
            self._tick(self.config.crawl_interval_seconds, self.run_crawl_cycle)
        )
        self._optimize_timer = loop.create_task(
            self._tick(self.config.optimize_interval_seconds, self.run_optimize_cycle)
        )
        self.state = ControllerState.RUNNING
        logger.info("Scheduler started")

    async def _tick(self, interval: float, cycle: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval)
            # Separate task, so cancelling the timer leaves the cycle running
            task = asyncio.ensure_future(cycle())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    def stop(self) -> None:
        for timer in (self._crawl_timer, self._optimize_timer):
            if timer is not None:
                timer.cancel()
        self._crawl_timer = None
        self._optimize_timer = None
        if self.state is ControllerState.RUNNING:
            logger.info("Scheduler stopped")
        self.state = ControllerState.IDLE

    def dispose(self) -> None:
        self.stop()
        self._listeners = []
