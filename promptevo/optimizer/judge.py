"""
The Judge: scores prompts on a 1-5 scale.

Two interchangeable paths sit behind QualityJudge:
- remote: a rubric prompt sent through an LLMProvider, reply parsed for a
  trailing "[RESULT] <value>" marker;
- deterministic: heuristic_score(), an additive rule-weighted scorer that
  needs no network and always returns the same score for the same text.

The remote endpoint is probed once, lazily. After a failed probe or a failed
call the judge stays on the deterministic path until reset_availability()
is called, so a dead endpoint is not hammered with retries.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from promptevo.llm.base import LLMProvider
from .models import ComparisonResult, QualityScore

logger = logging.getLogger("promptevo.judge")

NEUTRAL_SCORE = 3
DEFAULT_WINNER = "B"

# --- RUBRIC PROMPTS ---

JUDGE_SYSTEM_PROMPT = """You are a fair judge assistant specialized in evaluating AI coding prompts.
Evaluate the quality of the given prompt based on the following criteria:

1. **Clarity** (Is the task clearly defined?)
2. **Specificity** (Does it provide enough context and constraints?)
3. **Structure** (Is it well-organized with clear sections?)
4. **Completeness** (Does it cover edge cases and expected output format?)
5. **Effectiveness** (Would this prompt likely produce high-quality LLM output?)

Score from 1-5:
- 1: Vague, unclear, would produce poor results
- 2: Somewhat clear but missing key details
- 3: Decent prompt with room for improvement
- 4: Well-crafted, specific, and structured
- 5: Excellent, comprehensive, production-ready prompt

Output format:
Feedback: (detailed evaluation)
[RESULT] (integer 1-5)"""

COMPARE_SYSTEM_PROMPT = """You are a fair judge comparing two versions of an AI coding prompt.
Determine which version is better based on clarity, specificity, structure, completeness, and effectiveness.

Output format:
Feedback: (explain which is better and why)
[RESULT] A or B"""


def build_judge_prompt(content: str) -> str:
    return f"{JUDGE_SYSTEM_PROMPT}\n\n###Prompt to evaluate:\n{content}\n\n###Feedback: "


def build_compare_prompt(content_a: str, content_b: str) -> str:
    return (
        f"{COMPARE_SYSTEM_PROMPT}\n\n###Version A:\n{content_a}\n\n"
        f"###Version B:\n{content_b}\n\n###Feedback: "
    )


# --- REPLY PARSING ---

RESULT_MARKER = "[RESULT]"
_SCORE_RE = re.compile(r"\[RESULT\]\s*(\d)")
_WINNER_RE = re.compile(r"\[RESULT\]\s*(A|B)", re.IGNORECASE)


def parse_judge_output(output: str) -> Tuple[int, str]:
    """
    Extract (score, feedback) from a judge reply.

    A missing marker yields the neutral score 3; a present marker is clamped
    to 1-5 even if the model wrote an out-of-range digit.
    """
    match = _SCORE_RE.search(output)
    score = min(5, max(1, int(match.group(1)))) if match else NEUTRAL_SCORE
    feedback = output.split(RESULT_MARKER)[0].strip() or output.strip()
    return score, feedback


def parse_compare_output(output: str) -> Tuple[str, str]:
    """Extract (winner, feedback); an unparseable reply counts as a win for B."""
    match = _WINNER_RE.search(output)
    winner = match.group(1).upper() if match else DEFAULT_WINNER
    feedback = output.split(RESULT_MARKER)[0].strip()
    return winner, feedback


# --- HEURISTIC SCORER ---

STRUCTURE_RE = re.compile(r"^#+\s|^##\s|\*\*[^*]+\*\*|^\d+\.", re.MULTILINE)
CODE_FENCE_RE = re.compile(r"```")
SEQUENCE_RE = re.compile(r"\b(step|first|second|then|finally|next)\b", re.IGNORECASE)
CONSTRAINT_RE = re.compile(r"\b(must|should|ensure|always|never|required)\b", re.IGNORECASE)
EXAMPLE_RE = re.compile(r"\b(example|e\.g\.|for instance|such as)\b", re.IGNORECASE)
OUTPUT_RE = re.compile(r"\b(output|format|return|result)\b", re.IGNORECASE)
ROLE_RE = re.compile(r"\b(you are|act as|your role|as a)\b", re.IGNORECASE)
VARIABLE_RE = re.compile(r"\{\{[^}]+\}\}")
EDGE_CASE_RE = re.compile(r"\b(edge case|error|exception|handle|fallback)\b", re.IGNORECASE)

# (pattern, weight, note) applied in order after the length checks
HEURISTIC_CHECKS = [
    (STRUCTURE_RE, 0.5, "Has formatting/structure"),
    (CODE_FENCE_RE, 0.3, "Contains code blocks"),
    (SEQUENCE_RE, 0.3, "Has sequential instructions"),
    (CONSTRAINT_RE, 0.4, "Has constraints/requirements"),
    (EXAMPLE_RE, 0.3, "Provides examples"),
    (OUTPUT_RE, 0.3, "Specifies output format"),
    (ROLE_RE, 0.3, "Defines role/persona"),
    (VARIABLE_RE, 0.2, "Uses template variables"),
    (EDGE_CASE_RE, 0.2, "Considers edge cases"),
]


def heuristic_score(content: str) -> QualityScore:
    """Rule-weighted fallback scorer. Pure: same text, same score."""
    score = 1.5
    notes: List[str] = []

    length = len(content)
    if length > 200:
        score += 0.3
        notes.append("Reasonable length (+0.3)")
    if length > 500:
        score += 0.3
        notes.append("Good length (+0.3)")
    if length > 1000:
        score += 0.3
        notes.append("Detailed prompt (+0.3)")
    if length < 50:
        score -= 0.3
        notes.append("Very short, may lack detail (-0.3)")

    for pattern, weight, note in HEURISTIC_CHECKS:
        if pattern.search(content):
            score += weight
            notes.append(f"{note} (+{weight})")

    score = min(5.0, round(score, 1))
    return QualityScore(
        score=score,
        method="deterministic",
        feedback="Heuristic evaluation:\n" + "\n".join(notes),
    )


def heuristic_compare(content_a: str, content_b: str) -> ComparisonResult:
    score_a = heuristic_score(content_a).score
    score_b = heuristic_score(content_b).score
    return ComparisonResult(
        winner="B" if score_b >= score_a else "A",
        feedback=f"Heuristic: A={score_a}, B={score_b}",
        method="deterministic",
    )


# --- JUDGE ---


class QualityJudge:
    """
    Scores and compares prompts, preferring the remote LLM when reachable.

    Without a provider the judge is purely deterministic.
    """

    def __init__(self, provider: Optional[LLMProvider] = None, probe_timeout: float = 5.0):
        self.provider = provider
        self.probe_timeout = probe_timeout
        self._available: Optional[bool] = None if provider else False

    @property
    def available(self) -> Optional[bool]:
        """True/False once probed, None while still unknown."""
        return self._available

    @property
    def model_name(self) -> Optional[str]:
        return self.provider.config.model if self.provider else None

    def reset_availability(self) -> None:
        """Forget the cached probe result so the next call probes again."""
        self._available = None if self.provider else False

    async def check_availability(self) -> bool:
        if self.provider is None:
            self._available = False
            return False
        try:
            self._available = await self.provider.ping(timeout=self.probe_timeout)
        except Exception as e:
            logger.warning("Judge endpoint probe failed: %s", e)
            self._available = False
        if not self._available:
            logger.info("Remote judge unavailable, using heuristic scoring")
        return self._available

    async def _use_remote(self) -> bool:
        if self._available is None:
            await self.check_availability()
        return bool(self._available)

    def _mark_failed(self, action: str, exc: Exception) -> None:
        logger.warning("LLM judge %s failed, falling back to heuristic: %s", action, exc)
        self._available = False

    async def score(self, content: str) -> QualityScore:
        """Score a single prompt."""
        if await self._use_remote():
            try:
                response = await self.provider.generate(build_judge_prompt(content))
                score, feedback = parse_judge_output(response.content)
                return QualityScore(
                    score=score, feedback=feedback, method="remote", model=self.model_name
                )
            except Exception as e:
                self._mark_failed("scoring", e)

        return heuristic_score(content)

    async def compare(self, content_a: str, content_b: str) -> ComparisonResult:
        """Compare two versions; winner is "A" or "B"."""
        if await self._use_remote():
            try:
                response = await self.provider.generate(build_compare_prompt(content_a, content_b))
                winner, feedback = parse_compare_output(response.content)
                return ComparisonResult(winner=winner, feedback=feedback, method="remote")
            except Exception as e:
                self._mark_failed("comparison", e)

        return heuristic_compare(content_a, content_b)
