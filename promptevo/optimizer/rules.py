"""
Rule-based prompt rewriting.

Each rule is a pure check/apply pair. Rules run once, in declared order, and
each check sees the output of the rules before it. Every rule only prepends
or appends text, so the input always survives verbatim inside the output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from promptevo.corpus import ReferenceRecord

# --- VOCABULARY PATTERNS ---

ROLE_RE = re.compile(r"\b(you are|act as|your role|as a)\b", re.IGNORECASE)
OUTPUT_RE = re.compile(r"\b(output|format|return|respond with|response should)\b", re.IGNORECASE)
CONSTRAINT_RE = re.compile(r"\b(must|should|ensure|always|never|required|do not)\b", re.IGNORECASE)
STEP_RE = re.compile(r"\b(step|first|second|then|finally|next|1\.|2\.)\b", re.IGNORECASE)
EDGE_CASE_RE = re.compile(
    r"\b(edge case|error|exception|handle|corner case|fallback)\b", re.IGNORECASE
)
EXAMPLE_RE = re.compile(r"\b(example|e\.g\.|for instance|such as|demonstrate)\b", re.IGNORECASE)
HEADING_RE = re.compile(r"^#+\s", re.MULTILINE)
BOLD_RE = re.compile(r"\*\*[^*]+\*\*")


@dataclass(frozen=True)
class OptimizationRule:
    name: str
    description: str
    check: Callable[[str], bool]
    apply: Callable[[str], str]


def _add_sections(text: str) -> str:
    if len(text.split("\n")) > 5:
        return f"## Task\n{text}"
    return text


OPTIMIZATION_RULES: List[OptimizationRule] = [
    OptimizationRule(
        name="add-role-definition",
        description="Add a clear role/persona definition",
        check=lambda c: not ROLE_RE.search(c),
        apply=lambda c: f"You are an expert AI assistant.\n\n{c}",
    ),
    OptimizationRule(
        name="add-output-format",
        description="Specify expected output format",
        check=lambda c: not OUTPUT_RE.search(c),
        apply=lambda c: f"{c}\n\nPlease structure your response clearly with appropriate formatting.",
    ),
    OptimizationRule(
        name="add-constraints",
        description="Add quality constraints",
        check=lambda c: not CONSTRAINT_RE.search(c),
        apply=lambda c: f"{c}\n\nEnsure your response is accurate, well-structured, and complete.",
    ),
    OptimizationRule(
        name="add-step-structure",
        description="Add step-by-step instruction when missing",
        check=lambda c: not STEP_RE.search(c) and len(c) > 100,
        apply=lambda c: f"{c}\n\nPlease approach this step by step.",
    ),
    OptimizationRule(
        name="add-edge-cases",
        description="Remind about edge cases",
        check=lambda c: not EDGE_CASE_RE.search(c) and len(c) > 150,
        apply=lambda c: f"{c}\n\nConsider edge cases and potential error scenarios in your response.",
    ),
    OptimizationRule(
        name="add-examples-hint",
        description="Encourage examples in response",
        check=lambda c: not EXAMPLE_RE.search(c) and len(c) > 100,
        apply=lambda c: f"{c}\n\nInclude concrete examples where applicable.",
    ),
    OptimizationRule(
        name="add-markdown-structure",
        description="Add section headers for long prompts",
        check=lambda c: len(c) > 300 and not HEADING_RE.search(c) and not BOLD_RE.search(c),
        apply=_add_sections,
    ),
]

RULE_REGISTRY: Dict[str, OptimizationRule] = {rule.name: rule for rule in OPTIMIZATION_RULES}


def get_rule(name: str) -> OptimizationRule:
    if name not in RULE_REGISTRY:
        raise ValueError(f"Unknown rule: {name}")
    return RULE_REGISTRY[name]


def apply_rules_traced(
    text: str,
    references: Optional[Sequence[ReferenceRecord]] = None,
    rules: Sequence[OptimizationRule] = OPTIMIZATION_RULES,
) -> Tuple[str, List[str]]:
    """Run every applicable rule and report which ones changed the text."""
    # references are accepted so reference-aware rules can slot in later
    optimized = text
    fired: List[str] = []
    for rule in rules:
        if rule.check(optimized):
            updated = rule.apply(optimized)
            if updated != optimized:
                fired.append(rule.name)
            optimized = updated
    return optimized, fired


def apply_rules(
    text: str,
    references: Optional[Sequence[ReferenceRecord]] = None,
    rules: Sequence[OptimizationRule] = OPTIMIZATION_RULES,
) -> str:
    return apply_rules_traced(text, references, rules)[0]
