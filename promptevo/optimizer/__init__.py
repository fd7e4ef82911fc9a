from .engine import PromptOptimizer
from .judge import QualityJudge, heuristic_score, parse_compare_output, parse_judge_output
from .models import ComparisonResult, OptimizationResult, OptimizerConfig, QualityScore
from .retriever import extract_patterns, find_similar
from .rules import OPTIMIZATION_RULES, OptimizationRule, apply_rules

__all__ = [
    "PromptOptimizer",
    "QualityJudge",
    "heuristic_score",
    "parse_judge_output",
    "parse_compare_output",
    "ComparisonResult",
    "OptimizationResult",
    "OptimizerConfig",
    "QualityScore",
    "find_similar",
    "extract_patterns",
    "OPTIMIZATION_RULES",
    "OptimizationRule",
    "apply_rules",
]
