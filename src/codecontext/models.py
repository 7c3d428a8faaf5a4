# src/codecontext/models.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple


class SelectionStrategy(Enum):
    """How the optimizer picks files under a token budget."""
    GREEDY_BY_SCORE = "GreedyByScore"
    VALUE_OPTIMIZED = "ValueOptimized"
    BALANCED = "Balanced"


@dataclass(frozen=True)
class FileContext:
    """Immutable data class holding a scanned file."""
    path: Path
    rel_path: str
    content: str
    token_count: int


@dataclass(frozen=True)
class ScoredFile:
    """A file with its relevance to a task and its estimated token cost."""
    path: str
    content: str
    relevance_score: float
    token_count: int
    score_breakdown: Dict[str, float] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class OptimizationResult:
    selected_files: Tuple[ScoredFile, ...]
    excluded_files: Tuple[ScoredFile, ...]
    total_tokens: int
    token_budget: int
    average_relevance_score: float
    strategy: SelectionStrategy
