# src/codecontext/core/optimizer.py
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from codecontext.models import OptimizationResult, ScoredFile, SelectionStrategy

STRUCTURE_RESERVED_TOKENS = 2000
FORMATTING_RESERVED_TOKENS = 100
BALANCED_PHASE_ONE_RATIO = 0.5


class InvalidStrategyError(ValueError):
    """Raised when the optimizer receives something that is not a SelectionStrategy."""


def _value_ratio(f: ScoredFile) -> float:
    return f.relevance_score / f.token_count if f.token_count > 0 else 0.0


def _forward_pass(ranked: Iterable[ScoredFile], budget: int) -> List[ScoredFile]:
    """
    Single pass over `ranked`: take a file if it fits what is left, and stop
    as soon as nothing is left. Skipped files are never revisited.
    """
    selected: List[ScoredFile] = []
    remaining = budget

    for f in ranked:
        if f.token_count <= remaining:
            selected.append(f)
            remaining -= f.token_count
        if remaining <= 0:
            break

    return selected


def select_greedy_by_score(files: Sequence[ScoredFile], budget: int) -> List[ScoredFile]:
    return _forward_pass(sorted(files, key=lambda f: f.relevance_score, reverse=True), budget)


def select_value_optimized(files: Sequence[ScoredFile], budget: int) -> List[ScoredFile]:
    """Ranks by relevance per token, which favours many small relevant files."""
    return _forward_pass(sorted(files, key=_value_ratio, reverse=True), budget)


def select_balanced(files: Sequence[ScoredFile], budget: int,
                    phase_one_ratio: float = BALANCED_PHASE_ONE_RATIO) -> List[ScoredFile]:
    """
    Phase one spends part of the budget on the best value-per-token files.
    Phase two fills whatever was actually left with the highest scores.
    """
    files = list(files)
    phase_one = select_value_optimized(files, int(budget * phase_one_ratio))
    remaining = budget - sum(f.token_count for f in phase_one)

    taken = {id(f) for f in phase_one}
    rest = [f for f in files if id(f) not in taken]
    return phase_one + select_greedy_by_score(rest, remaining)


class TokenBudgetOptimizer:
    """Chooses which scored files fit into a token budget."""

    def __init__(self):
        self._strategies: Dict[SelectionStrategy, Callable[[Sequence[ScoredFile], int], List[ScoredFile]]] = {
            SelectionStrategy.GREEDY_BY_SCORE: select_greedy_by_score,
            SelectionStrategy.VALUE_OPTIMIZED: select_value_optimized,
            SelectionStrategy.BALANCED: select_balanced,
        }

    def optimize_selection(
        self,
        scored_files: Optional[Iterable[ScoredFile]],
        token_budget: int,
        strategy: SelectionStrategy = SelectionStrategy.VALUE_OPTIMIZED,
        include_structure: bool = True,
    ) -> OptimizationResult:
        """
        Selects files under `token_budget` with the given strategy.

        Args:
            scored_files: Files with relevance scores (None is treated as empty).
            token_budget: Maximum tokens for the whole context.
            strategy: A SelectionStrategy member. Strings are rejected.
            include_structure: Reserve room for the project structure listing.

        Returns:
            OptimizationResult whose total_tokens includes the reserved overhead.
        """
        if not isinstance(strategy, SelectionStrategy) or strategy not in self._strategies:
            raise InvalidStrategyError(f"Unknown strategy: {strategy!r}")

        files = list(scored_files or [])

        if token_budget <= 0:
            return OptimizationResult(
                selected_files=(),
                excluded_files=tuple(files),
                total_tokens=0,
                token_budget=token_budget,
                average_relevance_score=0.0,
                strategy=strategy,
            )

        reserved = STRUCTURE_RESERVED_TOKENS if include_structure else FORMATTING_RESERVED_TOKENS
        available = max(0, token_budget - reserved)

        selected = self._strategies[strategy](files, available)

        picked = {id(f) for f in selected}
        excluded = [f for f in files if id(f) not in picked]
        total_tokens = sum(f.token_count for f in selected) + reserved
        average = sum(f.relevance_score for f in selected) / len(selected) if selected else 0.0

        return OptimizationResult(
            selected_files=tuple(selected),
            excluded_files=tuple(excluded),
            total_tokens=total_tokens,
            token_budget=token_budget,
            average_relevance_score=average,
            strategy=strategy,
        )
