# src/codecontext/core/pipeline.py
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from codecontext.config import DEFAULT_TOKEN_BUDGET
from codecontext.core.optimizer import TokenBudgetOptimizer
from codecontext.core.render import FILE_RULE, render_context_document, render_file_listing
from codecontext.core.scanner import ProjectScanner
from codecontext.core.scorer import RelevanceScorer
from codecontext.models import FileContext, OptimizationResult, SelectionStrategy
from codecontext.utils.paths import PathTraversalError, validate_path_within_root
from codecontext.utils.tokenizer import estimate_tokens_for_file

_STRATEGY_NOISE_RE = re.compile(r"[\s_\-]+")


def _normalize(text: str) -> str:
    return _STRATEGY_NOISE_RE.sub("", text).lower()


# "GreedyByScore" and "GREEDY_BY_SCORE" both normalize to "greedybyscore"
_STRATEGY_ALIASES = {_normalize(s.value): s for s in SelectionStrategy}


def parse_strategy(text: Optional[Union[str, SelectionStrategy]]) -> SelectionStrategy:
    """
    Lenient strategy lookup for user input: case, spaces, '_' and '-' are ignored.
    Anything unrecognized becomes ValueOptimized.
    """
    if isinstance(text, SelectionStrategy):
        return text
    return _STRATEGY_ALIASES.get(_normalize(text or ""), SelectionStrategy.VALUE_OPTIMIZED)


@dataclass(frozen=True)
class ContextReport:
    document: str
    result: OptimizationResult
    scanned: List[FileContext]
    structure: Optional[str]


def _resolve_root(root_dir: Union[str, Path]) -> Path:
    root = Path(root_dir).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Directory not found: {root}")
    return root


def build_context(
    root_dir: Union[str, Path],
    task: str,
    token_budget: int = DEFAULT_TOKEN_BUDGET,
    strategy: Union[str, SelectionStrategy] = SelectionStrategy.VALUE_OPTIMIZED,
    include_structure: bool = True,
    scanner: Optional[ProjectScanner] = None,
    max_workers: Optional[int] = None,
) -> ContextReport:
    """Scan -> score -> optimize -> render, for one task description."""
    root = _resolve_root(root_dir)
    scanner = scanner or ProjectScanner(root)

    scanned = list(scanner.scan())
    scored = RelevanceScorer().score_files(scanned, task, max_workers=max_workers)
    result = TokenBudgetOptimizer().optimize_selection(
        scored, token_budget, parse_strategy(strategy), include_structure
    )

    structure = scanner.structure(scanned) if include_structure else None
    document = render_context_document(root.name, task, result, structure)
    return ContextReport(document=document, result=result, scanned=scanned, structure=structure)


def get_project_structure(root_dir: Union[str, Path], scanner: Optional[ProjectScanner] = None) -> str:
    root = _resolve_root(root_dir)
    scanner = scanner or ProjectScanner(root)
    return scanner.structure()


def list_project_files(root_dir: Union[str, Path], query: Optional[str] = None,
                       scanner: Optional[ProjectScanner] = None) -> str:
    """All eligible files with token counts, ranked by relevance when a query is given."""
    root = _resolve_root(root_dir)
    scanner = scanner or ProjectScanner(root)
    files = list(scanner.scan())

    if query and query.strip():
        scored = RelevanceScorer().score_files(files, query)
        return render_file_listing(root.name, files, scored=scored, query=query)
    return render_file_listing(root.name, files)


def get_file_contents(root_dir: Union[str, Path], rel_paths: Iterable[str]) -> str:
    """Contents of specific files; paths escaping the root are refused."""
    root = _resolve_root(root_dir)
    out: List[str] = ["# File Contents", ""]

    for rel_path in (p.strip() for p in rel_paths):
        if not rel_path:
            continue
        out.append(f"## {rel_path}")

        try:
            full_path = validate_path_within_root(root, rel_path)
        except PathTraversalError:
            out += ["Security error: Path traversal detected", ""]
            continue

        if not full_path.is_file():
            out += ["File not found", ""]
            continue

        try:
            content = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            out += [f"Read error: {e}", ""]
            continue

        out += [
            f"Tokens: {estimate_tokens_for_file(rel_path, content):,}",
            FILE_RULE,
            content,
            "",
        ]

    return "\n".join(out) + "\n"
