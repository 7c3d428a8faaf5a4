# src/codecontext/core/render.py
import json
from datetime import datetime
from typing import List, Optional, Sequence

from codecontext.models import FileContext, OptimizationResult, ScoredFile

SECTION_DELIMITER = "=" * 80
FILE_RULE = "-" * 80
TOP_FILES_IN_SUMMARY = 10


def _file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def generate_summary(result: OptimizationResult) -> str:
    """Human-readable report of an optimization run."""
    utilization = result.total_tokens / result.token_budget * 100 if result.token_budget > 0 else 0.0

    lines = [
        "Token Budget Optimization Summary",
        f"Strategy: {result.strategy.value}",
        f"Token Budget: {result.token_budget:,}",
        f"Tokens Used: {result.total_tokens:,} ({utilization:.1f}%)",
        f"Files Selected: {len(result.selected_files)}",
        f"Files Excluded: {len(result.excluded_files)}",
        f"Average Relevance Score: {result.average_relevance_score:.3f}",
        "",
        "Top Selected Files:",
    ]

    top = sorted(result.selected_files, key=lambda f: f.relevance_score, reverse=True)[:TOP_FILES_IN_SUMMARY]
    for f in top:
        lines.append(f"  • {_file_name(f.path)} (score: {f.relevance_score:.3f}, tokens: {f.token_count:,})")

    if result.excluded_files:
        lines.append("")
        lines.append(f"Excluded {len(result.excluded_files)} files due to token budget constraints.")

    return "\n".join(lines)


def render_context_document(project_name: str, task: str, result: OptimizationResult,
                            structure: Optional[str] = None) -> str:
    out: List[str] = [
        "# Code Context",
        f"Project: {project_name}",
        f"Task: {task}",
        "",
        generate_summary(result),
        "",
        SECTION_DELIMITER,
        "",
    ]

    if structure is not None:
        out += ["## Project Structure", "", structure.rstrip("\n"), "", SECTION_DELIMITER, ""]

    out += ["## Selected Files", ""]
    for f in sorted(result.selected_files, key=lambda f: f.relevance_score, reverse=True):
        out += [
            f"### {f.path}",
            f"Relevance: {f.relevance_score:.3f} | Tokens: {f.token_count:,}",
            FILE_RULE,
            f.content,
            "",
        ]

    return "\n".join(out) + "\n"


def render_full_dump(root_name: str, files: Sequence[FileContext], structure: Optional[str] = None,
                     include_contents: bool = True) -> str:
    """The unbudgeted document: every eligible file, framed by start/end markers."""
    total_tokens = sum(f.token_count for f in files)
    out: List[str] = [
        f"# --- {root_name} Context ---",
        f"# Files: {len(files)} | Tokens: {total_tokens}",
    ]

    if structure is not None:
        out.append("# --- Project Tree ---")
        out.append(structure.rstrip("\n"))

    if include_contents:
        out.append("# --- Context Start ---\n")
        for fc in files:
            out.append(f"--- File: {fc.rel_path} ---\n")
            out.append(fc.content)
            out.append(f"\n--- End: {fc.rel_path} ---\n")

    return "\n".join(out) + "\n"


def render_file_listing(project_name: str, files: Sequence[FileContext],
                        scored: Optional[Sequence[ScoredFile]] = None,
                        query: Optional[str] = None) -> str:
    out: List[str] = [f"# Project Files: {project_name}", ""]

    if scored is not None:
        ranked = sorted(scored, key=lambda f: f.relevance_score, reverse=True)
        out += [f"Filtered by: {query}", f"Total files: {len(ranked)}", "",
                "Path | Relevance | Tokens", FILE_RULE]
        out += [f"{f.path} | {f.relevance_score:.3f} | {f.token_count:,}" for f in ranked]
    else:
        out += [f"Total files: {len(files)}", "", "Path | Tokens", FILE_RULE]
        out += [f"{f.rel_path} | {f.token_count:,}" for f in files]

    return "\n".join(out) + "\n"


def format_output(content: str, output_format: str = "text") -> str:
    if (output_format or "text").lower() == "json":
        return json.dumps({"content": content, "timestamp": datetime.now().isoformat()},
                          indent=2, ensure_ascii=False)
    return content


def format_stats(file_count: int, content: str, elapsed_seconds: float) -> str:
    line_count = content.count("\n")
    return "\n".join([
        "",
        "Stats:",
        f"  Files processed: {file_count}",
        f"  Total lines: {line_count}",
        f"  Time taken: {elapsed_seconds:.2f}s",
        f"  Output size: {len(content)} characters",
    ])
