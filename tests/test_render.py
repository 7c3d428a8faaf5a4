# tests/test_render.py
import json
from pathlib import Path

from codecontext.core.render import (
    SECTION_DELIMITER,
    format_output,
    format_stats,
    generate_summary,
    render_context_document,
    render_file_listing,
    render_full_dump,
)
from codecontext.models import FileContext, OptimizationResult, ScoredFile, SelectionStrategy


def make(path, score, tokens, content=""):
    return ScoredFile(path=path, content=content, relevance_score=score, token_count=tokens)


def result_of(selected, excluded=(), budget=10_000, total=None):
    selected = tuple(selected)
    return OptimizationResult(
        selected_files=selected,
        excluded_files=tuple(excluded),
        total_tokens=total if total is not None else sum(f.token_count for f in selected) + 2000,
        token_budget=budget,
        average_relevance_score=(sum(f.relevance_score for f in selected) / len(selected)) if selected else 0.0,
        strategy=SelectionStrategy.BALANCED,
    )


def test_summary_layout():
    result = result_of(
        [make("src/low.py", 0.2, 1500), make("auth/login.cs", 0.45, 26)],
        excluded=[make("big.txt", 0.1, 90_000)],
    )
    summary = generate_summary(result).splitlines()

    assert summary[:9] == [
        "Token Budget Optimization Summary",
        "Strategy: Balanced",
        "Token Budget: 10,000",
        "Tokens Used: 3,526 (35.3%)",
        "Files Selected: 2",
        "Files Excluded: 1",
        "Average Relevance Score: 0.325",
        "",
        "Top Selected Files:",
    ]
    # Highest score first, file name only
    assert summary[9] == "  • login.cs (score: 0.450, tokens: 26)"
    assert summary[10] == "  • low.py (score: 0.200, tokens: 1,500)"
    assert summary[-1] == "Excluded 1 files due to token budget constraints."


def test_summary_omits_excluded_note_when_nothing_excluded():
    summary = generate_summary(result_of([make("a.py", 0.5, 10)]))
    assert "due to token budget constraints" not in summary


def test_summary_lists_at_most_ten_files():
    files = [make(f"f{i}.py", i / 20, 10) for i in range(12)]
    summary = generate_summary(result_of(files))
    assert summary.count("  • ") == 10
    assert "f0.py" not in summary  # lowest scores drop off
    assert "f11.py" in summary


def test_summary_with_zero_budget():
    empty = OptimizationResult((), (), 0, 0, 0.0, SelectionStrategy.VALUE_OPTIMIZED)
    assert "Tokens Used: 0 (0.0%)" in generate_summary(empty)


def test_context_document_sections():
    result = result_of([make("b.py", 0.3, 10, "B body"), make("a.py", 0.8, 10, "A body")])
    doc = render_context_document("proj", "fix bug", result, structure="proj/\n└── a.py\n")

    assert doc.startswith("# Code Context\nProject: proj\nTask: fix bug\n")
    assert doc.count(SECTION_DELIMITER) == 2
    assert doc.index("## Project Structure") < doc.index("## Selected Files")
    assert doc.index("### a.py") < doc.index("### b.py")
    assert "Relevance: 0.800 | Tokens: 10" in doc
    assert "A body" in doc


def test_context_document_without_structure():
    doc = render_context_document("proj", "", result_of([]))
    assert "## Project Structure" not in doc
    assert doc.count(SECTION_DELIMITER) == 1
    assert "## Selected Files" in doc


def test_full_dump_frames_each_file():
    files = [FileContext(Path("/p/src/main.py"), "src/main.py", "print('main')", 12)]
    dump = render_full_dump("p", files, structure="p/\n└── src/\n")
    assert "# Files: 1 | Tokens: 12" in dump
    assert "# --- Project Tree ---" in dump
    assert "--- File: src/main.py ---" in dump
    assert "--- End: src/main.py ---" in dump

    structure_only = render_full_dump("p", files, structure="p/\n", include_contents=False)
    assert "print('main')" not in structure_only


def test_file_listing_ranked_by_query():
    files = [FileContext(Path("/p/a.py"), "a.py", "", 5), FileContext(Path("/p/b.py"), "b.py", "", 7)]
    scored = [make("a.py", 0.1, 5), make("b.py", 0.9, 7)]
    listing = render_file_listing("p", files, scored=scored, query="bee")
    assert "Filtered by: bee" in listing
    assert listing.index("b.py | 0.900 | 7") < listing.index("a.py | 0.100 | 5")

    plain = render_file_listing("p", files)
    assert "Path | Tokens" in plain
    assert "a.py | 5" in plain


def test_format_output_json_wraps_content():
    wrapped = json.loads(format_output("hello", "JSON"))
    assert wrapped["content"] == "hello"
    assert "timestamp" in wrapped
    assert format_output("hello", "text") == "hello"


def test_format_stats():
    stats = format_stats(3, "a\nb\nc\n", 1.234)
    assert "Files processed: 3" in stats
    assert "Total lines: 3" in stats
    assert "Time taken: 1.23s" in stats
    assert "Output size: 6 characters" in stats
