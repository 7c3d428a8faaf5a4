# src/codecontext/cli.py
import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from codecontext.config import CONFIG_FILE_NAME, AppConfig, load_config
from codecontext.core.ignore import FileFilter
from codecontext.core.pipeline import (
    build_context,
    get_file_contents,
    get_project_structure,
    list_project_files,
    parse_strategy,
)
from codecontext.core.render import format_output, format_stats, generate_summary, render_full_dump
from codecontext.core.scanner import ProjectScanner
from codecontext.models import FileContext
from codecontext.utils.tokenizer import Tokenizer


def create_arg_parser():
    parser = argparse.ArgumentParser(
        description="Build an LLM-ready context file from a project: structure plus the files most relevant to a task."
    )
    parser.add_argument("root_dir", type=str, nargs="?", default=None, help="Project root directory")
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file or directory (default: {folder_name}_context.txt)"
    )
    parser.add_argument("-e", "--extensions", type=str, default="*", help="Comma-separated file extensions or '*' for all")
    parser.add_argument("-t", "--task", type=str, default=None, help="Task description; enables relevance ranking and the token budget")
    parser.add_argument("-b", "--budget", type=int, default=None, help="Token budget for the selected files")
    parser.add_argument("-s", "--strategy", type=str, default=None,
                        help="GreedyByScore, ValueOptimized or Balanced (case-insensitive)")
    parser.add_argument("--no-structure", action="store_true", help="Leave out the project tree")
    parser.add_argument("--no-contents", action="store_true", help="Leave out file contents (full dump only)")
    parser.add_argument("-f", "--format", choices=["text", "json"], default=None, help="Output format")
    parser.add_argument("--tree", action="store_true", help="Print the project tree and exit")
    parser.add_argument("--list", action="store_true", help="List eligible files with token counts and exit")
    parser.add_argument("--files", type=str, default=None, help="Print the given comma-separated files and exit")
    parser.add_argument("--config", type=str, default=CONFIG_FILE_NAME, help="Path to config.json")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    return parser


def get_default_output_name(root_dir: Path, output_format: str = "text") -> str:
    """Generates a filename based on the directory name."""
    folder_name = root_dir.name or "project"
    safe_name = folder_name.replace(" ", "_")
    extension = "json" if output_format == "json" else "txt"
    return f"{safe_name}_context.{extension}"


def resolve_output_path(root_dir: Path, output_arg: Optional[str], config: AppConfig, output_format: str) -> Path:
    default_name = config.default_output_file_name or get_default_output_name(root_dir, output_format)
    if not output_arg:
        return root_dir / default_name

    output = Path(output_arg).expanduser()
    if not output.is_absolute():
        output = root_dir / output
    if output.is_dir():
        output = output / default_name
    return output


def parse_extensions(raw: str) -> set:
    raw = raw.strip()
    if raw == "*" or not raw:
        return {"*"}
    return {e.strip() for e in raw.split(",") if e.strip()}


def print_largest_files(files: List[FileContext]):
    ranked = sorted(files, key=lambda x: x.token_count, reverse=True)
    print("\n--- Top 10 Largest Files (Est. Tokens) ---")
    print(f"{'Rank':<5} | {'Tokens':<10} | {'File Path'}")
    print("-" * 60)
    for i, f in enumerate(ranked[:10]):
        print(f"{i+1:<5} | {f.token_count:<10} | {f.rel_path}")
    print("-" * 60)
    print(f"Total files: {len(files)}")
    print(f"Total tokens: {sum(f.token_count for f in files)}")
    print("-" * 60)


def main():
    try:
        # 1. Setup
        parser = create_arg_parser()
        args = parser.parse_args()
        config = load_config(args.config)

        root_dir = Path(args.root_dir or config.default_input_path).resolve()
        if not root_dir.is_dir():
            print(f"Error: Invalid directory '{root_dir}'", file=sys.stderr)
            sys.exit(1)

        output_format = args.format or config.output_format
        include_structure = config.include_structure and not args.no_structure
        include_contents = config.include_contents and not args.no_contents
        budget = args.budget if args.budget is not None else config.token_budget
        extensions = parse_extensions(args.extensions)
        output_file = resolve_output_path(root_dir, args.output, config, output_format)

        # 2. Filter and scanner; the output file must never feed back into the context
        file_filter = FileFilter.for_project(root_dir, extra_patterns=[output_file.name])
        scanner = ProjectScanner(root_dir, file_filter, extensions)

        if args.tree:
            print(get_project_structure(root_dir, scanner=scanner))
            return
        if args.list:
            print(list_project_files(root_dir, args.task, scanner=scanner))
            return
        if args.files:
            print(get_file_contents(root_dir, args.files.split(",")))
            return

        print("--- codecontext ---")
        print(f"Scanning: {root_dir}")
        print(f"Output:   {output_file.name}")
        print(f"Mode:     {'All non-ignored text files' if '*' in extensions else f'Extensions {extensions}'}")

        # 3. Build the document
        started = time.perf_counter()
        if args.task:
            strategy = parse_strategy(args.strategy or config.strategy)
            print(f"Task:     {args.task}")
            print(f"Budget:   {budget:,} tokens ({strategy.value})")
            report = build_context(root_dir, args.task, budget, strategy, include_structure, scanner=scanner)
            if not report.scanned:
                print("No matching files found.")
                return
            print()
            print(generate_summary(report.result))
            document = report.document
            file_count = len(report.result.selected_files)
        else:
            files = list(scanner.scan())
            if not files:
                print("No matching files found.")
                return
            print_largest_files(files)
            structure = scanner.structure(files) if include_structure else None
            document = render_full_dump(root_dir.name, files, structure, include_contents)
            file_count = len(files)

        if not args.yes:
            choice = input("\n> Write output? (Y/n): ").strip().lower()
            if choice == "n":
                print("Cancelled.")
                return

        # 4. Output
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(format_output(document, output_format))
        except OSError as e:
            print(f"Error writing file: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"\nSuccess! Context written to: {output_file}")
        print(f"Encoded tokens (cl100k_base): {Tokenizer.count(document):,}")
        print(format_stats(file_count, document, time.perf_counter() - started))

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)

    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
