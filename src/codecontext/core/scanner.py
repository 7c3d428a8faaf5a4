# src/codecontext/core/scanner.py
import os
import sys
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from codecontext.core.ignore import FileFilter
from codecontext.core.tree import generate_project_tree
from codecontext.models import FileContext
from codecontext.utils.tokenizer import estimate_tokens_for_file


class ProjectScanner:
    def __init__(self, root_dir: Path, file_filter: Optional[FileFilter] = None, extensions: Optional[Set[str]] = None):
        self.root_dir = Path(root_dir).resolve()
        self.file_filter = file_filter or FileFilter.for_project(self.root_dir)
        self.extensions = extensions or {"*"}
        self.match_all = "*" in self.extensions

    def _matches_extension(self, path: Path) -> bool:
        if self.match_all:
            return True
        return path.suffix in self.extensions or path.name in self.extensions

    def scan(self) -> Iterator[FileContext]:
        """
        Walks the directory tree, pruning ignored directories,
        and yields a FileContext for every eligible text file.
        """
        for root, dirs, files in os.walk(self.root_dir):
            root_path = Path(root)

            # Pruning happens in place so os.walk never descends into ignored dirs
            dirs[:] = sorted(
                d for d in dirs
                if not self.file_filter.should_skip(root_path / d, is_directory=True)
            )

            for name in sorted(files):
                file_abs_path = root_path / name
                rel_path = file_abs_path.relative_to(self.root_dir).as_posix()

                if not self._matches_extension(file_abs_path):
                    continue
                if self.file_filter.should_skip(file_abs_path):
                    continue

                try:
                    content = file_abs_path.read_text(encoding="utf-8")
                except UnicodeDecodeError:
                    continue
                except OSError as e:
                    print(f"Warning: Skipping {rel_path} (read error: {e})", file=sys.stderr)
                    continue

                yield FileContext(
                    path=file_abs_path,
                    rel_path=rel_path,
                    content=content,
                    token_count=estimate_tokens_for_file(rel_path, content),
                )

    def structure(self, files: Optional[Iterable[FileContext]] = None) -> str:
        """Project tree for `files`, or for a fresh scan when none are given."""
        if files is None:
            files = self.scan()
        return generate_project_tree([f.rel_path for f in files], self.root_dir.name or "project")
