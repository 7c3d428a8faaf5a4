# src/codecontext/core/ignore.py
import sys
from itertools import islice
from pathlib import Path
from typing import Iterable, List, Optional

import pathspec

from codecontext.config import DEFAULT_IGNORE_PATTERNS, FilterConfig
from codecontext.utils.paths import find_git_root

UTF8_BOM = b"\xef\xbb\xbf"
GENERATED_CODE_MARKER = "<auto-generated />"


def load_ignore_spec(ignore_file: Optional[Path], extra_patterns: Optional[Iterable[str]] = None) -> pathspec.GitIgnoreSpec:
    """
    Loads gitignore-style rules from `ignore_file` (if present) and builds a spec.
    Any extra patterns (like the output filename) are appended after the file's rules.
    """
    lines: List[str] = []

    if ignore_file is not None and ignore_file.is_file():
        try:
            lines = ignore_file.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            print(f"Warning: Could not read {ignore_file}: {e}", file=sys.stderr)

    if extra_patterns:
        lines.extend(extra_patterns)

    return pathspec.GitIgnoreSpec.from_lines(lines)


def _is_binary_byte(b: int) -> bool:
    # Outside printable ASCII and outside the common control chars (BEL..SO)
    return (b < 7 or b > 14) and (b < 32 or b > 127)


def is_binary_file(path: Path, chunk_size: int = 4096, threshold: float = 0.3) -> bool:
    """
    Reads the first `chunk_size` bytes. A NUL byte, or a share of non-printable
    bytes above `threshold`, marks the file as binary. UTF-8 BOM files are text.
    """
    try:
        with path.open("rb") as f:
            chunk = f.read(chunk_size)
    except OSError:
        return False

    if not chunk or chunk.startswith(UTF8_BOM):
        return False
    if b"\0" in chunk:
        return True
    binary_count = sum(1 for b in chunk if _is_binary_byte(b))
    return binary_count / len(chunk) > threshold


def is_generated_code(path: Path, lines_to_check: int = 10) -> bool:
    try:
        with path.open("r", encoding="utf-8", errors="ignore") as f:
            return any(GENERATED_CODE_MARKER in line for line in islice(f, lines_to_check))
    except OSError:
        return False


class FileFilter:
    """
    Decides whether a path under `root` is eligible for the context.
    The git root is resolved once per filter and kept on the instance.
    """

    def __init__(
        self,
        root: Path,
        config: Optional[FilterConfig] = None,
        git_root: Optional[Path] = None,
        gitignore: Optional[pathspec.PathSpec] = None,
        extra_spec: Optional[pathspec.PathSpec] = None,
    ):
        self.root = Path(root).resolve()
        self.config = config or FilterConfig()
        self.git_root = git_root
        self.gitignore = gitignore
        self.extra_spec = extra_spec

    @classmethod
    def for_project(
        cls,
        root: Path,
        config: Optional[FilterConfig] = None,
        extra_patterns: Optional[Iterable[str]] = None,
    ) -> "FileFilter":
        root = Path(root).resolve()
        git_root = find_git_root(root)
        gitignore = load_ignore_spec(git_root / ".gitignore") if git_root else None
        extra = list(DEFAULT_IGNORE_PATTERNS)
        if extra_patterns:
            extra.extend(extra_patterns)
        return cls(root, config, git_root=git_root, gitignore=gitignore,
                   extra_spec=load_ignore_spec(None, extra))

    def _relative(self, path: Path, base: Path) -> Optional[str]:
        try:
            return Path(path).resolve().relative_to(base).as_posix()
        except ValueError:
            return None

    def _matches(self, spec: Optional[pathspec.PathSpec], path: Path, base: Optional[Path], is_directory: bool) -> bool:
        if spec is None or base is None:
            return False
        rel = self._relative(path, base)
        if not rel or rel == ".":
            return False
        return spec.match_file(rel + "/" if is_directory else rel)

    def should_skip(self, path: Path, is_directory: bool = False) -> bool:
        path = Path(path)
        cfg = self.config

        rel = self._relative(path, self.root) or path.name
        if any(part.lower() in cfg.ignored_directories for part in Path(rel).parts):
            return True

        if self._matches(self.gitignore, path, self.git_root, is_directory):
            return True
        if self._matches(self.extra_spec, path, self.root, is_directory):
            return True

        if is_directory:
            return False

        name = path.name.lower()
        if name in cfg.ignored_files:
            return True

        suffixes = [s.lower() for s in Path(name).suffixes]
        if suffixes and suffixes[-1] in cfg.ignored_extensions:
            return True
        if len(suffixes) >= 2 and "".join(suffixes[-2:]) in cfg.ignored_extensions:
            return True

        try:
            if path.stat().st_size > cfg.max_file_size_bytes:
                return True
        except OSError:
            return True

        if is_binary_file(path, cfg.binary_check_chunk_size, cfg.binary_threshold):
            return True
        return is_generated_code(path, cfg.generated_code_lines_to_check)
