# tests/test_scanner.py

import sys
import pytest
from pathlib import Path

# Make src importable even without `pip install -e .`
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from codecontext.config import FilterConfig
from codecontext.core.ignore import FileFilter, is_binary_file, load_ignore_spec
from codecontext.core.scanner import ProjectScanner
from codecontext.core.tree import generate_project_tree
from codecontext.utils.paths import PathTraversalError, find_git_root, validate_path_within_root


# --- Fixtures: a throwaway project tree ---

@pytest.fixture
def complex_project(tmp_path):
    """
    A project covering the common cases:
    1. regular source files
    2. default-ignored directories (logs/, assets/)
    3. binary and non-UTF-8 files
    4. a generated file
    5. a git repository with its own .gitignore
    """
    src = tmp_path / "src"
    src.mkdir()
    (tmp_path / "logs").mkdir()
    (tmp_path / "assets").mkdir()
    data = tmp_path / "data"
    data.mkdir()

    (src / "main.py").write_text("print('main')", encoding="utf-8")
    (src / "utils.py").write_text("def util(): pass", encoding="utf-8")
    (src / "bundle.min.js").write_text("var a=1;", encoding="utf-8")
    (src / "Model.Designer.cs").write_text("// <auto-generated />\nclass Model {}", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Project", encoding="utf-8")
    (tmp_path / "package-lock.json").write_text("{}", encoding="utf-8")

    (tmp_path / "logs" / "app.log").write_text("error...", encoding="utf-8")
    (tmp_path / "assets" / "style.css").write_text("body {}", encoding="utf-8")

    (data / "blob.dat").write_bytes(b"\x00\x01\x02binary\x00")
    (data / "latin1.txt").write_bytes(b"caf\xe9 au lait, plain text otherwise")
    (data / "bom.txt").write_bytes(b"\xef\xbb\xbfhello with bom")

    (tmp_path / ".git").mkdir()
    (tmp_path / ".gitignore").write_text("secrets.txt\nbuild_output/\n", encoding="utf-8")
    (tmp_path / "secrets.txt").write_text("hunter2", encoding="utf-8")
    (tmp_path / "build_output").mkdir()
    (tmp_path / "build_output" / "gen.py").write_text("x = 1", encoding="utf-8")

    return tmp_path


def scan_paths(root, **kwargs):
    return [f.rel_path for f in ProjectScanner(root, **kwargs).scan()]


# --- Filter ---

def test_filter_finds_git_root_once(complex_project):
    file_filter = FileFilter.for_project(complex_project)
    assert file_filter.git_root == complex_project.resolve()
    assert file_filter.gitignore is not None


def test_filter_rules(complex_project):
    f = FileFilter.for_project(complex_project)
    root = complex_project

    assert f.should_skip(root / "logs", is_directory=True) is True
    assert f.should_skip(root / "assets" / "style.css") is True
    assert f.should_skip(root / "src", is_directory=True) is False
    assert f.should_skip(root / "src" / "main.py") is False

    assert f.should_skip(root / "src" / "bundle.min.js") is True       # compound extension
    assert f.should_skip(root / "package-lock.json") is True          # ignored file name
    assert f.should_skip(root / "src" / "Model.Designer.cs") is True  # generated marker
    assert f.should_skip(root / "data" / "blob.dat") is True          # binary
    assert f.should_skip(root / "data" / "bom.txt") is False

    assert f.should_skip(root / "secrets.txt") is True                # .gitignore
    assert f.should_skip(root / "build_output", is_directory=True) is True


def test_filter_extra_patterns(complex_project):
    f = FileFilter.for_project(complex_project, extra_patterns=["README.md"])
    assert f.should_skip(complex_project / "README.md") is True
    # Default runtime pattern keeps earlier output files out
    (complex_project / "proj_context.txt").write_text("old output", encoding="utf-8")
    assert f.should_skip(complex_project / "proj_context.txt") is True


def test_generated_marker_must_be_the_full_tag(tmp_path):
    mention = tmp_path / "parser.py"
    mention.write_text("# strips <auto-generated> headers\ndef parse(): pass", encoding="utf-8")
    generated = tmp_path / "Form1.Designer.cs"
    generated.write_text("// <auto-generated />\npartial class Form1 {}", encoding="utf-8")

    f = FileFilter(tmp_path, FilterConfig())
    assert f.should_skip(mention) is False
    assert f.should_skip(generated) is True


def test_filter_max_size(tmp_path):
    big = tmp_path / "big.py"
    big.write_text("x" * 2048, encoding="utf-8")
    f = FileFilter(tmp_path, FilterConfig(max_file_size_bytes=1024))
    assert f.should_skip(big) is True


def test_filters_for_different_projects_are_independent(tmp_path):
    repo_a = tmp_path / "a"
    repo_b = tmp_path / "b"
    for repo, ignored in ((repo_a, "one.py"), (repo_b, "two.py")):
        (repo / ".git").mkdir(parents=True)
        (repo / ".gitignore").write_text(ignored, encoding="utf-8")
        (repo / "one.py").write_text("1", encoding="utf-8")
        (repo / "two.py").write_text("2", encoding="utf-8")

    assert scan_paths(repo_a) == ["two.py"]
    assert scan_paths(repo_b) == ["one.py"]


def test_binary_detection_thresholds(tmp_path):
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")
    noisy = tmp_path / "noisy.bin"
    noisy.write_bytes(bytes(range(15, 31)) * 10)
    assert is_binary_file(empty) is False
    assert is_binary_file(noisy) is True
    assert is_binary_file(tmp_path / "missing.txt") is False


def test_load_ignore_spec_with_negation(tmp_path):
    ignore_file = tmp_path / ".gitignore"
    ignore_file.write_text("*.log\n!keep.log\n", encoding="utf-8")
    spec = load_ignore_spec(ignore_file, extra_patterns=["out.txt"])
    assert spec.match_file("debug.log")
    assert not spec.match_file("keep.log")
    assert spec.match_file("out.txt")
    assert not spec.match_file("main.py")


# --- Scanner ---

def test_scanner_wildcard_behavior(complex_project):
    paths = scan_paths(complex_project)

    assert paths == scan_paths(complex_project)  # walk order is deterministic
    assert "src/main.py" in paths
    assert "src/utils.py" in paths
    assert "README.md" in paths
    assert "data/bom.txt" in paths

    assert "logs/app.log" not in paths
    assert "assets/style.css" not in paths
    assert "data/blob.dat" not in paths
    assert "data/latin1.txt" not in paths   # not UTF-8, skipped silently
    assert "secrets.txt" not in paths
    assert "build_output/gen.py" not in paths
    assert ".gitignore" not in paths


def test_scanner_specific_extensions(complex_project):
    paths = scan_paths(complex_project, extensions={".py"})
    assert sorted(paths) == ["src/main.py", "src/utils.py"]


def test_scanner_token_counts(complex_project):
    files = {f.rel_path: f for f in ProjectScanner(complex_project).scan()}
    # src, main, py -> 5; 13 chars -> 4; separator 10
    assert files["src/main.py"].token_count == 19
    assert files["src/main.py"].content == "print('main')"


def test_scanner_exposes_its_filter(complex_project):
    file_filter = FileFilter.for_project(complex_project)
    scanner = ProjectScanner(complex_project, file_filter)
    assert scanner.file_filter is file_filter


# --- Tree ---

def test_tree_generation():
    tree_str = generate_project_tree(["src/main.py", "src/utils/helper.py", "README.md"], root_name="my_project")
    lines = tree_str.splitlines()

    assert lines[0] == "my_project/"
    assert lines[1] == "├── src/"           # directories first
    assert "│   ├── utils/" in lines
    assert "│   │   └── helper.py" in lines
    assert "│   └── main.py" in lines
    assert lines[-1] == "└── README.md"


def test_scanner_structure(complex_project):
    structure = ProjectScanner(complex_project).structure()
    assert structure.startswith(f"{complex_project.name}/\n")
    assert "main.py" in structure
    assert "app.log" not in structure


# --- Paths ---

def test_find_git_root_walks_up(complex_project):
    nested = complex_project / "src"
    assert find_git_root(nested) == complex_project.resolve()
    assert find_git_root(complex_project / "missing") is None
    assert find_git_root(None) is None


def test_validate_path_within_root(tmp_path):
    assert validate_path_within_root(tmp_path, "src/a.py") == (tmp_path / "src" / "a.py").resolve()
    with pytest.raises(PathTraversalError):
        validate_path_within_root(tmp_path, "../outside.txt")
    with pytest.raises(PathTraversalError):
        validate_path_within_root(tmp_path, "/etc/passwd")
