# src/codecontext/config.py
import json
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

CONFIG_FILE_NAME = "config.json"

DEFAULT_TOKEN_BUDGET = 50000
DEFAULT_STRATEGY = "ValueOptimized"

# Runtime-only patterns, applied relative to the scan root
DEFAULT_IGNORE_PATTERNS = [
    "*_context.txt",
    "*_context.json",
]

DEFAULT_IGNORED_EXTENSIONS = frozenset(e.lower() for e in [
    # Executables and libraries
    ".exe", ".dll", ".pdb", ".bin", ".obj", ".lib", ".so", ".dylib", ".a", ".o",
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".svg", ".webp", ".tiff", ".tif",
    ".raw", ".psd", ".ai", ".eps", ".ps",
    # Audio / video
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".flv", ".wmv", ".m4a", ".m4v", ".mkv",
    ".webm", ".ogg",
    # Archives
    ".zip", ".rar", ".7z", ".tar", ".gz", ".bz2", ".xz", ".tgz",
    # Databases
    ".db", ".sqlite", ".mdf", ".ldf", ".bak", ".mdb", ".accdb",
    # Documents
    ".docx", ".xlsx", ".pptx", ".pdf", ".doc", ".xls", ".ppt", ".rtf", ".odt", ".ods", ".odp",
    # Logs and temp files
    ".log", ".cache", ".tmp", ".temp",
    # Minified and source maps
    ".min.js", ".min.css", ".map", ".lock",
    # Design files
    ".sketch", ".fig", ".xd",
    # Deployment / IDE settings
    ".pub", ".pubxml", ".publishsettings", ".settings", ".suo", ".user", ".userosscache",
    ".vspscc", ".vssscc", ".pidb", ".scc",
    ".DS_Store", ".localized", ".manifest",
    ".csproj.user", ".sln.docstates",
    ".ilk", ".msi", ".idb", ".pch", ".res",
    # Fonts
    ".eot", ".ttf", ".woff", ".woff2",
    # 3D models
    ".fbx", ".3ds", ".max",
    ".unity", ".unitypackage", ".asset",
    # Certificates
    ".pfx", ".cer", ".crt",
    # Packages and compiled artifacts
    ".nupkg", ".snupkg", ".class", ".jar", ".pyc", ".pyo", ".node", ".gem", ".rlib",
    ".swiftmodule",
    ".dockerignore", ".kubeconfig",
    # ML models
    ".h5", ".pkl", ".onnx",
    # Scripts
    ".bat", ".sh", ".cmd", ".ps1",
    ".sql",
])

DEFAULT_IGNORED_DIRECTORIES = frozenset(d.lower() for d in [
    ".sonarqube",
    # Version control
    ".git", ".svn", ".hg", ".bzr", ".cvs",
    # IDEs
    ".vs", ".idea", ".vscode", ".atom", ".sublime-project",
    # Build output
    "bin", "obj", "Debug", "Release", "x64", "x86", "AnyCPU",
    # Package management
    "packages", "node_modules", "bower_components", "jspm_packages",
    # Python
    "__pycache__", "venv", "env", "virtualenv", ".venv", ".env", ".pytest_cache",
    ".mypy_cache",
    # Ruby / Java
    ".bundle", "target", ".gradle", "build",
    # JavaScript
    "dist", "out", ".next", ".nuxt", ".cache",
    # Coverage and reports
    "coverage", "test-results", "reports", ".nyc_output",
    # Logs and temp
    "logs", "temp", "tmp", ".temp", ".tmp",
    # Media
    "uploads", "media", "static", "public", "assets",
    # Third-party code
    "vendor", "third-party", "external", "lib", "libs",
    "wp-content", "wp-includes", "wp-admin",
    "Pods", "DerivedData",
    ".docker",
    # CI
    ".github", ".gitlab", ".circleci", ".jenkins",
    # Docs
    "docs", "_site", ".docusaurus",
    ".sass-cache", ".parcel-cache",
    ".rpt2_cache", ".rts2_cache_cjs", ".rts2_cache_es", ".rts2_cache_umd",
    ".pnpm-store", ".serverless", ".terraform", ".yarn", ".expo",
    ".dart_tool", ".kube", ".ansible", ".chef", ".vagrant",
    # Game engines
    "Library", "Temp", "Builds", "Binaries", "Saved", "Intermediate", ".import",
    ".Rproj.user", ".ipynb_checkpoints",
    "_build", ".elixir_ls",
    "charts",
])

DEFAULT_IGNORED_FILES = frozenset(f.lower() for f in [
    ".bzrignore", ".coveragerc", ".editorconfig", ".env", ".env.development",
    ".env.production", ".env.local", ".env.test", ".eslintrc", ".gitattributes",
    "thumbs.db", "desktop.ini", ".DS_Store", "npm-debug.log", "yarn-error.log",
    "package-lock.json", "yarn.lock", "composer.lock", ".gitignore",
])


@dataclass(frozen=True)
class FilterConfig:
    """Eligibility rules for scanned files."""
    ignored_extensions: FrozenSet[str] = DEFAULT_IGNORED_EXTENSIONS
    ignored_directories: FrozenSet[str] = DEFAULT_IGNORED_DIRECTORIES
    ignored_files: FrozenSet[str] = DEFAULT_IGNORED_FILES
    max_file_size_bytes: int = 100 * 1024
    binary_threshold: float = 0.3
    binary_check_chunk_size: int = 4096
    generated_code_lines_to_check: int = 10


@dataclass(frozen=True)
class AppConfig:
    """Settings read from config.json. CLI flags take precedence."""
    default_input_path: str = "."
    default_output_file_name: Optional[str] = None
    output_format: str = "text"
    include_structure: bool = True
    include_contents: bool = True
    token_budget: int = DEFAULT_TOKEN_BUDGET
    strategy: str = DEFAULT_STRATEGY


def _snake_case(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


# Accepted JSON types per AppConfig field
_FIELD_TYPES = {
    "default_input_path": (str,),
    "default_output_file_name": (str, type(None)),
    "output_format": (str,),
    "include_structure": (bool,),
    "include_contents": (bool,),
    "token_budget": (int,),
    "strategy": (str,),
}


def _check_type(name: str, value: Any) -> None:
    expected = _FIELD_TYPES[name]
    # bool is an int subclass; true/false is not a budget
    if isinstance(value, bool) and bool not in expected:
        raise ValueError(f"'{name}' must be {expected[0].__name__}, got bool")
    if not isinstance(value, expected):
        raise ValueError(f"'{name}' must be {expected[0].__name__}, got {type(value).__name__}")


def parse_config(data: Dict[str, Any]) -> AppConfig:
    """
    Builds an AppConfig from a decoded JSON object, ignoring unknown keys.
    Raises ValueError when a known key holds a value of the wrong type.
    """
    known = {f.name for f in fields(AppConfig)}
    values = {}
    for key, value in data.items():
        name = _snake_case(key)
        if name in known:
            _check_type(name, value)
            values[name] = value
    return AppConfig(**values)


def load_config(path: Union[str, Path] = CONFIG_FILE_NAME) -> AppConfig:
    """
    Loads config.json if it exists, otherwise returns the defaults.
    Read or parse problems are reported on stderr and also fall back to the defaults.
    """
    config_path = Path(path)
    if not config_path.exists():
        return AppConfig()

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Warning: Could not read {config_path.name} ({e}). Using defaults.", file=sys.stderr)
        return AppConfig()

    try:
        data = json.loads(raw) if raw.strip() else {}
        if not isinstance(data, dict):
            raise ValueError("top-level value must be an object")
        return parse_config(data)
    except (ValueError, TypeError) as e:
        print(f"Warning: Invalid {config_path.name} format ({e}). Using defaults.", file=sys.stderr)
        return AppConfig()
