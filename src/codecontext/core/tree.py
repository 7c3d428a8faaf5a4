# src/codecontext/core/tree.py
from typing import Dict, Iterable, List


def _build_tree(file_paths: Iterable[str]) -> Dict:
    tree: Dict = {}
    for path in file_paths:
        node = tree
        for part in path.replace("\\", "/").strip("/").split("/"):
            if part:
                node = node.setdefault(part, {})
    return tree


def generate_project_tree(file_paths: Iterable[str], root_name: str) -> str:
    """
    Renders relative file paths as a tree rooted at `root_name/`.
    Directories are listed before files and carry a trailing slash.
    """
    lines: List[str] = [f"{root_name}/"]

    def walk(subtree: Dict, prefix: str):
        entries = sorted(subtree.items(), key=lambda kv: (not kv[1], kv[0].lower()))
        for i, (name, children) in enumerate(entries):
            last = i == len(entries) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{name}{'/' if children else ''}")
            if children:
                walk(children, prefix + ("    " if last else "│   "))

    walk(_build_tree(file_paths), "")
    return "\n".join(lines) + "\n"
