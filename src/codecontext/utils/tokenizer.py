# src/codecontext/utils/tokenizer.py
import math
import re
from typing import Iterable, Optional, Tuple

import tiktoken

CHARS_PER_TOKEN_CODE = 4.0
CHARS_PER_TOKEN_TEXT = 3.5
FILE_SEPARATOR_TOKENS = 10  # the "---- file ----" rule around each file
STRUCTURED_OUTPUT_OVERHEAD = 100

_PATH_SPLIT_RE = re.compile(r"[/\\.]")


def estimate_tokens(text: Optional[str]) -> int:
    """Approximate token count for code: ~4 characters per token."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN_CODE)


def estimate_tokens_natural_language(text: Optional[str]) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN_TEXT)


def estimate_tokens_for_file_path(path: Optional[str]) -> int:
    """One token per path segment plus two for the header formatting."""
    parts = _PATH_SPLIT_RE.split(path or "")
    return len(parts) + 2


def estimate_tokens_for_file(path: Optional[str], content: Optional[str]) -> int:
    return estimate_tokens_for_file_path(path) + estimate_tokens(content) + FILE_SEPARATOR_TOKENS


def estimate_tokens_for_structured_output(
    structure: Optional[str], files: Iterable[Tuple[str, str]]
) -> int:
    """Structure listing + every (path, content) pair + headers and metadata."""
    structure_tokens = estimate_tokens_natural_language(structure)
    file_tokens = sum(estimate_tokens_for_file(p, c) for p, c in files)
    return structure_tokens + file_tokens + STRUCTURED_OUTPUT_OVERHEAD


class Tokenizer:
    """Exact counts from a real BPE encoding, for reporting rendered output sizes."""
    _encoding = None

    @classmethod
    def get_encoding(cls):
        if cls._encoding is None:
            try:
                cls._encoding = tiktoken.get_encoding("cl100k_base")
            except Exception:
                cls._encoding = tiktoken.get_encoding("p50k_base")
        return cls._encoding

    @staticmethod
    def count(text: str) -> int:
        """Encoded token count; falls back to the estimate if no encoding can be loaded."""
        try:
            encoding = Tokenizer.get_encoding()
            return len(encoding.encode(text, disallowed_special=()))
        except Exception:
            return estimate_tokens(text)
