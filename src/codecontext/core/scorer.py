# src/codecontext/core/scorer.py
import os
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from codecontext.models import FileContext, ScoredFile
from codecontext.utils.tokenizer import estimate_tokens_for_file

FILE_NAME_WEIGHT = 0.30
FILE_PATH_WEIGHT = 0.20
CONTENT_WEIGHT = 0.40
IMPORTANCE_WEIGHT = 0.10

NEUTRAL_SCORE = 0.5
LOW_DEFAULT_SCORE = 0.3
FILE_NAME_BOOST = 1.5
MAX_MATCHES_PER_KEYWORD = 10
CONTENT_LENGTH_NORMALIZER = 100

VERY_LARGE_FILE_CHARS = 50_000
LARGE_FILE_PENALTY = 0.1

# (substrings in the file name, boost)
IMPORTANCE_BOOSTS = [
    (("readme",), 0.3),
    (("config", "settings"), 0.2),
    (("main", "program", "app"), 0.2),
    (("index", "router"), 0.15),
    (("test", "spec"), 0.1),
]

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "can", "this", "that",
    "these", "those", "i", "you", "we", "they", "it", "my", "your",
})

_WORD_SPLIT_RE = re.compile(r"\W+")
_PATH_SEP_RE = re.compile(r"[\\/]")

FileInput = Union[FileContext, Tuple[str, str]]


def extract_keywords(query: Optional[str]) -> List[str]:
    """Lower-cased, de-duplicated query words longer than two chars, minus stop words."""
    if not query or not query.strip():
        return []
    words = _WORD_SPLIT_RE.split(query.lower())
    return list(dict.fromkeys(w for w in words if len(w) > 2 and w not in STOP_WORDS))


def _file_name(path: str) -> str:
    return _PATH_SEP_RE.split(path)[-1]


class RelevanceScorer:
    """
    Scores a file's relevance to a free-text task description.

    The score is a fixed blend of four sub-scores in [0, 1]: keyword hits in
    the file name, keyword hits in the relative path, keyword density in the
    content, and a name-based importance heuristic. Scoring is pure, so files
    can be scored in any order or in parallel.
    """

    def score_file(self, path: str, content: Optional[str], query: Optional[str]) -> ScoredFile:
        path = path or ""
        content = content or ""
        keywords = extract_keywords(query)

        name_score = self.score_file_name(path, keywords)
        path_score = self.score_file_path(path, keywords)
        content_score = self.score_content(content, keywords)
        importance_score = self.score_importance(path, len(content))

        total = (
            name_score * FILE_NAME_WEIGHT
            + path_score * FILE_PATH_WEIGHT
            + content_score * CONTENT_WEIGHT
            + importance_score * IMPORTANCE_WEIGHT
        )

        return ScoredFile(
            path=path,
            content=content,
            relevance_score=min(1.0, max(0.0, total)),
            token_count=estimate_tokens_for_file(path, content),
            score_breakdown={
                "fileName": name_score,
                "filePath": path_score,
                "content": content_score,
                "importance": importance_score,
            },
        )

    def score_files(self, files: Iterable[FileInput], query: Optional[str],
                    max_workers: Optional[int] = None) -> List[ScoredFile]:
        """Scores every file against `query`, keeping input order."""
        pairs = [(f.rel_path, f.content) if isinstance(f, FileContext) else f for f in files]

        if max_workers and max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                return list(pool.map(lambda pc: self.score_file(pc[0], pc[1], query), pairs))
        return [self.score_file(p, c, query) for p, c in pairs]

    @staticmethod
    def score_file_name(path: str, keywords: Sequence[str]) -> float:
        if not keywords:
            return NEUTRAL_SCORE
        stem = os.path.splitext(_file_name(path))[0].lower()
        matches = sum(1 for k in keywords if k in stem)
        # Name hits are the strongest signal, hence the boost
        return min(1.0, matches / len(keywords) * FILE_NAME_BOOST)

    @staticmethod
    def score_file_path(path: str, keywords: Sequence[str]) -> float:
        if not keywords:
            return NEUTRAL_SCORE
        path_lower = path.lower()
        matches = sum(1 for k in keywords if k in path_lower)
        return min(1.0, matches / len(keywords))

    @staticmethod
    def score_content(content: str, keywords: Sequence[str]) -> float:
        if not content or not content.strip() or not keywords:
            return LOW_DEFAULT_SCORE

        content_lower = content.lower()
        total_matches = sum(min(content_lower.count(k), MAX_MATCHES_PER_KEYWORD) for k in keywords)

        density = total_matches / (len(content) // CONTENT_LENGTH_NORMALIZER + 1)
        return min(1.0, density * len(keywords))

    @staticmethod
    def score_importance(path: str, content_length: int) -> float:
        name = _file_name(path).lower()
        score = NEUTRAL_SCORE

        for markers, boost in IMPORTANCE_BOOSTS:
            if any(m in name for m in markers):
                score += boost

        if content_length > VERY_LARGE_FILE_CHARS:
            score -= LARGE_FILE_PENALTY

        return min(1.0, max(0.0, score))
