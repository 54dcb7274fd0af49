"""
Word Index for full-text line search.
Maps words -> set of line numbers containing that word.

Built once from a flat text file and never modified afterwards, so a single
instance can be shared by every request handler without locking.
"""

import logging
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def normalize_word(word: str) -> str:
    """Lowercase a raw word and drop every non-alphanumeric character."""
    return "".join(c for c in word.lower() if c.isalnum())


def tokenize(text: str) -> List[str]:
    """Split text on whitespace runs into normalized, non-empty tokens."""
    tokens = []
    for word in text.split():
        token = normalize_word(word)
        if token:
            tokens.append(token)
    return tokens


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class WordIndex:
    def __init__(self, lines: Tuple[str, ...], index: Dict[str, FrozenSet[int]]):
        self._lines = lines
        self._index = MappingProxyType(index)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "WordIndex":
        """Index an iterable of lines. Line numbers follow iteration order."""
        corpus = []
        postings: Dict[str, set] = {}

        for line_num, line in enumerate(lines):
            corpus.append(line)
            for token in tokenize(line):
                postings.setdefault(token, set()).add(line_num)

        index = {token: frozenset(nums) for token, nums in postings.items()}
        return cls(tuple(corpus), index)

    @classmethod
    def build(cls, source_path: str) -> "WordIndex":
        """
        Load and index a text file.

        Raises OSError if the file cannot be opened or read, and
        UnicodeDecodeError if it is not valid UTF-8.
        """
        logger.debug("Building word index from %s", source_path)
        # Only "\n" terminates a line; a preceding "\r" is stripped with it.
        with open(source_path, "r", encoding="utf-8", newline="\n") as f:
            word_index = cls.from_lines(_strip_terminator(line) for line in f)

        logger.info(
            "Indexed %d lines (%d distinct tokens) from %s",
            word_index.line_count, word_index.token_count, source_path
        )
        return word_index

    @property
    def lines(self) -> Tuple[str, ...]:
        return self._lines

    @property
    def index(self) -> Mapping[str, FrozenSet[int]]:
        return self._index

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def token_count(self) -> int:
        return len(self._index)

    def __len__(self) -> int:
        return len(self._lines)

    def search(self, query: str) -> List[int]:
        """
        Return the line numbers containing ALL query words, ascending.
        An empty query, or any word missing from the index, yields [].
        """
        logger.debug("search called with query: %r", query)
        words = tokenize(query)

        if not words:
            logger.debug("Empty query after tokenizing, returning no results")
            return []

        postings = []
        for word in words:
            line_nums = self._index.get(word)
            if line_nums is None:
                logger.debug("Word %r not in index, returning no results", word)
                return []
            postings.append(line_nums)

        # Intersect starting from the rarest word
        postings.sort(key=len)
        final = set(postings[0])
        for line_nums in postings[1:]:
            final.intersection_update(line_nums)
            if not final:
                break

        results = sorted(final)
        logger.debug("search for %r matched %d lines", query, len(results))
        return results

    def fetch(self, line_number: int) -> Optional[str]:
        """Return the stored text of a line, or None if out of range."""
        logger.debug("fetch called with line_number: %s", line_number)
        if 0 <= line_number < len(self._lines):
            return self._lines[line_number]

        logger.debug(
            "Line number %s out of bounds (corpus has %d lines)",
            line_number, len(self._lines)
        )
        return None
