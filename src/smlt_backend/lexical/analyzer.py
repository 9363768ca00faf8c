"""Text analysis shared by indexing and more-like-this query building."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Optional

from stopwordsiso import stopwords


logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"\b[\w'-]+\b")


class Analyzer:
    """Lower-cases, tokenizes and drops stopwords, short tokens and numbers."""

    def __init__(self, *, stopwords_language: Optional[str] = "en", min_token_length: int = 3) -> None:
        self._stopwords = self._load_stopwords(stopwords_language)
        self._min_token_length = max(1, min_token_length)

    def tokenize(self, value: Any) -> List[str]:
        """Tokenizes a stored field value; lists are analyzed element by element."""
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            tokens: List[str] = []
            for item in value:
                tokens.extend(self.tokenize(item))
            return tokens

        text = str(value)
        if not text:
            return []
        return [
            token
            for token in _TOKEN_PATTERN.findall(text.lower())
            if len(token) >= self._min_token_length
            and token not in self._stopwords
            and not token.isdigit()
        ]

    def tokenize_all(self, values: Iterable[Any]) -> List[List[str]]:
        return [self.tokenize(value) for value in values]

    @staticmethod
    def _load_stopwords(language: Optional[str]) -> set[str]:
        if not language:
            return set()
        try:
            return set(stopwords(language))
        except KeyError:
            logger.warning(
                "Stopword language '%s' is not supported; disabling stopword filtering.",
                language,
            )
            return set()
