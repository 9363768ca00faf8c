"""Lexical retrieval utilities (analysis, BM25, more-like-this terms)."""

from .analyzer import Analyzer
from .bm25_index import BM25Index
from .more_like_this import InterestingTermSelector

__all__ = ["Analyzer", "BM25Index", "InterestingTermSelector"]
