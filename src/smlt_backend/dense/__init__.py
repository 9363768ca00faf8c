"""Dense retrieval utilities (Chroma collections)."""

from .chroma_client import ChromaCollectionManager

__all__ = ["ChromaCollectionManager"]
