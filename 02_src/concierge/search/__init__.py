"""Search index module."""

from .opensearch import ISearchIndex, OpenSearchIndex

__all__ = ["ISearchIndex", "OpenSearchIndex"]
