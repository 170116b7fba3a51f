"""Context lookup tools for the desk pet assistant.

This module provides:
- The ContextLookup interface used by the smart client
- A simulated search with canned, category-based results
"""

from .search import (
    ContextLookup,
    ContextSnippet,
    SearchResults,
    SimulatedSearch,
    format_search_results,
)

__all__ = [
    "ContextLookup",
    "ContextSnippet",
    "SearchResults",
    "SimulatedSearch",
    "format_search_results",
]
