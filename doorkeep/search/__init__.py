"""Search provider clients."""

from doorkeep.search.base import SearchClient
from doorkeep.search.serpapi import SerpApiClient, parse_results

__all__ = ["SearchClient", "SerpApiClient", "parse_results"]
