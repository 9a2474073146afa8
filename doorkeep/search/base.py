"""Search collaborator interface."""

import abc
from typing import List

from doorkeep.models import SearchResult


class SearchClient(abc.ABC):
    """Runs one query against a search provider."""

    @abc.abstractmethod
    def search(self, query: str) -> List[SearchResult]:
        """Return the result batch for ``query``.

        Raises:
            FetchError: the provider was unreachable or the payload invalid.
        """
