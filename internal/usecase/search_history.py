"""
Search History Use Case.

Keeps the most recent searches on the admin's machine, newest first,
without any server involvement.
"""
from __future__ import annotations

from typing import Callable

from internal.domain.errors import RecentSearchNotFoundError
from internal.domain.product import SearchCriteria
from internal.domain.search_history import RecentSearch
from internal.infrastructure.storage.kv_store import KeyValueStore
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


HISTORY_KEY = "inventory_insights_recent_searches"
DEFAULT_HISTORY_LIMIT = 10


class SearchHistoryStore:
    """
    Bounded, deduplicated list of recent searches.

    The whole list lives in one blob of the injected key-value store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        limit: int = DEFAULT_HISTORY_LIMIT,
        key: str = HISTORY_KEY,
    ) -> None:
        """
        Initialize the history store.

        Args:
            store: Client-local key-value store.
            limit: Maximum number of entries kept.
            key: Key of the history blob.
        """
        self._store = store
        self._limit = limit
        self._key = key

    def record(self, criteria: SearchCriteria, label: str) -> RecentSearch:
        """
        Remember a search.

        An entry with the same selector, category and threshold is moved to
        the front instead of being duplicated; the oldest entries beyond the
        limit are dropped.
        """
        entry = RecentSearch.from_criteria(criteria, label)
        entries = [e for e in self.list() if e.key != entry.key]
        entries.insert(0, entry)
        del entries[self._limit:]
        self._save(entries)

        logger.debug("Recent search recorded", label=label, entries=len(entries))
        return entry

    def list(self) -> list[RecentSearch]:
        """Recent searches, most recent first."""
        raw = self._store.get(self._key) or []
        entries = []
        for item in raw:
            try:
                entries.append(RecentSearch.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed recent search", error=str(e))
        return entries

    def load(self, index: int) -> RecentSearch:
        """
        Get one recent search by position.

        Raises:
            RecentSearchNotFoundError: If there is no entry at ``index``.
        """
        entries = self.list()
        if index < 0 or index >= len(entries):
            raise RecentSearchNotFoundError(index)
        return entries[index]

    def clear(self, confirm: Callable[[], bool]) -> bool:
        """
        Forget every recent search once the user confirms.

        Args:
            confirm: Asks the user; nothing is removed unless it returns True.

        Returns:
            True if the history was cleared.
        """
        if not confirm():
            return False
        self._store.delete(self._key)
        logger.info("Recent searches cleared")
        return True

    def _save(self, entries: list[RecentSearch]) -> None:
        self._store.set(self._key, [e.to_dict() for e in entries])
