"""Client side cache for API query results.

Results are addressed by a `QueryKey` (resource, kind and parameters) and
follow a stale-while-revalidate policy:

- A result younger than `stale_time` is fresh and served without a request.
- An older or invalidated result is served immediately while a background
  request refreshes it.
- An entry nobody has used or watched for `gc_time` is evicted.
- Identical queries running at the same time share a single request.

Mutations never touch entries implicitly; callers use `set_data`,
`invalidate` and `remove` after a mutation succeeds.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

DEFAULT_STALE_TIME = 5 * 60
DEFAULT_GC_TIME = 10 * 60

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[Any], None]


@dataclass(frozen=True)
class QueryKey:
    """Structured identity of a query result."""

    resource: str
    kind: str
    params: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def create(cls, resource: str, kind: str, **params: Any) -> "QueryKey":
        """Build a key; parameters set to None are not part of the identity."""
        return cls(
            resource,
            kind,
            tuple(sorted((k, v) for k, v in params.items() if v is not None)),
        )

    def matches(self, resource: str, kind: str | None = None) -> bool:
        return self.resource == resource and (kind is None or self.kind == kind)


@dataclass
class QueryEntry(Generic[_T]):
    """Cached state for one key."""

    data: _T | None = None
    error: BaseException | None = None
    updated_at: float | None = None
    """Clock time of the last successful write, None before any data."""

    invalidated: bool = False
    last_used: float = 0.0
    fetcher: Fetcher | None = None
    listeners: list[Listener] = field(default_factory=list)
    writes: int = 0
    invalidations: int = 0
    refetch_pending: bool = False

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None


class QueryCache:
    """Explicit key to entry map with deduplicated, revalidating fetches."""

    def __init__(
        self,
        stale_time: float = DEFAULT_STALE_TIME,
        gc_time: float = DEFAULT_GC_TIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = stale_time
        self._gc_time = gc_time
        self._clock = clock
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def is_fresh(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or not entry.has_data or entry.invalidated:
            return False
        assert entry.updated_at is not None
        return self._clock() - entry.updated_at < self._stale_time

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._inflight

    async def fetch(self, key: QueryKey, fetcher: Callable[[], Awaitable[_T]]) -> _T:
        """Return the result for `key`, requesting it only when needed.

        Fresh data is returned as is. Stale data is returned immediately and
        refreshed in the background. Without data the caller waits for the
        request, which is shared with any identical request in flight.
        """
        self.collect_garbage()
        entry = self._entries.setdefault(key, QueryEntry())
        entry.fetcher = fetcher
        entry.last_used = self._clock()

        if entry.has_data:
            if not self.is_fresh(key):
                _LOGGER.debug("Serving stale %s while revalidating", key)
                self._start_fetch(key, entry, background=True)
            return entry.data  # type: ignore[return-value]

        task = self._start_fetch(key, entry, background=False)
        return await asyncio.shield(task)

    def get_data(self, key: QueryKey) -> Any | None:
        """Return cached data without any request."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.last_used = self._clock()
        return entry.data

    def set_data(self, key: QueryKey, data: Any) -> None:
        """Store data for `key` as a fresh result."""
        entry = self._entries.setdefault(key, QueryEntry())
        entry.writes += 1
        self._store(entry, data, invalidated=False)

    def invalidate(
        self,
        resource: str | None = None,
        kind: str | None = None,
        predicate: Callable[[QueryKey], bool] | None = None,
    ) -> list[QueryKey]:
        """Mark matching entries stale.

        Entries with listeners are refetched right away; the others are
        refreshed the next time they are fetched. Returns the matched keys.
        """
        matched = []
        for key, entry in self._entries.items():
            if resource is not None and not key.matches(resource, kind):
                continue
            if predicate is not None and not predicate(key):
                continue
            entry.invalidated = True
            entry.invalidations += 1
            matched.append(key)
            if entry.listeners and entry.fetcher is not None:
                if key in self._inflight:
                    entry.refetch_pending = True
                else:
                    self._start_fetch(key, entry, background=True)
        _LOGGER.debug("Invalidated %d entries", len(matched))
        return matched

    def remove(self, key: QueryKey) -> None:
        """Drop an entry.

        A request in flight for it will not re-add it, and the next fetch of
        `key` starts a new request.
        """
        self._entries.pop(key, None)
        self._inflight.pop(key, None)

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        """Call `listener` with new data for `key`. Returns an unsubscribe."""
        entry = self._entries.setdefault(key, QueryEntry())
        entry.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in entry.listeners:
                entry.listeners.remove(listener)
            entry.last_used = self._clock()

        return unsubscribe

    def collect_garbage(self) -> list[QueryKey]:
        """Evict entries unused for longer than `gc_time`."""
        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if not entry.listeners
            and key not in self._inflight
            and now - entry.last_used >= self._gc_time
        ]
        for key in expired:
            del self._entries[key]
        return expired

    def clear(self) -> None:
        self._entries.clear()
        self._inflight.clear()

    def _start_fetch(
        self, key: QueryKey, entry: QueryEntry, background: bool
    ) -> asyncio.Task:
        if (task := self._inflight.get(key)) is not None:
            return task

        assert entry.fetcher is not None
        task = asyncio.create_task(
            self._run_fetch(
                key, entry, entry.fetcher, entry.writes, entry.invalidations
            )
        )
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._fetch_done(key, entry, t, background))
        return task

    async def _run_fetch(
        self,
        key: QueryKey,
        entry: QueryEntry,
        fetcher: Fetcher,
        writes: int,
        invalidations: int,
    ) -> Any:
        """Run a request and store its result.

        `writes` and `invalidations` are the counters when the request was
        started. A later write wins over the result, and a later
        invalidation keeps the stored result stale.
        """
        try:
            data = await fetcher()
        except Exception as err:
            entry.error = err
            raise

        if self._entries.get(key) is not entry:
            # Removed while the request was running
            return data
        if entry.writes == writes:
            self._store(entry, data, invalidated=entry.invalidations != invalidations)
        return data

    def _fetch_done(
        self, key: QueryKey, entry: QueryEntry, task: asyncio.Task, background: bool
    ) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        if (err := task.exception()) is not None and background:
            _LOGGER.warning("Background refresh of %s failed: %s", key, err)
        if entry.refetch_pending and self._entries.get(key) is entry:
            entry.refetch_pending = False
            self._start_fetch(key, entry, background=True)

    def _store(self, entry: QueryEntry, data: Any, invalidated: bool) -> None:
        now = self._clock()
        entry.data = data
        entry.error = None
        entry.updated_at = now
        entry.last_used = now
        entry.invalidated = invalidated
        for listener in list(entry.listeners):
            listener(data)
