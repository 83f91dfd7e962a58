"""Cached, self-refreshing view of notes for interactive clients.

`NotesQuerySync` sits between a UI and `NotesClient`. Reads go through a
`QueryCache`, successful mutations update or invalidate the affected
entries, and free-text search is debounced before it becomes part of the
active filter set.
"""

import dataclasses
import logging
from typing import Callable

from notekeep.models.note import (
    DEFAULT_LIMIT,
    NoteCreateDTO,
    NoteListVO,
    NoteUpdateDTO,
    NoteVO,
)

from .debounce import DEFAULT_DELAY, Debouncer
from .notes import NotesClient
from .query_cache import QueryCache, QueryKey

_LOGGER = logging.getLogger(__name__)

NOTES_RESOURCE = "notes"
LIST_KIND = "list"
DETAIL_KIND = "detail"

ListListener = Callable[[NoteListVO], None]


@dataclasses.dataclass(frozen=True)
class NoteFilters:
    """Filters applied to the note list. Blank values mean "no filter"."""

    search: str | None = None
    status: str | None = None
    category: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def effective(self) -> "NoteFilters":
        """Return a copy with empty or whitespace-only values dropped."""
        return dataclasses.replace(
            self,
            search=_blank_to_none(self.search),
            status=_blank_to_none(self.status),
            category=_blank_to_none(self.category),
        )


def _blank_to_none(value: str | None) -> str | None:
    return value if value and value.strip() else None


def list_key(filters: NoteFilters) -> QueryKey:
    return QueryKey.create(
        NOTES_RESOURCE, LIST_KIND, **dataclasses.asdict(filters.effective())
    )


def detail_key(note_id: int) -> QueryKey:
    return QueryKey.create(NOTES_RESOURCE, DETAIL_KIND, id=note_id)


class NotesQuerySync:
    """Keeps note lists and details cached and consistent with mutations."""

    def __init__(
        self,
        notes_client: NotesClient,
        cache: QueryCache | None = None,
        search_delay: float = DEFAULT_DELAY,
        on_list: ListListener | None = None,
    ) -> None:
        self._notes = notes_client
        self._cache = cache if cache is not None else QueryCache()
        self._on_list = on_list
        self._filters = NoteFilters()
        self._unsubscribe: Callable[[], None] | None = None
        self._search = Debouncer(self._apply_search, delay=search_delay)

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def filters(self) -> NoteFilters:
        """The active filter set used by `refresh`."""
        return self._filters

    async def list_notes(self, filters: NoteFilters | None = None) -> NoteListVO:
        """Return the note list for `filters` (the active ones by default)."""
        effective = (filters or self._filters).effective()
        return await self._cache.fetch(
            list_key(effective),
            lambda: self._notes.list_notes(**dataclasses.asdict(effective)),
        )

    async def get_note(self, note_id: int) -> NoteVO:
        return await self._cache.fetch(
            detail_key(note_id), lambda: self._notes.get_note(note_id)
        )

    async def create_note(self, dto: NoteCreateDTO) -> NoteVO:
        note = await self._notes.create_note(dto)
        self._cache.invalidate(NOTES_RESOURCE, LIST_KIND)
        return note

    async def update_note(self, note_id: int, dto: NoteUpdateDTO) -> NoteVO:
        note = await self._notes.update_note(note_id, dto)
        self._cache.set_data(detail_key(note_id), note)
        self._cache.invalidate(NOTES_RESOURCE, LIST_KIND)
        return note

    async def delete_note(self, note_id: int) -> None:
        await self._notes.delete_note(note_id)
        self._cache.remove(detail_key(note_id))
        self._cache.invalidate(NOTES_RESOURCE, LIST_KIND)

    def set_search_text(self, text: str) -> None:
        """Record search input; it becomes active once typing pauses."""
        self._search.push(text)

    async def set_filters(self, **changes: str | int | None) -> NoteListVO:
        """Change non-search filters immediately and refresh the list."""
        self._filters = dataclasses.replace(self._filters, **changes)
        return await self.refresh()

    async def flush_search(self) -> None:
        """Apply pending search input now."""
        await self._search.flush()

    async def refresh(self) -> NoteListVO:
        """Fetch the active list and hand it to the list listener.

        The listener also receives later background refreshes of that list.
        """
        key = list_key(self._filters)
        if self._on_list is None:
            return await self.list_notes()
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self._cache.subscribe(key, self._on_list)
        # Cached data is returned without a write, so no listener call
        cached = self._cache.get_data(key) is not None
        result = await self.list_notes()
        if cached:
            self._on_list(result)
        return result

    def close(self) -> None:
        self._search.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _apply_search(self, text: str) -> None:
        self._filters = dataclasses.replace(self._filters, search=text.strip() or None)
        _LOGGER.debug("Active search is now %r", self._filters.search)
        await self.refresh()
