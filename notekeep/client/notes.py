"""Client for note APIs."""

from typing import Any

from notekeep.models.base import MessageResponse
from notekeep.models.note import (
    DEFAULT_LIMIT,
    NoteCreateDTO,
    NoteDetailVO,
    NoteListVO,
    NoteUpdateDTO,
    NoteVO,
)

from .client import Client


class NotesClient:
    """Client for the note endpoints. No caching happens here."""

    def __init__(self, client: Client):
        """Initialize a notes client."""
        self._client = client

    async def list_notes(
        self,
        search: str | None = None,
        status: str | None = None,
        category: str | None = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> NoteListVO:
        """List notes and the category catalog."""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        for name, value in (
            ("search", search),
            ("status", status),
            ("category", category),
        ):
            if value:
                params[name] = value
        return await self._client.get_json("/notes", NoteListVO, params=params)

    async def get_note(self, note_id: int) -> NoteVO:
        response = await self._client.get_json(f"/notes/{note_id}", NoteDetailVO)
        return response.note

    async def create_note(self, dto: NoteCreateDTO) -> NoteVO:
        response = await self._client.post_json(
            "/notes", NoteDetailVO, json=dto.to_dict()
        )
        return response.note

    async def update_note(self, note_id: int, dto: NoteUpdateDTO) -> NoteVO:
        """Send a partial update; fields left as None are not sent."""
        response = await self._client.put_json(
            f"/notes/{note_id}", NoteDetailVO, json=dto.to_dict()
        )
        return response.note

    async def delete_note(self, note_id: int) -> None:
        await self._client.delete_json(f"/notes/{note_id}", MessageResponse)
