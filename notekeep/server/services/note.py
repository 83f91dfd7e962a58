import datetime
import logging
import time
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.models.note import (
    CATEGORY_MAX_LENGTH,
    DEFAULT_CATEGORIES,
    MAX_LIMIT,
    TITLE_MAX_LENGTH,
    CreatorVO,
    NoteCreateDTO,
    NoteListQuery,
    NoteListVO,
    NoteStatus,
    NoteUpdateDTO,
    NoteVO,
)
from notekeep.server.db.models.note import NoteDO
from notekeep.server.db.models.user import UserDO
from notekeep.server.db.session import DatabaseSessionManager
from notekeep.server.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

BLANK = "This value should not be blank."
NOT_A_STRING = "This value should be of type string."
INVALID_CHOICE = "The value you selected is not a valid choice."


def format_timestamp(value_ms: int) -> str:
    """Format epoch milliseconds as `YYYY-MM-DD HH:MM:SS.mmm` in UTC."""
    dt = datetime.datetime.fromtimestamp(value_ms / 1000, tz=datetime.timezone.utc)
    return f"{dt.strftime(TIMESTAMP_FORMAT)}.{value_ms % 1000:03d}"


def _to_note_vo(do: NoteDO, owner_email: str) -> NoteVO:
    """Convert NoteDO to NoteVO."""
    return NoteVO(
        id=do.id,
        title=do.title,
        content=do.content,
        category=do.category,
        status=do.status,
        created_at=format_timestamp(do.create_time),
        updated_at=format_timestamp(do.update_time),
        creator=CreatorVO(id=do.user_id, email=owner_email),
    )


def _too_long(limit: int) -> str:
    return f"This value is too long. It should have {limit} characters or less."


def _check_text(field: str, value: Any, max_length: int | None = None) -> list[str]:
    if not isinstance(value, str):
        message = BLANK if value is None else NOT_A_STRING
        return [f"{field}: {message}"]
    if not value.strip():
        return [f"{field}: {BLANK}"]
    if max_length is not None and len(value) > max_length:
        return [f"{field}: {_too_long(max_length)}"]
    return []


def _check_status(value: Any) -> list[str]:
    if value not in NoteStatus.values():
        return [f"status: {INVALID_CHOICE}"]
    return []


def validate_note_fields(
    title: Any, content: Any, category: Any, status: Any
) -> list[str]:
    """Return `field: message` strings for every invalid note field."""
    return [
        *_check_text("title", title, TITLE_MAX_LENGTH),
        *_check_text("content", content),
        *_check_text("category", category, CATEGORY_MAX_LENGTH),
        *_check_status(status),
    ]


def _check_owner(note: NoteDO, caller_id: int, action: str) -> None:
    if note.user_id != caller_id:
        raise AuthorizationError(f"You do not have permission to {action} this note")


def _validate_query(query: NoteListQuery) -> None:
    details = []
    if not 1 <= query.limit <= MAX_LIMIT:
        details.append(f"limit: This value should be between 1 and {MAX_LIMIT}.")
    if query.offset < 0:
        details.append("offset: This value should be either positive or zero.")
    if details:
        raise ValidationError(details=details)


class NoteService:
    """Service for listing and editing notes.

    Every verified user can read every note; only the owner may change or
    delete one.
    """

    def __init__(self, session_manager: DatabaseSessionManager) -> None:
        """Initialize the note service."""
        self.session_manager = session_manager

    async def list_notes(self, query: NoteListQuery) -> NoteListVO:
        """List notes from all users, most recently updated first."""
        _validate_query(query)
        filters = []
        if query.search is not None:
            filters.append(
                or_(
                    NoteDO.title.contains(query.search, autoescape=True),
                    NoteDO.content.contains(query.search, autoescape=True),
                )
            )
        if query.status is not None:
            filters.append(NoteDO.status == query.status)
        if query.category is not None:
            filters.append(NoteDO.category == query.category)

        async with self.session_manager.session() as session:
            stmt = (
                select(NoteDO, UserDO.email)
                .join(UserDO, UserDO.id == NoteDO.user_id)
                .where(*filters)
                .order_by(NoteDO.update_time.desc(), NoteDO.id.desc())
                .offset(query.offset)
                .limit(query.limit)
            )
            rows = (await session.execute(stmt)).all()

            result = await session.execute(select(NoteDO.category).distinct())
            in_use = set(result.scalars().all())

        return NoteListVO(
            notes=[_to_note_vo(note, email) for note, email in rows],
            categories=sorted(in_use.union(DEFAULT_CATEGORIES)),
        )

    async def get_note(self, note_id: int) -> NoteVO:
        """Get a single note by ID."""
        async with self.session_manager.session() as session:
            note, email = await self._get_note(session, note_id)
            return _to_note_vo(note, email)

    async def create_note(self, owner_id: int, dto: NoteCreateDTO) -> NoteVO:
        """Create a note owned by `owner_id`."""
        status = dto.status if dto.status is not None else NoteStatus.NEW.value
        if details := validate_note_fields(
            dto.title, dto.content, dto.category, status
        ):
            raise ValidationError(details=details)

        now = int(time.time() * 1000)
        async with self.session_manager.session() as session:
            owner = await session.get(UserDO, owner_id)
            if owner is None:
                raise NotFoundError("User not found")
            note = NoteDO(
                user_id=owner_id,
                title=dto.title,
                content=dto.content,
                category=dto.category,
                status=status,
                create_time=now,
                update_time=now,
            )
            session.add(note)
            await session.commit()
            await session.refresh(note)
            logger.info("User %s created note %s", owner_id, note.id)
            return _to_note_vo(note, owner.email)

    async def check_owner(self, note_id: int, caller_id: int, action: str) -> None:
        """Raise unless the note exists and belongs to the caller."""
        async with self.session_manager.session() as session:
            note, _ = await self._get_note(session, note_id)
            _check_owner(note, caller_id, action)

    async def update_note(
        self, note_id: int, caller_id: int, dto: NoteUpdateDTO
    ) -> NoteVO:
        """Apply the fields present in `dto` to a note owned by the caller.

        The update time moves forward even when no value changes.
        """
        async with self.session_manager.session() as session:
            note, email = await self._get_note(session, note_id)
            _check_owner(note, caller_id, "update")

            title = dto.title if dto.title is not None else note.title
            content = dto.content if dto.content is not None else note.content
            category = dto.category if dto.category is not None else note.category
            status = dto.status if dto.status is not None else note.status
            if details := validate_note_fields(title, content, category, status):
                raise ValidationError(details=details)

            note.title = title
            note.content = content
            note.category = category
            note.status = status
            note.update_time = max(int(time.time() * 1000), note.update_time + 1)
            await session.commit()
            logger.info("User %s updated note %s", caller_id, note_id)
            return _to_note_vo(note, email)

    async def delete_note(self, note_id: int, caller_id: int) -> None:
        """Permanently delete a note owned by the caller."""
        async with self.session_manager.session() as session:
            note, _ = await self._get_note(session, note_id)
            _check_owner(note, caller_id, "delete")
            await session.delete(note)
            await session.commit()
            logger.info("User %s deleted note %s", caller_id, note_id)

    async def _get_note(
        self, session: AsyncSession, note_id: int
    ) -> tuple[NoteDO, str]:
        """Helper to get a note and its owner's email, or raise NotFoundError."""
        stmt = (
            select(NoteDO, UserDO.email)
            .join(UserDO, UserDO.id == NoteDO.user_id)
            .where(NoteDO.id == note_id)
        )
        row = (await session.execute(stmt)).first()
        if row is None:
            raise NotFoundError("Note not found")
        return row[0], row[1]
