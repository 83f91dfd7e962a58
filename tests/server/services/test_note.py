import freezegun
import pytest

from notekeep.models.note import NoteCreateDTO, NoteListQuery, NoteUpdateDTO
from notekeep.server.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from notekeep.server.services.note import NoteService, format_timestamp
from notekeep.server.services.user import UserService
from tests.conftest import OTHER_EMAIL, OTHER_PASSWORD, TEST_EMAIL, TEST_PASSWORD
from tests.server.conftest import verified_user


@pytest.fixture(name="owner_id")
async def owner_id_fixture(user_service: UserService) -> int:
    return await verified_user(user_service, TEST_EMAIL, TEST_PASSWORD)


@pytest.fixture(name="other_id")
async def other_id_fixture(user_service: UserService) -> int:
    return await verified_user(user_service, OTHER_EMAIL, OTHER_PASSWORD)


def note_dto(
    title: str = "Groceries",
    content: str = "Milk and eggs",
    category: str = "Personal",
    status: str | None = None,
) -> NoteCreateDTO:
    return NoteCreateDTO(title=title, content=content, category=category, status=status)


def test_format_timestamp() -> None:
    assert format_timestamp(0) == "1970-01-01 00:00:00.000"
    assert format_timestamp(1704110400123) == "2024-01-01 12:00:00.123"


async def test_create_note(note_service: NoteService, owner_id: int) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    assert note.id > 0
    assert note.title == "Groceries"
    assert note.content == "Milk and eggs"
    assert note.category == "Personal"
    assert note.status == "new"
    assert note.created_at == note.updated_at
    assert note.creator.id == owner_id
    assert note.creator.email == TEST_EMAIL

    assert await note_service.get_note(note.id) == note


async def test_create_note_validation(note_service: NoteService, owner_id: int) -> None:
    dto = NoteCreateDTO(title="", content=None, category="x" * 101, status="later")

    with pytest.raises(ValidationError) as exc_info:
        await note_service.create_note(owner_id, dto)

    assert exc_info.value.details == [
        "title: This value should not be blank.",
        "content: This value should not be blank.",
        "category: This value is too long. It should have 100 characters or less.",
        "status: The value you selected is not a valid choice.",
    ]


async def test_create_note_title_length(
    note_service: NoteService, owner_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto(title="t" * 255))
    assert len(note.title) == 255

    with pytest.raises(ValidationError) as exc_info:
        await note_service.create_note(owner_id, note_dto(title="t" * 256))
    assert exc_info.value.details == [
        "title: This value is too long. It should have 255 characters or less."
    ]


async def test_get_missing_note(note_service: NoteService) -> None:
    with pytest.raises(NotFoundError, match="Note not found"):
        await note_service.get_note(999)


async def test_list_notes_across_users(
    note_service: NoteService, owner_id: int, other_id: int
) -> None:
    first = await note_service.create_note(owner_id, note_dto(title="First"))
    second = await note_service.create_note(other_id, note_dto(title="Second"))

    result = await note_service.list_notes(NoteListQuery())

    assert [note.id for note in result.notes] == [second.id, first.id]
    assert {note.creator.email for note in result.notes} == {TEST_EMAIL, OTHER_EMAIL}


async def test_list_orders_by_last_update(
    note_service: NoteService, owner_id: int
) -> None:
    with freezegun.freeze_time("2024-01-01 12:00:00"):
        first = await note_service.create_note(owner_id, note_dto(title="First"))
    with freezegun.freeze_time("2024-01-01 12:00:01"):
        second = await note_service.create_note(owner_id, note_dto(title="Second"))
    with freezegun.freeze_time("2024-01-01 12:00:02"):
        updated = await note_service.update_note(
            first.id, owner_id, NoteUpdateDTO(status="todo")
        )
    assert updated.updated_at == "2024-01-01 12:00:02.000"

    result = await note_service.list_notes(NoteListQuery())
    assert [note.id for note in result.notes] == [first.id, second.id]


async def test_list_filters(note_service: NoteService, owner_id: int) -> None:
    await note_service.create_note(
        owner_id, note_dto(title="Quarterly report", category="Work", status="todo")
    )
    await note_service.create_note(
        owner_id, note_dto(title="Shopping", content="Buy a REPORT card")
    )
    await note_service.create_note(
        owner_id, note_dto(title="Ideas", category="Work", status="done")
    )

    result = await note_service.list_notes(NoteListQuery(search="report"))
    assert sorted(n.title for n in result.notes) == ["Quarterly report", "Shopping"]

    result = await note_service.list_notes(NoteListQuery(category="Work"))
    assert sorted(n.title for n in result.notes) == ["Ideas", "Quarterly report"]

    result = await note_service.list_notes(
        NoteListQuery(search="report", category="Work", status="todo")
    )
    assert [n.title for n in result.notes] == ["Quarterly report"]

    result = await note_service.list_notes(NoteListQuery(status="done"))
    assert [n.title for n in result.notes] == ["Ideas"]

    # Blank filters are ignored
    result = await note_service.list_notes(
        NoteListQuery(search="", status=" ", category="")
    )
    assert len(result.notes) == 3


async def test_list_search_wildcards_are_literal(
    note_service: NoteService, owner_id: int
) -> None:
    await note_service.create_note(owner_id, note_dto(title="100% done"))
    await note_service.create_note(owner_id, note_dto(title="Plain"))

    result = await note_service.list_notes(NoteListQuery(search="%"))
    assert [n.title for n in result.notes] == ["100% done"]


async def test_list_pagination(note_service: NoteService, owner_id: int) -> None:
    for i in range(5):
        await note_service.create_note(owner_id, note_dto(title=f"Note {i}"))

    result = await note_service.list_notes(NoteListQuery(limit=2, offset=1))
    assert [n.title for n in result.notes] == ["Note 3", "Note 2"]

    result = await note_service.list_notes(NoteListQuery(limit=2, offset=10))
    assert result.notes == []


@pytest.mark.parametrize(
    ("limit", "offset"),
    [(0, 0), (101, 0), (10, -1)],
)
async def test_list_invalid_paging(
    note_service: NoteService, limit: int, offset: int
) -> None:
    with pytest.raises(ValidationError):
        await note_service.list_notes(NoteListQuery(limit=limit, offset=offset))


async def test_categories(note_service: NoteService, owner_id: int) -> None:
    result = await note_service.list_notes(NoteListQuery())
    assert result.categories == ["Important", "Personal", "Work"]

    await note_service.create_note(owner_id, note_dto(category="Books"))
    await note_service.create_note(owner_id, note_dto(category="Work"))

    # The catalog ignores filters
    result = await note_service.list_notes(NoteListQuery(category="Books"))
    assert result.categories == ["Books", "Important", "Personal", "Work"]


async def test_update_note(note_service: NoteService, owner_id: int) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    updated = await note_service.update_note(
        note.id, owner_id, NoteUpdateDTO(status="done")
    )

    assert updated.status == "done"
    assert updated.title == note.title
    assert updated.content == note.content
    assert updated.created_at == note.created_at
    assert updated.updated_at > note.updated_at


async def test_update_always_moves_forward(
    note_service: NoteService, owner_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    previous = note.updated_at
    for _ in range(3):
        updated = await note_service.update_note(note.id, owner_id, NoteUpdateDTO())
        assert updated.updated_at > previous
        previous = updated.updated_at


async def test_update_by_other_user(
    note_service: NoteService, owner_id: int, other_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    with pytest.raises(AuthorizationError, match="permission to update"):
        await note_service.update_note(note.id, other_id, NoteUpdateDTO(title="Mine"))

    assert (await note_service.get_note(note.id)).title == "Groceries"


async def test_check_owner(
    note_service: NoteService, owner_id: int, other_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    await note_service.check_owner(note.id, owner_id, "update")
    with pytest.raises(AuthorizationError, match="permission to delete"):
        await note_service.check_owner(note.id, other_id, "delete")
    with pytest.raises(NotFoundError):
        await note_service.check_owner(9999, owner_id, "update")


async def test_update_validation_keeps_note(
    note_service: NoteService, owner_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    with pytest.raises(ValidationError) as exc_info:
        await note_service.update_note(
            note.id, owner_id, NoteUpdateDTO(title=" ", status="archived")
        )
    assert exc_info.value.details == [
        "title: This value should not be blank.",
        "status: The value you selected is not a valid choice.",
    ]

    assert await note_service.get_note(note.id) == note


async def test_update_missing_note(note_service: NoteService, owner_id: int) -> None:
    with pytest.raises(NotFoundError):
        await note_service.update_note(1234, owner_id, NoteUpdateDTO(title="x"))


async def test_delete_note(
    note_service: NoteService, owner_id: int, other_id: int
) -> None:
    note = await note_service.create_note(owner_id, note_dto())

    with pytest.raises(AuthorizationError, match="permission to delete"):
        await note_service.delete_note(note.id, other_id)

    await note_service.delete_note(note.id, owner_id)

    with pytest.raises(NotFoundError):
        await note_service.get_note(note.id)
    with pytest.raises(NotFoundError):
        await note_service.delete_note(note.id, owner_id)
