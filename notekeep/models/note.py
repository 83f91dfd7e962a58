"""Data models for note related API calls.

The following endpoints are supported:
- /notes (GET, POST)
- /notes/{id} (GET, PUT, DELETE)
"""

from dataclasses import dataclass, field

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

from .base import BaseEnum, RequestConfig

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

TITLE_MAX_LENGTH = 255
CATEGORY_MAX_LENGTH = 100


class NoteStatus(str, BaseEnum):
    """Workflow status of a note."""

    NEW = "new"
    TODO = "todo"
    DONE = "done"


class DefaultCategory(str, BaseEnum):
    """Categories offered even when no note uses them."""

    WORK = "Work"
    PERSONAL = "Personal"
    IMPORTANT = "Important"


DEFAULT_CATEGORIES = DefaultCategory.values()


@dataclass
class CreatorVO(DataClassJSONMixin):
    """Owner of a note."""

    id: int
    email: str

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class NoteVO(DataClassJSONMixin):
    """A note as returned by the API."""

    id: int
    title: str
    content: str
    category: str
    status: str
    created_at: str = field(metadata=field_options(alias="createdAt"))
    """Creation time formatted as `YYYY-MM-DD HH:MM:SS.mmm` (UTC)."""

    updated_at: str = field(metadata=field_options(alias="updatedAt"))
    """Last modification time, same format as `created_at`."""

    creator: CreatorVO

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class NoteCreateDTO(DataClassJSONMixin):
    """Request to create a note.

    Fields are optional at the schema level so that every missing or blank
    field is reported together by the note service.

    Used by:
        /notes (POST)
    """

    title: str | None = None
    content: str | None = None
    category: str | None = None
    status: str | None = None

    class Config(RequestConfig):
        pass


@dataclass
class NoteUpdateDTO(DataClassJSONMixin):
    """Partial update of a note. `None` means the field is left untouched.

    Used by:
        /notes/{id} (PUT)
    """

    title: str | None = None
    content: str | None = None
    category: str | None = None
    status: str | None = None

    class Config(RequestConfig):
        pass


@dataclass
class NoteListQuery:
    """Filters for listing notes. Blank values mean "no filter"."""

    search: str | None = None
    status: str | None = None
    category: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        self.search = _blank_to_none(self.search)
        self.status = _blank_to_none(self.status)
        self.category = _blank_to_none(self.category)


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


@dataclass
class NoteListVO(DataClassJSONMixin):
    """Response for the note listing.

    Used by:
        /notes (GET)
    """

    notes: list[NoteVO] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class NoteDetailVO(DataClassJSONMixin):
    """Response wrapping a single note.

    Used by:
        /notes/{id} (GET, PUT)
        /notes (POST)
    """

    note: NoteVO

    class Config(BaseConfig):
        serialize_by_alias = True
