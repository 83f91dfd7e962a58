"""Notekeep client library."""

from .client import Client
from .debounce import Debouncer
from .login_client import LoginClient
from .notes import NotesClient
from .query_cache import QueryCache, QueryKey
from .sync import NoteFilters, NotesQuerySync

__all__ = [
    "Client",
    "Debouncer",
    "LoginClient",
    "NotesClient",
    "QueryCache",
    "QueryKey",
    "NoteFilters",
    "NotesQuerySync",
]
