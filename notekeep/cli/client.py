"""Client CLI commands."""

import asyncio
import logging
import sys

import aiohttp

from notekeep.client.client import Client
from notekeep.client.exceptions import ApiException, NotekeepException
from notekeep.client.login_client import LoginClient
from notekeep.client.notes import NotesClient
from notekeep.models.note import DEFAULT_LIMIT, NoteListVO

_LOGGER = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    if verbose:
        logging.getLogger("notekeep").setLevel(logging.DEBUG)
        logging.getLogger("aiohttp").setLevel(logging.DEBUG)


def print_notes(result: NoteListVO) -> None:
    if not result.notes:
        print("No notes found")
    for note in result.notes:
        print(
            f"[{note.id}] {note.title} ({note.category}, {note.status}) "
            f"by {note.creator.email}, updated {note.updated_at}"
        )
    print(f"Categories: {', '.join(result.categories)}")


async def async_notes(
    email: str,
    password: str,
    url: str,
    search: str | None = None,
    status: str | None = None,
    category: str | None = None,
    limit: int = DEFAULT_LIMIT,
    verbose: bool = False,
) -> None:
    """Log in and print the notes list."""
    setup_logging(verbose)

    # The cookie jar must accept cookies from IP hosts like 127.0.0.1
    jar = aiohttp.CookieJar(unsafe=True)
    async with aiohttp.ClientSession(cookie_jar=jar) as session:
        client = Client(session, host=url)
        try:
            user = await LoginClient(client).login(email, password)
            print(f"Logged in as {user.email}")
            result = await NotesClient(client).list_notes(
                search=search, status=status, category=category, limit=limit
            )
        except ApiException as err:
            print(f"Error: {err}")
            for detail in err.details:
                print(f"  - {detail}")
            sys.exit(1)
        except NotekeepException as err:
            print(f"Error: {err}")
            if verbose:
                _LOGGER.exception("Request failed")
            sys.exit(1)
    print_notes(result)


def subcommand_notes(args) -> None:
    """Handler for notes subcommand."""
    asyncio.run(
        async_notes(
            args.email,
            args.password,
            args.url,
            search=args.search,
            status=args.status,
            category=args.category,
            limit=args.limit,
            verbose=args.verbose,
        )
    )


def add_parser(subparsers):
    parser_notes = subparsers.add_parser("notes", help="log in and list notes")
    parser_notes.add_argument("email", type=str, help="account email")
    parser_notes.add_argument("password", type=str, help="account password")
    parser_notes.add_argument(
        "--url",
        type=str,
        default="http://localhost:8080",
        help="Server URL (e.g. http://localhost:8080)",
    )
    parser_notes.add_argument("--search", type=str, help="text to search for")
    parser_notes.add_argument(
        "--status", type=str, choices=["new", "todo", "done"], help="status filter"
    )
    parser_notes.add_argument("--category", type=str, help="category filter")
    parser_notes.add_argument(
        "--limit", type=int, default=DEFAULT_LIMIT, help="maximum notes to show"
    )
    parser_notes.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    parser_notes.set_defaults(func=subcommand_notes)
