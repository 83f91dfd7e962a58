import logging

from aiohttp import web

from notekeep.models.base import MessageResponse
from notekeep.models.note import (
    DEFAULT_LIMIT,
    NoteCreateDTO,
    NoteDetailVO,
    NoteListQuery,
    NoteUpdateDTO,
)
from notekeep.server.exceptions import NotekeepError
from notekeep.server.routes.schema import query_int, read_dto
from notekeep.server.services.note import NoteService
from notekeep.server.services.session import RequestContext

from .decorators import verified_route

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()


@routes.get("/notes")
@verified_route
async def handle_list_notes(request: web.Request) -> web.Response:
    # Endpoint: GET /notes?search=&status=&category=&limit=&offset=
    # Purpose: List every user's notes with optional filters.
    # Response: NoteListVO
    note_service: NoteService = request.app["note_service"]
    try:
        query = NoteListQuery(
            search=request.query.get("search"),
            status=request.query.get("status"),
            category=request.query.get("category"),
            limit=query_int(request, "limit", DEFAULT_LIMIT),
            offset=query_int(request, "offset", 0),
        )
        result = await note_service.list_notes(query)
        return web.json_response(result.to_dict())
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error listing notes")
        return NotekeepError.uncaught(err).to_response()


@routes.get(r"/notes/{id:\d+}")
@verified_route
async def handle_get_note(request: web.Request) -> web.Response:
    # Endpoint: GET /notes/{id}
    # Purpose: Fetch one note. Any verified user may read any note.
    # Response: NoteDetailVO
    note_service: NoteService = request.app["note_service"]
    try:
        note = await note_service.get_note(int(request.match_info["id"]))
        return web.json_response(NoteDetailVO(note=note).to_dict())
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error fetching note")
        return NotekeepError.uncaught(err).to_response()


@routes.post("/notes")
@verified_route
async def handle_create_note(request: web.Request) -> web.Response:
    # Endpoint: POST /notes
    # Purpose: Create a note owned by the caller.
    # Response: NoteDetailVO (201)
    caller: RequestContext = request["caller"]
    note_service: NoteService = request.app["note_service"]
    try:
        dto = await read_dto(request, NoteCreateDTO)
        note = await note_service.create_note(caller.user_id, dto)
        return web.json_response(NoteDetailVO(note=note).to_dict(), status=201)
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error creating note")
        return NotekeepError.uncaught(err).to_response()


@routes.put(r"/notes/{id:\d+}")
@verified_route
async def handle_update_note(request: web.Request) -> web.Response:
    # Endpoint: PUT /notes/{id}
    # Purpose: Partially update a note owned by the caller.
    # Response: NoteDetailVO
    caller: RequestContext = request["caller"]
    note_service: NoteService = request.app["note_service"]
    note_id = int(request.match_info["id"])
    try:
        # A missing or foreign note is reported before any body problem
        await note_service.check_owner(note_id, caller.user_id, "update")
        dto = await read_dto(request, NoteUpdateDTO)
        note = await note_service.update_note(note_id, caller.user_id, dto)
        return web.json_response(NoteDetailVO(note=note).to_dict())
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error updating note")
        return NotekeepError.uncaught(err).to_response()


@routes.delete(r"/notes/{id:\d+}")
@verified_route
async def handle_delete_note(request: web.Request) -> web.Response:
    # Endpoint: DELETE /notes/{id}
    # Purpose: Permanently delete a note owned by the caller.
    # Response: MessageResponse
    caller: RequestContext = request["caller"]
    note_service: NoteService = request.app["note_service"]
    try:
        await note_service.delete_note(int(request.match_info["id"]), caller.user_id)
        return web.json_response(
            MessageResponse(message="Note deleted successfully").to_dict()
        )
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error deleting note")
        return NotekeepError.uncaught(err).to_response()
