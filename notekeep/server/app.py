import json
import logging
import time
from typing import Any, Awaitable, Callable

from aiohttp import web

from .config import CorsConfig, ServerConfig
from .db.session import DatabaseSessionManager
from .exceptions import AuthenticationError, NotekeepError
from .routes import auth, notes
from .routes.schema import session_token
from .services.coordination import SqliteCoordinationService
from .services.email import OutboxEmailService
from .services.note import NoteService
from .services.session import SessionService
from .services.user import UserService
from .utils.password import PasswordHasher

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With"
CORS_MAX_AGE = "3600"

MAX_TRACE_BODY = 1024
REDACTED_FIELDS = {"password"}


def allowed_origin(cors: CorsConfig, origin: str | None) -> str:
    """Echo allow-listed origins; anything else gets the default origin."""
    if origin and origin in cors.allowed_origins:
        return origin
    return cors.default_origin


def _apply_cors_headers(headers: Any, origin: str) -> None:
    headers["Access-Control-Allow-Origin"] = origin
    headers["Access-Control-Allow-Credentials"] = "true"
    headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    headers["Vary"] = "Origin"


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    config: ServerConfig = request.app["config"]
    origin = allowed_origin(config.cors, request.headers.get("Origin"))

    if request.method == "OPTIONS":
        response = web.Response()
        _apply_cors_headers(response.headers, origin)
        response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        return response

    try:
        response = await handler(request)
    except web.HTTPException as exc:
        _apply_cors_headers(exc.headers, origin)
        raise
    _apply_cors_headers(response.headers, origin)
    return response


def redact(body: str | None) -> Any:
    """Parse a JSON body and hide secret fields. Non-JSON is returned as is."""
    if body is None:
        return None
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(data, dict):
        return {k: "***" if k in REDACTED_FIELDS else v for k, v in data.items()}
    return data


@web.middleware
async def trace_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    start = time.monotonic()
    body_str = None
    if request.can_read_body:
        body_bytes = await request.read()
        body_str = body_bytes.decode("utf-8", errors="replace")
        if len(body_str) > MAX_TRACE_BODY:
            body_str = body_str[:MAX_TRACE_BODY] + "... (truncated)"

    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as exc:
        status = exc.status
        raise
    finally:
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "%s %s -> %s in %.1fms", request.method, request.path, status, elapsed_ms
        )
        trace_log_file = request.app["config"].trace_log_file
        if trace_log_file:
            _write_trace(trace_log_file, request, status, body_str)


def _write_trace(
    trace_log_file: str, request: web.Request, status: int, body: str | None
) -> None:
    log_entry = {
        "timestamp": time.time(),
        "method": request.method,
        "url": str(request.url),
        "status": status,
        "body": redact(body),
    }
    try:
        with open(trace_log_file, "a") as f:
            f.write(json.dumps(log_entry) + "\n")
    except OSError as e:
        logger.error("Failed to write to trace log: %s", e)


@web.middleware
async def session_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Resolve the caller of each request and guard non-public routes."""
    session_service: SessionService = request.app["session_service"]
    try:
        request["caller"] = await session_service.resolve(session_token(request))
    except Exception as err:
        logger.exception("Error resolving session")
        return NotekeepError.uncaught(err).to_response()

    match_info = request.match_info
    if match_info.http_exception is not None or getattr(
        match_info.handler, "is_public", False
    ):
        return await handler(request)
    if request["caller"] is None:
        return AuthenticationError("Not authenticated").to_response()
    return await handler(request)


def create_app(config: ServerConfig) -> web.Application:
    app = web.Application(
        middlewares=[cors_middleware, trace_middleware, session_middleware]
    )
    app["config"] = config

    # Initialize services
    session_manager = DatabaseSessionManager(config.database_url)
    coordination_service = SqliteCoordinationService(session_manager)
    user_service = UserService(
        session_manager,
        coordination_service,
        OutboxEmailService(config.outbox_dir, config.public_url),
        PasswordHasher(config.auth.password_iterations),
    )
    app["session_manager"] = session_manager
    app["user_service"] = user_service
    app["session_service"] = SessionService(
        user_service,
        coordination_service,
        secret_key=config.auth.secret_key,
        session_ttl=config.auth.session_ttl,
    )
    app["note_service"] = NoteService(session_manager)

    # Register routes
    app.add_routes(auth.routes)
    app.add_routes(notes.routes)

    async def on_startup(app: web.Application) -> None:
        await session_manager.create_all()
        if config.auth.allow_auto_verify:
            logger.warning(
                "/auth/auto-verify is enabled; disable auth.allow_auto_verify "
                "outside development"
            )

    async def on_cleanup(app: web.Application) -> None:
        await user_service.wait_for_notifications()
        await session_manager.close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def run(args: Any) -> None:
    logging.basicConfig(level=logging.INFO)
    config = ServerConfig.load(args.config_dir)
    app = create_app(config)
    web.run_app(app, host=config.host, port=config.port)
