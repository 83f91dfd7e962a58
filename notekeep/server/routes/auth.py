import logging

from aiohttp import web

from notekeep.models.auth import (
    AutoVerifyDTO,
    LoginDTO,
    LoginVO,
    RegisterDTO,
    RegisterVO,
    UserQueryVO,
    UserVO,
)
from notekeep.models.base import MessageResponse
from notekeep.server.config import ServerConfig
from notekeep.server.exceptions import NotekeepError, NotFoundError
from notekeep.server.routes.schema import read_dto, session_token
from notekeep.server.services.session import RequestContext, SessionService
from notekeep.server.services.user import UserService

from .decorators import public_route

logger = logging.getLogger(__name__)
routes = web.RouteTableDef()

REGISTERED_MESSAGE = (
    "Registration successful. Please check your email to confirm your account."
)


@routes.post("/auth/register")
@public_route
async def handle_register(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/register
    # Purpose: Create an unverified account and send the confirmation email.
    # Response: RegisterVO (201)
    user_service: UserService = request.app["user_service"]
    try:
        dto = await read_dto(request, RegisterDTO)
        user = await user_service.register(dto.email, dto.password)
        return web.json_response(
            RegisterVO(message=REGISTERED_MESSAGE, user=user).to_dict(), status=201
        )
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error registering user")
        return NotekeepError.uncaught(err).to_response()


@routes.get("/auth/confirm/{token}")
@public_route
async def handle_confirm(request: web.Request) -> web.Response:
    # Endpoint: GET /auth/confirm/{token}
    # Purpose: Confirm an account from the emailed link.
    # Response: MessageResponse
    user_service: UserService = request.app["user_service"]
    try:
        message = await user_service.confirm(request.match_info["token"])
        return web.json_response(MessageResponse(message=message).to_dict())
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error confirming account")
        return NotekeepError.uncaught(err).to_response()


@routes.post("/auth/auto-verify")
@public_route
async def handle_auto_verify(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/auto-verify
    # Purpose: Development-only bypass of the confirmation email.
    # Response: LoginVO
    config: ServerConfig = request.app["config"]
    user_service: UserService = request.app["user_service"]
    try:
        if not config.auth.allow_auto_verify:
            raise NotFoundError("Not found")
        dto = await read_dto(request, AutoVerifyDTO)
        user = await user_service.auto_verify(dto.email)
        return web.json_response(
            LoginVO(message="Account verified successfully", user=user).to_dict()
        )
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error auto-verifying account")
        return NotekeepError.uncaught(err).to_response()


@routes.post("/auth/login")
@public_route
async def handle_login(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/login
    # Purpose: Check credentials and set the session cookie.
    # Response: LoginVO
    config: ServerConfig = request.app["config"]
    session_service: SessionService = request.app["session_service"]
    try:
        dto = await read_dto(request, LoginDTO)
        token, user = await session_service.login(dto.email, dto.password)
    except NotekeepError as err:
        return err.to_response()
    except Exception as err:
        logger.exception("Error logging in")
        return NotekeepError.uncaught(err).to_response()

    response = web.json_response(
        LoginVO(message="Login successful", user=user).to_dict()
    )
    response.set_cookie(
        config.auth.cookie_name,
        token,
        max_age=config.auth.session_ttl,
        httponly=True,
        secure=config.auth.cookie_secure,
        samesite="Lax",
        path="/",
    )
    return response


@routes.post("/auth/logout")
@public_route
async def handle_logout(request: web.Request) -> web.Response:
    # Endpoint: POST /auth/logout
    # Purpose: Revoke the current session and clear the cookie.
    # Response: MessageResponse
    config: ServerConfig = request.app["config"]
    session_service: SessionService = request.app["session_service"]
    try:
        await session_service.logout(session_token(request))
    except Exception as err:
        logger.exception("Error logging out")
        return NotekeepError.uncaught(err).to_response()

    response = web.json_response(MessageResponse(message="Logged out").to_dict())
    response.del_cookie(config.auth.cookie_name, path="/")
    return response


@routes.get("/auth/me")
async def handle_me(request: web.Request) -> web.Response:
    # Endpoint: GET /auth/me
    # Purpose: Describe the account behind the current session.
    # Response: UserQueryVO
    caller: RequestContext = request["caller"]
    try:
        caller.require_verified()
    except NotekeepError as err:
        return err.to_response()
    user = UserVO(id=caller.user_id, email=caller.email, is_verified=True)
    return web.json_response(UserQueryVO(user=user).to_dict())
