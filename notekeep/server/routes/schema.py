"""Reading requests.

Bodies are decoded into mashumaro dataclasses that reject unknown keys, and
decoding problems are reported as validation errors with per-field details.
"""

import json
from typing import TypeVar

from aiohttp import web
from mashumaro.exceptions import ExtraKeysError, InvalidFieldValue, MissingField
from mashumaro.mixins.json import DataClassJSONMixin

from notekeep.server.exceptions import ValidationError

_T = TypeVar("_T", bound=DataClassJSONMixin)


def session_token(request: web.Request) -> str | None:
    """Return the session token from the cookie, else from a Bearer header."""
    cookie_name = request.app["config"].auth.cookie_name
    if token := request.cookies.get(cookie_name):
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


async def read_dto(request: web.Request, cls: type[_T]) -> _T:
    """Decode the JSON body of `request` into `cls`."""
    try:
        data = await request.json()
    except json.JSONDecodeError as err:
        raise ValidationError("Invalid JSON in request body") from err
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return cls.from_dict(data)
    except MissingField as err:
        raise ValidationError(
            details=[f"{err.field_name}: This value should not be blank."]
        ) from err
    except ExtraKeysError as err:
        raise ValidationError(
            details=[
                f"{key}: This field was not expected." for key in sorted(err.extra_keys)
            ]
        ) from err
    except InvalidFieldValue as err:
        raise ValidationError(
            details=[f"{err.field_name}: This value is not valid."]
        ) from err


def query_int(request: web.Request, name: str, default: int) -> int:
    """Read an integer query parameter."""
    raw = request.query.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ValidationError(
            details=[f"{name}: This value should be of type int."]
        ) from err
