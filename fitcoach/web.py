"""Request plumbing shared by the HTTP views: auth, CORS, errors and the database."""

from __future__ import annotations

import functools
import re
import sqlite3
from typing import Any, Callable, Mapping, Optional, TypeVar, Union

from flask import Response, current_app, g, jsonify, request

from fitcoach.models import to_json
from fitcoach.security import TokenError, parse_token

DB_EXTENSION = "fitcoach.db"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Methods": "GET, POST, PATCH, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-CSRF-Token",
}

_BEARER = "Bearer "
_INTEGER = re.compile(r"[+-]?[0-9]+")

F = TypeVar("F", bound=Callable[..., Any])


class ApiError(Exception):
    """An error answered with a JSON body and an HTTP status.

    A plain message becomes the body {"error": message}.
    """

    def __init__(self, status: int, payload: Union[str, Mapping[str, Any]]) -> None:
        body = {"error": payload} if isinstance(payload, str) else dict(payload)
        super().__init__(str(body.get("error", body.get("message", ""))))
        self.status = status
        self.payload = body

    def to_response(self) -> Response:
        """Build the JSON response for this error."""
        response = jsonify(to_json(self.payload))
        response.status_code = self.status
        return response


def _unauthorized() -> ApiError:
    return ApiError(401, {"message": "Unauthorized"})


def require_auth(view: F) -> F:
    """Let the view run only for requests carrying a valid bearer token.

    The token's user id and role become available through current_user_id()
    and current_role().
    """

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        header = request.headers.get("Authorization", "")
        if not header.startswith(_BEARER):
            raise _unauthorized()
        try:
            claims = parse_token(header[len(_BEARER):])
        except TokenError as exc:
            raise _unauthorized() from exc
        if not _INTEGER.fullmatch(claims.user_id):
            raise _unauthorized()
        g.user_id = int(claims.user_id)
        g.role = claims.role
        return view(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def add_cors_headers(response: Response) -> Response:
    """Attach the permissive cross-origin headers to a response."""
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def preflight() -> Optional[Response]:
    """Answer OPTIONS requests at once with an empty 200 response."""
    if request.method == "OPTIONS":
        return current_app.response_class(status=200)
    return None


def current_user_id() -> int:
    """The authenticated user's id, raising a 401 ApiError when there is none."""
    user_id = g.get("user_id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise ApiError(401, "unauthorized")
    return user_id


def current_role() -> str:
    """The authenticated user's role, or an empty string."""
    return str(g.get("role", ""))


def get_db() -> sqlite3.Connection:
    """The database connection configured on the running application."""
    try:
        return current_app.extensions[DB_EXTENSION]
    except KeyError:
        raise RuntimeError("no database connection is configured") from None