"""
Response strategies. Each request is classified once as an HTML (browser) or
JSON client, and handlers answer through the matching Responder instead of
branching on headers themselves.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from storefront import views
from storefront.core.errors import AppError, AuthenticationError

LOGIN_PATH = "/login"
API_PATH_PREFIX = "/api/"


class ClientKind(str, Enum):
    HTML = "html"
    JSON = "json"


def detect_client_kind(request: Request) -> ClientKind:
    """
    JSON for the /api/ mirror and for XHR; HTML when the Accept header asks for
    text/html; JSON otherwise.
    """
    if request.url.path.startswith(API_PATH_PREFIX):
        return ClientKind.JSON
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return ClientKind.JSON
    if "text/html" in request.headers.get("accept", "").lower():
        return ClientKind.HTML
    return ClientKind.JSON


class Responder(ABC):
    kind: ClientKind

    @abstractmethod
    def view(self, name: str, context: dict[str, Any], status_code: int = 200) -> Response:
        """Answer a page request with the named view and its context."""

    @abstractmethod
    def done(
        self,
        message: str,
        *,
        redirect_to: str,
        status_code: int = 200,
        **data: Any,
    ) -> Response:
        """Answer a completed action (form post)."""

    @abstractmethod
    def error(self, exc: AppError) -> Response:
        """Answer a failed request."""


class JsonResponder(Responder):
    kind = ClientKind.JSON

    def view(self, name: str, context: dict[str, Any], status_code: int = 200) -> Response:
        return JSONResponse(jsonable_encoder(context), status_code=status_code)

    def done(
        self,
        message: str,
        *,
        redirect_to: str,
        status_code: int = 200,
        **data: Any,
    ) -> Response:
        return JSONResponse(
            jsonable_encoder({"message": message, **data}),
            status_code=status_code,
        )

    def error(self, exc: AppError) -> Response:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(
            {"message": exc.message},
            status_code=exc.status_code,
            headers=headers,
        )


class HtmlResponder(Responder):
    kind = ClientKind.HTML

    def __init__(self, cookie_name: str) -> None:
        self.cookie_name = cookie_name

    def view(self, name: str, context: dict[str, Any], status_code: int = 200) -> Response:
        return HTMLResponse(views.render(name, jsonable_encoder(context)), status_code=status_code)

    def done(
        self,
        message: str,
        *,
        redirect_to: str,
        status_code: int = 200,
        **data: Any,
    ) -> Response:
        return RedirectResponse(redirect_to, status_code=303)

    def error(self, exc: AppError) -> Response:
        if isinstance(exc, AuthenticationError):
            # Still a rejection: the browser is sent to the login form, not the page.
            response = RedirectResponse(LOGIN_PATH, status_code=303)
            response.delete_cookie(self.cookie_name, httponly=True, samesite="lax")
            return response
        return self.view(
            "error",
            {"message": exc.message, "status_code": exc.status_code},
            status_code=exc.status_code,
        )


def responder_for(request: Request) -> Responder:
    if detect_client_kind(request) is ClientKind.HTML:
        return HtmlResponder(request.app.state.settings.TOKEN_COOKIE_NAME)
    return JsonResponder()


def get_responder(request: Request) -> Responder:
    """Dependency form of responder_for."""
    return responder_for(request)
