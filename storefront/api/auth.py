"""Signup, login and logout routes, and the require_auth dependency."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import get_app_settings
from storefront.api.payload import read_payload
from storefront.api.responders import Responder, get_responder
from storefront.core.config import Settings
from storefront.core.database import get_db
from storefront.core.errors import (
    AuthenticationError,
    FieldValidationError,
    InvalidCredentialsError,
)
from storefront.core.security import issue_token, verify_token
from storefront.models import User
from storefront.schemas.auth import CurrentUser, LoginRequest, SignupRequest
from storefront.services.accounts import authenticate, register_user

logger = logging.getLogger(__name__)
router = APIRouter()

BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class TokenSource:
    """A named place a token may be carried in."""

    name: str
    extract: Callable[[Request, Settings], Awaitable[str | None]]


async def _from_cookie(request: Request, settings: Settings) -> str | None:
    return request.cookies.get(settings.TOKEN_COOKIE_NAME)


async def _from_authorization(request: Request, settings: Settings) -> str | None:
    header = request.headers.get("authorization", "")
    if header.lower().startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip()
    return None


async def _from_body(request: Request, settings: Settings) -> str | None:
    token = (await read_payload(request)).fields.get("token")
    return token if isinstance(token, str) else None


async def _from_query(request: Request, settings: Settings) -> str | None:
    return request.query_params.get("token")


# Checked in this order; the first present value is used.
TOKEN_SOURCES: tuple[TokenSource, ...] = (
    TokenSource("cookie", _from_cookie),
    TokenSource("authorization", _from_authorization),
    TokenSource("body", _from_body),
    TokenSource("query", _from_query),
)


async def extract_token(
    request: Request,
    settings: Settings,
    sources: tuple[TokenSource, ...] = TOKEN_SOURCES,
) -> tuple[str, str] | None:
    """Return (source name, token) for the first source carrying a token, else None."""
    for source in sources:
        token = await source.extract(request, settings)
        if token:
            return source.name, token
    return None


async def require_auth(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require a valid token and return the current user. Fails closed with 401."""
    found = await extract_token(request, settings)
    if found is None:
        logger.info("Auth rejected: reason=token_missing path=%s", request.url.path)
        raise AuthenticationError("Not authorized, token missing")
    source, token = found
    try:
        user_id = verify_token(token, settings)
    except AuthenticationError as e:
        logger.info(
            "Auth rejected: reason=%s source=%s path=%s",
            type(e).__name__,
            source,
            request.url.path,
        )
        raise
    user = db.get(User, user_id)
    if user is None:
        logger.warning("Auth rejected: reason=user_not_found user_id=%s", user_id)
        raise AuthenticationError("Not authorized, user not found")
    current = CurrentUser.model_validate(user)
    request.state.user = current
    return current


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


@router.get("/signup")
def signup_form(responder: Annotated[Responder, Depends(get_responder)]) -> Response:
    return responder.view("signup", {"message": "Create an account"})


@router.post("/signup")
async def signup(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    responder: Annotated[Responder, Depends(get_responder)],
) -> Response:
    """Create an account from name, email and password (form or JSON)."""
    payload = await read_payload(request)
    try:
        try:
            body = SignupRequest.model_validate(payload.fields)
        except ValidationError as e:
            raise FieldValidationError(_validation_message(e)) from e
        # bcrypt is CPU bound; keep it off the event loop.
        user = await run_in_threadpool(register_user, db, body.name, body.email, body.password)
    except FieldValidationError as e:
        return responder.view("signup", {"message": e.message}, status_code=e.status_code)
    return responder.done(
        "Account created",
        redirect_to="/login",
        status_code=201,
        user=CurrentUser.model_validate(user),
    )


@router.get("/login")
def login_form(responder: Annotated[Responder, Depends(get_responder)]) -> Response:
    return responder.view("login", {"message": "Log in"})


@router.post("/login")
async def login(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    responder: Annotated[Responder, Depends(get_responder)],
) -> Response:
    """
    Authenticate with email and password; the JWT is set as an HTTP-only cookie
    and also returned to JSON clients for use as: Authorization: Bearer <token>
    """
    payload = await read_payload(request)
    try:
        body = LoginRequest.model_validate(payload.fields)
    except ValidationError as e:
        return responder.view("login", {"message": _validation_message(e)}, status_code=400)
    try:
        user = await run_in_threadpool(authenticate, db, body.email, body.password)
    except InvalidCredentialsError as e:
        return responder.view("login", {"message": e.message}, status_code=e.status_code)

    token = issue_token(user.id, settings)
    response = responder.done(
        "Logged in",
        redirect_to="/",
        access_token=token,
        token_type="bearer",
    )
    response.set_cookie(
        settings.TOKEN_COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
    logger.info("User logged in: user_id=%s", user.id)
    return response


@router.get("/logout")
def logout(
    settings: Annotated[Settings, Depends(get_app_settings)],
    responder: Annotated[Responder, Depends(get_responder)],
) -> Response:
    """Clear the token cookie. Tokens are not revoked server-side."""
    response = responder.done("Logged out", redirect_to="/login")
    response.delete_cookie(settings.TOKEN_COOKIE_NAME, httponly=True, samesite="lax")
    return response
