"""Pydantic request/response schemas."""

from storefront.schemas.auth import CurrentUser, LoginRequest, SignupRequest
from storefront.schemas.health import HealthResponse
from storefront.schemas.product import (
    ProductListResponse,
    ProductOut,
    ProductResponse,
    Rating,
)

__all__ = [
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "ProductListResponse",
    "ProductOut",
    "ProductResponse",
    "Rating",
    "SignupRequest",
]
