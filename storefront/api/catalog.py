"""Public read-only JSON catalog: list and single product."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.schemas.product import ProductListResponse, ProductOut, ProductResponse
from storefront.services import catalog

router = APIRouter()

ABSOLUTE_URL_PREFIXES = ("http://", "https://")


def public_image_url(url: str, request: Request) -> str:
    """Stored paths are relative to this server; make them absolute for API clients."""
    if not url or url.startswith(ABSOLUTE_URL_PREFIXES):
        return url
    return f"{str(request.base_url).rstrip('/')}/{url.lstrip('/')}"


def _to_public(product, request: Request) -> ProductOut:
    out = ProductOut.from_model(product)
    out.image = public_image_url(out.image, request)
    return out


@router.get("", response_model=ProductListResponse)
def list_products(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> ProductListResponse:
    """All products, unpaginated, with absolute image URLs."""
    products = [_to_public(p, request) for p in catalog.list_products(db)]
    return ProductListResponse(
        message="All uploaded products",
        count=len(products),
        products=products,
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> ProductResponse:
    product = catalog.get_product(db, product_id)
    return ProductResponse(message="Product found", product=_to_public(product, request))
