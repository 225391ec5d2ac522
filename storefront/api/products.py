"""Product pages and form actions. Every route here requires an authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from storefront.api.auth import require_auth
from storefront.api.deps import get_app_settings, get_image_store
from storefront.api.payload import read_payload
from storefront.api.responders import Responder, get_responder
from storefront.core.config import Settings
from storefront.core.database import get_db
from storefront.schemas.auth import CurrentUser
from storefront.schemas.product import ProductOut
from storefront.services import catalog
from storefront.services.images import ImageStore

router = APIRouter()

AuthedUser = Annotated[CurrentUser, Depends(require_auth)]
DbSession = Annotated[Session, Depends(get_db)]
AppResponder = Annotated[Responder, Depends(get_responder)]


@router.get("/")
def upload_form(
    _user: AuthedUser,
    settings: Annotated[Settings, Depends(get_app_settings)],
    responder: AppResponder,
) -> Response:
    return responder.view(
        "upload",
        {"message": "Upload a product", "categories": settings.PRODUCT_CATEGORIES},
    )


@router.get("/products")
def product_list_page(_user: AuthedUser, db: DbSession, responder: AppResponder) -> Response:
    products = [ProductOut.from_model(p) for p in catalog.list_products(db)]
    return responder.view(
        "products",
        {"message": "All Products", "count": len(products), "products": products},
    )


@router.post("/upload")
async def upload_product(
    request: Request,
    _user: AuthedUser,
    db: DbSession,
    settings: Annotated[Settings, Depends(get_app_settings)],
    image_store: Annotated[ImageStore, Depends(get_image_store)],
    responder: AppResponder,
) -> Response:
    """
    Create a product from a multipart form: title, details, price, rating,
    categories (comma separated or repeated) and an image file.
    """
    payload = await read_payload(request)
    product = await catalog.create_product(
        db,
        image_store,
        payload.fields,
        payload.files.get("image"),
        folder=settings.IMAGE_FOLDER,
        allowed_categories=settings.PRODUCT_CATEGORIES,
    )
    return responder.done(
        "Product uploaded and saved successfully!",
        redirect_to=f"/products/{product.id}",
        status_code=201,
        product=ProductOut.from_model(product),
    )


@router.get("/products/{product_id}")
def product_detail_page(
    product_id: int, _user: AuthedUser, db: DbSession, responder: AppResponder
) -> Response:
    product = ProductOut.from_model(catalog.get_product(db, product_id))
    return responder.view("product_detail", {"message": product.title, "product": product})


@router.get("/edit/{product_id}")
def edit_product_page(
    product_id: int, _user: AuthedUser, db: DbSession, responder: AppResponder
) -> Response:
    product = ProductOut.from_model(catalog.get_product(db, product_id))
    return responder.view("edit_product", {"message": "Edit product", "product": product})


@router.post("/edit/{product_id}")
async def edit_product(
    product_id: int,
    request: Request,
    _user: AuthedUser,
    db: DbSession,
    settings: Annotated[Settings, Depends(get_app_settings)],
    image_store: Annotated[ImageStore, Depends(get_image_store)],
    responder: AppResponder,
) -> Response:
    """Partial update; the image is replaced only when a new file is sent."""
    payload = await read_payload(request)
    product = await catalog.update_product(
        db,
        image_store,
        product_id,
        payload.fields,
        payload.files.get("image"),
        folder=settings.IMAGE_FOLDER,
    )
    return responder.done(
        "Product updated successfully!",
        redirect_to=f"/products/{product.id}",
        product=ProductOut.from_model(product),
    )


@router.post("/delete/{product_id}")
def delete_product(
    product_id: int, _user: AuthedUser, db: DbSession, responder: AppResponder
) -> Response:
    """Idempotent: deleting a missing product also succeeds."""
    deleted = catalog.delete_product(db, product_id)
    return responder.done(
        "Product deleted successfully" if deleted else "Product already deleted",
        redirect_to="/products",
        deleted=deleted,
    )
