"""Catalog service: validate product fields, delegate images, persist products."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.errors import FieldValidationError, ProductNotFoundError
from storefront.models import Product
from storefront.services.images import ImageStore, has_upload

logger = logging.getLogger(__name__)

REQUIRED_CREATE_FIELDS = ("title", "details", "price", "rating")
DEFAULT_IMAGE_FOLDER = "images"
RATING_MIN = 0.0
RATING_MAX = 5.0
TITLE_MAX_LEN = 255


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return all(_is_blank(v) for v in value)
    return False


def _single(value: Any) -> Any:
    """Form fields may repeat; the last non-blank value wins for scalar fields."""
    if isinstance(value, (list, tuple)):
        candidates = [v for v in value if not _is_blank(v)]
        return candidates[-1] if candidates else None
    return value


def _parse_number(value: Any, field: str, minimum: float, maximum: float | None = None) -> float:
    value = _single(value)
    if isinstance(value, bool):
        raise FieldValidationError(f"{field} must be a number", fields=[field])
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise FieldValidationError(f"{field} must be a number", fields=[field]) from None
    if math.isnan(number) or math.isinf(number):
        raise FieldValidationError(f"{field} must be a finite number", fields=[field])
    if number < minimum:
        raise FieldValidationError(f"{field} cannot be less than {minimum:g}", fields=[field])
    if maximum is not None and number > maximum:
        raise FieldValidationError(f"{field} cannot be greater than {maximum:g}", fields=[field])
    return number


def _parse_text(value: Any, field: str, max_len: int | None = None) -> str:
    text = str(_single(value)).strip()
    if max_len is not None and len(text) > max_len:
        raise FieldValidationError(f"{field} must be at most {max_len} characters", fields=[field])
    return text


def normalize_categories(
    raw: Any,
    allowed: Iterable[str] | None = None,
) -> list[str]:
    """
    Accept a single comma-separated string or a list of strings and return the
    trimmed, non-empty values with duplicates removed (first occurrence kept).
    """
    if raw is None:
        return []
    values = raw if isinstance(raw, (list, tuple)) else [raw]
    seen: set[str] = set()
    categories: list[str] = []
    for value in values:
        if value is None:
            continue
        for part in str(value).split(","):
            name = part.strip()
            if name and name not in seen:
                seen.add(name)
                categories.append(name)
    allowed_set = set(allowed or ())
    if allowed_set:
        unknown = [c for c in categories if c not in allowed_set]
        if unknown:
            raise FieldValidationError(
                f"Unknown categories: {', '.join(unknown)}", fields=["categories"]
            )
    return categories


async def _commit(db: Session, image_store: ImageStore, image_url: str | None) -> None:
    """Commit, or roll back and drop the image stored for this change so no file is orphaned."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        if image_url is not None:
            await image_store.discard(image_url)
        raise


def list_products(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.id).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


async def create_product(
    db: Session,
    image_store: ImageStore,
    fields: Mapping[str, Any],
    image: UploadFile | None,
    *,
    folder: str = DEFAULT_IMAGE_FOLDER,
    allowed_categories: Iterable[str] | None = None,
) -> Product:
    """
    Validate fields, store the image and persist a new product.

    Every required field that is missing is named in one FieldValidationError.
    Nothing is written when validation or the image store rejects the request.
    """
    missing = [name for name in REQUIRED_CREATE_FIELDS if _is_blank(fields.get(name))]
    if not has_upload(image):
        missing.append("image")
    if missing:
        raise FieldValidationError(
            f"All fields are required (title, details, rating, price, image); missing: {', '.join(missing)}",
            fields=missing,
        )

    title = _parse_text(fields["title"], "title", TITLE_MAX_LEN)
    details = _parse_text(fields["details"], "details")
    price = _parse_number(fields["price"], "price", minimum=0)
    rate = _parse_number(fields["rating"], "rating", minimum=RATING_MIN, maximum=RATING_MAX)
    categories = normalize_categories(fields.get("categories"), allowed_categories)

    image_url = await image_store.save(image, folder)

    product = Product(
        title=title,
        details=details,
        image=image_url,
        price=price,
        categories=categories,
        rating_rate=rate,
        rating_count=1,
    )
    db.add(product)
    await _commit(db, image_store, image_url)
    db.refresh(product)
    logger.info("Product created: product_id=%s image=%s", product.id, image_url)
    return product


async def update_product(
    db: Session,
    image_store: ImageStore,
    product_id: int,
    fields: Mapping[str, Any],
    image: UploadFile | None = None,
    *,
    folder: str = DEFAULT_IMAGE_FOLDER,
) -> Product:
    """
    Partial update of title, details, price and rating.rate. Blank or absent
    fields keep their stored values; image changes only when a new file is given.
    """
    product = get_product(db, product_id)

    changes: dict[str, Any] = {}
    if not _is_blank(fields.get("title")):
        changes["title"] = _parse_text(fields["title"], "title", TITLE_MAX_LEN)
    if not _is_blank(fields.get("details")):
        changes["details"] = _parse_text(fields["details"], "details")
    if not _is_blank(fields.get("price")):
        changes["price"] = _parse_number(fields["price"], "price", minimum=0)
    if not _is_blank(fields.get("rating")):
        changes["rating_rate"] = _parse_number(
            fields["rating"], "rating", minimum=RATING_MIN, maximum=RATING_MAX
        )
    if has_upload(image):
        changes["image"] = await image_store.save(image, folder)

    for attr, value in changes.items():
        setattr(product, attr, value)
    if changes:
        await _commit(db, image_store, changes.get("image"))
        db.refresh(product)
    logger.info(
        "Product updated: product_id=%s fields=%s",
        product.id,
        ",".join(sorted(changes)) or "none",
    )
    return product


def delete_product(db: Session, product_id: int) -> bool:
    """Delete if present. Returns False when the product was already gone; never raises for that."""
    product = db.get(Product, product_id)
    if product is None:
        logger.info("Product delete requested for missing product_id=%s", product_id)
        return False
    db.delete(product)
    db.commit()
    logger.info("Product deleted: product_id=%s", product_id)
    return True
