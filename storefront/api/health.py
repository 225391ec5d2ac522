"""Health check endpoint with database and image store checks."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_app_settings, get_image_store
from storefront.core.config import Settings
from storefront.core.database import check_db_connected, get_db
from storefront.schemas.health import HealthResponse
from storefront.services.images import ImageStore

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    image_store: Annotated[ImageStore, Depends(get_image_store)],
) -> HealthResponse:
    """
    Return service health status, database connectivity and whether images
    can be stored. Used by load balancers and monitoring.
    """
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        image_store="ready" if image_store.is_ready() else "unavailable",
    )
