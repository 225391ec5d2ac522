"""Dependencies that hand out the objects built by the application lifespan."""

from fastapi import Request

from storefront.core.config import Settings
from storefront.services.images import ImageStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store
