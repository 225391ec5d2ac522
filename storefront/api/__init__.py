"""HTTP routes."""

from fastapi import APIRouter

from storefront.api import auth, catalog, health, products

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, tags=["auth"])
router.include_router(catalog.router, prefix="/api/products", tags=["catalog"])
router.include_router(products.router, tags=["products"])
