"""Request/response schemas for products."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Rating(BaseModel):
    rate: float = Field(..., ge=0, le=5)
    count: int = Field(..., ge=0)


class ProductOut(BaseModel):
    """Product as returned to clients. Keys are camelCase on output."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    details: str
    image: str
    price: float
    categories: list[str] = Field(default_factory=list)
    rating: Rating
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, product) -> "ProductOut":
        return cls(
            id=product.id,
            title=product.title,
            details=product.details,
            image=product.image,
            price=product.price,
            categories=list(product.categories or []),
            rating=Rating(rate=product.rating_rate, count=product.rating_count),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductResponse(BaseModel):
    message: str
    product: ProductOut


class ProductListResponse(BaseModel):
    message: str
    count: int = Field(..., ge=0)
    products: list[ProductOut]
