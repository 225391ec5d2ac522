"""ORM model for catalog products."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from storefront.models.base import Base


class Product(Base):
    """
    Product listing. image is always a public URL (relative to the uploads
    mount or absolute); categories is an ordered list without duplicates.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("rating_rate >= 0 AND rating_rate <= 5", name="ck_products_rating_rate_range"),
        CheckConstraint("rating_count >= 0", name="ck_products_rating_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    details = Column(Text, nullable=False)
    image = Column(String(2048), nullable=False)
    price = Column(Float, nullable=False)
    categories = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    rating_rate = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
