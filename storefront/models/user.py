"""ORM model for application users (credential store)."""

from sqlalchemy import Column, Integer, String

from storefront.models.base import Base


class User(Base):
    """
    User account for JWT authentication.

    password_hash is a salted bcrypt hash and never leaves the auth layer.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
