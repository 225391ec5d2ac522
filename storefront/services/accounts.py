"""Credential checks and account creation for the auth gate."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import FieldValidationError, UnknownUserError, WrongPasswordError
from storefront.core.security import hash_password, verify_password
from storefront.models import User

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, name: str, email: str, password: str) -> User:
    """Create a user with a bcrypt hash. Raises FieldValidationError if the email is taken."""
    email = email.strip().lower()
    if get_user_by_email(db, email) is not None:
        raise FieldValidationError("Email is already registered", fields=["email"])
    user = User(name=name.strip(), email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same email.
        db.rollback()
        raise FieldValidationError("Email is already registered", fields=["email"]) from e
    db.refresh(user)
    logger.info("User registered: user_id=%s", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Return the user for valid credentials.

    Raises UnknownUserError or WrongPasswordError; both carry the same
    client-facing message so callers cannot tell which case occurred.
    """
    user = get_user_by_email(db, email)
    if user is None:
        logger.info("Login rejected: reason=unknown_user")
        raise UnknownUserError()
    if not verify_password(password, user.password_hash):
        logger.info("Login rejected: reason=wrong_password user_id=%s", user.id)
        raise WrongPasswordError()
    return user
