"""Application error taxonomy. Each error carries the HTTP status it maps to."""


class AppError(Exception):
    """Base for errors reported to clients as {"message": ...} with status_code."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class FieldValidationError(AppError):
    """Missing or invalid request fields."""

    status_code = 400

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        self.fields = fields or []
        super().__init__(message)


class AuthenticationError(AppError):
    """Missing, invalid or expired token, or rejected credentials."""

    status_code = 401


class TokenInvalidError(AuthenticationError):
    pass


class TokenExpiredError(AuthenticationError):
    pass


class InvalidCredentialsError(AuthenticationError):
    """Login failed. The message is the same for every subclass."""

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class UnknownUserError(InvalidCredentialsError):
    pass


class WrongPasswordError(InvalidCredentialsError):
    pass


class NotFoundError(AppError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__("Product not found")


class UnsupportedMediaTypeError(AppError):
    """Upload rejected by the image allow-list."""

    status_code = 415
