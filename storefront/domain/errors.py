# storefront/domain/errors.py
from typing import Any, Dict, Iterable


class AppError(Exception):
    """
    Base for every failure the services raise on purpose.
    `code` is machine readable, `message` is for humans, `details` are
    extra fields merged into the response body.
    """

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class BusinessRuleError(AppError):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Request violates a business rule"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to perform this action"


class TooManyRequestsError(AppError):
    status_code = 429
    code = "TOO_MANY_REQUESTS"
    default_message = "Too many requests, try again later"


# not found

class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")


class CategoryNotFound(NotFoundError):
    code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: int):
        super().__init__(f"Category {category_id} not found")


class CartNotFound(NotFoundError):
    code = "CART_NOT_FOUND"
    default_message = "Cart not found"


class CartItemNotFound(NotFoundError):
    code = "CART_ITEM_NOT_FOUND"
    default_message = "Item not found in cart"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "User profile not found"


# conflicts

class EmailAlreadyExists(ConflictError):
    code = "EMAIL_ALREADY_EXISTS"
    default_message = "An account with this email already exists"


class CategoryAlreadyExists(ConflictError):
    code = "CATEGORY_ALREADY_EXISTS"

    def __init__(self, name: str):
        super().__init__(f'A category named "{name}" already exists')


# business rules

class ValidationFailed(BusinessRuleError):
    code = "VALIDATION_ERROR"
    default_message = "Request validation failed"


class InsufficientStock(BusinessRuleError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, requested: int, available: int, in_cart: int):
        super().__init__(
            f'Cannot add {requested} unit(s) of "{product_name}". '
            f"Available stock: {available}, already in cart: {in_cart}",
            requested=requested,
            available=available,
            inCart=in_cart,
        )


class OutOfStock(BusinessRuleError):
    code = "OUT_OF_STOCK"

    def __init__(self, product: str, available: int, requested: int):
        super().__init__(
            f"Not enough stock for {product}. Available: {available}",
            product=product,
            available=available,
            requested=requested,
        )


class CartEmpty(BusinessRuleError):
    code = "CART_EMPTY"
    default_message = "Your cart is empty"


class InvalidStatusTransition(BusinessRuleError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str, allowed: Iterable[str]):
        super().__init__(
            f"Cannot transition order from {current} to {requested}",
            allowedTransitions=sorted(allowed),
        )


class NoFileUploaded(BusinessRuleError):
    code = "NO_FILE"
    default_message = "No file uploaded"


class UnsupportedFileType(BusinessRuleError):
    code = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, content_type: str | None):
        super().__init__(f"Only image uploads are accepted, got {content_type or 'unknown'}")


class FileTooLarge(BusinessRuleError):
    code = "FILE_TOO_LARGE"

    def __init__(self, max_mb: int):
        super().__init__(f"Uploads are limited to {max_mb}MB", maxMb=max_mb)


# auth

class InvalidCredentials(UnauthorizedError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class InvalidToken(UnauthorizedError):
    code = "INVALID_TOKEN"
    default_message = "Invalid authentication credentials"


class AdminRequired(ForbiddenError):
    code = "ADMIN_REQUIRED"
    default_message = "Only admins can perform this action"


class RateLimited(TooManyRequestsError):
    code = "RATE_LIMITED"
