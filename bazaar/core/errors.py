"""Domain failures.

Every failure a service can report is an ``HTTPException`` so FastAPI renders
it directly; the ``detail`` is the short message shown to the user.
"""
from typing import Optional

from fastapi import HTTPException


class MarketError(HTTPException):
    status_code = 400
    message = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.message)


# --- validation ---

class ValidationFailed(MarketError):
    status_code = 422
    message = "Invalid input"

    def __init__(self, field: str, detail: Optional[str] = None):
        self.field = field
        super().__init__(detail or f"Invalid value for {field}")


class TooShort(ValidationFailed):
    def __init__(self, field: str = "reason", minimum: int = 5):
        super().__init__(field, f"{field} must be at least {minimum} characters")


class TooLong(ValidationFailed):
    def __init__(self, field: str = "bio", maximum: int = 500):
        super().__init__(field, f"{field} cannot exceed {maximum} characters")


class Negative(ValidationFailed):
    def __init__(self, field: str = "amount"):
        super().__init__(field, f"{field} cannot be negative")


class OutOfRange(ValidationFailed):
    def __init__(self, field: str, low: int, high: int):
        super().__init__(field, f"{field} must be between {low} and {high}")


# --- authorization ---

class NotAuthenticated(MarketError):
    status_code = 401
    message = "Login required"


class Forbidden(MarketError):
    status_code = 403
    message = "You do not have permission to do that"


# --- credentials / bans ---

class InvalidCredentials(MarketError):
    status_code = 401
    message = "Invalid username or password"


class WrongOldPassword(MarketError):
    status_code = 400
    message = "Current password is incorrect"


class Banned(MarketError):
    status_code = 403

    def __init__(self, days_remaining: int):
        self.days_remaining = days_remaining
        super().__init__(f"You cannot log in for {days_remaining} more day(s)")


# --- state conflicts ---

class NotFound(MarketError):
    status_code = 404

    def __init__(self, what: str = "Resource"):
        super().__init__(f"{what} not found")


class UsernameTaken(MarketError):
    status_code = 409
    message = "Username is already taken"


class AlreadySold(MarketError):
    status_code = 409
    message = "This product has already been sold"


class InsufficientBalance(MarketError):
    status_code = 402
    message = "Insufficient balance"
