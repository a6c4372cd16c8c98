# image_arena/errors.py
from __future__ import annotations


class ArenaError(Exception):
    """Base for failures that are reported to the client instead of crashing."""

    status_code = 500
    default_message = "internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InsufficientData(ArenaError):
    status_code = 503
    default_message = "Need at least 2 images in database"


class InvalidInput(ArenaError):
    status_code = 400
    default_message = "Invalid image IDs"


class NotFound(ArenaError):
    status_code = 404
    default_message = "Images not found"


class Forbidden(ArenaError):
    status_code = 403
    default_message = "Forbidden"


class RateLimited(ArenaError):
    status_code = 429
    default_message = "Rate limit exceeded. Please slow down."

    def __init__(self, message: str | None = None, retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = max(0.0, float(retry_after))


class StoreFailure(ArenaError):
    status_code = 500
    default_message = "Failed to update ratings. Please try again."
