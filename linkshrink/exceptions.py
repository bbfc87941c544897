"""
Domain errors raised by the service layer.

Routes never build HTTP errors for these by hand: the handlers registered
in main.py turn each one into a JSON response with its status_code.
"""

from fastapi import status


class ShortenerError(Exception):
    """Base class for errors the API reports to the client"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LinkValidationError(ShortenerError):
    """Input failed validation (bad URL, bad custom code, batch size)"""

    status_code = status.HTTP_400_BAD_REQUEST


class CodeConflictError(ShortenerError):
    """Custom code is already taken"""

    status_code = status.HTTP_400_BAD_REQUEST


class LinkNotFoundError(ShortenerError):
    status_code = status.HTTP_404_NOT_FOUND


class ShortCodeGenerationError(ShortenerError):
    """Random generation kept colliding with existing codes"""
