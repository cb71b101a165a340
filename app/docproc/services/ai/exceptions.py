"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when a call to the AI backend fails."""

    pass
