"""Error Handler - composition error taxonomy and operator-facing messages."""

from typing import Optional

from shorts_factory.models.schemas import ErrorCategory


class CompositionError(Exception):
    """
    Aggregate failure of a composition request.

    Every stage either completes fully or raises one of these; callers only
    need ``category`` to tell bad input from a failed render from a failed
    upload, plus ``diagnostics`` (e.g. engine output) for debugging.
    """

    category: ErrorCategory = ErrorCategory.RENDER

    def __init__(self, message: str, diagnostics: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = diagnostics

    def to_dict(self) -> dict:
        payload = {"error": self.message, "category": self.category.value}
        if self.diagnostics:
            payload["diagnostics"] = self.diagnostics
        return payload


class InputValidationError(CompositionError):
    """Missing audio, no images, bad duration, or undecodable inline data."""

    category = ErrorCategory.INPUT


class AssetFetchError(InputValidationError):
    """An image URL could not be downloaded."""


class RenderError(CompositionError):
    """The render engine failed or produced no usable output."""

    category = ErrorCategory.RENDER


class PublishError(CompositionError):
    """The finished video could not be handed to storage."""

    category = ErrorCategory.STORAGE


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a user-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Rendering video")
        error: The exception that occurred
        context: Additional context (e.g., {"job_id": "job_123", "images": 4})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if isinstance(error, CompositionError):
        message += f"\n   Category: {error.category.value}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_failure_suggestion(error: Exception) -> Optional[str]:
    """
    Get a suggestion for how to handle a composition failure.

    Args:
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if isinstance(error, AssetFetchError):
        if "timeout" in error_msg or "timed out" in error_msg:
            return "Image host timed out. Retry the request; no partial video was produced."
        return "An image URL could not be downloaded. Check the image URLs and retry."
    elif isinstance(error, InputValidationError):
        return "Fix the request payload; retrying the same input will fail again."
    elif isinstance(error, RenderError):
        if "not found" in error_msg and "ffmpeg" in error_msg:
            return "ffmpeg is not installed or FFMPEG_BINARY points to the wrong path."
        return "Render failed. See the attached engine diagnostics."
    elif isinstance(error, PublishError):
        if "not configured" in error_msg:
            return "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY, or use EXECUTION_MODE=local."
        return "Video rendered but could not be stored. Retry the request."

    return None
