"""Input sanitization utilities."""
import re
from typing import Optional


# Maximum length constraints
MAX_POLL_TITLE_LENGTH = 200
MAX_POLL_QUESTION_LENGTH = 500
MAX_OPTION_LENGTH = 100
MAX_COMMENT_LENGTH = 1000
MAX_REPORT_DETAILS_LENGTH = 500
MAX_DISPLAY_NAME_LENGTH = 50
MAX_GUEST_TOKEN_LENGTH = 64

GUEST_TOKEN_PATTERN = re.compile(r'^guest_\d{10,16}_[a-z0-9]{1,16}$')


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Strips HTML tags and normalizes whitespace. HTML entities are not
    escaped; the frontend escapes on render.

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'[ \t]+', ' ', sanitized)

    return sanitized


def sanitize_required(text: str, field_name: str, max_length: int) -> str:
    """Sanitize a required single-line field, rejecting blank input."""
    sanitized = sanitize_text(text, max_length=max_length)
    sanitized = re.sub(r'\s+', ' ', sanitized)

    if not sanitized:
        raise ValueError(f"{field_name} cannot be empty")

    return sanitized


def sanitize_poll_title(title: str) -> str:
    return sanitize_required(title, "Poll title", MAX_POLL_TITLE_LENGTH)


def sanitize_poll_question(question: str) -> str:
    return sanitize_required(question, "Poll question", MAX_POLL_QUESTION_LENGTH)


def sanitize_option_label(label: str) -> str:
    return sanitize_required(label, "Option", MAX_OPTION_LENGTH)


def sanitize_display_name(name: str) -> str:
    return sanitize_required(name, "Display name", MAX_DISPLAY_NAME_LENGTH)


def sanitize_comment_content(content: str) -> str:
    """
    Sanitize comment text.

    Line breaks are kept (comments render with pre-wrap); runs of spaces
    and tabs are collapsed.
    """
    sanitized = sanitize_text(content, max_length=MAX_COMMENT_LENGTH)

    if not sanitized:
        raise ValueError("Comment cannot be empty")

    return sanitized


def sanitize_report_details(details: Optional[str]) -> Optional[str]:
    """Sanitize optional report details; blank input becomes None."""
    if details is None:
        return None

    sanitized = sanitize_text(details, max_length=MAX_REPORT_DETAILS_LENGTH)
    return sanitized or None


def validate_guest_token(token: str) -> str:
    """
    Validate guest token format before it reaches the database.

    Guest tokens look like ``guest_1718000000000_k3j9x0a2b``.

    Raises:
        ValueError: If token format is invalid
    """
    if not isinstance(token, str):
        raise ValueError("Guest token must be a string")

    token = token.strip()

    if not token:
        raise ValueError("Guest token cannot be empty")

    if len(token) > MAX_GUEST_TOKEN_LENGTH:
        raise ValueError(f"Guest token exceeds maximum length of {MAX_GUEST_TOKEN_LENGTH} characters")

    if not GUEST_TOKEN_PATTERN.match(token):
        raise ValueError("Guest token format is invalid")

    return token
