"""
Validation Utilities

Title sanitization for file names and URL validation for the API endpoint.
"""

import re
from urllib.parse import urlparse
from typing import Tuple


MAX_TITLE_LENGTH = 200  # UTF-8 bytes


def sanitize_title(title: str) -> str:
    """
    Turn a page title into a fragment safe for use in a file name.

    Spaces become underscores, every run of characters other than Unicode
    letters, digits, underscore, period and hyphen becomes a single
    underscore, and leading/trailing underscores and periods are trimmed.
    The result is at most MAX_TITLE_LENGTH bytes once encoded as UTF-8 and
    never ends in a partial character.

    Args:
        title: Page title as returned by the API

    Returns:
        Sanitized fragment, possibly empty
    """
    if not title:
        return ""

    safe = re.sub(r'[^\w\-_.]', '_', title)
    safe = re.sub(r'_+', '_', safe)  # Collapse multiple underscores
    safe = safe.strip('_.')

    # Cap by encoded size so multi-byte titles stay under NAME_MAX
    encoded = safe.encode('utf-8')
    if len(encoded) > MAX_TITLE_LENGTH:
        safe = encoded[:MAX_TITLE_LENGTH].decode('utf-8', 'ignore').rstrip('_.')

    return safe


def validate_api_url(url: str) -> Tuple[bool, str, str]:
    """
    Validate the MediaWiki API endpoint.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, normalized_url, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "", "API URL cannot be empty"

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        return False, "", f"URL validation error: {e}"

    if parsed.scheme not in ('http', 'https'):
        return False, "", "API URL must use HTTP or HTTPS protocol"
    if not parsed.netloc:
        return False, "", "API URL must have a valid host"

    return True, url, ""
