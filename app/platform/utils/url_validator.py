from urllib.parse import urlparse
from typing import Tuple

MAX_URL_LENGTH = 2048


def validate_url(url: str) -> Tuple[bool, str, str]:
    """
    Check that a submitted URL is an absolute http(s) URL we can audit.

    Returns (is_valid, stripped_url, error_message).
    """
    if not url or not url.strip():
        return False, "", "URL cannot be empty"

    url = url.strip()

    if len(url) > MAX_URL_LENGTH:
        return False, url, f"URL must not be longer than {MAX_URL_LENGTH} characters"

    try:
        parsed = urlparse(url)
    except ValueError as e:
        return False, url, f"URL parsing error: {str(e)}"

    if parsed.scheme not in ['http', 'https']:
        return False, url, f"Invalid URL scheme: {parsed.scheme or 'none'} (must be http or https)"

    if not parsed.netloc or not parsed.hostname:
        return False, url, "Invalid URL format: missing domain"

    return True, url, ""
