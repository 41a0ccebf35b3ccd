"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Input validation prevents injection attacks
- Length limits prevent DoS attacks
- Only http/https destinations are accepted
"""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
MAX_CODE_LENGTH = 30

_CODE_PATTERN = re.compile(r'^[0-9a-zA-Z_-]+$')


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate a short code or custom alias taken from a URL path.

    Generated codes are base62 ([0-9a-zA-Z]); custom aliases may additionally
    contain '-' and '_'.

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if len(short_code) > MAX_CODE_LENGTH:
        return None

    if not _CODE_PATTERN.match(short_code):
        return None

    return short_code


def normalize_alias(alias: str) -> Optional[str]:
    """
    Validate a custom alias and return its stored (lowercase) form.

    Returns:
        Lowercased alias if valid, None otherwise
    """
    sanitized = sanitize_short_code(alias)
    if sanitized is None:
        return None
    return sanitized.lower()


def validate_url_length(url: str, max_length: int = MAX_URL_LENGTH) -> bool:
    """
    Validate URL length to prevent DoS attacks.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        True if URL length is valid, False otherwise
    """
    return bool(url) and len(url) <= max_length


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL uses http/https, has valid domain, and doesn't contain
    malicious patterns. Prevents javascript:, file:, and other dangerous schemes.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not isinstance(url, str) or not validate_url_length(url):
        return False

    try:
        result = urlparse(url)
    except ValueError:
        return False

    if not result.scheme or not result.netloc:
        return False

    if result.scheme.lower() not in {'http', 'https'}:
        return False

    domain = result.netloc.split(':')[0]
    if domain != 'localhost' and '.' not in domain:
        return False

    malicious_patterns = ['javascript:', 'data:', 'file:', 'vbscript:']
    url_lower = url.lower()
    if any(pattern in url_lower for pattern in malicious_patterns):
        return False

    return True
