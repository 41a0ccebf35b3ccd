"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Benefits:
- More specific error types for different failure scenarios
- Better error messages for API consumers
- Easier error handling and logging
"""


class LinkHubException(Exception):
    """Base exception for the LinkHub service."""
    pass


class InvalidURLError(LinkHubException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidAliasError(LinkHubException):
    """Raised when a custom alias has an invalid format."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(
            f"Invalid alias '{alias}'. Aliases may only contain letters, digits, '-' and '_'"
        )


class AliasTakenError(LinkHubException):
    """Raised when a custom alias collides with an existing short code or alias."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Alias '{alias}' is already in use")


class LinkNotFoundError(LinkHubException):
    """Raised when a link is not found (or not owned by the caller)."""

    def __init__(self, link_id):
        self.link_id = link_id
        super().__init__(f"Link '{link_id}' not found")


class CollectionNotFoundError(LinkHubException):
    """Raised when a collection is not found (or not owned by the caller)."""

    def __init__(self, collection_id):
        self.collection_id = collection_id
        super().__init__(f"Collection '{collection_id}' not found")


class DatabaseError(LinkHubException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
