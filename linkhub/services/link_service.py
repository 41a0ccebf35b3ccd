"""
Link Service

This service handles the lifecycle of links and collections:
- Generating unique short codes using base62 encoding
- Validating target URLs and custom aliases
- Creating a link together with its zeroed analytics record
- Deleting a link together with its analytics record
- Creating collections

Design Decisions:
- Base62 encoding: Uses [0-9a-zA-Z] for maximum URL compatibility
- Random codes: secrets.randbelow over the 62^length code space, retried on
  collision (at most MAX_CODE_ATTEMPTS times)
- A custom alias doubles as the link's short code and is stored lowercase
- Codes and aliases share one namespace: a new code must not match any
  existing short_code or custom_alias, nor a reserved route name (RESERVED_CODES)
"""

import logging
import re
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.core.clock import as_utc
from linkhub.core.exceptions import (
    AliasTakenError,
    CollectionNotFoundError,
    DatabaseError,
    InvalidAliasError,
    InvalidURLError,
    LinkNotFoundError,
)
from linkhub.core.security import hash_password
from linkhub.core.setting import settings
from linkhub.core.validators import is_valid_url, normalize_alias
from linkhub.db.models import Collection, ShortLink
from linkhub.services.analytics_record import AnalyticsRecord
from linkhub.services.analytics_store import AnalyticsStore, link_lock

logger = logging.getLogger(__name__)

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE62_LENGTH = len(BASE62_CHARS)

MAX_CODE_ATTEMPTS = 10
DEFAULT_TITLE = "Untitled Link"

# Top-level GET routes of the application (linkhub.main); never valid link codes
RESERVED_CODES = frozenset({"health", "docs", "redoc"})


def encode_base62(number: int, min_length: int = 7) -> str:
    """
    Encode a number to base62 string with fixed length.

    Args:
        number: The number to convert
        min_length: Minimum length of the code (default: 7)

    Returns:
        Base62 encoded string, padded to min_length

    Example:
        encode_base62(0) -> "0000000"
        encode_base62(1) -> "0000001"
        encode_base62(62) -> "0000010"
    """
    if number == 0:
        return BASE62_CHARS[0] * min_length

    digits = []
    while number > 0:
        remainder = number % BASE62_LENGTH
        digits.append(BASE62_CHARS[remainder])
        number //= BASE62_LENGTH

    code = ''.join(reversed(digits))

    if len(code) < min_length:
        code = BASE62_CHARS[0] * (min_length - len(code)) + code

    return code


def generate_short_code(length: int = 7) -> str:
    """Random base62 code of exactly `length` characters."""
    return encode_base62(secrets.randbelow(BASE62_LENGTH ** length), min_length=length)


def slugify(name: str) -> str:
    """
    Example:
        slugify("My Reading List!") -> "my-reading-list"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "collection"


class LinkService:
    """
    Business logic for links and collections.

    Separated from API layer for testability; every write commits on the
    session it was given.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session
        self.analytics_store = AnalyticsStore(session)

    async def code_in_use(self, code: str) -> bool:
        """True if `code` is reserved or matches any existing short code or custom alias."""
        if code.lower() in RESERVED_CODES:
            return True
        statement = select(ShortLink.id).where(
            or_(ShortLink.short_code == code, ShortLink.custom_alias == code.lower())
        ).limit(1)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none() is not None

    async def _unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_short_code(settings.SHORT_CODE_LENGTH)
            if not await self.code_in_use(code):
                return code
        raise DatabaseError("Unable to generate a unique short code, please try again")

    async def get_collection(self, collection_id: int, owner_id: str) -> Collection:
        """
        Fetch a collection owned by `owner_id`.

        Raises:
            CollectionNotFoundError: If missing or owned by someone else
        """
        collection = await self.session.get(Collection, collection_id)
        if collection is None or collection.owner_id != owner_id:
            raise CollectionNotFoundError(collection_id)
        return collection

    async def get_link(self, link_id: int, owner_id: str) -> ShortLink:
        """
        Fetch a link owned by `owner_id`.

        Raises:
            LinkNotFoundError: If missing or owned by someone else
        """
        link = await self.session.get(ShortLink, link_id)
        if link is None or link.owner_id != owner_id:
            raise LinkNotFoundError(link_id)
        return link

    async def create_link(
        self,
        owner_id: str,
        target_url: str,
        title: Optional[str] = None,
        custom_alias: Optional[str] = None,
        password: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        collection_id: Optional[int] = None,
    ) -> ShortLink:
        """
        Create a short link and its zeroed analytics record (replacing any
        record already stored under the new id).

        Args:
            owner_id: Owner of the new link
            target_url: Destination (http/https)
            title: Display title (default "Untitled Link")
            custom_alias: Optional alias used instead of a generated code
            password: Optional password required to follow the link
            expires_at: Optional expiry (naive values are taken as UTC)
            collection_id: Optional collection owned by the same user

        Returns:
            The persisted ShortLink

        Raises:
            InvalidURLError: If the target URL is invalid
            InvalidAliasError: If the alias has an invalid format
            AliasTakenError: If the alias is already used as a code or alias
            CollectionNotFoundError: If the collection is not the owner's
            DatabaseError: If database operation fails
        """
        target_url = (target_url or "").strip()
        if not is_valid_url(target_url):
            raise InvalidURLError(
                target_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        alias = None
        if custom_alias:
            alias = normalize_alias(custom_alias)
            if alias is None:
                raise InvalidAliasError(custom_alias)
            if await self.code_in_use(alias):
                raise AliasTakenError(alias)

        if collection_id is not None:
            await self.get_collection(collection_id, owner_id)

        short_code = alias or await self._unique_code()

        link = ShortLink(
            owner_id=owner_id,
            title=(title or "").strip() or DEFAULT_TITLE,
            target_url=target_url,
            short_code=short_code,
            custom_alias=alias,
            password_hash=hash_password(password) if password else None,
            expires_at=as_utc(expires_at),
            collection_id=collection_id,
        )

        try:
            self.session.add(link)
            await self.session.flush()
            await self.analytics_store.save(AnalyticsRecord.empty(link.id, owner_id))
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if alias:
                raise AliasTakenError(alias) from e
            raise DatabaseError(
                "Failed to create link: database constraint violation",
                original_error=e
            )

        logger.info("Created link %s (%s) for owner %s", link.id, short_code, owner_id)
        return link

    async def delete_link(self, link_id: int, owner_id: str) -> None:
        """
        Delete a link and its analytics record.

        Raises:
            LinkNotFoundError: If missing or owned by someone else
        """
        link = await self.get_link(link_id, owner_id)
        async with link_lock(link.id):
            await self.analytics_store.delete_for_link(link.id)
            await self.session.delete(link)
            await self.session.commit()
        logger.info("Deleted link %s for owner %s", link_id, owner_id)

    async def assign_to_collection(
        self, link_id: int, owner_id: str, collection_id: Optional[int]
    ) -> ShortLink:
        """Move a link into a collection (or out of any with None)."""
        link = await self.get_link(link_id, owner_id)
        if collection_id is not None:
            await self.get_collection(collection_id, owner_id)
        link.collection_id = collection_id
        self.session.add(link)
        await self.session.commit()
        return link

    async def create_collection(self, owner_id: str, name: str) -> Collection:
        """
        Create a collection with a slug unique among the owner's collections.

        Example:
            "Reading" twice -> slugs "reading" and "reading-2"
        """
        base_slug = slugify(name)
        result = await self.session.execute(
            select(Collection.slug).where(
                Collection.owner_id == owner_id,
                or_(Collection.slug == base_slug, Collection.slug.like(f"{base_slug}-%")),
            )
        )
        taken = set(result.scalars().all())
        slug = base_slug
        suffix = 2
        while slug in taken:
            slug = f"{base_slug}-{suffix}"
            suffix += 1

        collection = Collection(owner_id=owner_id, name=name.strip(), slug=slug)
        self.session.add(collection)
        await self.session.commit()
        return collection
