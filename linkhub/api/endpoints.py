"""
FastAPI Endpoints for Links, Collections and Redirects

This module defines the link management and redirect endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Error handling and HTTP responses
- Delegating to service layer

Redirect flow:
1. Resolve the code (404 if unknown)
2. Access checks: inactive/expired and password protected links are sent to
   the dashboard's expired / password pages
3. Granted: read or issue the visitor cookie, schedule click recording as a
   background task, redirect to the target

The catch-all GET /{short_code} route must be registered after every other
GET route of the application.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linkhub.api.dependencies import get_owner_id
from linkhub.api.schemas import (
    AssignCollectionRequest,
    CollectionResponse,
    CreateCollectionRequest,
    CreateLinkRequest,
    LinkResponse,
)
from linkhub.core.classifier_manager import get_classifier
from linkhub.core.client import get_client_ip, get_referrer
from linkhub.core.clock import as_utc
from linkhub.core.exceptions import (
    AliasTakenError,
    CollectionNotFoundError,
    DatabaseError,
    InvalidAliasError,
    InvalidURLError,
    LinkNotFoundError,
)
from linkhub.core.setting import settings
from linkhub.core.validators import sanitize_short_code
from linkhub.db.models import ShortLink
from linkhub.db.session import get_session, get_session_factory
from linkhub.services.background_tasks import record_click_background
from linkhub.services.link_resolver import AccessDenial, LinkResolver
from linkhub.services.link_service import LinkService
from linkhub.services.visitor_classifier import VisitorClassifier
from linkhub.services.visitor_identity import generate_visitor_id, resolve_visitor_id

logger = logging.getLogger(__name__)

router = APIRouter()


def link_response(link: ShortLink) -> LinkResponse:
    return LinkResponse(
        id=link.id,
        title=link.title,
        short_code=link.short_code,
        short_url=f"{settings.BASE_URL.rstrip('/')}/{link.short_code}",
        target_url=link.target_url,
        custom_alias=link.custom_alias,
        collection_id=link.collection_id,
        expires_at=as_utc(link.expires_at),
        is_active=link.is_active,
        password_protected=link.password_hash is not None,
        created_at=as_utc(link.created_at),
    )


def denial_redirect_url(short_code: str, denial: AccessDenial) -> str:
    """
    Dashboard page a refused visitor is sent to.

    Example:
        ("abc1234", AccessDenial.password_invalid)
            -> "http://localhost:3000/password?url=abc1234&error=invalid"
    """
    frontend_url = settings.FRONTEND_URL.rstrip("/")
    if denial in (AccessDenial.inactive, AccessDenial.expired):
        return f"{frontend_url}/expired?url={short_code}"
    if denial == AccessDenial.password_invalid:
        return f"{frontend_url}/password?url={short_code}&error=invalid"
    return f"{frontend_url}/password?url={short_code}"


@router.post(
    "/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short link",
    description="Takes a long URL and returns a short link with a generated code or custom alias"
)
async def create_link(
    body: CreateLinkRequest,
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> LinkResponse:
    """
    Create a new short link owned by the caller.

    Raises:
        HTTPException 400: If the URL or alias is invalid
        HTTPException 404: If the collection is not the caller's
        HTTPException 409: If the alias is already taken
    """
    try:
        link = await LinkService(session).create_link(
            owner_id=owner_id,
            target_url=body.url,
            title=body.title,
            custom_alias=body.custom_alias,
            password=body.password,
            expires_at=body.expires_at,
            collection_id=body.collection_id,
        )
        return link_response(link)

    except (InvalidURLError, InvalidAliasError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except AliasTakenError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except CollectionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except DatabaseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.delete(
    "/links/{link_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a link",
    description="Deletes a link owned by the caller together with its analytics"
)
async def delete_link(
    link_id: int,
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> Response:
    try:
        await LinkService(session).delete_link(link_id, owner_id)
    except LinkNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/links/{link_id}/collection",
    response_model=LinkResponse,
    summary="Move a link into a collection"
)
async def assign_link_collection(
    link_id: int,
    body: AssignCollectionRequest,
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> LinkResponse:
    try:
        link = await LinkService(session).assign_to_collection(link_id, owner_id, body.collection_id)
    except (LinkNotFoundError, CollectionNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return link_response(link)


@router.post(
    "/collections",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a collection"
)
async def create_collection(
    body: CreateCollectionRequest,
    owner_id: str = Depends(get_owner_id),
    session: AsyncSession = Depends(get_session)
) -> CollectionResponse:
    collection = await LinkService(session).create_collection(owner_id, body.name)
    return CollectionResponse(
        id=collection.id,
        name=collection.name,
        slug=collection.slug,
        created_at=as_utc(collection.created_at),
    )


@router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to the target URL",
    description="Takes a short code or custom alias and redirects to the link's target URL"
)
async def redirect_to_link(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    password: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    classifier: VisitorClassifier = Depends(get_classifier)
) -> RedirectResponse:
    """
    Redirect to the target URL of a short link and record the click.

    Args:
        short_code: The short code or custom alias to look up
        request: FastAPI Request object (cookie, IP, user agent, referrer)
        background_tasks: FastAPI BackgroundTasks for click recording
        password: Password for protected links

    Returns:
        RedirectResponse (HTTP 302) to the target URL or to the dashboard's
        expired / password page

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not found
    """
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{short_code}'. Short codes may only contain letters, digits, '-' and '_'."
        )

    short_code = sanitized_code

    resolution = await LinkResolver(session).resolve(short_code, password)

    if resolution is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found"
        )

    if not resolution.access_granted:
        return RedirectResponse(
            url=denial_redirect_url(short_code, resolution.denial),
            status_code=status.HTTP_302_FOUND
        )

    response = RedirectResponse(
        url=resolution.target_url,
        status_code=status.HTTP_302_FOUND
    )

    try:
        visitor_id = resolve_visitor_id(request, response)
    except Exception as e:
        logger.error(f"Failed to resolve visitor id: {str(e)}", exc_info=True)
        visitor_id = generate_visitor_id()

    background_tasks.add_task(
        record_click_background,
        session_factory=session_factory,
        classifier=classifier,
        link_id=resolution.link_id,
        owner_id=resolution.owner_id,
        visitor_id=visitor_id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=get_client_ip(request),
        referrer=get_referrer(request),
    )

    return response
