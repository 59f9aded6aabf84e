"""
mdsnips: Snippet Route Handlers
=================================

What:  The /md endpoints: create, update, search, get, list, delete.
How:   Request bodies and query parameters are validated by FastAPI/Pydantic,
       then handed to the SnippetRepository. Update and delete consult the
       UpdateAuthorizer first. Application exceptions are turned into JSON
       error responses by the handlers registered in main.py.

Route Inventory:
    POST   /md           create a snippet (201, returns updateKey once)
    PATCH  /md           update title/body (requires id + updateKey)
    GET    /md/search    search with text, limit, skip, sort
    GET    /md/{id}      fetch one snippet
    GET    /md           list every snippet (deprecated, use /md/search)
    DELETE /md/{id}      delete a snippet (requires X-Update-Key header)

/md/search is declared before /md/{id} so "search" is never taken for an id.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from mdsnips.dependencies import get_access_guard, get_snippet_store
from mdsnips.exceptions import AuthorizationError, NotFoundError
from mdsnips.schemas.snippet import (
    CreateSnippetRequest,
    ErrorResponse,
    SnippetCreated,
    SnippetListItem,
    SnippetResponse,
    SortBy,
    UpdateSnippetRequest,
)
from mdsnips.services.base import SnippetRepository, UpdateAuthorizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/md", tags=["md"])


@router.post(
    "",
    status_code=201,
    response_model=SnippetCreated,
    responses={
        201: {"description": "Snippet created", "model": SnippetCreated},
        400: {"description": "Invalid request body", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a new markdown snippet",
    description=(
        "Stores a markdown snippet and returns it together with its update key. "
        "The update key is shown only in this response; keep it to edit or "
        "delete the snippet later."
    ),
)
async def create_snippet(
    payload: CreateSnippetRequest,
    store: SnippetRepository = Depends(get_snippet_store),
) -> SnippetCreated:
    return await store.create(title=payload.title, body=payload.body)


@router.patch(
    "",
    response_model=SnippetResponse,
    responses={
        200: {"description": "Updated snippet", "model": SnippetResponse},
        400: {"description": "Invalid request body", "model": ErrorResponse},
        401: {"description": "Invalid update key", "model": ErrorResponse},
        404: {"description": "Snippet not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a markdown snippet",
)
async def update_snippet(
    payload: UpdateSnippetRequest,
    store: SnippetRepository = Depends(get_snippet_store),
    guard: UpdateAuthorizer = Depends(get_access_guard),
) -> SnippetResponse:
    """
    Update title and body of a snippet the caller holds the key for.

    A wrong key and an unknown id both answer 401, so the endpoint cannot
    be used to discover which ids exist.
    """
    if not await guard.authorize(payload.id, payload.update_key):
        raise AuthorizationError(context={"snippet_id": payload.id})

    return await store.update(
        snippet_id=payload.id,
        update_key=payload.update_key,
        title=payload.title,
        body=payload.body,
    )


@router.get(
    "/search",
    response_model=List[SnippetListItem],
    responses={
        200: {"description": "Matching snippets (id, title, createDate)"},
        400: {"description": "Invalid query parameter", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Search, sort, and paginate through markdown snippets",
)
async def search_snippets(
    text: Optional[str] = Query(default=None, description="Search term"),
    limit: int = Query(default=10, ge=1, le=100, description="Number of snippets"),
    skip: int = Query(default=0, ge=0, description="Number of snippets to skip"),
    sort: SortBy = Query(default=SortBy.CREATE_DATE_DESC, description="Sort by"),
    store: SnippetRepository = Depends(get_snippet_store),
) -> List[SnippetListItem]:
    return await store.search(text=text, limit=limit, skip=skip, sort_by=sort)


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses={
        200: {"description": "The snippet", "model": SnippetResponse},
        404: {"description": "Snippet not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Retrieve a markdown snippet",
)
async def get_snippet(
    snippet_id: str,
    store: SnippetRepository = Depends(get_snippet_store),
) -> SnippetResponse:
    snippet = await store.get(snippet_id)
    if snippet is None:
        raise NotFoundError(resource="snippet", resource_id=snippet_id)
    return snippet


@router.get(
    "",
    response_model=List[SnippetListItem],
    deprecated=True,
    responses={
        200: {"description": "Every snippet (id, title, createDate)"},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Retrieve all markdown snippets",
    description="Unpaginated and unordered. Use GET /md/search instead.",
)
async def list_snippets(
    store: SnippetRepository = Depends(get_snippet_store),
) -> List[SnippetListItem]:
    return await store.list_all()


@router.delete(
    "/{snippet_id}",
    status_code=204,
    responses={
        204: {"description": "Snippet removed"},
        401: {"description": "Invalid update key", "model": ErrorResponse},
        404: {"description": "Snippet not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Remove a markdown snippet permanently",
)
async def delete_snippet(
    snippet_id: str,
    update_key: str = Header(alias="X-Update-Key", description="Update key returned at creation"),
    store: SnippetRepository = Depends(get_snippet_store),
    guard: UpdateAuthorizer = Depends(get_access_guard),
) -> Response:
    if not await guard.authorize(snippet_id, update_key):
        raise AuthorizationError(context={"snippet_id": snippet_id})

    logger.info("Deleting snippet %s", snippet_id)
    await store.delete(snippet_id=snippet_id, update_key=update_key)
    return Response(status_code=204)
