"""
mdsnips: Abstract Snippet Service Interfaces
==============================================

What:  Abstract base classes for the two core capabilities: snippet
       persistence and update-key authorization.
How:   SnippetStore and AccessGuard implement these against SQLAlchemy.
       Routes depend only on these interfaces, so tests (or another backing
       store) can substitute their own implementation through FastAPI's
       dependency overrides.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from mdsnips.schemas.snippet import (
    SnippetCreated,
    SnippetListItem,
    SnippetResponse,
    SortBy,
)


class SnippetRepository(ABC):
    """
    Durable CRUD + search over snippets.

    Contract:
        - Read paths (get, list_all, search, update) never return update_key.
        - Missing targets: get() returns None; update()/delete() raise NotFoundError.
        - Backend failures and timeouts raise PersistenceError. Nothing retries.
    """

    @abstractmethod
    async def create(self, title: str, body: str) -> SnippetCreated:
        """Persist a new snippet; the result is the only place its update key appears."""
        ...

    @abstractmethod
    async def get(self, snippet_id: str) -> Optional[SnippetResponse]:
        ...

    @abstractmethod
    async def list_all(self) -> List[SnippetListItem]:
        """Every snippet's projection, in no guaranteed order. Superseded by search()."""
        ...

    @abstractmethod
    async def search(
        self,
        text: Optional[str] = None,
        limit: int = 10,
        skip: int = 0,
        sort_by: SortBy = SortBy.CREATE_DATE_DESC,
    ) -> List[SnippetListItem]:
        ...

    @abstractmethod
    async def update(
        self,
        snippet_id: str,
        update_key: str,
        title: str,
        body: str,
    ) -> SnippetResponse:
        """Overwrite title/body. Callers must have passed UpdateAuthorizer.authorize()."""
        ...

    @abstractmethod
    async def delete(self, snippet_id: str, update_key: str) -> None:
        """Remove the snippet permanently. Callers must have passed authorize()."""
        ...

    @abstractmethod
    async def ensure_indexes(self) -> None:
        """Idempotently create the schema and indexes the operations rely on."""
        ...


class UpdateAuthorizer(ABC):
    """
    Stateless check of "does this caller hold the update key for this snippet".

    authorize() answers False for a wrong key, an unknown snippet and a
    backend failure alike. It never raises for any of them.
    """

    @abstractmethod
    async def authorize(self, snippet_id: str, presented_key: str) -> bool:
        ...
