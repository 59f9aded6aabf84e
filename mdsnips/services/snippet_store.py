"""
mdsnips: Snippet Store (Persistence Layer)
============================================

What:  Durable CRUD + search over the `snippets` table, plus the idempotent
       schema/index setup run at startup.
How:   Every operation opens one session from the injected session factory,
       runs inside a single transaction, and is bounded by
       `operation_timeout` seconds. A timeout, a driver/connection error or
       any SQLAlchemy error becomes a PersistenceError. Nothing is retried.
Who:   Called by the snippet routes; constructed once by main.lifespan.

Read paths select explicit columns and never include update_key. The only
operation that returns the key is create().

Concurrency:
    The store keeps no mutable state beyond the session factory, which is
    safe to share between concurrent requests. Two concurrent updates of the
    same snippet race in the database; the last write wins.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import and_, asc, delete, desc, func, or_, select, text as sql_text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mdsnips.database import Base
from mdsnips.exceptions import (
    IdentifierConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from mdsnips.models.snippet import (
    CREATE_DATE_INDEX_DDL,
    TEXT_INDEX_DDL,
    Snippet,
    search_config,
    search_document,
)
from mdsnips.schemas.snippet import (
    SnippetCreated,
    SnippetListItem,
    SnippetResponse,
    SortBy,
)
from mdsnips.services.base import SnippetRepository
from mdsnips.services.identifiers import generate_snippet_id, generate_update_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_OPERATION_TIMEOUT = 5.0


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_response(row: Any) -> SnippetResponse:
    return SnippetResponse(
        id=row.id,
        title=row.title,
        body=row.body,
        create_date=_as_utc(row.create_date),
    )


def _to_list_item(row: Any) -> SnippetListItem:
    return SnippetListItem(id=row.id, title=row.title, create_date=_as_utc(row.create_date))


def _require_utf8(field: str, value: str) -> None:
    # Lone surrogates survive str handling but not hashing or storage
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValidationError(
            message=f"`{field}` must be valid UTF-8 text",
            field=field,
        ) from e


class SnippetStore(SnippetRepository):
    """
    SQLAlchemy-backed snippet repository.

    Args:
        session_factory:    async_sessionmaker bound to the process-wide engine
        operation_timeout:  seconds before a single operation is abandoned
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ):
        self._session_factory = session_factory
        self._operation_timeout = operation_timeout

    # ── Operation Runner ──────────────────────────────────────────────────

    async def _in_transaction(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self._session_factory() as session:
            async with session.begin():
                return await work(session)

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        **context: Any,
    ) -> T:
        """
        Execute `work` in its own transaction under the operation timeout.

        Error translation:
            asyncio timeout            → PersistenceError
            SQLAlchemyError / OSError  → PersistenceError
            MDSnipsError raised by work (NotFoundError, ...) → propagates as-is

        TimeoutError is an OSError subclass on recent Pythons, so it is
        handled first.
        """
        try:
            return await asyncio.wait_for(
                self._in_transaction(work),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Snippet %s timed out after %.1fs %s",
                operation,
                self._operation_timeout,
                context,
            )
            raise PersistenceError(
                message="The database did not respond in time. Please try again.",
                context={"operation": operation, "timeout": self._operation_timeout, **context},
            ) from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Database error during snippet %s: %s",
                operation,
                str(e),
                exc_info=True,
            )
            raise PersistenceError(
                context={"operation": operation, "error_type": type(e).__name__, **context},
            ) from e

    # ── Create ────────────────────────────────────────────────────────────

    async def create(self, title: str, body: str) -> SnippetCreated:
        """
        Insert a new snippet with a freshly derived id and update key.

        Returns:
            SnippetCreated, including update_key. The caller must hand the key
            to the creator now; it is never readable again.

        Raises:
            ValidationError: title or body is not encodable as UTF-8
            IdentifierConflictError: the derived id already exists
            PersistenceError: the insert could not be committed
        """
        _require_utf8("title", title)
        _require_utf8("body", body)
        snippet_id = generate_snippet_id(title, body)

        async def work(session: AsyncSession) -> SnippetCreated:
            snippet = Snippet(
                id=snippet_id,
                title=title,
                body=body,
                update_key=generate_update_key(body),
                create_date=datetime.now(timezone.utc),
            )
            session.add(snippet)
            try:
                await session.flush()
            except IntegrityError as e:
                logger.warning("Snippet id collision on %s", snippet_id)
                raise IdentifierConflictError(snippet_id=snippet_id) from e
            return SnippetCreated(
                id=snippet.id,
                title=snippet.title,
                body=snippet.body,
                create_date=snippet.create_date,
                update_key=snippet.update_key,
            )

        created = await self._run("create", work, snippet_id=snippet_id)
        logger.info("Snippet %s created (%d chars)", created.id, len(body))
        return created

    # ── Read ──────────────────────────────────────────────────────────────

    async def get(self, snippet_id: str) -> Optional[SnippetResponse]:
        """
        Fetch one snippet by id, without its update key.

        Returns None (not an error) when no snippet matches.
        """

        async def work(session: AsyncSession) -> Optional[SnippetResponse]:
            result = await session.execute(
                select(Snippet.id, Snippet.title, Snippet.body, Snippet.create_date)
                .where(Snippet.id == snippet_id)
            )
            row = result.one_or_none()
            return _to_response(row) if row is not None else None

        return await self._run("get", work, snippet_id=snippet_id)

    async def list_all(self) -> List[SnippetListItem]:
        async def work(session: AsyncSession) -> List[SnippetListItem]:
            result = await session.execute(
                select(Snippet.id, Snippet.title, Snippet.create_date)
            )
            return [_to_list_item(row) for row in result.all()]

        return await self._run("list", work)

    async def search(
        self,
        text: Optional[str] = None,
        limit: int = 10,
        skip: int = 0,
        sort_by: SortBy = SortBy.CREATE_DATE_DESC,
    ) -> List[SnippetListItem]:
        """
        Text search with offset pagination, newest or oldest first.

        Args:
            text:    optional search term; blank means "match everything"
            limit:   page size; <= 0 returns an empty page, no upper bound here
            skip:    rows to skip; negative values count as 0
            sort_by: SortBy member or its string value

        Matching:
            PostgreSQL → full-text, tsvector(title || ' ' || body) @@
                         plainto_tsquery(text), served by idx_snippets_text
            other      → every whitespace-separated term must occur,
                         case-insensitively, in the title or the body

        Ties on create_date are broken by id in the same direction, so the
        ascending and descending orders are exact reverses of each other.

        Raises:
            ValidationError: sort_by is not a SortBy value
        """
        try:
            sort_by = SortBy(sort_by)
        except ValueError as e:
            raise ValidationError(
                message=f"`{sort_by}` is not a valid value for sort",
                field="sort",
                context={"allowed": [option.value for option in SortBy]},
            ) from e

        if limit <= 0:
            return []
        skip = max(skip, 0)
        terms = (text or "").strip()

        async def work(session: AsyncSession) -> List[SnippetListItem]:
            query = select(Snippet.id, Snippet.title, Snippet.create_date)
            if terms:
                query = query.where(self._text_match(session, terms))

            direction = asc if sort_by is SortBy.CREATE_DATE_ASC else desc
            query = (
                query.order_by(direction(Snippet.create_date), direction(Snippet.id))
                .offset(skip)
                .limit(limit)
            )
            result = await session.execute(query)
            return [_to_list_item(row) for row in result.all()]

        return await self._run("search", work, text=terms, limit=limit, skip=skip)

    @staticmethod
    def _text_match(session: AsyncSession, terms: str):
        if session.get_bind().dialect.name == "postgresql":
            return search_document().bool_op("@@")(
                func.plainto_tsquery(search_config(), terms)
            )
        return and_(
            *(
                or_(
                    Snippet.title.icontains(term, autoescape=True),
                    Snippet.body.icontains(term, autoescape=True),
                )
                for term in terms.split()
            )
        )

    # ── Update / Delete ───────────────────────────────────────────────────

    async def update(
        self,
        snippet_id: str,
        update_key: str,
        title: str,
        body: str,
    ) -> SnippetResponse:
        """
        Overwrite title and body of an existing snippet.

        The caller has already passed AccessGuard.authorize(). The row is
        addressed by id and update key together; id, update_key and
        create_date are never modified.

        Raises:
            NotFoundError: no snippet has this id, or the stored key differs
                from update_key. Both cases raise the same error.
            PersistenceError: the write failed or timed out
        """

        async def work(session: AsyncSession) -> SnippetResponse:
            result = await session.execute(
                select(Snippet).where(
                    Snippet.id == snippet_id,
                    Snippet.update_key == update_key,
                )
            )
            snippet = result.scalar_one_or_none()
            if snippet is None:
                raise NotFoundError(resource="snippet", resource_id=snippet_id)

            snippet.title = title
            snippet.body = body
            await session.flush()
            return _to_response(snippet)

        updated = await self._run("update", work, snippet_id=snippet_id)
        logger.info("Snippet %s updated", snippet_id)
        return updated

    async def delete(self, snippet_id: str, update_key: str) -> None:
        """
        Permanently remove a snippet. No tombstone is kept.

        Raises:
            NotFoundError: no snippet has this id, or the stored key differs
                from update_key. Both cases raise the same error.
        """

        async def work(session: AsyncSession) -> None:
            result = await session.execute(
                delete(Snippet).where(
                    Snippet.id == snippet_id,
                    Snippet.update_key == update_key,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="snippet", resource_id=snippet_id)

        await self._run("delete", work, snippet_id=snippet_id)
        logger.info("Snippet %s deleted", snippet_id)

    # ── Schema / Index Lifecycle ──────────────────────────────────────────

    async def ensure_indexes(self) -> None:
        """
        Create the snippets table and its indexes if they are missing.

        Safe to run at every process start: create_all() skips existing
        tables and every index statement is CREATE INDEX IF NOT EXISTS.
        The GIN text index is PostgreSQL-only.
        """

        async def work(session: AsyncSession) -> str:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(sql_text(CREATE_DATE_INDEX_DDL))
            if conn.dialect.name == "postgresql":
                await conn.execute(sql_text(TEXT_INDEX_DDL))
            return conn.dialect.name

        dialect = await self._run("ensure_indexes", work)
        logger.info("Snippet indexes ensured (dialect=%s)", dialect)
