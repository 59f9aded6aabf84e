"""
mdsnips: Access Guard
=======================

What:  Answers "does this caller hold the update key for this snippet?"
How:   Selects only the stored update_key for the id (title and body are
       never loaded) and compares it with the presented key using
       hmac.compare_digest.

Fail-closed contract:
    authorize() returns False, and never raises, when
      - the key does not match,
      - no snippet has this id,
      - the database times out or is unreachable.
    The first two cases are indistinguishable to the caller. Failures are
    logged at WARNING; keys are never logged.
"""

import asyncio
import hmac
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mdsnips.models.snippet import Snippet
from mdsnips.services.base import UpdateAuthorizer

logger = logging.getLogger(__name__)


class AccessGuard(UpdateAuthorizer):
    """Update-key check against the snippets table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        operation_timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._operation_timeout = operation_timeout

    async def _stored_key(self, snippet_id: str):
        async with self._session_factory() as session:
            result = await session.execute(
                select(Snippet.update_key).where(Snippet.id == snippet_id)
            )
            return result.scalar_one_or_none()

    async def authorize(self, snippet_id: str, presented_key: str) -> bool:
        try:
            stored_key = await asyncio.wait_for(
                self._stored_key(snippet_id),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Update key lookup for %s timed out after %.1fs; denying",
                snippet_id,
                self._operation_timeout,
            )
            return False
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                "Update key lookup for %s failed (%s); denying",
                snippet_id,
                type(e).__name__,
            )
            return False

        if stored_key is None or presented_key is None:
            return False
        return hmac.compare_digest(
            stored_key.encode("utf-8"),
            presented_key.encode("utf-8"),
        )
