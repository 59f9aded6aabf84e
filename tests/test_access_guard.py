"""
mdsnips: Access Guard Tests
=============================

What we test:
    ✅ The key returned at creation authorizes its snippet
    ✅ Wrong key and unknown id are both denied
    ✅ A key for one snippet does not open another
    ✅ Database errors and timeouts deny instead of raising
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from mdsnips.services.access_guard import AccessGuard


class TestAuthorize:

    @pytest.mark.asyncio
    async def test_correct_key_is_authorized(self, snippet_store, access_guard):
        created = await snippet_store.create(title="Hello", body="# Hi")

        assert await access_guard.authorize(created.id, created.update_key) is True

    @pytest.mark.asyncio
    async def test_wrong_key_is_denied(self, snippet_store, access_guard):
        created = await snippet_store.create(title="Hello", body="# Hi")

        assert await access_guard.authorize(created.id, "0000") is False
        assert await access_guard.authorize(created.id, "") is False

    @pytest.mark.asyncio
    async def test_unknown_id_is_denied(self, access_guard):
        assert await access_guard.authorize("missing", "anything") is False

    @pytest.mark.asyncio
    async def test_key_does_not_cross_snippets(self, snippet_store, access_guard):
        first = await snippet_store.create(title="First", body="one")
        second = await snippet_store.create(title="Second", body="two")

        assert await access_guard.authorize(second.id, first.update_key) is False


class TestFailClosed:

    @pytest.mark.asyncio
    async def test_database_error_denies(self, failing_session_factory):
        factory, session = failing_session_factory
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        guard = AccessGuard(factory)

        assert await guard.authorize("abc", "key") is False

    @pytest.mark.asyncio
    async def test_timeout_denies(self, failing_session_factory):
        factory, session = failing_session_factory

        async def stall(*args, **kwargs):
            await asyncio.sleep(5)

        session.execute.side_effect = stall
        guard = AccessGuard(factory, operation_timeout=0.05)

        assert await guard.authorize("abc", "key") is False
