"""
mdsnips: FastAPI Dependencies
===============================

What:  Resolves the store and the guard built by the application lifespan.
How:   main.lifespan places one SnippetStore and one AccessGuard on
       app.state; routes receive them through Depends(). Tests replace them
       with app.dependency_overrides or by setting app.state directly.
"""

from fastapi import Request

from mdsnips.services.base import SnippetRepository, UpdateAuthorizer


def get_snippet_store(request: Request) -> SnippetRepository:
    return request.app.state.snippet_store


def get_access_guard(request: Request) -> UpdateAuthorizer:
    return request.app.state.access_guard
