"""
mdsnips: Markdown Snippet Service
===================================

Stores short markdown snippets and serves them over an HTTP API. An
anonymous creator receives an update key once, at creation, and possession
of that key is what authorizes later edits and deletes.

    ┌─────────────────────────────────────┐
    │  Middleware (rate limit, auth, log) │
    ├─────────────────────────────────────┤
    │           Routes (/md)              │
    ├─────────────────────────────────────┤
    │  SnippetStore  │  AccessGuard       │
    ├─────────────────────────────────────┤
    │  Async SQLAlchemy (PostgreSQL)      │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
