# Services package init
"""
mdsnips: Services Layer
=========================

What:  The snippet core, sitting between routes (HTTP) and the database.

Service Inventory:
    - SnippetRepository / UpdateAuthorizer (abstract): capability interfaces
    - SnippetStore: SQLAlchemy-backed CRUD + search + index lifecycle
    - AccessGuard: update-key check, fails closed
    - identifiers: snippet id / update key derivation
"""
