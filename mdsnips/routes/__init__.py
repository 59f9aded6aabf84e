# Routes package init
"""
mdsnips: API Routes Package
=============================

Route Inventory:
    - snippets.py: /md endpoints (create, update, search, get, list, delete)
    - health.py:   GET /health

Routes stay thin: they validate input, call the snippet store or the access
guard, and let the global exception handlers format errors.
"""
