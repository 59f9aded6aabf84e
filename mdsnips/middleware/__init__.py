# Middleware package init
"""
mdsnips: Middleware Package
=============================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Basic Auth] → [CORS] → Route

    1. Rate Limit first: abusive writes are rejected before any processing
    2. Request ID: correlation id for the logs and the error bodies
    3. Logging: access line with status and duration
    4. Basic Auth (only when MDSNIPS_USER/MDSNIPS_PASS are set)
    5. CORS: FastAPI's CORSMiddleware (handles preflight)
"""
