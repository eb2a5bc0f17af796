"""
FastAPI REST API Layer for ipa-server.

    - routes.py: HTTP endpoints (/, /health, /metrics, preflight)
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection and rate limit admission
    - cors.py: Cross-origin response headers
"""
