"""convoflow adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates request handling to the core layer.

Scope:
- `http_api`: FastAPI application (`POST /api/chat`, `GET /health`).
- `cli`: interactive terminal loop.
"""
