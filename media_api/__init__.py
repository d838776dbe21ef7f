"""FastAPI application package for the media records service.

Exposes the application factory. Record logic lives in `media_api/logic/`,
payload models in `media_api/models/` and route handlers in
`media_api/routes/`.
"""

from __future__ import annotations

from media_api.main import create_app

__all__ = ["create_app"]
