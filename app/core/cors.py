from __future__ import annotations

from typing import Any

from app.core.config import settings


def cors_middleware_options() -> dict[str, Any]:
    origins = list(settings.cors_allowed_origins)
    return {
        "allow_origins": origins,
        # Browsers reject credentialed requests against a wildcard origin.
        "allow_credentials": settings.cors_allow_credentials and "*" not in origins,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["*"],
    }
