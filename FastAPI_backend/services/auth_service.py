"""Shared-secret check for the ingestion endpoints."""

import hmac
import structlog
from fastapi import Request, Security
from fastapi.security import APIKeyHeader, APIKeyQuery
from typing import Optional

from config import settings
from services.exceptions import AuthError

logger = structlog.get_logger(__name__)

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


def require_api_key(
    request: Request,
    header_key: Optional[str] = Security(api_key_header),
    query_key: Optional[str] = Security(api_key_query),
) -> str:
    """Accept the key from the ``x-api-key`` header or the ``api_key`` query parameter.

    Raises:
        AuthError: If the key is missing or does not match.
    """
    api_key = header_key or query_key
    if not api_key or not hmac.compare_digest(api_key.encode(), settings.SAFEDRIVE_API_KEY.encode()):
        logger.warning(
            "Invalid API key",
            path=request.url.path,
            method=request.method,
            client=request.client.host if request.client else None,
            provided=api_key is not None,
        )
        raise AuthError("Unauthorized: Invalid API Key")
    return api_key
