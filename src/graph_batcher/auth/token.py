"""
Token acquisition for the OAuth2 client-credentials flow.

Uses MSAL's ConfidentialClientApplication against the configured authority.
"""

import asyncio
from typing import Optional

import msal
import structlog

from graph_batcher.config import GraphBatcherConfig

logger = structlog.get_logger(__name__)


class AuthenticationError(Exception):
    """Raised when a bearer token cannot be acquired."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


def acquire_token_sync(config: GraphBatcherConfig) -> str:
    """
    Acquire an app-only access token.

    Args:
        config: Batcher configuration with client id, secret, authority, tenant and scope

    Returns:
        The access token

    Raises:
        AuthenticationError: If MSAL does not return a token
    """
    try:
        app = msal.ConfidentialClientApplication(
            config.client_id,
            authority=config.token_authority,
            client_credential=config.client_secret,
        )
        result = app.acquire_token_for_client(scopes=[config.scope])
    except Exception as e:
        # MSAL raises ValueError for a bad authority and requests errors for the network
        raise AuthenticationError(f"Token request failed: {e}") from e

    if not result or "access_token" not in result:
        result = result or {}
        error = result.get("error")
        description = result.get("error_description") or "no access token returned"
        logger.error("token_acquisition_failed", error=error, authority=config.token_authority)
        raise AuthenticationError(f"Token request failed: {description}", error_code=error)

    logger.info(
        "token_acquired",
        authority=config.token_authority,
        expires_in=result.get("expires_in"),
    )
    return result["access_token"]


async def acquire_token(config: GraphBatcherConfig) -> str:
    """Acquire an access token without blocking the event loop."""
    return await asyncio.to_thread(acquire_token_sync, config)
