"""
Authentication.

Acquires the bearer credential used for every Graph call in a run.
"""

from graph_batcher.auth.token import AuthenticationError, acquire_token, acquire_token_sync

__all__ = [
    "AuthenticationError",
    "acquire_token",
    "acquire_token_sync",
]
