# quick_notes/github_api/auth.py
# Description: Credential providers. The sync engine only ever sees a bearer token string.
#
# Imports
import asyncio
import inspect
import os
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional, Union, Awaitable
#
# 3rd-party Libraries
from loguru import logger
#
# Local Imports
from .exceptions import AuthError
from ..Constants import TOKEN_ENV_VARS
#
#######################################################################################################################
#
# Functions:

class TokenProvider(ABC):
    """Source of the bearer token used for every remote request."""

    @abstractmethod
    async def get_token(self) -> str:
        """Returns a non-empty token or raises AuthError."""
        raise NotImplementedError


class StaticTokenProvider(TokenProvider):
    def __init__(self, token: str):
        self._token = token

    async def get_token(self) -> str:
        if not self._token:
            raise AuthError("No access token configured.")
        return self._token


class EnvTokenProvider(TokenProvider):
    """Reads the token from the first set environment variable, checked on every call."""

    def __init__(self, env_vars: Optional[Iterable[str]] = None):
        self.env_vars = tuple(env_vars) if env_vars else TOKEN_ENV_VARS

    async def get_token(self) -> str:
        for name in self.env_vars:
            value = os.environ.get(name, "").strip()
            if value:
                return value
        raise AuthError(f"No access token found in environment ({', '.join(self.env_vars)}).")


class CallableTokenProvider(TokenProvider):
    """
    Wraps an interactive or external credential source.

    `fetch_token` may be a plain function (it can block on user consent, so it is run
    in a worker thread) or a coroutine function. Returning an empty value means the
    user cancelled.
    """

    def __init__(self, fetch_token: Callable[[], Union[str, None, Awaitable[Optional[str]]]]):
        self.fetch_token = fetch_token

    async def get_token(self) -> str:
        try:
            if inspect.iscoroutinefunction(self.fetch_token):
                token = await self.fetch_token()
            else:
                token = await asyncio.to_thread(self.fetch_token)
        except AuthError:
            raise
        except Exception as e:
            logger.warning(f"Credential provider failed: {e}")
            raise AuthError(f"Could not acquire access token: {e}") from e
        if not token:
            raise AuthError("Authentication cancelled")
        return token

#
# End of auth.py
#######################################################################################################################
