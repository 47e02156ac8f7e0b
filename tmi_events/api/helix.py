"""Helix-backed IdentityResolver.

Wraps only the ``/users`` endpoint: a channel is the profile of its
broadcaster, so channel and user lookups share one request shape. Results are
kept in a small in-memory LRU. Every failure is reported as a miss; retries
are left to the caller.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any

import aiohttp

from ..constants import (
    HELIX_BASE_URL,
    HELIX_REQUEST_TIMEOUT_SECONDS,
    HELIX_USER_CACHE_SIZE,
)
from ..errors.handling import log_error
from ..logs.logger import logger
from ..models import Channel, User


class HelixIdentityResolver:
    """Resolve logins and ids through the Twitch Helix API.

    Attributes:
        BASE_URL (str): The base URL for Twitch Helix API.

    Example:
        >>> async with aiohttp.ClientSession() as session:
        ...     resolver = HelixIdentityResolver(
        ...         session, access_token="token", client_id="client_id"
        ...     )
        ...     user = await resolver.get_user_by_login("alice")
    """

    BASE_URL = HELIX_BASE_URL

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        access_token: str,
        client_id: str,
        cache_size: int = HELIX_USER_CACHE_SIZE,
        timeout_seconds: float = HELIX_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the resolver.

        Args:
            session: The aiohttp session to use for requests.
            access_token: OAuth access token for the Authorization header.
            client_id: Twitch application client ID.
            cache_size: Maximum number of cached profiles.
            timeout_seconds: Total timeout of one request.

        Raises:
            ValueError: If session or credentials are missing.
        """
        if not session:
            raise ValueError("aiohttp session required")
        if not access_token or not client_id:
            raise ValueError("access_token and client_id are required")
        self._session = session
        self._access_token = access_token
        self._client_id = client_id
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._max_cache_size = cache_size
        self._by_id: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._id_by_login: dict[str, str] = {}

    # ---- IdentityResolver ----
    async def get_user_id_by_login(self, login: str) -> str | None:
        row = await self._lookup("login", login.lower())
        return row["id"] if row else None

    async def get_user(self, user_id: str) -> User | None:
        row = await self._lookup("id", str(user_id))
        return self._to_user(row) if row else None

    async def get_user_by_login(self, login: str) -> User | None:
        row = await self._lookup("login", login.lower())
        return self._to_user(row) if row else None

    async def get_channel(self, channel_id: str) -> Channel | None:
        row = await self._lookup("id", str(channel_id))
        if not row:
            return None
        return Channel(id=row["id"], name=row["login"], display_name=row.get("display_name"))

    # ---- cache ----
    def _cached(self, key: str, value: str) -> dict[str, Any] | None:
        user_id = value if key == "id" else self._id_by_login.get(value)
        if user_id is None or user_id not in self._by_id:
            return None
        self._by_id.move_to_end(user_id)
        return self._by_id[user_id]

    def _remember(self, row: dict[str, Any]) -> None:
        user_id = row["id"]
        if user_id in self._by_id:
            self._by_id.move_to_end(user_id)
        elif len(self._by_id) >= self._max_cache_size:
            _, evicted = self._by_id.popitem(last=False)
            self._id_by_login.pop(evicted["login"], None)
        self._by_id[user_id] = row
        self._id_by_login[row["login"]] = user_id

    def clear_cache(self) -> None:
        self._by_id.clear()
        self._id_by_login.clear()

    # ---- HTTP ----
    async def _lookup(self, key: str, value: str) -> dict[str, Any] | None:
        if not value:
            return None
        cached = self._cached(key, value)
        if cached is not None:
            return cached
        try:
            rows = await self._get_users({key: value})
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            log_error(
                "Helix user lookup failed",
                e,
                context={key: value},
                level=logging.WARNING,
            )
            return None
        row = next((r for r in rows if self._valid_row(r)), None)
        if row is None:
            logger.log_event(
                "helix", "user_not_found", level=logging.DEBUG, key=key, value=value
            )
            return None
        row = {**row, "login": row["login"].lower()}
        self._remember(row)
        return row

    async def _get_users(self, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{self.BASE_URL}/users"
        async with self._session.get(
            url, headers=self._auth_headers(), params=params, timeout=self._timeout
        ) as resp:
            logger.log_event(
                "helix",
                "response",
                level=logging.DEBUG,
                status=resp.status,
                params=params,
            )
            if resp.status != 200:
                return []
            data = await resp.json()
        if not isinstance(data, dict):
            return []
        rows = data.get("data")
        if isinstance(rows, list):
            return [r for r in rows if isinstance(r, dict)]
        return []

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Client-Id": self._client_id,
        }

    @staticmethod
    def _valid_row(row: dict[str, Any]) -> bool:
        return isinstance(row.get("id"), str) and isinstance(row.get("login"), str)

    @staticmethod
    def _to_user(row: dict[str, Any]) -> User:
        return User(id=row["id"], name=row["login"], display_name=row.get("display_name"))
