"""Discord adapter implementing :class:`~guide_bot.adapters.base.UserDirectory`.

Proxy submissions need to check that a typed-in Discord ID belongs to a real
user.  The adapter asks Discord's HTTP API directly through :mod:`httpx`,
which keeps it usable (and testable) without a gateway connection.
"""

from __future__ import annotations

from typing import Any

import httpx

from .base import ResolvedUser, UserDirectory


class DiscordAdapter(UserDirectory):
    """Adapter that sends requests directly to the Discord HTTP API."""

    api_base = "https://discord.com/api/v10"

    def __init__(self, token: str, client: httpx.AsyncClient | None = None) -> None:
        """Store authentication ``token`` and optional HTTP ``client``."""
        self.token = token
        self.client = client or httpx.AsyncClient(timeout=10.0)

    # ------------------------------------------------------------------
    async def fetch_user(self, user_id: str) -> ResolvedUser | None:
        """Look up a user by snowflake.

        Parameters
        ----------
        user_id:
            Discord user ID as typed by the operator.

        Returns ``None`` for IDs that are not numeric or that Discord does
        not know.  Other HTTP errors are raised.

        """
        user_id = user_id.strip()
        if not user_id.isdigit():
            return None
        url = f"{self.api_base}/users/{user_id}"
        headers = {"Authorization": f"Bot {self.token}"}
        response = await self.client.get(url, headers=headers)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        name = data.get("global_name") or data.get("username") or user_id
        return ResolvedUser(user_id=str(data["id"]), display_name=name)

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
