"""Base adapter interface for platform specific implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ResolvedUser:
    user_id: str
    display_name: str


class UserDirectory(ABC):
    """Looks up platform users by identifier."""

    @abstractmethod
    async def fetch_user(self, user_id: str) -> ResolvedUser | None:
        """Return the user with ``user_id`` or ``None`` if there is none."""
