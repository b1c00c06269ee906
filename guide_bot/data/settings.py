"""Persistence layer for per-server guide configuration."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable

from ..core.models import ServerConfig, utcnow

MAX_ROLES = 3


class ServerSettingsStore:
    """Simple JSON based persistence layer for :class:`ServerConfig`."""

    def __init__(self, path: str = "guide_data/server_settings.json") -> None:
        self.path = path
        self.configs: dict[str, ServerConfig] = {}
        self._load()

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def _load(self) -> None:
        """Load store contents from ``self.path`` if it exists."""
        if not os.path.exists(self.path):
            return

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)

        self.configs = {
            gid: ServerConfig.model_validate(cdata)
            for gid, cdata in data.get("guilds", {}).items()
        }

    def save(self) -> None:
        """Persist the current state atomically."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        data = {
            "guilds": {
                gid: cfg.model_dump(mode="json") for gid, cfg in self.configs.items()
            }
        }
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    # ------------------------------------------------------------------
    # Configuration operations
    # ------------------------------------------------------------------
    def get(self, guild_id: str) -> ServerConfig:
        """Return the guild's configuration, creating empty defaults."""
        cfg = self.configs.get(guild_id)
        if cfg is None:
            cfg = ServerConfig(guild_id=guild_id)
            self.configs[guild_id] = cfg
            self.save()
        return cfg

    def add_roles(
        self,
        guild_id: str,
        creator_role_ids: Iterable[str],
        admin_role_ids: Iterable[str],
        actor_id: str,
    ) -> str | None:
        """Add creator/admin roles.  Returns an error message on failure.

        Nothing is changed if either list would exceed :data:`MAX_ROLES`.
        The first successful addition marks setup as complete.
        """
        creators = list(dict.fromkeys(creator_role_ids))
        admins = list(dict.fromkeys(admin_role_ids))
        if not creators and not admins:
            return "Please specify at least one role to configure."

        cfg = self.get(guild_id)
        new_creators = list(dict.fromkeys(cfg.creator_role_ids + creators))
        new_admins = list(dict.fromkeys(cfg.admin_role_ids + admins))
        if len(new_creators) > MAX_ROLES:
            return (
                f"Cannot add roles. Maximum of {MAX_ROLES} Guide Creator roles "
                f"allowed. You currently have {len(cfg.creator_role_ids)} "
                "role(s) configured. Remove some roles first with "
                "`/guides-setup remove`."
            )
        if len(new_admins) > MAX_ROLES:
            return (
                f"Cannot add roles. Maximum of {MAX_ROLES} Guide Admin roles "
                f"allowed. You currently have {len(cfg.admin_role_ids)} "
                "role(s) configured. Remove some roles first with "
                "`/guides-setup remove`."
            )

        cfg.creator_role_ids = new_creators
        cfg.admin_role_ids = new_admins
        if not cfg.setup_complete:
            cfg.setup_complete = True
            cfg.setup_by = actor_id
            cfg.setup_at = utcnow()
        self.save()
        return None

    def remove_roles(
        self, guild_id: str, role_ids: Iterable[str]
    ) -> tuple[list[str], list[str]]:
        """Remove roles from both lists.

        Returns ``(removed_creator_ids, removed_admin_ids)``.
        """
        to_remove = set(role_ids)
        cfg = self.get(guild_id)
        removed_creators = [r for r in cfg.creator_role_ids if r in to_remove]
        removed_admins = [r for r in cfg.admin_role_ids if r in to_remove]
        cfg.creator_role_ids = [r for r in cfg.creator_role_ids if r not in to_remove]
        cfg.admin_role_ids = [r for r in cfg.admin_role_ids if r not in to_remove]
        self.save()
        return removed_creators, removed_admins

    def reset(self, guild_id: str) -> ServerConfig:
        cfg = ServerConfig(guild_id=guild_id)
        self.configs[guild_id] = cfg
        self.save()
        return cfg
