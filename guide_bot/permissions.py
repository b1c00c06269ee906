"""Who may author, list and modify guides.

Rules, most specific first:

* superusers (a fixed allow-list from configuration) may do anything;
* authors always control their own guides, on any server;
* guide admins of a server may modify guides that originated there;
* authoring requires a configured creator or admin role, and only once the
  server has completed setup.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .core.models import GuideDocument
from .data.settings import ServerSettingsStore
from .errors import NotConfigured, PermissionDenied


@dataclass(frozen=True)
class Actor:
    """The user performing an action, in the guild they are acting from."""

    user_id: str
    guild_id: str
    display_name: str = ""
    guild_name: str = ""
    role_ids: frozenset[str] = field(default_factory=frozenset)
    is_administrator: bool = False

    @classmethod
    def from_interaction(cls, interaction: Any) -> Actor:
        user = interaction.user
        guild = interaction.guild
        perms = getattr(user, "guild_permissions", None)
        return cls(
            user_id=str(user.id),
            guild_id=str(guild.id) if guild else "",
            display_name=getattr(user, "display_name", None) or str(user),
            guild_name=getattr(guild, "name", "") or "",
            role_ids=frozenset(str(r.id) for r in getattr(user, "roles", ())),
            is_administrator=bool(getattr(perms, "administrator", False)),
        )


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None


class PermissionEngine:
    def __init__(
        self, settings: ServerSettingsStore, superuser_ids: Iterable[str] = ()
    ) -> None:
        self.settings = settings
        self.superuser_ids = frozenset(str(u) for u in superuser_ids)

    def is_superuser(self, user_id: str | None) -> bool:
        return user_id is not None and str(user_id) in self.superuser_ids

    def _has_any(self, actor: Actor, role_ids: Iterable[str]) -> bool:
        return not actor.role_ids.isdisjoint(role_ids)

    def is_guide_admin(self, actor: Actor) -> bool:
        cfg = self.settings.get(actor.guild_id)
        return self._has_any(actor, cfg.admin_role_ids)

    # ------------------------------------------------------------------
    def can_author(self, actor: Actor) -> bool:
        if self.is_superuser(actor.user_id):
            return True
        cfg = self.settings.get(actor.guild_id)
        if not cfg.setup_complete:
            return False
        return self._has_any(actor, cfg.creator_role_ids + cfg.admin_role_ids)

    def authoring_denial(self, actor: Actor) -> NotConfigured | PermissionDenied:
        """The error explaining why :meth:`can_author` is false."""
        cfg = self.settings.get(actor.guild_id)
        if not cfg.setup_complete:
            return NotConfigured()
        roles = cfg.creator_role_ids + cfg.admin_role_ids
        listed = "\n".join(f"• <@&{r}>" for r in roles) or "• (none configured)"
        return PermissionDenied(
            "**Permission Denied**\n\nYou need one of the following roles to "
            f"submit guides:\n{listed}\n\n"
            "Contact a server admin to get the appropriate role."
        )

    def can_manage_all(self, actor: Actor) -> bool:
        """Whether ``actor`` chooses among every guide rather than only theirs."""
        if self.is_superuser(actor.user_id) or actor.is_administrator:
            return True
        return self.is_guide_admin(actor)

    def can_modify(self, actor: Actor, document: GuideDocument) -> Decision:
        if actor.user_id == document.author_id:
            return Decision(True)
        if self.is_superuser(actor.user_id):
            return Decision(True)
        if self.is_guide_admin(actor):
            if document.origin_guild_id and document.origin_guild_id == actor.guild_id:
                return Decision(True)
            origin = document.origin_guild_name or document.origin_guild_id or "unknown"
            return Decision(
                False,
                "This guide was created in a different server "
                f"(**{origin}**). Guide admins can only modify guides "
                "created in their own server.",
            )
        return Decision(False, "You can only modify your own guides.")

    def require_modify(self, actor: Actor, document: GuideDocument) -> None:
        decision = self.can_modify(actor, document)
        if not decision.allowed:
            raise PermissionDenied(decision.reason)
