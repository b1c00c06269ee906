"""Discord bot implementation for the class guide workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands, tasks

from .logging_config import setup_logging

if TYPE_CHECKING:
    from .services import GuideServices


class GuideBot(commands.Bot):
    """Small ``discord.py`` based bot hosting the guide commands."""

    reap_task: tasks.Loop | None

    def __init__(
        self,
        services: GuideServices | None = None,
        sync_guild_id: str | None = None,
        **kwargs: Any,
    ) -> None:  # pragma: no cover - trivial
        """Create the bot around already wired ``services``.

        ``sync_guild_id`` limits the command sync to one guild, which
        propagates immediately while testing new commands.
        """
        intents = kwargs.pop("intents", None) or discord.Intents.default()
        # Guides arrive through modals, never through message text.
        intents.message_content = False
        super().__init__(
            command_prefix=kwargs.pop("command_prefix", "!"),
            intents=intents,
        )
        self.log = setup_logging()
        self.services = services
        self.sync_guild_id = sync_guild_id
        self.reap_task = None

    async def setup_hook(self) -> None:
        """Start the session reaper and sync slash commands."""
        self.reap_task = tasks.loop(seconds=60.0, reconnect=True)(_reap_sessions)
        self.reap_task.start(self)

        # The test-suite stubs ``discord`` without an app command tree.
        tree = getattr(self, "tree", None)
        if tree is not None:  # pragma: no cover - exercised in integration
            if self.sync_guild_id:
                guild = discord.Object(id=int(self.sync_guild_id))
                tree.copy_global_to(guild=guild)
                await tree.sync(guild=guild)
            else:
                await tree.sync()

        await super().setup_hook()

    async def on_ready(self) -> None:  # pragma: no cover - requires discord
        """Log a short confirmation once the bot connected successfully."""
        await self.change_presence(activity=discord.Game(name="/guide"))
        self.log.info(
            "Logged in as %s (%s)",
            self.user,
            self.user.id if self.user else "?",
        )


async def _reap_sessions(bot: GuideBot) -> None:
    """Background task dropping authoring sessions past their TTL."""
    if bot.services is None:
        return
    bot.services.sessions.reap()


__all__ = ["GuideBot", "_reap_sessions"]
