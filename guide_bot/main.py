from __future__ import annotations

import asyncio

from dotenv import load_dotenv

from .adapters.discord import DiscordAdapter
from .bot import GuideBot
from .commands.register import register_commands
from .config import load_settings
from .logging_config import setup_logging
from .services import build_services


def main() -> int:
    load_dotenv()
    log = setup_logging()
    settings = load_settings()
    if not settings.token:
        log.error(
            "DISCORD_BOT_TOKEN is not set. "
            "Export it in your environment or a .env file before running."
        )
        return 2
    users = DiscordAdapter(settings.token)
    services = build_services(settings, users)
    bot = GuideBot(services, sync_guild_id=settings.sync_guild_id)
    register_commands(bot, services)
    log.info(
        "Storing guides under %s (%d superuser(s))",
        settings.data_dir,
        len(settings.superuser_ids),
    )

    async def runner():
        try:
            async with bot:
                await bot.start(settings.token)
        except KeyboardInterrupt:
            log.info("Shutting down...")
        finally:
            await users.close()
        return 0

    return asyncio.run(runner())


if __name__ == "__main__":
    raise SystemExit(main())
