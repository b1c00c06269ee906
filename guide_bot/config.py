import os
from dataclasses import dataclass, field


def _split_ids(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    token: str
    data_dir: str = "guide_data"
    # User IDs that bypass every permission check
    superuser_ids: tuple[str, ...] = field(default_factory=tuple)
    session_ttl_minutes: int = 30
    # Sync commands to a single guild for faster propagation while testing
    sync_guild_id: str | None = None

    @property
    def guides_path(self) -> str:
        return os.path.join(self.data_dir, "guides")

    @property
    def server_settings_path(self) -> str:
        return os.path.join(self.data_dir, "server_settings.json")


def load_settings() -> Settings:
    token = os.getenv("DISCORD_BOT_TOKEN", "").strip()
    ttl = os.getenv("GUIDE_SESSION_TTL_MINUTES", "").strip()
    return Settings(
        token=token or "",
        data_dir=os.getenv("GUIDE_DATA_DIR", "").strip() or "guide_data",
        superuser_ids=_split_ids(os.getenv("GUIDE_SUPERUSER_IDS", "")),
        session_ttl_minutes=int(ttl) if ttl else 30,
        sync_guild_id=os.getenv("GUIDE_SYNC_GUILD_ID", "").strip() or None,
    )
