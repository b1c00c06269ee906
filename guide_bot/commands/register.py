"""Registration of slash commands for the bot."""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from ..authoring import Selection
from ..core.classes import matching_classes
from ..core.models import ActivityType, Spec
from ..data.settings import MAX_ROLES
from ..errors import GuideError
from ..permissions import Actor
from ..services import GuideServices
from ..ui.views import render_outcome, reply, send_error, show_guide

TYPE_CHOICES = [
    app_commands.Choice(name="PvP", value=ActivityType.PVP.value),
    app_commands.Choice(name="PvE", value=ActivityType.PVE.value),
]
SPEC_CHOICES = [
    app_commands.Choice(name="Succession", value=Spec.SUCCESSION.value),
    app_commands.Choice(name="Awakening / Ascension", value=Spec.AWAKENING.value),
]


def _role_list(role_ids: list[str]) -> str:
    return "\n".join(f"• <@&{r}>" for r in role_ids) or "• (none)"


def register_commands(bot: commands.Bot, services: GuideServices) -> None:
    """Register guide and setup commands on ``bot.tree``."""
    tree = bot.tree

    async def class_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return [
            app_commands.Choice(name=name, value=name)
            for name in matching_classes(current)
        ]

    # ------------------------------------------------------------------
    # Guides
    # ------------------------------------------------------------------
    @tree.command(name="guide-create", description="Create a class guide")
    @app_commands.guild_only()
    @app_commands.rename(activity_type="type", activity_class="class")
    @app_commands.describe(
        activity_type="PvP or PvE",
        activity_class="Class the guide is for",
        spec="Succession or Awakening (defaults to the class's main spec)",
    )
    @app_commands.choices(activity_type=TYPE_CHOICES, spec=SPEC_CHOICES)
    @app_commands.autocomplete(activity_class=class_autocomplete)
    async def guide_create(
        interaction: discord.Interaction,
        activity_type: app_commands.Choice[str],
        activity_class: str,
        spec: app_commands.Choice[str] | None = None,
    ) -> None:
        actor = Actor.from_interaction(interaction)
        try:
            prompt = services.authoring.create(
                actor,
                activity_class,
                ActivityType(activity_type.value),
                Spec(spec.value) if spec else None,
            )
        except GuideError as exc:
            await send_error(interaction, exc)
            return
        await render_outcome(interaction, services, prompt)

    @tree.command(name="guide-edit", description="Edit a class guide")
    @app_commands.guild_only()
    @app_commands.rename(activity_type="type", activity_class="class")
    @app_commands.describe(
        activity_type="PvP or PvE", activity_class="Class the guide is for"
    )
    @app_commands.choices(activity_type=TYPE_CHOICES)
    @app_commands.autocomplete(activity_class=class_autocomplete)
    async def guide_edit(
        interaction: discord.Interaction,
        activity_type: app_commands.Choice[str],
        activity_class: str,
    ) -> None:
        actor = Actor.from_interaction(interaction)
        try:
            outcome = services.authoring.edit(
                actor, activity_class, ActivityType(activity_type.value)
            )
        except GuideError as exc:
            await send_error(interaction, exc)
            return
        await render_outcome(interaction, services, outcome)

    @tree.command(name="guide-delete", description="Delete a class guide")
    @app_commands.guild_only()
    @app_commands.rename(activity_type="type", activity_class="class")
    @app_commands.describe(
        activity_type="PvP or PvE", activity_class="Class the guide is for"
    )
    @app_commands.choices(activity_type=TYPE_CHOICES)
    @app_commands.autocomplete(activity_class=class_autocomplete)
    async def guide_delete(
        interaction: discord.Interaction,
        activity_type: app_commands.Choice[str],
        activity_class: str,
    ) -> None:
        actor = Actor.from_interaction(interaction)
        try:
            outcome = services.authoring.delete(
                actor, activity_class, ActivityType(activity_type.value)
            )
        except GuideError as exc:
            await send_error(interaction, exc)
            return
        await render_outcome(interaction, services, outcome)

    @tree.command(name="guide", description="View class guides")
    @app_commands.rename(activity_type="type", activity_class="class")
    @app_commands.describe(
        activity_type="PvP or PvE",
        activity_class="Class to look up",
        spec="Only show guides for this spec",
    )
    @app_commands.choices(activity_type=TYPE_CHOICES, spec=SPEC_CHOICES)
    @app_commands.autocomplete(activity_class=class_autocomplete)
    async def guide_view(
        interaction: discord.Interaction,
        activity_type: app_commands.Choice[str],
        activity_class: str,
        spec: app_commands.Choice[str] | None = None,
    ) -> None:
        kind = ActivityType(activity_type.value)
        try:
            documents = services.authoring.view(
                activity_class, kind, Spec(spec.value) if spec else None
            )
        except GuideError as exc:
            await send_error(interaction, exc)
            return
        if len(documents) == 1:
            await show_guide(interaction, services, documents[0])
            return
        await render_outcome(
            interaction,
            services,
            Selection("view", documents[0].activity_class, kind, tuple(documents)),
        )

    # ------------------------------------------------------------------
    # Server setup
    # ------------------------------------------------------------------
    setup = app_commands.Group(
        name="guides-setup",
        description="Configure who can create and manage guides",
        default_permissions=discord.Permissions(administrator=True),
        guild_only=True,
    )

    async def _require_admin(interaction: discord.Interaction) -> bool:
        perms = getattr(interaction.user, "guild_permissions", None)
        if getattr(perms, "administrator", False):
            return True
        await reply(
            interaction, "You need Administrator permission to configure guides."
        )
        return False

    @setup.command(name="roles", description="Add Guide Creator and Guide Admin roles")
    @app_commands.describe(
        creator_role_1="Role allowed to create guides",
        creator_role_2="Role allowed to create guides",
        creator_role_3="Role allowed to create guides",
        admin_role_1="Role allowed to manage this server's guides",
        admin_role_2="Role allowed to manage this server's guides",
        admin_role_3="Role allowed to manage this server's guides",
    )
    async def setup_roles(
        interaction: discord.Interaction,
        creator_role_1: discord.Role | None = None,
        creator_role_2: discord.Role | None = None,
        creator_role_3: discord.Role | None = None,
        admin_role_1: discord.Role | None = None,
        admin_role_2: discord.Role | None = None,
        admin_role_3: discord.Role | None = None,
    ) -> None:
        if not await _require_admin(interaction):
            return
        creators = [
            str(r.id) for r in (creator_role_1, creator_role_2, creator_role_3) if r
        ]
        admins = [str(r.id) for r in (admin_role_1, admin_role_2, admin_role_3) if r]
        guild_id = str(interaction.guild.id)
        err = services.server_settings.add_roles(
            guild_id, creators, admins, str(interaction.user.id)
        )
        if err:
            await reply(interaction, err)
            return
        cfg = services.server_settings.get(guild_id)
        await reply(
            interaction,
            "✅ **Guide roles updated**\n\n"
            f"**Guide Creators** ({len(cfg.creator_role_ids)}/{MAX_ROLES}):\n"
            f"{_role_list(cfg.creator_role_ids)}\n\n"
            f"**Guide Admins** ({len(cfg.admin_role_ids)}/{MAX_ROLES}):\n"
            f"{_role_list(cfg.admin_role_ids)}",
        )

    @setup.command(name="remove", description="Remove a configured guide role")
    @app_commands.describe(role="Role to remove from the guide configuration")
    async def setup_remove(interaction: discord.Interaction, role: discord.Role) -> None:
        if not await _require_admin(interaction):
            return
        removed_creators, removed_admins = services.server_settings.remove_roles(
            str(interaction.guild.id), [str(role.id)]
        )
        if not removed_creators and not removed_admins:
            await reply(interaction, f"{role.mention} is not a configured guide role.")
            return
        kinds = []
        if removed_creators:
            kinds.append("Guide Creator")
        if removed_admins:
            kinds.append("Guide Admin")
        await reply(
            interaction, f"Removed {role.mention} from: {', '.join(kinds)}."
        )

    @setup.command(name="view", description="Show the guide configuration")
    async def setup_view(interaction: discord.Interaction) -> None:
        cfg = services.server_settings.get(str(interaction.guild.id))
        embed = discord.Embed(
            title="Guide Configuration",
            color=discord.Color.green() if cfg.setup_complete else discord.Color.orange(),
        )
        embed.add_field(
            name="Status",
            value="Configured" if cfg.setup_complete else "Not configured",
            inline=False,
        )
        embed.add_field(
            name=f"Guide Creators ({len(cfg.creator_role_ids)}/{MAX_ROLES})",
            value=_role_list(cfg.creator_role_ids),
            inline=True,
        )
        embed.add_field(
            name=f"Guide Admins ({len(cfg.admin_role_ids)}/{MAX_ROLES})",
            value=_role_list(cfg.admin_role_ids),
            inline=True,
        )
        if cfg.setup_by:
            embed.set_footer(text=f"Set up by {cfg.setup_by}")
        await reply(interaction, embed=embed)

    @setup.command(name="reset", description="Clear the guide configuration")
    async def setup_reset(interaction: discord.Interaction) -> None:
        if not await _require_admin(interaction):
            return
        services.server_settings.reset(str(interaction.guild.id))
        await reply(
            interaction,
            "Guide configuration reset. Guide creation is disabled until "
            "`/guides-setup roles` is run again.",
        )

    tree.add_command(setup)


__all__ = ["register_commands"]
