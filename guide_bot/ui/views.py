from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import discord

from ..authoring import DeleteConfirmation, Deleted, Selection
from ..core.classes import format_spec, guide_title
from ..core.models import COMMON_FIELDS, ActivityType, GuideDocument
from ..core.steps import STEPS, all_fields, get_step
from ..core.tokens import StepToken, TargetToken, select_id
from ..errors import GuideError, StorageFailure, TargetNotFound
from ..permissions import Actor
from ..workflow import Cancelled, Finalized, StepComplete, StepPrompt
from .modals import StepModal
from .text import bullets, chunk_text, clip, is_url

if TYPE_CHECKING:
    from ..services import GuideServices

log = logging.getLogger(__name__)

# Interaction tokens stay valid for 15 minutes.
VIEW_TIMEOUT = 900.0
MAX_OPTIONS = 25


# ----------------------------------------------------------------------
# Replies
# ----------------------------------------------------------------------
async def reply(
    interaction: discord.Interaction, content: str | None = None, **kwargs: Any
) -> None:
    """Respond to ``interaction``, following up if it was already answered."""
    kwargs.setdefault("ephemeral", True)
    is_done = getattr(interaction.response, "is_done", None)
    if is_done is not None and is_done():
        await interaction.followup.send(content, **kwargs)
    else:
        await interaction.response.send_message(content, **kwargs)


async def send_error(interaction: discord.Interaction, error: GuideError) -> None:
    if isinstance(error, StorageFailure):
        log.error(
            "Storage failure while handling interaction from user %s",
            getattr(interaction.user, "id", "?"),
        )
    await reply(interaction, error.message)


# ----------------------------------------------------------------------
# Embeds
# ----------------------------------------------------------------------
def _add_field(embed: discord.Embed, name: str, value: str, inline: bool = False) -> None:
    for index, chunk in enumerate(chunk_text(value)):
        embed.add_field(name=name if index == 0 else "\u200b", value=chunk, inline=inline)


def _is_image(name: str) -> bool:
    return name.endswith("_image") or name.startswith("crystals")


def guide_embeds(document: GuideDocument) -> list[discord.Embed]:
    """The guide as a main embed followed by one embed per linked image."""
    color = (
        discord.Color.red()
        if document.activity_type is ActivityType.PVP
        else discord.Color.green()
    )
    main = discord.Embed(
        title=guide_title(
            document.activity_class, document.activity_type, document.spec
        ),
        description=clip(document.description or "No description provided", 4096),
        color=color,
        timestamp=document.updated_at or document.created_at,
    )
    main.add_field(name="Pros", value=clip(bullets(document.pros), 1024), inline=True)
    main.add_field(name="Cons", value=clip(bullets(document.cons), 1024), inline=True)

    images: list[discord.Embed] = []
    for field in all_fields(document.activity_type):
        if field.name in COMMON_FIELDS:
            continue
        value = document.details.get(field.name)
        if not value:
            continue
        label = field.label.replace(" (optional)", "").replace(" (one per line)", "")
        if isinstance(value, list):
            _add_field(main, label, bullets(value))
        elif is_url(value) and _is_image(field.name):
            image = discord.Embed(title=label, color=color)
            image.set_image(url=value)
            images.append(image)
        elif is_url(value):
            main.add_field(name=label, value=f"[Watch]({value})", inline=True)
        else:
            _add_field(main, label, value)

    author = document.author_display_name or f"<{document.author_id}>"
    footer = f"Guide by {author}"
    if document.origin_guild_name:
        footer += f" • {document.origin_guild_name}"
    main.set_footer(text=footer)
    # A message carries at most ten embeds.
    return [main, *images][:10]


# ----------------------------------------------------------------------
# Messages
# ----------------------------------------------------------------------
def step_complete_message(outcome: StepComplete) -> str:
    lines = [
        f"✅ **Step {outcome.step}/{outcome.total} saved: {outcome.step_name}**",
    ]
    if outcome.submitted_for:
        lines.append(f"Submitting on behalf of <@{outcome.submitted_for}>.")
    fields = get_step(outcome.continue_token.activity_type, outcome.step).fields
    for field in fields:
        value = outcome.preview.get(field.name)
        if not value:
            continue
        text = ", ".join(value) if isinstance(value, list) else str(value)
        lines.append(f"**{field.label}:** {clip(text, 100)}")
    lines.append("")
    lines.append(f"Next: **{outcome.next_step_name}**")
    return "\n".join(lines)


def finalized_message(outcome: Finalized) -> str:
    document = outcome.document
    title = guide_title(document.activity_class, document.activity_type, document.spec)
    verb = "created" if outcome.created else "updated"
    message = f"✅ **{title}** guide {verb} successfully!"
    if outcome.submitted_for:
        message += f"\nSubmitted on behalf of <@{outcome.submitted_for}>."
    return message


def _option_label(document: GuideDocument) -> str:
    spec = format_spec(document.activity_class, document.spec) or "Ascension"
    return clip(f"{document.author_display_name or document.author_id} ({spec})", 100)


# ----------------------------------------------------------------------
# Views
# ----------------------------------------------------------------------
def _button(
    label: str,
    style: discord.ButtonStyle,
    custom_id: str,
    callback: Any,
) -> discord.ui.Button:
    button = discord.ui.Button(label=label, style=style, custom_id=custom_id)
    button.callback = callback
    return button


class StepChoiceView(discord.ui.View):
    """Continue, go back and edit, or cancel after a saved step."""

    def __init__(self, services: GuideServices, outcome: StepComplete) -> None:
        super().__init__(timeout=VIEW_TIMEOUT)
        self.services = services
        for label, style, token in (
            ("Continue", discord.ButtonStyle.primary, outcome.continue_token),
            ("Go Back & Edit", discord.ButtonStyle.secondary, outcome.redo_token),
            ("Cancel", discord.ButtonStyle.danger, outcome.cancel_token),
        ):

            async def handler(
                inter: discord.Interaction, token: StepToken = token
            ) -> None:
                await handle_step_action(self.services, inter, token)

            self.add_item(_button(label, style, token.encode(), handler))


class SelectionView(discord.ui.View):
    def __init__(self, services: GuideServices, selection: Selection) -> None:
        super().__init__(timeout=VIEW_TIMEOUT)
        self.services = services
        options = [
            discord.SelectOption(
                label=_option_label(document),
                value=TargetToken(
                    selection.purpose,
                    document.activity_class,
                    document.activity_type,
                    document.spec,
                    document.author_id,
                ).encode(),
                description=clip(document.origin_guild_name or "", 100) or None,
            )
            for document in selection.documents[:MAX_OPTIONS]
        ]
        self.select = discord.ui.Select(
            custom_id=select_id(selection.purpose),
            placeholder="Choose a guide",
            options=options,
        )

        async def on_select(inter: discord.Interaction) -> None:
            await handle_target(self.services, inter, TargetToken.decode(self.select.values[0]))

        self.select.callback = on_select
        self.add_item(self.select)


class DeleteConfirmView(discord.ui.View):
    def __init__(self, services: GuideServices, confirmation: DeleteConfirmation) -> None:
        super().__init__(timeout=VIEW_TIMEOUT)
        self.services = services
        document = confirmation.document
        target = TargetToken(
            "confirm_delete",
            document.activity_class,
            document.activity_type,
            document.spec,
            document.author_id,
        )
        buttons = [("Delete", discord.ButtonStyle.danger, target)]
        if confirmation.sibling_specs:
            buttons.append(
                (
                    "Delete All Specs",
                    discord.ButtonStyle.danger,
                    TargetToken(
                        "delete_all",
                        document.activity_class,
                        document.activity_type,
                        None,
                        document.author_id,
                    ),
                )
            )
        buttons.append(
            ("Cancel", discord.ButtonStyle.secondary, TargetToken(
                "cancel_delete", document.activity_class, document.activity_type
            ))
        )
        for label, style, token in buttons:

            async def handler(
                inter: discord.Interaction, token: TargetToken = token
            ) -> None:
                await handle_target(self.services, inter, token)

            self.add_item(_button(label, style, token.encode(), handler))


class QuickEditView(discord.ui.View):
    """One button per step of a displayed guide."""

    def __init__(self, services: GuideServices, document: GuideDocument) -> None:
        super().__init__(timeout=VIEW_TIMEOUT)
        self.services = services
        for number, step in enumerate(STEPS[document.activity_type], start=1):
            token = TargetToken(
                "quick",
                document.activity_class,
                document.activity_type,
                document.spec,
                document.author_id,
                step=number,
            )

            async def handler(
                inter: discord.Interaction, token: TargetToken = token
            ) -> None:
                await handle_target(self.services, inter, token)

            self.add_item(
                _button(
                    f"Edit {step.name}"[:80],
                    discord.ButtonStyle.secondary,
                    token.encode(),
                    handler,
                )
            )


# ----------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------
async def show_guide(
    interaction: discord.Interaction,
    services: GuideServices,
    document: GuideDocument,
    ephemeral: bool = False,
) -> None:
    """Post a guide, with quick-edit buttons when the viewer may modify it."""
    actor = Actor.from_interaction(interaction)
    kwargs: dict[str, Any] = {"embeds": guide_embeds(document), "ephemeral": ephemeral}
    if services.permissions.can_modify(actor, document).allowed:
        kwargs["view"] = QuickEditView(services, document)
    await reply(interaction, **kwargs)


async def render_outcome(
    interaction: discord.Interaction, services: GuideServices, outcome: object
) -> None:
    if isinstance(outcome, StepPrompt):
        await interaction.response.send_modal(StepModal(services, outcome))
    elif isinstance(outcome, StepComplete):
        await reply(
            interaction,
            step_complete_message(outcome),
            view=StepChoiceView(services, outcome),
        )
    elif isinstance(outcome, Finalized):
        await reply(
            interaction,
            finalized_message(outcome),
            embeds=guide_embeds(outcome.document),
        )
    elif isinstance(outcome, Cancelled):
        await reply(interaction, "Guide submission cancelled. Nothing was saved.")
    elif isinstance(outcome, Selection):
        verb = {"edit": "edit", "delete": "delete", "view": "view"}[outcome.purpose]
        label = f"{outcome.activity_class} {outcome.activity_type.value.upper()}"
        content = f"Select the {label} guide to {verb}:"
        if len(outcome.documents) > MAX_OPTIONS:
            content += f"\nShowing the first {MAX_OPTIONS} of {len(outcome.documents)}."
        await reply(interaction, content, view=SelectionView(services, outcome))
    elif isinstance(outcome, DeleteConfirmation):
        document = outcome.document
        title = guide_title(document.activity_class, document.activity_type, document.spec)
        author = document.author_display_name or document.author_id
        await reply(
            interaction,
            f"⚠️ Delete the **{title}** guide by **{author}**? This cannot be undone.",
            view=DeleteConfirmView(services, outcome),
        )
    elif isinstance(outcome, Deleted):
        titles = ", ".join(
            guide_title(d.activity_class, d.activity_type, d.spec)
            for d in outcome.documents
        )
        await reply(interaction, f"🗑️ Deleted: {titles}")
    elif isinstance(outcome, GuideDocument):
        await show_guide(interaction, services, outcome)
    else:  # pragma: no cover - programming error
        raise TypeError(f"cannot render {type(outcome).__name__}")


async def handle_step_action(
    services: GuideServices, interaction: discord.Interaction, token: StepToken
) -> None:
    actor = Actor.from_interaction(interaction)
    workflow = services.workflow
    try:
        if token.action == "continue":
            outcome: object = workflow.continue_step(actor, token)
        elif token.action == "redo":
            outcome = workflow.redo_step(actor, token)
        elif token.action == "cancel":
            outcome = workflow.cancel(actor, token)
        else:
            raise TargetNotFound("That button is no longer valid.")
    except GuideError as exc:
        await send_error(interaction, exc)
        return
    await render_outcome(interaction, services, outcome)


async def handle_target(
    services: GuideServices, interaction: discord.Interaction, token: TargetToken
) -> None:
    actor = Actor.from_interaction(interaction)
    authoring = services.authoring
    if token.purpose == "cancel_delete":
        await reply(interaction, "Deletion cancelled.")
        return
    try:
        if token.author_id is None:
            raise TargetNotFound()
        if token.purpose == "delete_all":
            outcome: object = authoring.delete_all_for_author(
                actor, token.activity_class, token.activity_type, token.author_id
            )
        elif token.spec is None:
            raise TargetNotFound()
        else:
            target = (token.activity_class, token.activity_type, token.spec, token.author_id)
            if token.purpose == "edit":
                outcome = authoring.edit_target(actor, *target)
            elif token.purpose == "delete":
                outcome = authoring.delete_target(actor, *target)
            elif token.purpose == "confirm_delete":
                outcome = authoring.confirm_delete(actor, *target)
            elif token.purpose == "quick":
                outcome = authoring.quick_edit(actor, *target, token.step)
            else:
                outcome = authoring.view_target(*target)
    except GuideError as exc:
        await send_error(interaction, exc)
        return
    await render_outcome(interaction, services, outcome)
