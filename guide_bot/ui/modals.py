from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from ..errors import GuideError
from ..permissions import Actor
from ..workflow import StepPrompt

if TYPE_CHECKING:
    from ..services import GuideServices

log = logging.getLogger(__name__)

MODAL_TITLE_LIMIT = 45
LABEL_LIMIT = 45
PLACEHOLDER_LIMIT = 100


class StepModal(discord.ui.Modal):
    """One step of the authoring workflow rendered as a form."""

    def __init__(self, services: GuideServices, prompt: StepPrompt) -> None:
        super().__init__(
            title=prompt.title[:MODAL_TITLE_LIMIT],
            custom_id=prompt.token.encode(),
        )
        self.services = services
        self.prompt = prompt
        self.inputs: dict[str, discord.ui.TextInput] = {}
        for item in prompt.fields:
            field = item.field
            text_input = discord.ui.TextInput(
                label=field.label[:LABEL_LIMIT],
                style=(
                    discord.TextStyle.long if field.paragraph else discord.TextStyle.short
                ),
                placeholder=field.placeholder[:PLACEHOLDER_LIMIT] or None,
                default=item.value[: field.max_length] or None,
                required=field.required,
                max_length=field.max_length,
            )
            self.inputs[field.name] = text_input
            self.add_item(text_input)

    def values(self) -> dict[str, str]:
        return {name: text_input.value or "" for name, text_input in self.inputs.items()}

    async def on_submit(self, interaction: discord.Interaction) -> None:
        from .views import render_outcome, send_error

        actor = Actor.from_interaction(interaction)
        try:
            outcome = await self.services.workflow.submit_step(
                actor, self.prompt.token, self.values()
            )
        except GuideError as exc:
            await send_error(interaction, exc)
            return
        await render_outcome(interaction, self.services, outcome)
