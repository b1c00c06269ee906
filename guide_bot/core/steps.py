"""Declarative step table for the authoring workflow.

Each ``(ActivityType, step)`` pair maps to the ordered list of fields shown
in that step's form.  Rendering, parsing and validation all read this table,
so adding a field is a one-line change here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import InvalidSubmission
from .models import ActivityType

PROXY_FIELD = "discord_id"

IMAGE_HINT = "https://i.imgur.com/example.png or Discord CDN link"
VIDEO_HINT = "YouTube link or GIF link"


@dataclass(frozen=True)
class FieldSpec:
    """One input of a step form."""

    name: str
    label: str
    placeholder: str = ""
    paragraph: bool = True
    max_length: int = 1000
    required: bool = True
    is_list: bool = False


@dataclass(frozen=True)
class Step:
    name: str
    fields: tuple[FieldSpec, ...]


def _image(name: str, label: str, required: bool = True) -> FieldSpec:
    return FieldSpec(
        name, label, IMAGE_HINT, paragraph=False, max_length=500, required=required
    )


def _video(name: str, label: str) -> FieldSpec:
    return FieldSpec(
        name, label, VIDEO_HINT, paragraph=False, max_length=500, required=False
    )


DESCRIPTION = FieldSpec(
    "description", "Guide Description", "Describe your build and playstyle..."
)
PROS = FieldSpec(
    "pros", "Pros (one per line)", "High damage\nGood mobility",
    max_length=500, is_list=True,
)
CONS = FieldSpec(
    "cons", "Cons (one per line)", "Resource management\nVulnerable to grabs",
    max_length=500, is_list=True,
)

STEPS: dict[ActivityType, tuple[Step, ...]] = {
    ActivityType.PVP: (
        Step("Description & Overview", (DESCRIPTION, PROS, CONS)),
        Step(
            "PvP Roles",
            (
                FieldSpec(
                    "large_scale_role", "Large Scale Role",
                    "Your role in Node Wars, Siege, Red Battlefield...",
                ),
                FieldSpec(
                    "small_scale_role", "Small Scale Role",
                    "Your role in 1v1, small skirmishes and arsha...",
                ),
                FieldSpec(
                    "positioning", "Positioning",
                    "Optimal positioning in various PvP scenarios...",
                ),
                _image("positioning_image", "Positioning Image (optional)", False),
            ),
        ),
        Step(
            "Addons & Crystals",
            (
                _image("crystals_t1_capped", "T1 Capped Crystals Image Link"),
                _image("crystals_t2_capped", "T2 Capped Crystals Image Link"),
                _image("crystals_uncapped", "Uncapped Crystals Image Link"),
                _image("addons_image", "Addons Image Link"),
            ),
        ),
        Step(
            "Artifacts & Lightstones",
            (
                FieldSpec(
                    "artifacts_and_lightstones", "Artifacts and Lightstones",
                    "Artifact and Lightstone choices", max_length=2000,
                ),
                FieldSpec(
                    "reforge_stones", "Reforge Stones",
                    "Describe your reforge stone choices...", max_length=2000,
                ),
                FieldSpec(
                    "skill_info", "Skills",
                    "Locked skills, BSR skills, Quickslot skills, Rebams",
                    max_length=2000,
                ),
                FieldSpec(
                    "reliable_ccs", "Reliable CCs (one per line)",
                    "CCs you can safely use", is_list=True,
                ),
            ),
        ),
        Step(
            "Movement & Combat",
            (
                FieldSpec(
                    "movement_example", "Movement Example",
                    "Movement patterns, rotations, positioning...", max_length=2000,
                ),
                _video("movement_video", "Movement Video (optional)"),
                FieldSpec(
                    "combo", "PvP Combo Example",
                    "Describe your main PvP combos...", max_length=2000,
                ),
                _video("combat_video", "Combat Video (optional)"),
            ),
        ),
    ),
    ActivityType.PVE: (
        Step(
            "Description & Crystals",
            (
                DESCRIPTION,
                PROS,
                CONS,
                FieldSpec(
                    "crystals_image", "Crystals Image Link",
                    "https://i.imgur.com/example.png", paragraph=False,
                    max_length=500,
                ),
            ),
        ),
        Step(
            "Addons & Movement",
            (
                FieldSpec(
                    "addons_image", "Addons Image Link",
                    "https://i.imgur.com/example.png", paragraph=False,
                    max_length=500,
                ),
                FieldSpec(
                    "movement_example", "Movement Example",
                    "Describe your rotation and movement patterns...",
                ),
                _video("movement_video", "Movement Video (optional)"),
                FieldSpec(
                    "combo", "PvE Combo Example",
                    "Describe your main grinding combos...",
                ),
            ),
        ),
    ),
}

PROXY = FieldSpec(
    PROXY_FIELD,
    "Submit for User (Discord ID - Optional)",
    "Leave empty to submit as yourself, or enter a Discord user ID",
    paragraph=False,
    max_length=20,
    required=False,
)


def total_steps(activity_type: ActivityType) -> int:
    return len(STEPS[activity_type])


def get_step(activity_type: ActivityType, number: int) -> Step:
    """Return step ``number`` (1-indexed) of the workflow."""
    steps = STEPS[activity_type]
    if not 1 <= number <= len(steps):
        raise InvalidSubmission(
            f"{activity_type.value.upper()} guides have no step {number}."
        )
    return steps[number - 1]


def step_fields(
    activity_type: ActivityType, number: int, with_proxy: bool = False
) -> tuple[FieldSpec, ...]:
    fields = get_step(activity_type, number).fields
    if with_proxy and number == 1:
        return fields + (PROXY,)
    return fields


def all_fields(activity_type: ActivityType) -> list[FieldSpec]:
    return [f for step in STEPS[activity_type] for f in step.fields]


def split_lines(value: str) -> list[str]:
    return [line.strip() for line in value.splitlines() if line.strip()]


def parse_step(
    activity_type: ActivityType, number: int, values: Mapping[str, str]
) -> dict[str, Any]:
    """Turn raw form values for one step into session fields.

    List fields are split on line breaks with blank lines dropped.  The proxy
    field is not part of the guide and is ignored here.  Raises
    :class:`InvalidSubmission` naming every required field left empty.
    """
    parsed: dict[str, Any] = {}
    missing: list[str] = []
    for field in get_step(activity_type, number).fields:
        raw = (values.get(field.name) or "").strip()
        value: Any = split_lines(raw) if field.is_list else raw
        if field.required and not value:
            missing.append(field.label)
            continue
        parsed[field.name] = value
    if missing:
        raise InvalidSubmission("Missing required fields: " + ", ".join(missing))
    return parsed


def prefill(field: FieldSpec, values: Mapping[str, Any]) -> str:
    value = values.get(field.name)
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return str(value)
