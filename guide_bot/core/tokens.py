"""Opaque tokens carried in Discord ``custom_id`` values.

A token is a ``|`` separated list of percent-encoded parts prefixed with
``guide``.  Encoding each part means class names containing spaces or the
separator itself still round-trip exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, unquote

from .models import ActivityType, GuideKey, Spec

PREFIX = "guide"
SEPARATOR = "|"

STEP_ACTIONS = frozenset({"open", "submit", "continue", "redo", "cancel"})
MODES = frozenset({"create", "edit", "quick"})


def encode_parts(*parts: object) -> str:
    return SEPARATOR.join(
        [PREFIX, *(quote("" if p is None else str(p), safe="") for p in parts)]
    )


def decode_parts(raw: str) -> list[str]:
    """Split a token back into its parts.

    Raises ``ValueError`` when ``raw`` is not one of our tokens.
    """
    head, sep, rest = raw.partition(SEPARATOR)
    if head != PREFIX or not sep:
        raise ValueError(f"not a guide token: {raw!r}")
    return [unquote(part) for part in rest.split(SEPARATOR)]


def is_guide_token(raw: str | None) -> bool:
    return bool(raw) and raw.startswith(PREFIX + SEPARATOR)


@dataclass(frozen=True)
class StepToken:
    """Addresses one step of one authoring session.

    ``author_id`` is the target author for edit and quick-edit sessions.
    Create tokens leave it empty; the session is found through the operator
    instead, which is what lets proxy submissions resume.
    """

    action: str
    mode: str
    step: int
    activity_class: str
    activity_type: ActivityType
    spec: Spec
    author_id: str | None = None

    def __post_init__(self) -> None:
        if self.action not in STEP_ACTIONS:
            raise ValueError(f"unknown step action {self.action!r}")
        if self.mode not in MODES:
            raise ValueError(f"unknown mode {self.mode!r}")

    def encode(self) -> str:
        return encode_parts(
            "step",
            self.action,
            self.mode,
            self.step,
            self.activity_class,
            self.activity_type.value,
            self.spec.value,
            self.author_id or "",
        )

    @classmethod
    def decode(cls, raw: str) -> StepToken:
        parts = decode_parts(raw)
        if len(parts) != 8 or parts[0] != "step":
            raise ValueError(f"not a step token: {raw!r}")
        _, action, mode, step, activity_class, activity_type, spec, author = parts
        return cls(
            action=action,
            mode=mode,
            step=int(step),
            activity_class=activity_class,
            activity_type=ActivityType(activity_type),
            spec=Spec(spec),
            author_id=author or None,
        )

    def with_action(self, action: str, step: int | None = None) -> StepToken:
        return StepToken(
            action,
            self.mode,
            self.step if step is None else step,
            self.activity_class,
            self.activity_type,
            self.spec,
            self.author_id,
        )

    def key_for(self, author_id: str) -> GuideKey:
        return GuideKey(self.activity_class, self.activity_type, self.spec, author_id)


TARGET_PURPOSES = frozenset(
    {"edit", "delete", "confirm_delete", "cancel_delete", "delete_all", "quick", "view"}
)


@dataclass(frozen=True)
class TargetToken:
    """Points at one guide (or one author's guides) for a follow-up action.

    Used for selection menu options, delete confirmation buttons and the
    quick-edit buttons under a displayed guide.  ``spec`` is empty for
    actions that cover every spec of an author; ``step`` is only used by
    quick edits.
    """

    purpose: str
    activity_class: str
    activity_type: ActivityType
    spec: Spec | None = None
    author_id: str | None = None
    step: int = 0

    def __post_init__(self) -> None:
        if self.purpose not in TARGET_PURPOSES:
            raise ValueError(f"unknown target purpose {self.purpose!r}")

    def encode(self) -> str:
        return encode_parts(
            "target",
            self.purpose,
            self.activity_class,
            self.activity_type.value,
            self.spec.value if self.spec else "",
            self.author_id or "",
            self.step,
        )

    @classmethod
    def decode(cls, raw: str) -> TargetToken:
        parts = decode_parts(raw)
        if len(parts) != 7 or parts[0] != "target":
            raise ValueError(f"not a target token: {raw!r}")
        _, purpose, activity_class, activity_type, spec, author, step = parts
        return cls(
            purpose=purpose,
            activity_class=activity_class,
            activity_type=ActivityType(activity_type),
            spec=Spec(spec) if spec else None,
            author_id=author or None,
            step=int(step),
        )


def select_id(purpose: str) -> str:
    """``custom_id`` of a selection menu whose option values are target tokens."""
    return encode_parts("select", purpose)
