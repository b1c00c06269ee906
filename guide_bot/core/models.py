"""Data models for guides and per-server configuration.

The models are implemented using :mod:`pydantic` so that they provide
runtime validation and convenient serialisation to and from the JSON files
written by the stores.
"""

from __future__ import annotations

import datetime
from datetime import UTC
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, Field


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(tz=UTC)


class ActivityType(str, Enum):
    """Which step workflow a guide follows."""

    PVP = "pvp"
    PVE = "pve"


class Spec(str, Enum):
    """Build variant of a class."""

    SUCCESSION = "succession"
    AWAKENING = "awakening"


class GuideKey(NamedTuple):
    """Composite identity shared by guide documents and authoring sessions."""

    activity_class: str
    activity_type: ActivityType
    spec: Spec
    author_id: str

    @property
    def suffix(self) -> tuple[str, ActivityType, Spec]:
        """The key without its author component."""
        return (self.activity_class, self.activity_type, self.spec)


# Top-level document attributes shared by every activity type.  Any other
# field collected by the step table lives in ``GuideDocument.details``.
COMMON_FIELDS = ("description", "pros", "cons")


class GuideDocument(BaseModel):
    """A single class guide.

    Attributes
    ----------
    activity_class, activity_type, spec, author_id:
        The composite key.  Only one document may exist per combination.
    details:
        Type-dependent fields such as role descriptions, image links and
        combo text.  The keys are the field names of the step table for
        ``activity_type``.
    origin_guild_id:
        Guild the guide was first saved in.  Never changed once set; the
        basis for cross-server modification isolation.

    """

    activity_class: str
    activity_type: ActivityType
    spec: Spec
    author_id: str
    author_display_name: str = ""
    description: str = ""
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    origin_guild_id: str | None = None
    origin_guild_name: str | None = None
    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime | None = None

    @property
    def key(self) -> GuideKey:
        return GuideKey(
            self.activity_class, self.activity_type, self.spec, self.author_id
        )

    def field_values(self) -> dict[str, Any]:
        """Flatten the document into step-table field names."""
        values: dict[str, Any] = dict(self.details)
        values["description"] = self.description
        values["pros"] = list(self.pros)
        values["cons"] = list(self.cons)
        return values


class ServerConfig(BaseModel):
    """Per-guild guide permissions."""

    guild_id: str
    creator_role_ids: list[str] = Field(default_factory=list)
    admin_role_ids: list[str] = Field(default_factory=list)
    setup_complete: bool = False
    setup_by: str | None = None
    setup_at: datetime.datetime | None = None
