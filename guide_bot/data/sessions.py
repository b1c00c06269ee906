"""In-memory store for in-progress authoring sessions.

Sessions are keyed by the same four-tuple as guides, with the effective
author first.  A secondary index on the ``(class, type, spec)`` suffix lets a
proxy operator find the session they are driving for someone else without
scanning every key.  Sessions are not persisted; a restart drops them.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..core.models import ActivityType, GuideDocument, GuideKey, Spec, utcnow

log = logging.getLogger(__name__)

SessionKey = GuideKey
Suffix = tuple[str, ActivityType, Spec]


@dataclass
class AuthoringSession:
    key: SessionKey
    actual_submitter_id: str
    mode: str = "create"
    fields: dict[str, Any] = field(default_factory=dict)
    author_display_name: str = ""
    origin_guild_id: str | None = None
    origin_guild_name: str | None = None
    original_document: GuideDocument | None = None
    created_at: datetime.datetime = field(default_factory=utcnow)
    touched_at: datetime.datetime = field(default_factory=utcnow)

    def values(self) -> dict[str, Any]:
        """Field values with session edits layered over the original guide."""
        base = self.original_document.field_values() if self.original_document else {}
        return {**base, **self.fields}


class SessionStore:
    """Process-wide session map with a suffix index and TTL expiry.

    Concurrent merges into the same key are last-merge-wins; nothing detects
    two operators driving one session.
    """

    def __init__(
        self,
        ttl: datetime.timedelta = datetime.timedelta(minutes=30),
        clock: Callable[[], datetime.datetime] = utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[SessionKey, AuthoringSession] = {}
        self._by_suffix: dict[Suffix, set[SessionKey]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _expired(self, session: AuthoringSession) -> bool:
        return self._clock() - session.touched_at > self.ttl

    def _put(self, session: AuthoringSession) -> None:
        self._sessions[session.key] = session
        self._by_suffix.setdefault(session.key.suffix, set()).add(session.key)

    def _drop(self, key: SessionKey) -> AuthoringSession | None:
        session = self._sessions.pop(key, None)
        keys = self._by_suffix.get(key.suffix)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._by_suffix[key.suffix]
        return session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def get(self, key: SessionKey) -> AuthoringSession | None:
        session = self._sessions.get(key)
        if session is None:
            return None
        if self._expired(session):
            self._drop(key)
            return None
        return session

    def seed(self, session: AuthoringSession) -> AuthoringSession:
        """Store ``session``, replacing anything under the same key."""
        self._drop(session.key)
        session.touched_at = self._clock()
        self._put(session)
        return session

    def upsert_merge(
        self,
        key: SessionKey,
        fields: Mapping[str, Any],
        **defaults: Any,
    ) -> AuthoringSession:
        """Shallow-merge ``fields`` into the session under ``key``.

        New values overwrite values of the same name; everything else is kept.
        When no session exists one is created from ``defaults`` (which must
        include ``actual_submitter_id``).
        """
        session = self.get(key)
        if session is None:
            session = AuthoringSession(key=key, **defaults)
            session.created_at = self._clock()
            self._put(session)
        session.fields.update(fields)
        session.touched_at = self._clock()
        return session

    def delete(self, key: SessionKey) -> bool:
        return self._drop(key) is not None

    def rekey(self, old: SessionKey, new: SessionKey) -> AuthoringSession | None:
        """Move a session to a new key, replacing anything already there."""
        session = self._drop(old)
        if session is None:
            return None
        self._drop(new)
        moved = replace(session, key=new, touched_at=self._clock())
        self._put(moved)
        return moved

    def find_by_suffix(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        actual_submitter_id: str,
    ) -> AuthoringSession | None:
        """The live session for this suffix driven by ``actual_submitter_id``."""
        suffix = (activity_class, activity_type, spec)
        for key in sorted(self._by_suffix.get(suffix, ())):
            session = self.get(key)
            if session is not None and session.actual_submitter_id == actual_submitter_id:
                return session
        return None

    def reap(self) -> int:
        """Drop every expired session.  Returns how many were removed."""
        expired = [k for k, s in self._sessions.items() if self._expired(s)]
        for key in expired:
            self._drop(key)
        if expired:
            log.info("Reaped %d expired authoring session(s)", len(expired))
        return len(expired)
