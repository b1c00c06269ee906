"""The step state machine behind guide authoring.

A guide is written across several modal forms.  Each submitted step is
merged into an :class:`~guide_bot.data.sessions.AuthoringSession`; after every
step but the last the user chooses to continue, redo the step or cancel.  The
final step turns the session into a :class:`GuideDocument` and saves it.

Three modes share the machinery:

``create``
    New guide.  The session is created on the first submission.  Superusers
    may name another user in the proxy field of step 1 to write on their
    behalf; the session is then keyed by that user but still found through
    the operator.
``edit``
    Walk every step of an existing guide.  The session is seeded from the
    stored document at entry so each form is prefilled.
``quick``
    Replace the fields of a single step of an existing guide and save
    immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from .adapters.base import UserDirectory
from .core.classes import guide_title
from .core.models import COMMON_FIELDS, ActivityType, GuideDocument, Spec
from .core.steps import (
    PROXY_FIELD,
    FieldSpec,
    all_fields,
    get_step,
    parse_step,
    prefill,
    step_fields,
    total_steps,
)
from .core.tokens import StepToken
from .data.guides import GuideStore
from .data.sessions import AuthoringSession, SessionStore
from .errors import InvalidSubmission, PermissionDenied, SessionExpired, TargetNotFound
from .permissions import Actor, PermissionEngine

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptField:
    field: FieldSpec
    value: str


@dataclass(frozen=True)
class StepPrompt:
    """A form to show: which step, which inputs and what they hold."""

    token: StepToken
    title: str
    step: int
    total: int
    fields: tuple[PromptField, ...]


@dataclass(frozen=True)
class StepComplete:
    """A step was saved to the session and the user picks what comes next."""

    step: int
    total: int
    step_name: str
    next_step_name: str
    preview: dict[str, Any]
    continue_token: StepToken
    redo_token: StepToken
    cancel_token: StepToken
    submitted_for: str | None = None


@dataclass(frozen=True)
class Finalized:
    document: GuideDocument
    created: bool
    mode: str
    submitted_for: str | None = None


@dataclass(frozen=True)
class Cancelled:
    existed: bool


def build_document(session: AuthoringSession) -> GuideDocument:
    """Assemble the guide from a session, original document first."""
    key = session.key
    values = session.values()
    details: dict[str, Any] = {}
    for field in all_fields(key.activity_type):
        if field.name in COMMON_FIELDS:
            continue
        details[field.name] = values.get(field.name, [] if field.is_list else "")
    original = session.original_document
    # Legacy guides without an origin take the one recorded on the session.
    if original is not None and original.origin_guild_id:
        origin = (original.origin_guild_id, original.origin_guild_name)
    else:
        origin = (session.origin_guild_id, session.origin_guild_name)
    return GuideDocument(
        activity_class=key.activity_class,
        activity_type=key.activity_type,
        spec=key.spec,
        author_id=key.author_id,
        author_display_name=(
            original.author_display_name if original else session.author_display_name
        ),
        description=values.get("description", ""),
        pros=list(values.get("pros", [])),
        cons=list(values.get("cons", [])),
        details=details,
        origin_guild_id=origin[0],
        origin_guild_name=origin[1],
    )


def missing_required(
    activity_type: ActivityType, values: Mapping[str, Any]
) -> list[str]:
    return [
        field.label
        for field in all_fields(activity_type)
        if field.required and not values.get(field.name)
    ]


class WorkflowEngine:
    """Drives authoring sessions from form submissions.

    Parameters
    ----------
    sessions:
        Where in-progress work is kept between steps.
    guides:
        Where finished guides are written.
    permissions:
        Consulted before any session or document is touched.
    users:
        Resolves the proxy field of create step 1.  Without one, proxy
        submissions are rejected as unresolvable.

    """

    def __init__(
        self,
        sessions: SessionStore,
        guides: GuideStore,
        permissions: PermissionEngine,
        users: UserDirectory | None = None,
    ) -> None:
        self.sessions = sessions
        self.guides = guides
        self.permissions = permissions
        self.users = users

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------
    def _prompt(
        self,
        token: StepToken,
        values: Mapping[str, Any],
        with_proxy: bool = False,
    ) -> StepPrompt:
        fields = step_fields(token.activity_type, token.step, with_proxy=with_proxy)
        total = total_steps(token.activity_type)
        heading = guide_title(token.activity_class, token.activity_type, token.spec)
        if token.mode == "quick":
            title = f"Edit {get_step(token.activity_type, token.step).name}"
        else:
            title = f"{heading} ({token.step}/{total})"
        return StepPrompt(
            token=token.with_action("submit"),
            title=title,
            step=token.step,
            total=total,
            fields=tuple(PromptField(f, prefill(f, values)) for f in fields),
        )

    def _create_values(self, actor: Actor, session: AuthoringSession | None) -> dict[str, Any]:
        if session is None:
            return {}
        values = session.values()
        if session.key.author_id != actor.user_id:
            values[PROXY_FIELD] = session.key.author_id
        return values

    # ------------------------------------------------------------------
    # Session lookup
    # ------------------------------------------------------------------
    def _find_create_session(
        self, actor: Actor, token: StepToken
    ) -> AuthoringSession | None:
        """The operator's create session: own key first, then the suffix index."""
        own = self.sessions.get(token.key_for(actor.user_id))
        if own is not None and own.mode == "create" and (
            own.actual_submitter_id == actor.user_id
        ):
            return own
        found = self.sessions.find_by_suffix(
            token.activity_class, token.activity_type, token.spec, actor.user_id
        )
        if found is not None and found.mode == "create":
            return found
        return None

    def _find_session(self, actor: Actor, token: StepToken) -> AuthoringSession | None:
        if token.mode == "create":
            return self._find_create_session(actor, token)
        if not token.author_id:
            return None
        session = self.sessions.get(token.key_for(token.author_id))
        # Edit sessions are private to the operator who opened them.
        if session is None or session.actual_submitter_id != actor.user_id:
            return None
        if session.mode != token.mode:
            return None
        return session

    def _require_session(self, actor: Actor, token: StepToken) -> AuthoringSession:
        session = self._find_session(actor, token)
        if session is None:
            raise SessionExpired()
        return session

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def start_create(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
    ) -> StepPrompt:
        """First form of a new guide, resuming any unfinished attempt."""
        token = StepToken("open", "create", 1, activity_class, activity_type, spec)
        session = self._find_create_session(actor, token)
        return self._prompt(
            token,
            self._create_values(actor, session),
            with_proxy=self.permissions.is_superuser(actor.user_id),
        )

    def _seed(self, actor: Actor, document: GuideDocument, mode: str) -> AuthoringSession:
        legacy = not document.origin_guild_id
        return self.sessions.seed(
            AuthoringSession(
                key=document.key,
                actual_submitter_id=actor.user_id,
                mode=mode,
                author_display_name=document.author_display_name,
                origin_guild_id=actor.guild_id if legacy else document.origin_guild_id,
                origin_guild_name=(
                    actor.guild_name if legacy else document.origin_guild_name
                ),
                original_document=document,
            )
        )

    def start_edit(self, actor: Actor, document: GuideDocument) -> StepPrompt:
        self.permissions.require_modify(actor, document)
        session = self._seed(actor, document, "edit")
        token = StepToken(
            "open", "edit", 1, *document.key.suffix, author_id=document.author_id
        )
        return self._prompt(token, session.values())

    def start_quick_edit(
        self, actor: Actor, document: GuideDocument, step: int
    ) -> StepPrompt:
        """Reset any partial session and open a single step for editing."""
        get_step(document.activity_type, step)
        self.permissions.require_modify(actor, document)
        session = self._seed(actor, document, "quick")
        token = StepToken(
            "open", "quick", step, *document.key.suffix, author_id=document.author_id
        )
        return self._prompt(token, session.values())

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------
    async def submit_step(
        self, actor: Actor, token: StepToken, values: Mapping[str, str]
    ) -> StepComplete | Finalized:
        """Merge one submitted form.

        Everything is validated and authorized before the session changes;
        a rejected submission leaves it exactly as it was.
        """
        if token.mode == "create":
            return await self._submit_create(actor, token, values)
        return self._submit_existing(actor, token, values)

    async def _resolve_target(self, actor: Actor, raw: str) -> tuple[str, str]:
        """Effective author for create step 1 as ``(user_id, display_name)``."""
        if not raw:
            return actor.user_id, actor.display_name
        if not self.permissions.is_superuser(actor.user_id):
            raise PermissionDenied("Only bot owners can submit guides for other users.")
        try:
            user = await self.users.fetch_user(raw) if self.users is not None else None
        except httpx.HTTPError as exc:
            log.exception("Looking up proxy target %s failed", raw)
            raise TargetNotFound(
                f"Could not look up the user with ID `{raw}` right now. "
                "Please try again in a moment."
            ) from exc
        if user is None:
            raise TargetNotFound(
                f"Could not find a user with ID `{raw}`. "
                "Please check the ID and try again."
            )
        return user.user_id, user.display_name

    async def _submit_create(
        self, actor: Actor, token: StepToken, values: Mapping[str, str]
    ) -> StepComplete | Finalized:
        fields = parse_step(token.activity_type, token.step, values)
        if token.step == 1:
            if not self.permissions.can_author(actor):
                raise self.permissions.authoring_denial(actor)
            proxy_raw = (values.get(PROXY_FIELD) or "").strip()
            target_id, target_name = await self._resolve_target(actor, proxy_raw)
            key = token.key_for(target_id)
            previous = self._find_create_session(actor, token)
            existing = self.sessions.get(key)
            if existing is not None and existing is not previous:
                if existing.actual_submitter_id != actor.user_id:
                    raise InvalidSubmission(
                        "Someone else is already writing this guide. Try again "
                        "once their submission is finished or has expired."
                    )
                # A new create replaces the operator's own edit under this key.
                self.sessions.delete(key)
            if previous is not None and previous.key != key:
                self.sessions.rekey(previous.key, key)
            session = self.sessions.upsert_merge(
                key,
                fields,
                actual_submitter_id=actor.user_id,
                mode="create",
                author_display_name=target_name,
                origin_guild_id=actor.guild_id,
                origin_guild_name=actor.guild_name,
            )
            session.author_display_name = target_name
            if target_id != actor.user_id:
                log.info(
                    "User %s is submitting %s for user %s",
                    actor.user_id,
                    "/".join(str(p) for p in key.suffix),
                    target_id,
                )
        else:
            session = self._require_session(actor, token)
            if token.step >= total_steps(token.activity_type):
                self._ensure_complete(session, fields)
            session = self.sessions.upsert_merge(session.key, fields)

        if token.step >= total_steps(token.activity_type):
            return self._finalize(actor, session)
        return self._complete(actor, token, session, fields)

    def _submit_existing(
        self, actor: Actor, token: StepToken, values: Mapping[str, str]
    ) -> StepComplete | Finalized:
        session = self._require_session(actor, token)
        if session.original_document is not None:
            self.permissions.require_modify(actor, session.original_document)
        fields = parse_step(token.activity_type, token.step, values)
        if token.mode != "quick" and token.step >= total_steps(token.activity_type):
            self._ensure_complete(session, fields)
        session = self.sessions.upsert_merge(session.key, fields)
        if token.mode == "quick" or token.step >= total_steps(token.activity_type):
            return self._finalize(actor, session)
        return self._complete(actor, token, session, fields)

    def _complete(
        self,
        actor: Actor,
        token: StepToken,
        session: AuthoringSession,
        fields: dict[str, Any],
    ) -> StepComplete:
        total = total_steps(token.activity_type)
        proxy = session.key.author_id if session.key.author_id != actor.user_id else None
        return StepComplete(
            step=token.step,
            total=total,
            step_name=get_step(token.activity_type, token.step).name,
            next_step_name=get_step(token.activity_type, token.step + 1).name,
            preview=dict(fields),
            continue_token=token.with_action("continue"),
            redo_token=token.with_action("redo"),
            cancel_token=token.with_action("cancel"),
            submitted_for=proxy if token.mode == "create" else None,
        )

    def _ensure_complete(
        self, session: AuthoringSession, fields: Mapping[str, Any]
    ) -> None:
        """Refuse to finish a guide while an earlier step is still empty.

        Quick edits skip this: older guides may predate fields added since.
        """
        values = {**session.values(), **fields}
        missing = missing_required(session.key.activity_type, values)
        if missing:
            raise InvalidSubmission("Missing required fields: " + ", ".join(missing))

    def _finalize(self, actor: Actor, session: AuthoringSession) -> Finalized:
        document = build_document(session)
        # StorageFailure propagates and the session stays for a retry.
        result = self.guides.upsert(document)
        self.sessions.delete(session.key)
        log.info(
            "Guide %s by %s for %s (%s)",
            "created" if result.created else "updated",
            actor.user_id,
            session.key.author_id,
            session.mode,
        )
        proxy = session.key.author_id if session.key.author_id != actor.user_id else None
        return Finalized(
            document=result.document,
            created=result.created,
            mode=session.mode,
            submitted_for=proxy if session.mode == "create" else None,
        )

    # ------------------------------------------------------------------
    # Step choices
    # ------------------------------------------------------------------
    def continue_step(self, actor: Actor, token: StepToken) -> StepPrompt:
        session = self._require_session(actor, token)
        next_step = token.step + 1
        get_step(token.activity_type, next_step)
        values = (
            self._create_values(actor, session)
            if token.mode == "create"
            else session.values()
        )
        return self._prompt(token.with_action("open", step=next_step), values)

    def redo_step(self, actor: Actor, token: StepToken) -> StepPrompt:
        """Reopen the step just submitted; the session step does not advance."""
        session = self._require_session(actor, token)
        if token.mode == "create":
            return self._prompt(
                token.with_action("open"),
                self._create_values(actor, session),
                with_proxy=self.permissions.is_superuser(actor.user_id),
            )
        return self._prompt(token.with_action("open"), session.values())

    def cancel(self, actor: Actor, token: StepToken) -> Cancelled:
        session = self._find_session(actor, token)
        if session is None:
            return Cancelled(existed=False)
        self.sessions.delete(session.key)
        log.info("Authoring session %s cancelled by %s", session.key, actor.user_id)
        return Cancelled(existed=True)


__all__ = [
    "Cancelled",
    "Finalized",
    "PromptField",
    "StepComplete",
    "StepPrompt",
    "WorkflowEngine",
    "build_document",
    "missing_required",
]
