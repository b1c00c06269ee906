"""Create, edit, delete and view entry points.

Each entry point authorizes the actor, works out which guide (or guides) the
request is about and then either hands over to the
:class:`~guide_bot.workflow.WorkflowEngine` or acts on the
:class:`~guide_bot.data.guides.GuideStore` directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .core.classes import available_specs, canonical_class, format_spec, primary_spec
from .core.models import ActivityType, GuideDocument, Spec
from .data.guides import GuideStore
from .errors import InvalidSubmission, PermissionDenied, TargetNotFound
from .permissions import Actor, PermissionEngine
from .workflow import StepPrompt, WorkflowEngine

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Several guides qualify; the actor has to pick one."""

    purpose: str
    activity_class: str
    activity_type: ActivityType
    documents: tuple[GuideDocument, ...]


@dataclass(frozen=True)
class DeleteConfirmation:
    document: GuideDocument
    # Other specs by the same author that "delete all" would also remove.
    sibling_specs: tuple[Spec, ...] = ()


@dataclass(frozen=True)
class Deleted:
    documents: tuple[GuideDocument, ...]


class GuideAuthoring:
    def __init__(
        self,
        workflow: WorkflowEngine,
        guides: GuideStore,
        permissions: PermissionEngine,
    ) -> None:
        self.workflow = workflow
        self.guides = guides
        self.permissions = permissions

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _class(activity_class: str) -> str:
        name = canonical_class(activity_class)
        if name is None:
            raise InvalidSubmission(f"Unknown class `{activity_class}`.")
        return name

    def _load(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> GuideDocument:
        document = self.guides.find_by_key(activity_class, activity_type, spec, author_id)
        if document is None:
            raise TargetNotFound("Guide not found. It may have been deleted.")
        return document

    def _candidates(
        self, actor: Actor, activity_class: str, activity_type: ActivityType, verb: str
    ) -> tuple[list[GuideDocument], bool]:
        """Guides the actor may choose from and whether they see everyone's."""
        documents = self.guides.find_all_for_class_type(activity_class, activity_type)
        label = f"{activity_class} {activity_type.value.upper()}"
        if not documents:
            raise TargetNotFound(f"No {label} guides exist yet.")
        if self.permissions.can_manage_all(actor):
            return documents, True
        own = [d for d in documents if d.author_id == actor.user_id]
        if not own:
            raise TargetNotFound(f"You don't have any {label} guides to {verb}.")
        return own, False

    # ------------------------------------------------------------------
    # Create / edit
    # ------------------------------------------------------------------
    def create(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec | None = None,
    ) -> StepPrompt:
        """Open the first step of a new guide.

        If the actor already owns a guide under the same key this opens the
        edit workflow for it instead, so a second create never shadows it.
        """
        name = self._class(activity_class)
        if not self.permissions.can_author(actor):
            raise self.permissions.authoring_denial(actor)
        spec = spec or primary_spec(name)
        if spec not in available_specs(name):
            raise InvalidSubmission(f"{name} has no {spec.value} spec.")

        existing = self.guides.find_by_key(name, activity_type, spec, actor.user_id)
        if existing is not None:
            log.info(
                "User %s already has a %s %s guide; opening edit",
                actor.user_id,
                name,
                activity_type.value,
            )
            return self.workflow.start_edit(actor, existing)
        return self.workflow.start_create(actor, name, activity_type, spec)

    def edit(
        self, actor: Actor, activity_class: str, activity_type: ActivityType
    ) -> StepPrompt | Selection:
        name = self._class(activity_class)
        documents, manage_all = self._candidates(actor, name, activity_type, "edit")
        if not manage_all and len(documents) == 1:
            return self.workflow.start_edit(actor, documents[0])
        return Selection("edit", name, activity_type, tuple(documents))

    def edit_target(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> StepPrompt:
        document = self._load(self._class(activity_class), activity_type, spec, author_id)
        return self.workflow.start_edit(actor, document)

    def quick_edit(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
        step: int,
    ) -> StepPrompt:
        document = self._load(self._class(activity_class), activity_type, spec, author_id)
        return self.workflow.start_quick_edit(actor, document, step)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def _confirmation(self, document: GuideDocument) -> DeleteConfirmation:
        siblings = tuple(
            d.spec
            for d in self.guides.find_all_for_class_type(
                document.activity_class, document.activity_type
            )
            if d.author_id == document.author_id and d.spec != document.spec
        )
        return DeleteConfirmation(document, siblings)

    def delete(
        self, actor: Actor, activity_class: str, activity_type: ActivityType
    ) -> DeleteConfirmation | Selection:
        name = self._class(activity_class)
        documents, manage_all = self._candidates(actor, name, activity_type, "delete")
        if not manage_all and len(documents) == 1:
            return self._confirmation(documents[0])
        return Selection("delete", name, activity_type, tuple(documents))

    def delete_target(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> DeleteConfirmation:
        """Confirmation for a guide picked from a selection."""
        document = self._load(self._class(activity_class), activity_type, spec, author_id)
        self.permissions.require_modify(actor, document)
        return self._confirmation(document)

    def confirm_delete(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> Deleted:
        name = self._class(activity_class)
        document = self._load(name, activity_type, spec, author_id)
        # Being able to list a guide does not mean being allowed to delete it.
        self.permissions.require_modify(actor, document)
        if not self.guides.delete(name, activity_type, spec, author_id):
            raise TargetNotFound("Guide not found. It may have already been deleted.")
        log.info(
            "User %s deleted %s %s %s guide of %s",
            actor.user_id,
            name,
            activity_type.value,
            spec.value,
            author_id,
        )
        return Deleted((document,))

    def delete_all_for_author(
        self,
        actor: Actor,
        activity_class: str,
        activity_type: ActivityType,
        author_id: str,
    ) -> Deleted:
        """Delete every spec of one author's guide that the actor may modify."""
        name = self._class(activity_class)
        if author_id != actor.user_id and not self.permissions.can_manage_all(actor):
            raise PermissionDenied("You can only delete your own guides.")
        documents = [
            d
            for d in self.guides.find_all_for_class_type(name, activity_type)
            if d.author_id == author_id
        ]
        if not documents:
            raise TargetNotFound("No guides found for that author.")

        denial: str | None = None
        allowed: list[GuideDocument] = []
        for document in documents:
            decision = self.permissions.can_modify(actor, document)
            if decision.allowed:
                allowed.append(document)
            elif denial is None:
                denial = decision.reason
        if not allowed:
            raise PermissionDenied(denial)

        removed = tuple(
            d
            for d in allowed
            if self.guides.delete(d.activity_class, d.activity_type, d.spec, d.author_id)
        )
        log.info(
            "User %s deleted %d %s %s guide(s) of %s",
            actor.user_id,
            len(removed),
            name,
            activity_type.value,
            author_id,
        )
        return Deleted(removed)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    def view(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec | None = None,
    ) -> list[GuideDocument]:
        name = self._class(activity_class)
        if spec is not None:
            documents = self.guides.find_all(name, activity_type, spec)
        else:
            documents = self.guides.find_all_for_class_type(name, activity_type)
        if not documents:
            spec_text = format_spec(name, spec) if spec else ""
            label = " ".join(p for p in (name, activity_type.value.upper(), spec_text) if p)
            raise TargetNotFound(f"No {label} guides found.")
        return sorted(documents, key=lambda d: d.created_at)

    def view_target(
        self,
        activity_class: str,
        activity_type: ActivityType,
        spec: Spec,
        author_id: str,
    ) -> GuideDocument:
        return self._load(self._class(activity_class), activity_type, spec, author_id)
