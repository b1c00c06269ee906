import datetime

import pytest

from guide_bot.authoring import (
    DeleteConfirmation,
    Deleted,
    GuideAuthoring,
    Selection,
)
from guide_bot.core.models import ActivityType, GuideDocument, Spec
from guide_bot.data.guides import GuideStore
from guide_bot.data.sessions import SessionStore
from guide_bot.data.settings import ServerSettingsStore
from guide_bot.errors import (
    InvalidSubmission,
    NotConfigured,
    PermissionDenied,
    TargetNotFound,
)
from guide_bot.permissions import Actor, PermissionEngine
from guide_bot.workflow import StepPrompt, WorkflowEngine

PVE = ActivityType.PVE

CREATOR = Actor("U1", "G1", "Alice", "Guild One", frozenset({"creator"}))
ADMIN = Actor("A1", "G1", "Admin", "Guild One", frozenset({"admin"}))
MEMBER = Actor("U4", "G1", "Dan", "Guild One", frozenset({"member"}))


@pytest.fixture
def env(tmp_path):
    settings = ServerSettingsStore(path=str(tmp_path / "settings.json"))
    settings.add_roles("G1", ["creator"], ["admin"], actor_id="owner")
    guides = GuideStore(tmp_path / "guides")
    sessions = SessionStore()
    permissions = PermissionEngine(settings, superuser_ids=["SU"])
    workflow = WorkflowEngine(sessions, guides, permissions)
    return GuideAuthoring(workflow, guides, permissions), guides, sessions


def save(
    guides,
    author="U1",
    spec=Spec.SUCCESSION,
    origin="G1",
    origin_name="Guild One",
    day=1,
):
    return guides.upsert(
        GuideDocument(
            activity_class="Warrior",
            activity_type=PVE,
            spec=spec,
            author_id=author,
            author_display_name=f"user {author}",
            description="d",
            origin_guild_id=origin,
            origin_guild_name=origin_name,
            created_at=datetime.datetime(2024, 1, day, tzinfo=datetime.UTC),
        )
    ).document


def test_create_rejects_unknown_class(env):
    authoring, _, _ = env
    with pytest.raises(InvalidSubmission):
        authoring.create(CREATOR, "Paladin", PVE)


def test_create_requires_setup_and_role(env):
    authoring, _, sessions = env
    with pytest.raises(NotConfigured):
        authoring.create(Actor("U1", "G9", role_ids=frozenset({"creator"})), "Warrior", PVE)
    with pytest.raises(PermissionDenied):
        authoring.create(MEMBER, "Warrior", PVE)
    assert len(sessions) == 0


def test_create_defaults_to_primary_spec(env):
    authoring, _, _ = env
    prompt = authoring.create(CREATOR, "warrior", PVE)
    assert prompt.token.activity_class == "Warrior"
    assert prompt.token.spec is Spec.SUCCESSION
    assert prompt.token.mode == "create"

    assert authoring.create(CREATOR, "Archer", PVE).token.spec is Spec.AWAKENING
    with pytest.raises(InvalidSubmission):
        authoring.create(CREATOR, "Archer", PVE, Spec.SUCCESSION)


def test_create_redirects_owner_to_edit(env):
    authoring, guides, sessions = env
    save(guides)
    prompt = authoring.create(CREATOR, "Warrior", PVE, Spec.SUCCESSION)
    assert prompt.token.mode == "edit"
    assert prompt.token.author_id == "U1"
    assert {f.field.name: f.value for f in prompt.fields}["description"] == "d"
    assert len(sessions) == 1
    assert len(guides.find_all_for_class_type("Warrior", PVE)) == 1

    # A different spec is a different key, so it is a fresh create.
    assert authoring.create(CREATOR, "Warrior", PVE, Spec.AWAKENING).token.mode == "create"


def test_edit_selection_breadth(env):
    authoring, guides, _ = env
    with pytest.raises(TargetNotFound):
        authoring.edit(CREATOR, "Warrior", PVE)

    save(guides, author="U1")
    save(guides, author="U2")
    single = authoring.edit(CREATOR, "Warrior", PVE)
    assert isinstance(single, StepPrompt) and single.token.author_id == "U1"

    save(guides, author="U1", spec=Spec.AWAKENING)
    own = authoring.edit(CREATOR, "Warrior", PVE)
    assert isinstance(own, Selection)
    assert {d.author_id for d in own.documents} == {"U1"}
    assert len(own.documents) == 2

    everyone = authoring.edit(ADMIN, "Warrior", PVE)
    assert isinstance(everyone, Selection) and everyone.purpose == "edit"
    assert len(everyone.documents) == 3

    with pytest.raises(TargetNotFound):
        authoring.edit(MEMBER, "Warrior", PVE)


def test_edit_target_checks_permission(env):
    authoring, guides, _ = env
    save(guides, author="U2", origin="G2", origin_name="Guild Two")
    with pytest.raises(PermissionDenied):
        authoring.edit_target(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    with pytest.raises(TargetNotFound):
        authoring.edit_target(ADMIN, "Warrior", PVE, Spec.AWAKENING, "U2")


def test_delete_single_own_guide(env):
    authoring, guides, _ = env
    save(guides)
    confirmation = authoring.delete(CREATOR, "Warrior", PVE)
    assert isinstance(confirmation, DeleteConfirmation)
    assert confirmation.sibling_specs == ()

    deleted = authoring.confirm_delete(CREATOR, "Warrior", PVE, Spec.SUCCESSION, "U1")
    assert isinstance(deleted, Deleted)
    assert guides.find_by_key("Warrior", PVE, Spec.SUCCESSION, "U1") is None
    with pytest.raises(TargetNotFound):
        authoring.confirm_delete(CREATOR, "Warrior", PVE, Spec.SUCCESSION, "U1")


def test_scenario_admin_cannot_delete_other_servers_guide(env):
    authoring, guides, _ = env
    save(guides, author="U2", origin="G2", origin_name="Guild Two")

    listing = authoring.delete(ADMIN, "Warrior", PVE)
    assert isinstance(listing, Selection)
    assert len(listing.documents) == 1

    with pytest.raises(PermissionDenied) as info:
        authoring.confirm_delete(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    assert "Guild Two" in info.value.message
    with pytest.raises(PermissionDenied):
        authoring.delete_target(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    assert guides.find_by_key("Warrior", PVE, Spec.SUCCESSION, "U2") is not None


def test_admin_deletes_local_guide(env):
    authoring, guides, _ = env
    save(guides, author="U2", origin="G1")
    confirmation = authoring.delete_target(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    assert confirmation.document.author_id == "U2"
    authoring.confirm_delete(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    assert guides.find_all_for_class_type("Warrior", PVE) == []


def test_delete_all_for_author(env):
    authoring, guides, _ = env
    save(guides, author="U2", spec=Spec.SUCCESSION, origin="G1")
    save(guides, author="U2", spec=Spec.AWAKENING, origin="G2", origin_name="Guild Two")
    save(guides, author="U3")

    confirmation = authoring.delete_target(ADMIN, "Warrior", PVE, Spec.SUCCESSION, "U2")
    assert confirmation.sibling_specs == (Spec.AWAKENING,)

    with pytest.raises(PermissionDenied):
        authoring.delete_all_for_author(CREATOR, "Warrior", PVE, "U2")

    deleted = authoring.delete_all_for_author(ADMIN, "Warrior", PVE, "U2")
    # Only the guide from the admin's own server is removed.
    assert [d.spec for d in deleted.documents] == [Spec.SUCCESSION]
    remaining = sorted(
        (d.author_id, d.spec.value)
        for d in guides.find_all_for_class_type("Warrior", PVE)
    )
    assert remaining == [("U2", "awakening"), ("U3", "succession")]

    superuser = Actor("SU", "G5")
    assert len(authoring.delete_all_for_author(superuser, "Warrior", PVE, "U2").documents) == 1
    with pytest.raises(TargetNotFound):
        authoring.delete_all_for_author(superuser, "Warrior", PVE, "U2")


def test_quick_edit_entry(env):
    authoring, guides, sessions = env
    save(guides)
    prompt = authoring.quick_edit(CREATOR, "Warrior", PVE, Spec.SUCCESSION, "U1", 2)
    assert prompt.token.mode == "quick" and prompt.step == 2
    with pytest.raises(InvalidSubmission):
        authoring.quick_edit(CREATOR, "Warrior", PVE, Spec.SUCCESSION, "U1", 9)
    with pytest.raises(PermissionDenied):
        authoring.quick_edit(MEMBER, "Warrior", PVE, Spec.SUCCESSION, "U1", 1)


def test_view(env):
    authoring, guides, _ = env
    with pytest.raises(TargetNotFound):
        authoring.view("Warrior", PVE)
    first = save(guides, author="U1", spec=Spec.AWAKENING, day=1)
    save(guides, author="U2", day=2)
    assert [d.author_id for d in authoring.view("warrior", PVE)][0] == first.author_id
    assert len(authoring.view("Warrior", PVE)) == 2
    assert len(authoring.view("Warrior", PVE, Spec.SUCCESSION)) == 1
    assert authoring.view_target("Warrior", PVE, Spec.SUCCESSION, "U2").author_id == "U2"
