import types

import pytest

from guide_bot.core.models import ActivityType, GuideDocument, Spec
from guide_bot.data.settings import ServerSettingsStore
from guide_bot.errors import NotConfigured, PermissionDenied
from guide_bot.permissions import Actor, PermissionEngine


@pytest.fixture
def engine(tmp_path):
    settings = ServerSettingsStore(path=str(tmp_path / "settings.json"))
    settings.add_roles("G1", ["creator"], ["admin"], actor_id="owner")
    return PermissionEngine(settings, superuser_ids=["SU"])


def doc(author="U1", origin="G1", origin_name="Guild One"):
    return GuideDocument(
        activity_class="Warrior",
        activity_type=ActivityType.PVP,
        spec=Spec.SUCCESSION,
        author_id=author,
        origin_guild_id=origin,
        origin_guild_name=origin_name,
    )


def test_setup_gates_authoring_even_for_administrators(engine):
    admin = Actor("U9", "G2", is_administrator=True, role_ids=frozenset({"creator"}))
    assert engine.can_author(admin) is False
    assert isinstance(engine.authoring_denial(admin), NotConfigured)


def test_can_author_requires_a_guide_role(engine):
    assert engine.can_author(Actor("U1", "G1", role_ids=frozenset({"creator"})))
    assert engine.can_author(Actor("U1", "G1", role_ids=frozenset({"admin"})))
    member = Actor("U2", "G1", role_ids=frozenset({"other"}), is_administrator=True)
    assert engine.can_author(member) is False
    denial = engine.authoring_denial(member)
    assert isinstance(denial, PermissionDenied)
    assert "<@&creator>" in denial.message


def test_superuser_can_author_anywhere(engine):
    assert engine.can_author(Actor("SU", "unconfigured"))


def test_can_manage_all(engine):
    assert engine.can_manage_all(Actor("U1", "G1", role_ids=frozenset({"admin"})))
    assert engine.can_manage_all(Actor("U1", "G3", is_administrator=True))
    assert engine.can_manage_all(Actor("SU", "G3"))
    assert not engine.can_manage_all(Actor("U1", "G1", role_ids=frozenset({"creator"})))


def test_owner_can_modify_from_any_guild(engine):
    assert engine.can_modify(Actor("U1", "G7"), doc(origin="G2")).allowed


def test_cross_guild_isolation_for_admins(engine):
    admin = Actor("A1", "G1", role_ids=frozenset({"admin"}))
    assert engine.can_modify(admin, doc(origin="G1")).allowed

    decision = engine.can_modify(admin, doc(origin="G2", origin_name="Guild Two"))
    assert decision.allowed is False
    assert "Guild Two" in decision.reason

    with pytest.raises(PermissionDenied) as info:
        engine.require_modify(admin, doc(origin="G2", origin_name="Guild Two"))
    assert "different server" in info.value.message


def test_legacy_documents_are_not_admin_modifiable(engine):
    admin = Actor("A1", "G1", role_ids=frozenset({"admin"}))
    assert engine.can_modify(admin, doc(origin=None, origin_name=None)).allowed is False


def test_superuser_override(engine):
    superuser = Actor("SU", "G5")
    for origin in ("G1", "G2", None):
        assert engine.can_modify(superuser, doc(origin=origin)).allowed


def test_other_members_are_told_to_edit_their_own(engine):
    member = Actor("U2", "G1", role_ids=frozenset({"creator"}), is_administrator=True)
    decision = engine.can_modify(member, doc())
    assert decision.allowed is False
    assert decision.reason == "You can only modify your own guides."
    # Other servers are never named to someone without a guide admin role.
    assert "Guild" not in decision.reason


def test_actor_from_interaction():
    interaction = types.SimpleNamespace(
        user=types.SimpleNamespace(
            id=5,
            display_name="Alice",
            roles=[types.SimpleNamespace(id=10), types.SimpleNamespace(id=11)],
            guild_permissions=types.SimpleNamespace(administrator=True),
        ),
        guild=types.SimpleNamespace(id=99, name="Guild"),
    )
    actor = Actor.from_interaction(interaction)
    assert actor == Actor(
        user_id="5",
        guild_id="99",
        display_name="Alice",
        guild_name="Guild",
        role_ids=frozenset({"10", "11"}),
        is_administrator=True,
    )
