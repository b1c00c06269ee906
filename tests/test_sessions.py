import datetime

from guide_bot.core.models import ActivityType, GuideDocument, GuideKey, Spec
from guide_bot.data.sessions import AuthoringSession, SessionStore


def key(author="1", activity_class="Warrior"):
    return GuideKey(activity_class, ActivityType.PVE, Spec.SUCCESSION, author)


class Clock:
    def __init__(self):
        self.now = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += datetime.timedelta(**kwargs)


def test_merge_overwrites_by_name_and_preserves_others():
    store = SessionStore()
    store.upsert_merge(key(), {"a": 1}, actual_submitter_id="1")
    assert store.upsert_merge(key(), {"b": 2}).fields == {"a": 1, "b": 2}
    assert store.upsert_merge(key(), {"a": 3}).fields == {"a": 3, "b": 2}
    assert len(store) == 1


def test_last_merge_wins_between_operators():
    # Two operators on the same key are not detected; the later write wins.
    store = SessionStore()
    store.upsert_merge(key("U2"), {"description": "mine"}, actual_submitter_id="U2")
    store.upsert_merge(key("U2"), {"description": "proxy"}, actual_submitter_id="SU")
    session = store.get(key("U2"))
    assert session.fields["description"] == "proxy"
    assert session.actual_submitter_id == "U2"


def test_values_layer_session_over_original():
    original = GuideDocument(
        activity_class="Warrior",
        activity_type=ActivityType.PVE,
        spec=Spec.SUCCESSION,
        author_id="1",
        description="old",
        pros=["p"],
    )
    session = AuthoringSession(
        key=key(), actual_submitter_id="1", original_document=original
    )
    session.fields["description"] = "new"
    values = session.values()
    assert values["description"] == "new"
    assert values["pros"] == ["p"]


def test_find_by_suffix_matches_operator():
    store = SessionStore()
    store.upsert_merge(key("U2"), {}, actual_submitter_id="SU")
    store.upsert_merge(key("U3"), {}, actual_submitter_id="U3")
    store.upsert_merge(key("U4", "Musa"), {}, actual_submitter_id="SU")

    found = store.find_by_suffix("Warrior", ActivityType.PVE, Spec.SUCCESSION, "SU")
    assert found.key == key("U2")
    assert store.find_by_suffix("Warrior", ActivityType.PVE, Spec.AWAKENING, "SU") is None
    assert store.find_by_suffix("Warrior", ActivityType.PVE, Spec.SUCCESSION, "X") is None


def test_delete_and_rekey_keep_index_consistent():
    store = SessionStore()
    store.upsert_merge(key("SU"), {"a": 1}, actual_submitter_id="SU")
    moved = store.rekey(key("SU"), key("U2"))
    assert moved.key == key("U2") and moved.fields == {"a": 1}
    assert store.get(key("SU")) is None
    assert store.find_by_suffix("Warrior", ActivityType.PVE, Spec.SUCCESSION, "SU") is moved

    assert store.delete(key("U2")) is True
    assert store.delete(key("U2")) is False
    assert store.find_by_suffix("Warrior", ActivityType.PVE, Spec.SUCCESSION, "SU") is None
    assert store.rekey(key("U2"), key("SU")) is None


def test_seed_replaces_existing_session():
    store = SessionStore()
    store.upsert_merge(key(), {"a": 1}, actual_submitter_id="1")
    store.seed(AuthoringSession(key=key(), actual_submitter_id="2", mode="edit"))
    session = store.get(key())
    assert session.fields == {}
    assert session.mode == "edit"


def test_sessions_expire_after_ttl():
    clock = Clock()
    store = SessionStore(ttl=datetime.timedelta(minutes=30), clock=clock)
    store.upsert_merge(key("1"), {}, actual_submitter_id="1")
    clock.advance(minutes=20)
    store.upsert_merge(key("2"), {}, actual_submitter_id="2")

    clock.advance(minutes=15)
    assert store.get(key("1")) is None
    assert store.get(key("2")) is not None

    clock.advance(minutes=31)
    assert store.reap() == 1
    assert len(store) == 0


def test_touch_extends_lifetime():
    clock = Clock()
    store = SessionStore(ttl=datetime.timedelta(minutes=30), clock=clock)
    store.upsert_merge(key(), {"a": 1}, actual_submitter_id="1")
    clock.advance(minutes=25)
    store.upsert_merge(key(), {"b": 2})
    clock.advance(minutes=25)
    assert store.get(key()).fields == {"a": 1, "b": 2}
    assert store.reap() == 0
