import asyncio
import sys
import types

import pytest

from guide_bot.core.models import ActivityType, GuideKey, Spec
from guide_bot.core.steps import get_step
from guide_bot.data.guides import GuideStore
from guide_bot.data.sessions import SessionStore
from guide_bot.data.settings import ServerSettingsStore
from guide_bot.errors import PermissionDenied
from guide_bot.permissions import Actor, PermissionEngine
from guide_bot.workflow import StepComplete, WorkflowEngine


@pytest.fixture
def modal_env(monkeypatch, tmp_path):
    # Minimal discord stubs
    class Modal:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs
            self.children = []

        def add_item(self, item):
            self.children.append(item)

        def __init_subclass__(cls, **kwargs):
            pass

    class TextInput:
        def __init__(self, *args, **kwargs):
            self.kwargs = kwargs
            self.value = kwargs.get("default") or ""

    class TextStyle:
        long = 1
        short = 2

    ui = types.SimpleNamespace(Modal=Modal, TextInput=TextInput)
    discord_stub = types.SimpleNamespace(ui=ui, TextStyle=TextStyle)
    monkeypatch.setitem(sys.modules, "discord", discord_stub)
    monkeypatch.setitem(sys.modules, "discord.ui", ui)

    # Record what the views layer would have rendered
    rendered = []
    errors = []

    async def render_outcome(interaction, services, outcome):
        rendered.append(outcome)

    async def send_error(interaction, exc):
        errors.append(exc)

    views_module = types.SimpleNamespace(
        render_outcome=render_outcome, send_error=send_error
    )
    monkeypatch.setitem(sys.modules, "guide_bot.ui.views", views_module)
    monkeypatch.delitem(sys.modules, "guide_bot.ui.modals", raising=False)

    settings = ServerSettingsStore(path=str(tmp_path / "settings.json"))
    settings.add_roles("1", ["10"], [], actor_id="owner")
    sessions = SessionStore()
    permissions = PermissionEngine(settings)
    workflow = WorkflowEngine(sessions, GuideStore(tmp_path / "guides"), permissions)
    services = types.SimpleNamespace(workflow=workflow)

    yield services, sessions, rendered, errors
    sys.modules.pop("guide_bot.ui.modals", None)


def interaction_for(role_ids):
    user = types.SimpleNamespace(
        id=7,
        display_name="Alice",
        roles=[types.SimpleNamespace(id=r) for r in role_ids],
    )
    guild = types.SimpleNamespace(id=1, name="Guild One")
    return types.SimpleNamespace(user=user, guild=guild)


def open_modal(services, actor):
    from guide_bot.ui.modals import StepModal

    prompt = services.workflow.start_create(actor, "Warrior", ActivityType.PVE, Spec.SUCCESSION)
    modal = StepModal(services, prompt)
    for name, text_input in modal.inputs.items():
        text_input.value = f"{name} text"
    return modal


def test_step_modal_builds_inputs(modal_env):
    services, _, _, _ = modal_env
    actor = Actor("7", "1", "Alice", "Guild One", frozenset({"10"}))
    modal = open_modal(services, actor)

    step = get_step(ActivityType.PVE, 1)
    assert list(modal.inputs) == [f.name for f in step.fields]
    assert len(modal.children) == len(step.fields)
    assert len(modal.kwargs["title"]) <= 45
    assert modal.kwargs["custom_id"].startswith("guide|step|submit|create|1|")


def test_step_modal_submits_to_workflow(modal_env):
    services, sessions, rendered, errors = modal_env
    actor = Actor("7", "1", "Alice", "Guild One", frozenset({"10"}))
    modal = open_modal(services, actor)

    asyncio.run(modal.on_submit(interaction_for([10])))

    assert errors == []
    assert len(rendered) == 1
    assert isinstance(rendered[0], StepComplete)
    session = sessions.get(GuideKey("Warrior", ActivityType.PVE, Spec.SUCCESSION, "7"))
    assert session.fields["description"] == "description text"


def test_step_modal_reports_errors(modal_env):
    services, sessions, rendered, errors = modal_env
    actor = Actor("7", "1", "Alice", "Guild One", frozenset({"10"}))
    modal = open_modal(services, actor)

    # The role was taken away between opening and submitting the form.
    asyncio.run(modal.on_submit(interaction_for([])))

    assert rendered == []
    assert len(errors) == 1
    assert isinstance(errors[0], PermissionDenied)
    assert len(sessions) == 0
