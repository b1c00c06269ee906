"""Wiring of stores and engines shared by commands and UI components."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from .adapters.base import UserDirectory
from .authoring import GuideAuthoring
from .config import Settings
from .data.guides import GuideStore
from .data.sessions import SessionStore
from .data.settings import ServerSettingsStore
from .permissions import PermissionEngine
from .workflow import WorkflowEngine


@dataclass
class GuideServices:
    server_settings: ServerSettingsStore
    guides: GuideStore
    sessions: SessionStore
    permissions: PermissionEngine
    workflow: WorkflowEngine
    authoring: GuideAuthoring


def build_services(
    settings: Settings, users: UserDirectory | None = None
) -> GuideServices:
    server_settings = ServerSettingsStore(path=settings.server_settings_path)
    guides = GuideStore(root=settings.guides_path)
    sessions = SessionStore(
        ttl=datetime.timedelta(minutes=settings.session_ttl_minutes)
    )
    permissions = PermissionEngine(server_settings, settings.superuser_ids)
    workflow = WorkflowEngine(sessions, guides, permissions, users)
    return GuideServices(
        server_settings=server_settings,
        guides=guides,
        sessions=sessions,
        permissions=permissions,
        workflow=workflow,
        authoring=GuideAuthoring(workflow, guides, permissions),
    )
